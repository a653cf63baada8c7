"""
Configuration Manager Module

Handles loading, saving, and managing application configuration.
Provides bi-directional mapping between the config dataclasses and JSON persistence.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from domain.entities import (
    EarlyArrivalPolicy, LateStayPolicy, LunchPolicy, OvertimeTiers,
    ShiftName, ShiftPolicy, TimeInterval
)
from domain.time_utils import parse_time


@dataclass
class Paths:
    """File paths configuration."""
    data_dir: str = ""           # Empty = <project root>/data
    records_file: str = "records.json"
    companies_file: str = "companies.json"
    output_dir: str = ""         # Empty = <project root>/reports


@dataclass
class ShiftDefaults:
    """Values used when a new shift is created."""
    regular_start: str = "08:00"
    regular_end: str = "16:00"
    lunch_default_start: str = "12:00"
    lunch_duration: int = 30
    flex_window_start: str = "11:00"
    flex_window_end: str = "13:00"
    early_max_minutes: int = 30
    early_counts_toward_total: bool = False
    late_max_minutes: int = 60
    late_counts_toward_total: bool = True
    overtime_multiplier: float = 1.5

    # Tiered overtime ("HH:MM" durations as entered in the shift form)
    overtime_tiers_enabled: bool = True
    free_overtime_duration: str = "00:30"
    next_overtime_duration: str = "02:00"
    next_overtime_multiplier: float = 1.5
    beyond_overtime_multiplier: float = 2.0

    def to_policy(self, policy_id: str, name: ShiftName = ShiftName.REGULAR) -> ShiftPolicy:
        """Build a ShiftPolicy from these defaults."""
        tiers = None
        if self.overtime_tiers_enabled:
            tiers = OvertimeTiers(
                free_minutes=parse_time(self.free_overtime_duration),
                next_minutes=parse_time(self.next_overtime_duration),
                next_multiplier=self.next_overtime_multiplier,
                beyond_multiplier=self.beyond_overtime_multiplier,
            )
        return ShiftPolicy(
            id=policy_id,
            name=name,
            regular_start=self.regular_start,
            regular_end=self.regular_end,
            lunch=LunchPolicy(
                default_start=self.lunch_default_start,
                duration_minutes=self.lunch_duration,
                flex_window=TimeInterval(self.flex_window_start, self.flex_window_end),
            ),
            early_arrival=EarlyArrivalPolicy(
                max_minutes=self.early_max_minutes,
                counts_toward_total=self.early_counts_toward_total,
            ),
            late_stay=LateStayPolicy(
                max_minutes=self.late_max_minutes,
                counts_toward_total=self.late_counts_toward_total,
                overtime_multiplier=self.overtime_multiplier,
            ),
            overtime_tiers=tiers,
        )


@dataclass
class OutputSettings:
    """Output settings for generated weekly reports."""
    excel_filename_pattern: str = "FlexReport_{employee}_{year}_W{week}.xlsx"
    generate_pdf: bool = True
    pdf_output_dir: str = ""     # Empty = same directory as the xlsx
    pdf_filename_pattern: str = "FlexReport_{employee}_{year}_W{week}.pdf"
    custom_font_path: str = ""   # TTF used for the PDF instead of Helvetica


@dataclass
class AppConfig:
    """Main application configuration container."""
    paths: Paths = field(default_factory=Paths)
    shift_defaults: ShiftDefaults = field(default_factory=ShiftDefaults)
    output_settings: OutputSettings = field(default_factory=OutputSettings)


class ConfigManager:
    """
    Manages application configuration with JSON persistence.

    Responsibilities:
    - Load configuration from JSON file
    - Save configuration to JSON file
    - Provide default configuration
    - Convert between dataclass and dict representations
    """

    DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config.json"
    PROJECT_ROOT = Path(__file__).parent.parent.parent

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path or self.DEFAULT_CONFIG_PATH
        self._config: AppConfig = AppConfig()

    @property
    def config(self) -> AppConfig:
        """Get current configuration."""
        return self._config

    @property
    def data_dir(self) -> Path:
        """Directory holding the record and company stores."""
        if self._config.paths.data_dir:
            return Path(self._config.paths.data_dir)
        return self.PROJECT_ROOT / "data"

    @property
    def output_dir(self) -> Path:
        """Directory reports are written to."""
        if self._config.paths.output_dir:
            return Path(self._config.paths.output_dir)
        return self.PROJECT_ROOT / "reports"

    def load(self) -> AppConfig:
        """Load configuration from JSON file."""
        if self.config_path.exists():
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                self._config = self._dict_to_config(data)
            except (json.JSONDecodeError, KeyError, TypeError) as e:
                print(f"Warning: Failed to load config, using defaults. Error: {e}")
                self._config = AppConfig()
        else:
            self._config = AppConfig()
        return self._config

    def save(self) -> None:
        """Save current configuration to JSON file."""
        data = self._config_to_dict(self._config)
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def update(self, **kwargs) -> None:
        """Update specific configuration values."""
        for key, value in kwargs.items():
            if hasattr(self._config, key):
                setattr(self._config, key, value)
        self.save()

    def _config_to_dict(self, config: AppConfig) -> dict:
        """Convert AppConfig dataclass to dictionary."""
        defaults = config.shift_defaults
        return {
            "paths": {
                "data_dir": config.paths.data_dir,
                "records_file": config.paths.records_file,
                "companies_file": config.paths.companies_file,
                "output_dir": config.paths.output_dir
            },
            "shift_defaults": {
                "regular_start": defaults.regular_start,
                "regular_end": defaults.regular_end,
                "lunch_default_start": defaults.lunch_default_start,
                "lunch_duration": defaults.lunch_duration,
                "flex_window_start": defaults.flex_window_start,
                "flex_window_end": defaults.flex_window_end,
                "early_max_minutes": defaults.early_max_minutes,
                "early_counts_toward_total": defaults.early_counts_toward_total,
                "late_max_minutes": defaults.late_max_minutes,
                "late_counts_toward_total": defaults.late_counts_toward_total,
                "overtime_multiplier": defaults.overtime_multiplier,
                "overtime_tiers_enabled": defaults.overtime_tiers_enabled,
                "free_overtime_duration": defaults.free_overtime_duration,
                "next_overtime_duration": defaults.next_overtime_duration,
                "next_overtime_multiplier": defaults.next_overtime_multiplier,
                "beyond_overtime_multiplier": defaults.beyond_overtime_multiplier
            },
            "output_settings": {
                "excel_filename_pattern": config.output_settings.excel_filename_pattern,
                "generate_pdf": config.output_settings.generate_pdf,
                "pdf_output_dir": config.output_settings.pdf_output_dir,
                "pdf_filename_pattern": config.output_settings.pdf_filename_pattern,
                "custom_font_path": config.output_settings.custom_font_path
            }
        }

    def _dict_to_config(self, data: dict) -> AppConfig:
        """Convert dictionary to AppConfig dataclass."""
        paths_data = data.get("paths", {})
        defaults_data = data.get("shift_defaults", {})
        output_data = data.get("output_settings", {})

        # Build Paths
        paths = Paths(
            data_dir=paths_data.get("data_dir", ""),
            records_file=paths_data.get("records_file", "records.json"),
            companies_file=paths_data.get("companies_file", "companies.json"),
            output_dir=paths_data.get("output_dir", "")
        )

        # Build ShiftDefaults
        shift_defaults = ShiftDefaults(
            regular_start=defaults_data.get("regular_start", "08:00"),
            regular_end=defaults_data.get("regular_end", "16:00"),
            lunch_default_start=defaults_data.get("lunch_default_start", "12:00"),
            lunch_duration=defaults_data.get("lunch_duration", 30),
            flex_window_start=defaults_data.get("flex_window_start", "11:00"),
            flex_window_end=defaults_data.get("flex_window_end", "13:00"),
            early_max_minutes=defaults_data.get("early_max_minutes", 30),
            early_counts_toward_total=defaults_data.get("early_counts_toward_total", False),
            late_max_minutes=defaults_data.get("late_max_minutes", 60),
            late_counts_toward_total=defaults_data.get("late_counts_toward_total", True),
            overtime_multiplier=defaults_data.get("overtime_multiplier", 1.5),
            overtime_tiers_enabled=defaults_data.get("overtime_tiers_enabled", True),
            free_overtime_duration=defaults_data.get("free_overtime_duration", "00:30"),
            next_overtime_duration=defaults_data.get("next_overtime_duration", "02:00"),
            next_overtime_multiplier=defaults_data.get("next_overtime_multiplier", 1.5),
            beyond_overtime_multiplier=defaults_data.get("beyond_overtime_multiplier", 2.0)
        )

        # Build OutputSettings
        output_settings = OutputSettings(
            excel_filename_pattern=output_data.get(
                "excel_filename_pattern", "FlexReport_{employee}_{year}_W{week}.xlsx"
            ),
            generate_pdf=output_data.get("generate_pdf", True),
            pdf_output_dir=output_data.get("pdf_output_dir", ""),
            pdf_filename_pattern=output_data.get(
                "pdf_filename_pattern", "FlexReport_{employee}_{year}_W{week}.pdf"
            ),
            custom_font_path=output_data.get("custom_font_path", "")
        )

        return AppConfig(
            paths=paths,
            shift_defaults=shift_defaults,
            output_settings=output_settings
        )
