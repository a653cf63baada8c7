"""
Unit tests for ConfigManager and the configuration dataclasses.
"""

import pytest
import json
import tempfile
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from config.config_manager import (
    ConfigManager, AppConfig, OutputSettings, Paths, ShiftDefaults
)
from domain.entities import OvertimeTiers, ShiftName, TimeInterval


class TestShiftDefaults:
    """Tests for ShiftDefaults dataclass."""

    def test_default_values(self):
        defaults = ShiftDefaults()
        assert defaults.regular_start == "08:00"
        assert defaults.regular_end == "16:00"
        assert defaults.lunch_duration == 30
        assert defaults.early_counts_toward_total is False
        assert defaults.late_counts_toward_total is True
        assert defaults.free_overtime_duration == "00:30"
        assert defaults.next_overtime_duration == "02:00"

    def test_to_policy(self):
        policy = ShiftDefaults().to_policy("s1", ShiftName.MORNING)
        assert policy.id == "s1"
        assert policy.name == ShiftName.MORNING
        assert policy.required_minutes == 450
        assert policy.lunch.flex_window == TimeInterval("11:00", "13:00")
        assert policy.late_stay.overtime_multiplier == 1.5
        assert policy.overtime_tiers == OvertimeTiers(30, 120, 1.5, 2.0)

    def test_to_policy_without_tiers(self):
        policy = ShiftDefaults(overtime_tiers_enabled=False).to_policy("s1")
        assert policy.overtime_tiers is None
        assert policy.name == ShiftName.REGULAR


class TestOutputSettings:
    """Tests for OutputSettings dataclass."""

    def test_default_values(self):
        settings = OutputSettings()
        assert settings.excel_filename_pattern == "FlexReport_{employee}_{year}_W{week}.xlsx"
        assert settings.generate_pdf is True
        assert settings.pdf_output_dir == ""
        assert settings.custom_font_path == ""


class TestConfigManager:
    """Tests for ConfigManager load/save."""

    def test_load_missing_file_uses_defaults(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            manager = ConfigManager(Path(tmpdir) / "config.json")
            config = manager.load()
            assert config == AppConfig()

    def test_save_and_load_roundtrip(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "nested" / "config.json"
            manager = ConfigManager(config_path)
            manager.load()
            manager.config.paths.data_dir = tmpdir
            manager.config.shift_defaults.regular_end = "17:00"
            manager.config.shift_defaults.next_overtime_multiplier = 1.75
            manager.config.output_settings.generate_pdf = False
            manager.save()

            reloaded = ConfigManager(config_path).load()
            assert reloaded.paths.data_dir == tmpdir
            assert reloaded.shift_defaults.regular_end == "17:00"
            assert reloaded.shift_defaults.next_overtime_multiplier == 1.75
            assert reloaded.output_settings.generate_pdf is False

    def test_corrupt_file_uses_defaults(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "config.json"
            config_path.write_text("{not json", encoding="utf-8")
            config = ConfigManager(config_path).load()
            assert config == AppConfig()
            assert "Warning" in capsys.readouterr().out

    def test_missing_keys_take_defaults(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "config.json"
            config_path.write_text(
                json.dumps({"shift_defaults": {"lunch_duration": 45}}), encoding="utf-8"
            )
            config = ConfigManager(config_path).load()
            assert config.shift_defaults.lunch_duration == 45
            assert config.shift_defaults.regular_start == "08:00"
            assert config.paths == Paths()
            assert config.output_settings == OutputSettings()

    def test_update_saves(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "config.json"
            manager = ConfigManager(config_path)
            manager.load()
            manager.update(paths=Paths(output_dir=tmpdir))
            data = json.loads(config_path.read_text(encoding="utf-8"))
            assert data["paths"]["output_dir"] == tmpdir

    def test_directories(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            manager = ConfigManager(Path(tmpdir) / "config.json")
            manager.load()
            assert manager.data_dir == ConfigManager.PROJECT_ROOT / "data"
            assert manager.output_dir == ConfigManager.PROJECT_ROOT / "reports"

            manager.config.paths.data_dir = tmpdir
            manager.config.paths.output_dir = tmpdir
            assert manager.data_dir == Path(tmpdir)
            assert manager.output_dir == Path(tmpdir)
