"""
Excel Parser Module

Imports DailyRecords from an .xlsx timesheet.
Cleans messy cell values such as "*" markers and mixed time cell types.

Expected columns (header row anywhere in the first rows, any order):
Employee | Date | Clock In | Clock Out | Lunch Start | Lunch End |
Breaks | Shift | Overtime Start | Overtime End | Notes
"""

import re
from datetime import date, datetime, time
from pathlib import Path
from typing import Dict, List, Optional

from openpyxl import load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from domain.entities import DailyRecord, TimeInterval
from domain.errors import InvalidTimeFormat
from domain.time_utils import MINUTES_PER_DAY, format_minutes, parse_time
from infrastructure.logger import get_logger

logger = get_logger("ExcelParser")


# ==============================================================================
# Custom Exceptions
# ==============================================================================
class TimesheetFormatError(Exception):
    """Raised when the timesheet layout is unrecognized or invalid."""
    pass


# ==============================================================================
# TimesheetParser Class
# ==============================================================================
class TimesheetParser:
    """
    Parses .xlsx timesheets into DailyRecords.

    Handles:
    - Header detection by column name
    - Removing "*" symbols from time values
    - Time cells stored as text, time, datetime or day fractions
    - Break lists such as "10:00-10:15; 14:30-14:45"
    """

    COLUMN_ALIASES: Dict[str, tuple] = {
        "employee_id": ("employee", "employee id", "name"),
        "date": ("date",),
        "clock_in": ("clock in", "in"),
        "clock_out": ("clock out", "out"),
        "lunch_start": ("lunch start",),
        "lunch_end": ("lunch end",),
        "breaks": ("breaks", "other breaks"),
        "shift_id": ("shift", "shift id"),
        "overtime_start": ("overtime start",),
        "overtime_end": ("overtime end",),
        "notes": ("notes", "remark", "remarks"),
    }

    REQUIRED_COLUMNS = (
        "employee_id", "date", "clock_in", "clock_out", "lunch_start", "lunch_end"
    )

    DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%d.%m.%Y")

    # Pattern to clean time values with asterisks
    TIME_CLEAN_PATTERN = re.compile(r'\*')

    # Separators for the breaks column
    BREAK_SPLIT_PATTERN = re.compile(r'[;,]')

    # Maximum rows to search for header
    MAX_HEADER_SEARCH_ROWS = 15

    def __init__(self, default_shift_id: Optional[str] = None):
        """
        Args:
            default_shift_id: Shift used for rows without a Shift column value
        """
        self.default_shift_id = default_shift_id
        self.skipped_rows = 0

    def parse_file(self, file_path: Path) -> List[DailyRecord]:
        """
        Parse every worksheet of a timesheet workbook.

        Args:
            file_path: Path to the .xlsx file

        Returns:
            Records in sheet/row order

        Raises:
            TimesheetFormatError: If a sheet lacks the required columns
        """
        if not file_path.exists():
            logger.warning(f"Timesheet not found: {file_path}")
            return []

        logger.info(f"Parsing timesheet: {file_path.name}")
        self.skipped_rows = 0
        records: List[DailyRecord] = []

        wb = load_workbook(file_path, data_only=True)
        try:
            for ws in wb.worksheets:
                records.extend(self._parse_worksheet(ws))
        finally:
            wb.close()

        logger.info(
            f"Parsed {len(records)} record(s) from {file_path.name}, "
            f"skipped {self.skipped_rows} row(s)"
        )
        return records

    def _find_header(self, ws: Worksheet) -> tuple:
        """Return (header_row, {field: column}) for the first matching row."""
        max_rows = min(self.MAX_HEADER_SEARCH_ROWS, ws.max_row)
        for row_idx in range(1, max_rows + 1):
            columns = {}
            for col_idx in range(1, ws.max_column + 1):
                label = self._normalize_label(ws.cell(row_idx, col_idx).value)
                for field_name, aliases in self.COLUMN_ALIASES.items():
                    if label in aliases and field_name not in columns:
                        columns[field_name] = col_idx
            if all(name in columns for name in self.REQUIRED_COLUMNS):
                return row_idx, columns

        raise TimesheetFormatError(
            f"Sheet '{ws.title}': no header row with columns "
            f"{', '.join(self.REQUIRED_COLUMNS)} in the first "
            f"{self.MAX_HEADER_SEARCH_ROWS} rows"
        )

    def _parse_worksheet(self, ws: Worksheet) -> List[DailyRecord]:
        header_row, columns = self._find_header(ws)
        if "shift_id" not in columns and not self.default_shift_id:
            raise TimesheetFormatError(
                f"Sheet '{ws.title}': no Shift column and no default shift configured"
            )

        logger.debug(f"Sheet '{ws.title}': header row {header_row}, columns {columns}")
        records = []

        for row_idx in range(header_row + 1, ws.max_row + 1):
            def cell(field_name):
                col = columns.get(field_name)
                return ws.cell(row_idx, col).value if col else None

            employee = cell("employee_id")
            record_date = self._extract_date(cell("date"))
            # Skip blank and summary rows
            if not employee or record_date is None:
                continue

            try:
                shift_id = str(cell("shift_id") or self.default_shift_id or "").strip()
                if not shift_id:
                    raise ValueError("missing shift")
                overtime_start = self._extract_time(cell("overtime_start"))
                overtime_end = self._extract_time(cell("overtime_end"))
                records.append(DailyRecord(
                    id=f"{ws.title}-{row_idx}",
                    employee_id=str(employee).strip(),
                    date=record_date,
                    clock=TimeInterval(
                        self._require_time(cell("clock_in")),
                        self._require_time(cell("clock_out"))
                    ),
                    lunch=TimeInterval(
                        self._require_time(cell("lunch_start")),
                        self._require_time(cell("lunch_end"))
                    ),
                    shift_policy_id=shift_id,
                    breaks=self._extract_breaks(cell("breaks")),
                    overtime=(
                        TimeInterval(overtime_start, overtime_end)
                        if overtime_start and overtime_end else None
                    ),
                    notes=str(cell("notes") or "").strip()
                ))
            except ValueError as e:
                self.skipped_rows += 1
                logger.warning(f"Sheet '{ws.title}' row {row_idx} skipped: {e}")

        return records

    @staticmethod
    def _normalize_label(value) -> str:
        if value is None:
            return ""
        return re.sub(r'[_\-\s]+', ' ', str(value)).strip().lower()

    def _extract_date(self, value) -> Optional[date]:
        """Extract a date from a cell, None for non-date cells."""
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            text = value.strip()
            for fmt in self.DATE_FORMATS:
                try:
                    return datetime.strptime(text, fmt).date()
                except ValueError:
                    continue
        return None

    def _extract_time(self, value) -> Optional[str]:
        """
        Extract a normalized "HH:MM" string from a cell.

        Raises:
            InvalidTimeFormat: If a non-empty cell is not a valid time
        """
        if value is None:
            return None
        if isinstance(value, datetime):
            value = value.time()
        if isinstance(value, time):
            return f"{value.hour:02d}:{value.minute:02d}"
        if isinstance(value, (int, float)):
            # Excel stores times as fractions of a day
            return format_minutes(round(value * MINUTES_PER_DAY) % MINUTES_PER_DAY)

        text = self.TIME_CLEAN_PATTERN.sub('', str(value)).strip()
        if not text:
            return None
        return format_minutes(parse_time(text))

    def _require_time(self, value) -> str:
        result = self._extract_time(value)
        if result is None:
            raise InvalidTimeFormat(value, "Required time cell is empty")
        return result

    def _extract_breaks(self, value) -> List[TimeInterval]:
        """Parse "10:00-10:15; 14:30-14:45" into intervals."""
        if value is None or not str(value).strip():
            return []
        breaks = []
        for part in self.BREAK_SPLIT_PATTERN.split(str(value)):
            part = part.strip()
            if not part:
                continue
            bounds = part.split('-')
            if len(bounds) != 2:
                raise InvalidTimeFormat(part, f"Break '{part}' is not START-END")
            breaks.append(TimeInterval(
                self._require_time(bounds[0]), self._require_time(bounds[1])
            ))
        return breaks
