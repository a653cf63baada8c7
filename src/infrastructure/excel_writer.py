"""
Excel Writer Module

Generates formatted weekly flex-bank reports with styling.
Rows are colored by flex direction; days without a shift policy are grayed.
"""

from pathlib import Path
from typing import List, Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from domain.entities import FlexDirection, WeeklyDayRow, WeeklySummary
from infrastructure.logger import get_logger

logger = get_logger("ExcelWriter")


class WeeklyReportExcelWriter:
    """
    Generates formatted weekly flex-bank reports.

    Output format:
    - Sheet "Weekly Flex": one row per worked day, flagged days, totals
    - Sheet "Daily Details": per-day calculation breakdown and notes

    Styling:
    - Green flex cells for days that added to the bank
    - Red flex cells for days that removed from the bank
    - Gray rows for days skipped because of a missing shift policy
    """

    COLORS = {
        'green': PatternFill(start_color='90EE90', end_color='90EE90', fill_type='solid'),
        'red': PatternFill(start_color='FF6B6B', end_color='FF6B6B', fill_type='solid'),
        'gray': PatternFill(start_color='D3D3D3', end_color='D3D3D3', fill_type='solid'),
        'total': PatternFill(start_color='DDEBF7', end_color='DDEBF7', fill_type='solid'),
        'header': PatternFill(start_color='4472C4', end_color='4472C4', fill_type='solid'),
    }

    BORDER = Border(
        left=Side(style='thin'),
        right=Side(style='thin'),
        top=Side(style='thin'),
        bottom=Side(style='thin')
    )

    WEEKLY_HEADERS = [
        "Date", "In", "Out", "Lunch", "Total Time", "Min Break",
        "Taken Breaks", "Working Hours", "Required Hours", "Flex Hours", "Flex Bank"
    ]
    WEEKLY_WIDTHS = [14, 8, 8, 15, 11, 10, 12, 14, 14, 11, 26]

    DETAIL_HEADERS = [
        "Date", "Effective Start", "Effective End", "Working", "Lunch",
        "Other Breaks", "Overtime", "Overtime Pay (h)", "Effective Total (h)",
        "Shift Bonus", "Notes"
    ]
    DETAIL_WIDTHS = [14, 15, 14, 10, 8, 13, 10, 16, 18, 12, 50]

    FLAGGED_TEXT = "No shift policy - day skipped"

    def __init__(self):
        self.wb: Optional[Workbook] = None

    def create_report(self, summary: WeeklySummary, output_path: Path) -> Path:
        """
        Create the weekly report workbook.

        Args:
            summary: Weekly summary to render
            output_path: Path to save the Excel file

        Returns:
            Path to the created file
        """
        self.wb = Workbook()

        # Remove default sheet
        self.wb.remove(self.wb.active)

        weekly_ws = self.wb.create_sheet("Weekly Flex")
        self._write_weekly_sheet(weekly_ws, summary)

        details_ws = self.wb.create_sheet("Daily Details")
        self._write_details_sheet(details_ws, summary.days)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.wb.save(output_path)
        logger.info(f"Excel report saved: {output_path}")
        return output_path

    def _write_header(self, ws, row: int, headers: List[str], widths: List[int]):
        for col, (label, width) in enumerate(zip(headers, widths), start=1):
            cell = ws.cell(row, col, label)
            cell.font = Font(bold=True, color='FFFFFF')
            cell.fill = self.COLORS['header']
            cell.alignment = Alignment(horizontal='center', vertical='center', wrap_text=True)
            cell.border = self.BORDER
            ws.column_dimensions[get_column_letter(col)].width = width
        ws.row_dimensions[row].height = 30

    def _write_row(self, ws, row: int, values: List, fill: Optional[PatternFill] = None):
        for col, value in enumerate(values, start=1):
            cell = ws.cell(row, col, value)
            cell.alignment = Alignment(horizontal='center', vertical='center')
            cell.border = self.BORDER
            if fill:
                cell.fill = fill

    def _write_weekly_sheet(self, ws, summary: WeeklySummary):
        """Write the weekly breakdown with flagged days and totals."""
        title = (
            f"Employee {summary.employee_id}: "
            f"{summary.week_start.strftime('%b %d, %Y')} - {summary.week_end.strftime('%b %d, %Y')}"
        )
        ws.cell(1, 1, title).font = Font(bold=True, size=13)
        ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=len(self.WEEKLY_HEADERS))

        self._write_header(ws, 2, self.WEEKLY_HEADERS, self.WEEKLY_WIDTHS)
        flex_col = self.WEEKLY_HEADERS.index("Flex Hours") + 1

        # Worked days and flagged days in calendar order
        entries = [(day.date, day) for day in summary.days]
        entries.extend((flagged, None) for flagged in summary.flagged_dates)
        entries.sort(key=lambda item: item[0])

        current_row = 3
        for day_date, day in entries:
            if day is None:
                values = [day_date.strftime("%b %d, %Y"), self.FLAGGED_TEXT]
                values.extend([""] * (len(self.WEEKLY_HEADERS) - 2))
                self._write_row(ws, current_row, values, self.COLORS['gray'])
                ws.merge_cells(
                    start_row=current_row, start_column=2,
                    end_row=current_row, end_column=len(self.WEEKLY_HEADERS)
                )
            else:
                self._write_row(ws, current_row, [
                    day.date_label, day.in_time, day.out_time, day.lunch_period,
                    day.total_time, day.min_break, day.taken_breaks,
                    day.total_working_hours, day.required_hours, day.flex_hours,
                    day.flex_bank
                ])
                direction_color = 'green' if day.direction == FlexDirection.ADDED else 'red'
                ws.cell(current_row, flex_col).fill = self.COLORS[direction_color]
            current_row += 1

        # Totals
        current_row += 1
        totals = [
            ("Weekly Required Hours", summary.weekly_required_hours),
            ("Weekly Actual Hours", summary.weekly_actual_hours),
            ("Weekly Flex Change", summary.weekly_flex_change),
            ("Flex Bank Start", summary.flex_bank_start),
            ("Flex Bank End", summary.flex_bank_end),
        ]
        for label, value in totals:
            label_cell = ws.cell(current_row, 1, label)
            label_cell.font = Font(bold=True)
            label_cell.fill = self.COLORS['total']
            label_cell.border = self.BORDER
            ws.merge_cells(start_row=current_row, start_column=1, end_row=current_row, end_column=3)
            value_cell = ws.cell(current_row, 4, value)
            value_cell.font = Font(bold=True)
            value_cell.alignment = Alignment(horizontal='center')
            value_cell.border = self.BORDER
            current_row += 1

        if summary.is_partial:
            note = ws.cell(current_row + 1, 1, "Partial week: some days had no shift policy")
            note.font = Font(italic=True, color='C00000')

        ws.freeze_panes = "A3"

    def _write_details_sheet(self, ws, days: List[WeeklyDayRow]):
        """Write the per-day calculation breakdown."""
        self._write_header(ws, 1, self.DETAIL_HEADERS, self.DETAIL_WIDTHS)

        current_row = 2
        for day in days:
            calc = day.calculation
            if calc is None:
                continue
            self._write_row(ws, current_row, [
                day.date_label,
                calc.effective_start_hhmm,
                calc.effective_end_hhmm,
                calc.total_working_minutes,
                calc.lunch_duration,
                calc.other_breaks_duration,
                calc.overtime_minutes,
                round(calc.overtime_pay, 2),
                round(calc.total_effective_minutes / 60, 2),
                calc.shift_bonus_minutes,
                "; ".join(calc.notes)
            ])
            notes_cell = ws.cell(current_row, len(self.DETAIL_HEADERS))
            notes_cell.alignment = Alignment(horizontal='left', vertical='center', wrap_text=True)
            if calc.is_negative_duration:
                ws.cell(current_row, 4).fill = self.COLORS['red']
            current_row += 1

        ws.freeze_panes = "A2"
