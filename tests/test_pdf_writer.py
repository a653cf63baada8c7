"""
Unit tests for the weekly PDF report writer.
"""

import pytest
from unittest.mock import patch
from datetime import date
from pathlib import Path
import tempfile

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from domain.entities import DailyRecord, ShiftPolicy, TimeInterval
from domain.weekly_summary import calculate_weekly_summary
from infrastructure.pdf_writer import (
    FALLBACK_FONT, WeeklyReportPdf, WeeklyReportPdfWriter, format_filename
)


@pytest.fixture
def summary():
    records = [
        DailyRecord(
            id="a", employee_id="emp-1", date=date(2024, 3, 4),
            clock=TimeInterval("08:00", "16:45"), lunch=TimeInterval("12:00", "12:30"),
            shift_policy_id="day",
        ),
        DailyRecord(
            id="b", employee_id="emp-1", date=date(2024, 3, 5),
            clock=TimeInterval("08:00", "16:00"), lunch=TimeInterval("12:00", "12:30"),
            shift_policy_id="ghost",
        ),
    ]
    return calculate_weekly_summary(records, [ShiftPolicy(id="day")], "emp-1", date(2024, 3, 4))


class TestFormatFilename:
    """Tests for format_filename utility function."""

    def test_basic_formatting(self):
        result = format_filename("FlexReport_{employee}_{year}_W{week}.pdf", "emp-1", date(2024, 3, 4))
        assert result == "FlexReport_emp-1_2024_W10.pdf"

    def test_week_padding(self):
        result = format_filename("R_{year}_W{week}.xlsx", "emp-1", date(2024, 1, 1))
        assert result == "R_2024_W01.xlsx"

    def test_iso_year_at_year_boundary(self):
        """Dec 30, 2024 is the Monday of ISO week 1 of 2025."""
        result = format_filename("R_{year}_W{week}.pdf", "emp-1", date(2024, 12, 30))
        assert result == "R_2025_W01.pdf"


class TestWeeklyReportPdf:
    """Tests for the FPDF subclass."""

    def test_default_font(self):
        pdf = WeeklyReportPdf(title="t")
        assert pdf.font_family_name == FALLBACK_FONT

    def test_missing_custom_font_falls_back(self):
        pdf = WeeklyReportPdf(title="t", custom_font_path="/nonexistent/font.ttf")
        assert pdf.font_family_name == FALLBACK_FONT


class TestWeeklyReportPdfWriter:
    """Tests for WeeklyReportPdfWriter.create_report."""

    def test_creates_pdf(self, summary):
        with tempfile.TemporaryDirectory() as tmpdir:
            output = Path(tmpdir) / "sub" / "report.pdf"
            result = WeeklyReportPdfWriter().create_report(summary, output)
            assert result == output
            assert output.exists()
            assert output.read_bytes().startswith(b"%PDF")

    def test_flagged_rows_drawn(self, summary):
        with tempfile.TemporaryDirectory() as tmpdir:
            writer = WeeklyReportPdfWriter()
            with patch.object(writer, "_draw_flagged_row", wraps=writer._draw_flagged_row) as flagged:
                writer.create_report(summary, Path(tmpdir) / "report.pdf")
            assert flagged.call_count == 1
            assert flagged.call_args[0][1] == date(2024, 3, 5)

    def test_history_flags_not_drawn(self):
        records = [
            DailyRecord(
                id="old", employee_id="emp-1", date=date(2024, 2, 26),
                clock=TimeInterval("08:00", "16:00"), lunch=TimeInterval("12:00", "12:30"),
                shift_policy_id="ghost",
            ),
            DailyRecord(
                id="a", employee_id="emp-1", date=date(2024, 3, 4),
                clock=TimeInterval("08:00", "16:45"), lunch=TimeInterval("12:00", "12:30"),
                shift_policy_id="day",
            ),
        ]
        summary = calculate_weekly_summary(records, [ShiftPolicy(id="day")], "emp-1", date(2024, 3, 4))
        with tempfile.TemporaryDirectory() as tmpdir:
            writer = WeeklyReportPdfWriter()
            with patch.object(writer, "_draw_flagged_row", wraps=writer._draw_flagged_row) as flagged:
                writer.create_report(summary, Path(tmpdir) / "report.pdf")
            assert flagged.call_count == 0
