"""
PDF Writer Module

Generates formatted PDF weekly flex-bank reports using fpdf2.
Replicates the Excel report layout with color coding and table structure.
"""

from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from fpdf import FPDF

from domain.entities import FlexDirection, WeeklySummary
from infrastructure.logger import get_logger

logger = get_logger("PdfWriter")


FALLBACK_FONT = "Helvetica"
CUSTOM_FONT_FAMILY = "ReportFont"


# ==============================================================================
# WeeklyReportPdf Class (A4 Landscape)
# ==============================================================================
class WeeklyReportPdf(FPDF):
    """
    Custom FPDF class for A4 landscape weekly reports.

    Uses Helvetica unless a TrueType font path is supplied.
    """

    _font_family: str = FALLBACK_FONT
    _font_loaded: bool = False

    def __init__(self, title: str = "", custom_font_path: Optional[str] = None):
        # A4 Landscape: 297mm x 210mm
        super().__init__(orientation='L', unit='mm', format='A4')
        self.title_text = title
        self._setup_font(custom_font_path)

    def _setup_font(self, custom_font_path: Optional[str] = None) -> None:
        """Load the custom font if one is configured and present."""
        if not custom_font_path:
            return

        font_path = Path(custom_font_path)
        if not font_path.exists():
            logger.warning(f"Custom font path does not exist: {font_path}")
            return

        try:
            self.add_font(CUSTOM_FONT_FAMILY, "", str(font_path))
            self._font_family = CUSTOM_FONT_FAMILY
            self._font_loaded = True
            logger.info(f"Loaded custom font: {font_path.name}")
        except (OSError, RuntimeError, ValueError) as e:
            logger.warning(f"Cannot load font {font_path}: {e}")
            self._font_family = FALLBACK_FONT
            self._font_loaded = False

    @property
    def font_family_name(self) -> str:
        return self._font_family

    def header(self) -> None:
        """Draw page header with centered title."""
        self.set_font(self._font_family, '', 14)
        self.cell(0, 10, self.title_text, align='C', new_x='LMARGIN', new_y='NEXT')
        self.ln(2)

    def footer(self) -> None:
        """Draw page footer with page number."""
        self.set_y(-12)
        self.set_font(self._font_family, '', 8)
        self.cell(0, 10, f'Page {self.page_no()}/{{nb}}', align='C')


# ==============================================================================
# WeeklyReportPdfWriter Class
# ==============================================================================
class WeeklyReportPdfWriter:
    """
    Generates PDF weekly reports that replicate the Excel format.

    Features:
    - One row per worked day, gray rows for flagged days
    - Flex cells colored by direction
    - Weekly totals block under the table
    """

    # RGB Color definitions (matching WeeklyReportExcelWriter)
    COLORS: Dict[str, Tuple[int, int, int]] = {
        'green': (144, 238, 144),
        'red': (255, 107, 107),
        'gray': (211, 211, 211),
        'total': (221, 235, 247),
        'header': (68, 114, 196),
        'white': (255, 255, 255),
    }

    # Layout constants (mm) for A4 Landscape (297mm width)
    MARGIN = 10

    # (header, width) pairs; widths sum to the printable width
    COLUMNS: List[Tuple[str, float]] = [
        ("Date", 26), ("In", 15), ("Out", 15), ("Lunch", 28),
        ("Total Time", 20), ("Min Break", 19), ("Taken Breaks", 22),
        ("Working", 22), ("Required", 22), ("Flex", 20), ("Flex Bank", 68),
    ]

    HEADER_ROW_HEIGHT = 9
    DATA_ROW_HEIGHT = 7
    LINE_WIDTH = 0.2

    FLAGGED_TEXT = "No shift policy - day skipped"

    def __init__(self, custom_font_path: Optional[str] = None):
        self._custom_font_path = custom_font_path

    def create_report(self, summary: WeeklySummary, output_path: Path) -> Path:
        """
        Create the weekly PDF report.

        Args:
            summary: Weekly summary to render
            output_path: Path to save the PDF file

        Returns:
            Path to the created file
        """
        title = (
            f"Weekly Flex Report - {summary.employee_id} - "
            f"{summary.week_start.strftime('%b %d, %Y')} to {summary.week_end.strftime('%b %d, %Y')}"
        )
        pdf = WeeklyReportPdf(title=title, custom_font_path=self._custom_font_path)
        pdf.alias_nb_pages()
        pdf.set_margins(self.MARGIN, self.MARGIN, self.MARGIN)
        pdf.set_auto_page_break(auto=True, margin=15)
        pdf.add_page()

        self._draw_table(pdf, summary)
        self._draw_totals(pdf, summary)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        pdf.output(str(output_path))
        logger.info(f"PDF report saved: {output_path}")
        return output_path

    def _draw_table(self, pdf: WeeklyReportPdf, summary: WeeklySummary) -> None:
        """Draw the header row and one row per day."""
        pdf.set_line_width(self.LINE_WIDTH)
        pdf.set_font(pdf.font_family_name, '', 9)
        pdf.set_fill_color(*self.COLORS['header'])
        pdf.set_text_color(255, 255, 255)
        for label, width in self.COLUMNS:
            pdf.cell(width, self.HEADER_ROW_HEIGHT, label, border=1, align='C', fill=True)
        pdf.ln(self.HEADER_ROW_HEIGHT)
        pdf.set_text_color(0, 0, 0)

        rows: List[Tuple[date, Optional[object]]] = [(day.date, day) for day in summary.days]
        rows.extend((flagged, None) for flagged in summary.flagged_dates)
        rows.sort(key=lambda item: item[0])

        for day_date, day in rows:
            if day is None:
                self._draw_flagged_row(pdf, day_date)
                continue

            values = [
                day.date_label, day.in_time, day.out_time, day.lunch_period,
                day.total_time, day.min_break, day.taken_breaks,
                day.total_working_hours, day.required_hours, day.flex_hours,
                day.flex_bank
            ]
            flex_color = self.COLORS['green'] if day.direction == FlexDirection.ADDED else self.COLORS['red']
            for (label, width), value in zip(self.COLUMNS, values):
                fill = label == "Flex"
                if fill:
                    pdf.set_fill_color(*flex_color)
                pdf.cell(width, self.DATA_ROW_HEIGHT, value, border=1, align='C', fill=fill)
            pdf.ln(self.DATA_ROW_HEIGHT)

    def _draw_flagged_row(self, pdf: WeeklyReportPdf, day_date: date) -> None:
        first_width = self.COLUMNS[0][1]
        rest_width = sum(width for _, width in self.COLUMNS[1:])
        pdf.set_fill_color(*self.COLORS['gray'])
        pdf.cell(first_width, self.DATA_ROW_HEIGHT, day_date.strftime("%b %d, %Y"),
                 border=1, align='C', fill=True)
        pdf.cell(rest_width, self.DATA_ROW_HEIGHT, self.FLAGGED_TEXT,
                 border=1, align='C', fill=True)
        pdf.ln(self.DATA_ROW_HEIGHT)

    def _draw_totals(self, pdf: WeeklyReportPdf, summary: WeeklySummary) -> None:
        """Draw the weekly totals block."""
        pdf.ln(4)
        pdf.set_fill_color(*self.COLORS['total'])
        totals = [
            ("Weekly Required Hours", summary.weekly_required_hours),
            ("Weekly Actual Hours", summary.weekly_actual_hours),
            ("Weekly Flex Change", summary.weekly_flex_change),
            ("Flex Bank Start", summary.flex_bank_start),
            ("Flex Bank End", summary.flex_bank_end),
        ]
        for label, value in totals:
            pdf.set_font(pdf.font_family_name, '', 10)
            pdf.cell(60, self.DATA_ROW_HEIGHT, label, border=1, fill=True)
            pdf.cell(30, self.DATA_ROW_HEIGHT, value, border=1, align='C')
            pdf.ln(self.DATA_ROW_HEIGHT)

        if summary.is_partial:
            pdf.ln(2)
            pdf.set_text_color(192, 0, 0)
            pdf.set_font(pdf.font_family_name, '', 9)
            pdf.cell(0, self.DATA_ROW_HEIGHT, "Partial week: some days had no shift policy")
            pdf.set_text_color(0, 0, 0)


# ==============================================================================
# Utility Functions
# ==============================================================================
def format_filename(pattern: str, employee_id: str, week_start: date) -> str:
    """Format filename pattern with {employee}, {year} and {week} placeholders."""
    iso_year, iso_week, _ = week_start.isocalendar()
    return pattern.format(
        employee=employee_id,
        year=iso_year,
        week=f"{iso_week:02d}"
    )
