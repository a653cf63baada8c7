"""
Report Service Module

Application layer service that orchestrates weekly flex-bank reporting.
Loads the stores, runs the weekly aggregation and writes the report files.
"""

from dataclasses import dataclass, replace
from datetime import date
from pathlib import Path
from typing import List, Optional

from fpdf.errors import FPDFException

from config.config_manager import AppConfig, ConfigManager
from domain.entities import WeeklySummary
from domain.weekly_summary import calculate_weekly_summary
from infrastructure.excel_parser import TimesheetParser
from infrastructure.excel_writer import WeeklyReportExcelWriter
from infrastructure.logger import get_logger
from infrastructure.pdf_writer import WeeklyReportPdfWriter, format_filename
from infrastructure.record_store import CompanyStore, RecordStore

logger = get_logger("ReportService")


@dataclass
class ReportGenerationParams:
    """
    Parameters for report generation.

    Decouples the service from AppConfig so callers can build it directly.
    """
    records_path: Path
    companies_path: Path
    output_dir: Path
    employee_id: str
    week_date: date

    excel_filename_pattern: str = "FlexReport_{employee}_{year}_W{week}.xlsx"

    # PDF generation
    generate_pdf: bool = True
    pdf_output_dir: Optional[str] = None
    pdf_filename_pattern: str = "FlexReport_{employee}_{year}_W{week}.pdf"
    custom_font_path: Optional[str] = None


@dataclass
class ReportResult:
    """Result of report generation."""
    success: bool
    output_path: Path
    summary: WeeklySummary
    pdf_path: Optional[Path] = None
    error_message: str = ""

    @property
    def flagged_dates(self) -> List[date]:
        return self.summary.flagged_dates


class WeeklyReportService:
    """
    Application service for weekly flex-bank reports.

    This service:
    - Orchestrates store loading, aggregation and report writing
    - Imports timesheets into the record store
    - Provides logging for key operations
    """

    def generate_report(self, params: ReportGenerationParams) -> ReportResult:
        """
        Generate the weekly report for one employee.

        Args:
            params: ReportGenerationParams containing all necessary configuration

        Returns:
            ReportResult with the outcome of report generation

        Raises:
            ValueError: If the employee has no records in the week
            StoreError: If a store file is malformed
            PermissionError: If files cannot be written
        """
        logger.info(
            f"Generating weekly report for {params.employee_id}, week of {params.week_date.isoformat()}"
        )

        record_store = RecordStore(params.records_path)
        records = record_store.load()
        company_store = CompanyStore(params.companies_path)
        company_store.load()

        summary = calculate_weekly_summary(
            records, company_store.all_policies(), params.employee_id, params.week_date
        )

        if not summary.days and not summary.flagged_dates:
            raise ValueError(
                f"No records for employee {params.employee_id} in week "
                f"{summary.week_start.isoformat()}..{summary.week_end.isoformat()}"
            )

        if summary.is_partial:
            logger.warning(
                f"Partial week: no shift policy for "
                f"{', '.join(d.isoformat() for d in summary.flagged_dates)}"
            )
        if summary.history_flagged_dates:
            logger.warning(
                f"Starting balance excludes days with no shift policy: "
                f"{', '.join(d.isoformat() for d in summary.history_flagged_dates)}"
            )

        # Generate Excel
        excel_name = format_filename(
            params.excel_filename_pattern, params.employee_id, summary.week_start
        )
        output_path = params.output_dir / excel_name
        logger.info(f"Writing Excel: {output_path}")
        WeeklyReportExcelWriter().create_report(summary, output_path)

        result = ReportResult(success=True, output_path=output_path, summary=summary)

        # Generate PDF if enabled
        if params.generate_pdf:
            try:
                result.pdf_path = self._generate_pdf_report(params, summary, output_path)
            except (OSError, FPDFException) as e:
                # A failed PDF does not fail the whole run
                logger.error(f"PDF generation failed: {e}")
                result.error_message = f"PDF generation failed: {e}"

        return result

    def _generate_pdf_report(
        self,
        params: ReportGenerationParams,
        summary: WeeklySummary,
        excel_path: Path
    ) -> Path:
        """Write the PDF next to the workbook unless a PDF directory is configured."""
        if params.pdf_output_dir:
            pdf_dir = Path(params.pdf_output_dir)
        else:
            pdf_dir = excel_path.parent

        pdf_name = format_filename(
            params.pdf_filename_pattern, params.employee_id, summary.week_start
        )
        pdf_path = pdf_dir / pdf_name
        logger.info(f"Writing PDF: {pdf_path}")

        pdf_writer = WeeklyReportPdfWriter(custom_font_path=params.custom_font_path)
        return pdf_writer.create_report(summary, pdf_path)

    def import_timesheet(
        self,
        timesheet_path: Path,
        records_path: Path,
        default_shift_id: Optional[str] = None
    ) -> int:
        """
        Append the rows of an .xlsx timesheet to the record store.

        Imported records get fresh store ids.

        Returns:
            Number of records imported

        Raises:
            TimesheetFormatError: If the timesheet layout is not recognized
        """
        parser = TimesheetParser(default_shift_id=default_shift_id)
        parsed = parser.parse_file(timesheet_path)

        record_store = RecordStore(records_path)
        record_store.load()
        for record in parsed:
            record_store.add(replace(record, id=""))

        logger.info(
            f"Imported {len(parsed)} record(s) from {timesheet_path.name}, "
            f"{parser.skipped_rows} row(s) skipped"
        )
        return len(parsed)

    @staticmethod
    def build_params_from_config(
        config_manager: ConfigManager,
        employee_id: str,
        week_date: date,
        generate_pdf: Optional[bool] = None
    ) -> ReportGenerationParams:
        """
        Build ReportGenerationParams from the loaded configuration.

        Args:
            config_manager: ConfigManager whose config has been loaded
            employee_id: Employee to report on
            week_date: Any day of the target week
            generate_pdf: Overrides the configured PDF switch when given

        Returns:
            ReportGenerationParams ready for generate_report()
        """
        config: AppConfig = config_manager.config
        data_dir = config_manager.data_dir
        output = config.output_settings

        return ReportGenerationParams(
            records_path=data_dir / config.paths.records_file,
            companies_path=data_dir / config.paths.companies_file,
            output_dir=config_manager.output_dir,
            employee_id=employee_id,
            week_date=week_date,
            excel_filename_pattern=output.excel_filename_pattern,
            generate_pdf=output.generate_pdf if generate_pdf is None else generate_pdf,
            pdf_output_dir=output.pdf_output_dir or None,
            pdf_filename_pattern=output.pdf_filename_pattern,
            custom_font_path=output.custom_font_path or None,
        )
