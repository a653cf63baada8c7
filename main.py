"""
Work Time & Flex Bank Reporter

Command-line entry point for importing timesheets and generating
weekly flex-bank reports.
"""

import argparse
import sys
from datetime import date
from pathlib import Path

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))

from application.report_service import WeeklyReportService
from config.config_manager import ConfigManager


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Work time and flex bank reports")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.json")
    commands = parser.add_subparsers(dest="command", required=True)

    report = commands.add_parser("report", help="Generate a weekly flex report")
    report.add_argument("employee_id")
    report.add_argument("week_date", type=date.fromisoformat, help="Any day of the week (YYYY-MM-DD)")
    report.add_argument("--no-pdf", action="store_true", help="Skip the PDF report")

    importer = commands.add_parser("import", help="Import an .xlsx timesheet")
    importer.add_argument("timesheet", type=Path)
    importer.add_argument("--shift", default=None, help="Shift id for rows without one")

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Application entry point."""
    args = _parse_args(argv)
    config_manager = ConfigManager(args.config)
    config_manager.load()
    service = WeeklyReportService()

    if args.command == "import":
        records_path = config_manager.data_dir / config_manager.config.paths.records_file
        count = service.import_timesheet(args.timesheet, records_path, args.shift)
        print(f"Imported {count} record(s)")
        return 0

    params = WeeklyReportService.build_params_from_config(
        config_manager, args.employee_id, args.week_date,
        generate_pdf=False if args.no_pdf else None
    )
    result = service.generate_report(params)
    print(f"Excel report: {result.output_path}")
    if result.pdf_path:
        print(f"PDF report: {result.pdf_path}")
    if result.summary.is_partial:
        print("Warning: partial week, days without a shift policy were skipped")
    print(f"Flex bank: {result.summary.flex_bank_start} -> {result.summary.flex_bank_end}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
