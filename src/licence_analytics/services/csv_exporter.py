"""CSV export of custom reports.

Output is UTF-8 with a byte-order mark so spreadsheet tools detect the
encoding. Blocks always appear in the same order and each block keeps a
fixed column layout.
"""

import csv
import io
import logging
from datetime import date
from decimal import Decimal

from licence_analytics.config import get_settings
from licence_analytics.constants.reporting import (
    CUSTOM_REPORT_FILENAME_PREFIX,
    UNTITLED_REPORT_LABEL,
)
from licence_analytics.exceptions import ExportError
from licence_analytics.models.domain.report_config import GroupByDimension
from licence_analytics.models.dto.custom_report import CustomReportResult, GroupRow
from licence_analytics.services.compliance import utilization_percentage
from licence_analytics.utils.numbers import quantize
from licence_analytics.utils.secure_logging import log_error

logger = logging.getLogger(__name__)

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


def format_amount(value: Decimal | int | float) -> str:
    """Two-decimal, locale-independent number."""
    return f"{quantize(value):.2f}"


def custom_report_filename(generated_on: date) -> str:
    """Download filename of a custom report export."""
    return f"{CUSTOM_REPORT_FILENAME_PREFIX}_{generated_on.isoformat()}.csv"


class CsvExporter:
    """Serializes an executed custom report to CSV."""

    def __init__(self, currency: str | None = None, system_name: str | None = None) -> None:
        """Initialize exporter with the currency and system name printed in reports."""
        settings = get_settings()
        self.currency = currency or settings.report_currency
        self.system_name = system_name or settings.report_system_name

    def export(self, report: CustomReportResult) -> bytes:
        """Render a custom report.

        Args:
            report: Executed custom report

        Returns:
            CSV bytes with a UTF-8 byte-order mark

        Raises:
            ExportError: The report could not be serialized
        """
        try:
            output = io.StringIO()
            writer = csv.writer(output, lineterminator="\n")
            self._write_configuration(writer, report)
            self._write_metrics(writer, report)
            self._write_breakdown(writer, report)
            self._write_footer(writer, report)
            return output.getvalue().encode("utf-8-sig")
        except (csv.Error, ValueError, TypeError, AttributeError) as e:
            log_error(logger, "Custom report CSV export failed", e)
            raise ExportError("csv") from e

    def _write_configuration(self, writer, report: CustomReportResult) -> None:
        if report.group_by_label is None and report.date_range_label is None:
            return
        writer.writerow(["REPORT CONFIGURATION"])
        if report.group_by_label is not None:
            writer.writerow(["Grouped by:", report.group_by_label])
        if report.date_range_label is not None:
            writer.writerow(["Date range:", report.date_range_label])
        writer.writerow([])

    def _write_metrics(self, writer, report: CustomReportResult) -> None:
        writer.writerow(["Metric", "Value", "Unit"])
        for metric in report.metrics:
            writer.writerow([metric.label, format_amount(metric.value), metric.unit])

    def _write_breakdown(self, writer, report: CustomReportResult) -> None:
        breakdown = report.breakdown
        if breakdown is None or not breakdown.applicable or not breakdown.rows:
            return

        writer.writerow([])
        writer.writerow([])
        writer.writerow([f"DETAILED ANALYSIS - GROUPED BY {breakdown.label.upper()}"])
        writer.writerow([])

        if breakdown.dimension == GroupByDimension.BILLING_CYCLE:
            writer.writerow([
                "Billing Cycle",
                "License Count",
                f"Unit Cost ({self.currency})",
                f"Installment Cost ({self.currency})",
                f"Average ({self.currency})",
            ])
            for row in breakdown.rows:
                writer.writerow([
                    row.label,
                    row.license_count,
                    format_amount(row.total_cost),
                    format_amount(row.installment_cost),
                    format_amount(row.average_cost),
                ])
        else:
            writer.writerow([
                "Name",
                "License Count",
                f"Total Cost ({self.currency})",
                "Total Seats",
                "Used Seats",
                "Utilization (%)",
            ])
            for row in breakdown.rows:
                writer.writerow(self._seat_row(row))

        writer.writerow([])
        writer.writerow(["TOTALS"])
        writer.writerow(["Total Licenses", breakdown.total_licenses])
        writer.writerow(["Total Cost", format_amount(breakdown.total_cost), self.currency])

    def _seat_row(self, row: GroupRow) -> list[str | int]:
        return [
            row.label,
            row.license_count,
            format_amount(row.total_cost),
            row.total_seats,
            row.used_seats,
            format_amount(utilization_percentage(row.used_seats, row.total_seats)),
        ]

    def _write_footer(self, writer, report: CustomReportResult) -> None:
        writer.writerow([])
        writer.writerow([])
        writer.writerow(["REPORT INFORMATION"])
        writer.writerow([])
        writer.writerow(["System:", self.system_name])
        writer.writerow(["Generated on:", report.generated_at.date().isoformat()])
        writer.writerow(["Report name:", report.name.strip() or UNTITLED_REPORT_LABEL])
        if report.description.strip():
            writer.writerow(["Description:", report.description])
