"""Tests for the custom report CSV exporter."""

import csv
import io
from datetime import date, datetime, timezone
from decimal import Decimal
from itertools import takewhile

import pytest

from licence_analytics.exceptions import ExportError
from licence_analytics.models.domain.report_config import GroupByDimension
from licence_analytics.models.dto.custom_report import (
    CustomReportResult,
    GroupedBreakdown,
    GroupRow,
    MetricResult,
)
from licence_analytics.services.csv_exporter import CsvExporter, custom_report_filename, format_amount

GENERATED_AT = datetime(2025, 6, 15, 9, 0, tzinfo=timezone.utc)


def _row(label: str, count: int, cost: str, seats: int = 0, used: int = 0, installment: str = "0") -> GroupRow:
    total_cost = Decimal(cost)
    return GroupRow(
        key=label,
        label=label,
        license_count=count,
        active_count=count,
        total_cost=total_cost,
        installment_cost=Decimal(installment),
        monthly_cost=Decimal("0"),
        average_cost=total_cost / count,
        total_seats=seats,
        used_seats=used,
        utilization_rate=0,
    )


def _report(**overrides) -> CustomReportResult:
    values = {
        "name": "Quarterly review",
        "description": "",
        "generated_at": GENERATED_AT,
        "date_range": "all",
        "metrics": [
            MetricResult(id="totalLicenses", label="Total Licenses", category="General", unit="licenses", value=Decimal("5")),
            MetricResult(id="totalCost", label="Total Cost", category="Financial", unit="DOP", value=Decimal("1640.5")),
        ],
    }
    values.update(overrides)
    return CustomReportResult(**values)


def _rows(content: bytes) -> list[list[str]]:
    return list(csv.reader(io.StringIO(content.decode("utf-8-sig"))))


class TestCsvExporter:
    """CSV layout of an executed custom report."""

    def test_starts_with_byte_order_mark(self) -> None:
        content = CsvExporter().export(_report())

        assert content.startswith(b"\xef\xbb\xbf")

    def test_metrics_block_without_configuration(self) -> None:
        rows = _rows(CsvExporter().export(_report()))

        assert rows[0] == ["Metric", "Value", "Unit"]
        assert rows[1] == ["Total Licenses", "5.00", "licenses"]
        assert rows[2] == ["Total Cost", "1640.50", "DOP"]

    def test_each_metric_listed_once(self) -> None:
        report = _report(
            group_by=GroupByDimension.PROVIDER,
            group_by_label="Provider",
            breakdown=GroupedBreakdown(
                dimension=GroupByDimension.PROVIDER,
                label="Provider",
                applicable=True,
                rows=[_row("Adobe", 1, "300", seats=10, used=2)],
                total_licenses=1,
                total_cost=Decimal("300"),
            ),
        )

        rows = _rows(CsvExporter().export(report))
        start = rows.index(["Metric", "Value", "Unit"]) + 1
        metric_block = list(takewhile(bool, rows[start:]))

        assert [row[0] for row in metric_block] == ["Total Licenses", "Total Cost"]

    def test_block_order_with_breakdown(self) -> None:
        report = _report(
            description="Seat usage per vendor",
            date_range="30",
            date_range_label="Last 30 days",
            group_by=GroupByDimension.PROVIDER,
            group_by_label="Provider",
            breakdown=GroupedBreakdown(
                dimension=GroupByDimension.PROVIDER,
                label="Provider",
                applicable=True,
                rows=[_row("Adobe", 1, "300", seats=10, used=2), _row("Zoom", 1, "40", seats=3, used=1)],
                total_licenses=2,
                total_cost=Decimal("340"),
            ),
        )

        rows = _rows(CsvExporter().export(report))
        headings = [row[0] for row in rows if len(row) == 1 and row[0].isupper()]

        assert headings == [
            "REPORT CONFIGURATION",
            "DETAILED ANALYSIS - GROUPED BY PROVIDER",
            "TOTALS",
            "REPORT INFORMATION",
        ]
        assert ["Grouped by:", "Provider"] in rows
        assert ["Date range:", "Last 30 days"] in rows
        assert [
            "Name", "License Count", "Total Cost (DOP)", "Total Seats", "Used Seats", "Utilization (%)",
        ] in rows
        assert ["Zoom", "1", "40.00", "3", "1", "33.33"] in rows
        assert ["Total Cost", "340.00", "DOP"] in rows
        assert ["Description:", "Seat usage per vendor"] in rows

    def test_billing_cycle_columns(self) -> None:
        report = _report(
            group_by=GroupByDimension.BILLING_CYCLE,
            group_by_label="Billing Cycle",
            breakdown=GroupedBreakdown(
                dimension=GroupByDimension.BILLING_CYCLE,
                label="Billing Cycle",
                applicable=True,
                rows=[_row("MONTHLY", 2, "150", installment="150")],
                total_licenses=2,
                total_cost=Decimal("150"),
            ),
        )

        rows = _rows(CsvExporter(currency="USD").export(report))

        assert [
            "Billing Cycle", "License Count", "Unit Cost (USD)", "Installment Cost (USD)", "Average (USD)",
        ] in rows
        assert ["MONTHLY", "2", "150.00", "150.00", "75.00"] in rows

    def test_not_applicable_breakdown_is_omitted(self) -> None:
        report = _report(
            group_by=GroupByDimension.MONTH,
            group_by_label="Month",
            breakdown=GroupedBreakdown(dimension=GroupByDimension.MONTH, label="Month", applicable=False),
        )

        rows = _rows(CsvExporter().export(report))

        assert not any(row and row[0].startswith("DETAILED ANALYSIS") for row in rows)

    def test_footer(self) -> None:
        rows = _rows(CsvExporter(system_name="Licence Desk").export(_report(name="  ")))

        assert ["System:", "Licence Desk"] in rows
        assert ["Generated on:", "2025-06-15"] in rows
        assert ["Report name:", "Untitled"] in rows
        assert not any(row and row[0] == "Description:" for row in rows)

    def test_serialization_failure_raises_export_error(self) -> None:
        report = _report()
        # Bypass validation to simulate a corrupt result
        report.metrics[0].value = "not a number"

        with pytest.raises(ExportError):
            CsvExporter().export(report)


def test_filename() -> None:
    assert custom_report_filename(date(2025, 6, 15)) == "reporte_personalizado_2025-06-15.csv"


def test_format_amount_rounds_half_up() -> None:
    assert format_amount(Decimal("2.005")) == "2.01"
    assert format_amount(3) == "3.00"
