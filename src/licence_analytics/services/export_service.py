"""Export service for full detail exports in CSV, JSON and Excel format."""

import csv
import io
import logging
from dataclasses import dataclass
from datetime import date

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import IllegalCharacterError

from licence_analytics.config import get_settings
from licence_analytics.constants.reporting import FULL_EXPORT_FILENAME_PREFIX
from licence_analytics.exceptions import ExportError, ValidationError
from licence_analytics.models.domain.license import normalize_to_monthly
from licence_analytics.models.dto.export import (
    ActiveUserEntry,
    DepartmentAnalysis,
    ExecutiveSummary,
    ExportAssignment,
    ExportLicense,
    ExportMetadata,
    FullExportResponse,
    ProviderAnalysis,
    UpcomingExpiration,
)
from licence_analytics.models.orm.license import LicenseORM
from licence_analytics.repositories.reporting import ReportingRepository
from licence_analytics.services.aggregation import AggregationPipeline, ExportEnvelope, department_label
from licence_analytics.services.compliance import ComplianceFlag, compliance_score, license_flags, utilization_rate
from licence_analytics.services.filter_resolver import build_predicate, parse_date, resolve_window, utc_now
from licence_analytics.utils.dates import days_until
from licence_analytics.utils.numbers import ZERO, to_decimal
from licence_analytics.utils.secure_logging import log_error

logger = logging.getLogger(__name__)

EXPORT_MEDIA_TYPES = {
    "csv": "text/csv; charset=utf-8",
    "json": "application/json",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}

LICENSE_COLUMNS = [
    "ID",
    "Site",
    "Provider",
    "Model",
    "Plan",
    "Department",
    "Start Date",
    "Expiration",
    "Total Seats",
    "Used Seats",
    "Utilization (%)",
    "Unit Cost",
    "Installment Cost",
    "Penalty Cost",
    "Billing Cycle",
    "Status",
    "Assigned Users",
    "Compliance Flags",
]


@dataclass(frozen=True)
class ExportFile:
    """Rendered export ready for download."""

    content: bytes
    media_type: str
    filename: str


class ExportService:
    """Service for the full detail export."""

    def __init__(self, repository: ReportingRepository) -> None:
        """Initialize service with the reporting repository."""
        self.repository = repository
        self.pipeline = AggregationPipeline(repository)

    async def build_full_export(
        self,
        export_format: str = "json",
        start_date: str | None = None,
        end_date: str | None = None,
        provider: str | None = None,
        department: str | None = None,
        status: str | None = None,
    ) -> FullExportResponse:
        """Collect licenses, assignments and analysis for an export.

        Args:
            export_format: Format recorded in the metadata
            start_date: Inclusive ISO start date of license creation
            end_date: Inclusive ISO end date of license creation
            provider: Provider filter
            department: Department id filter
            status: active, inactive or expiring

        Returns:
            FullExportResponse

        Raises:
            ValidationError: A filter is malformed
            RepositoryError: A read failed
        """
        now = utc_now()
        today = now.date()
        settings = get_settings()
        predicate = build_predicate(
            window=resolve_window(start_date, end_date, now, default_days=None),
            provider=provider,
            department=department,
            status=status,
            today=today,
            expiring_days=settings.expiring_soon_days,
        )
        envelope = await self.pipeline.export(predicate, today)

        licenses = [self._export_license(lic, envelope, today) for lic in envelope.licenses]
        return FullExportResponse(
            metadata=ExportMetadata(
                generated_at=now,
                format=export_format,
                start_date=parse_date(start_date, "startDate"),
                end_date=parse_date(end_date, "endDate"),
                total_records=len(licenses),
                currency=settings.report_currency,
                system=settings.report_system_name,
            ),
            executive_summary=self._executive_summary(envelope.licenses, today),
            licenses=licenses,
            provider_analysis=[
                ProviderAnalysis(
                    provider=g.key,
                    license_count=g.license_count,
                    active_count=g.active_count,
                    total_seats=g.total_seats,
                    used_seats=g.used_seats,
                    total_cost=g.total_cost,
                    utilization_rate=utilization_rate(g.used_seats, g.total_seats),
                )
                for g in envelope.by_provider
            ],
            department_analysis=[
                DepartmentAnalysis(
                    department_id=g.key,
                    department_name=g.label,
                    license_count=g.license_count,
                    total_seats=g.total_seats,
                    used_seats=g.used_seats,
                    total_cost=g.total_cost,
                    utilization_rate=utilization_rate(g.used_seats, g.total_seats),
                )
                for g in envelope.by_department
            ],
            active_users=[
                ActiveUserEntry(
                    id=user.id,
                    name=user.name,
                    username=user.username,
                    department_id=user.department_id,
                    assignment_count=count,
                    total_cost=cost,
                )
                for user, count, cost in envelope.top_users
            ],
            upcoming_expirations=[
                UpcomingExpiration(
                    id=lic.id,
                    provider=lic.provider,
                    plan=lic.plan,
                    expiration=lic.expiration,
                    days_left=days_until(lic.expiration, today),
                    department_name=department_label(lic.department_id, envelope.department_names),
                )
                for lic in envelope.upcoming
            ],
        )

    async def export(
        self,
        export_format: str,
        start_date: str | None = None,
        end_date: str | None = None,
        provider: str | None = None,
        department: str | None = None,
        status: str | None = None,
    ) -> ExportFile:
        """Render the full export in the requested format.

        Raises:
            ValidationError: Unsupported format or malformed filter
            RepositoryError: A read failed
            ExportError: The export could not be serialized
        """
        if export_format not in EXPORT_MEDIA_TYPES:
            raise ValidationError(
                f"format must be one of: {', '.join(EXPORT_MEDIA_TYPES)}", field="format"
            )
        report = await self.build_full_export(
            export_format, start_date, end_date, provider, department, status
        )
        try:
            if export_format == "csv":
                content = self.render_csv(report)
            elif export_format == "xlsx":
                content = self.render_excel(report)
            else:
                content = report.model_dump_json(by_alias=True, indent=2).encode("utf-8")
        except (csv.Error, ValueError, TypeError, IllegalCharacterError) as e:
            log_error(logger, f"Full {export_format} export failed", e)
            raise ExportError(export_format) from e

        filename = f"{FULL_EXPORT_FILENAME_PREFIX}_{report.metadata.generated_at.date().isoformat()}.{export_format}"
        return ExportFile(
            content=content, media_type=EXPORT_MEDIA_TYPES[export_format], filename=filename
        )

    # -------------------------------------------------------------------------
    # Assembly
    # -------------------------------------------------------------------------

    @staticmethod
    def _export_license(lic: LicenseORM, envelope: ExportEnvelope, today: date) -> ExportLicense:
        return ExportLicense(
            id=lic.id,
            site=lic.site,
            provider=lic.provider,
            model=lic.model,
            plan=lic.plan,
            department_id=lic.department_id,
            department_name=department_label(lic.department_id, envelope.department_names),
            start_date=lic.start_date,
            expiration=lic.expiration,
            total_seats=lic.total_seats,
            used_seats=lic.used_seats,
            unit_cost=lic.unit_cost,
            installment_cost=lic.installment_cost,
            penalty_cost=lic.penalty_cost,
            billing_cycle=lic.billing_cycle,
            active=lic.active,
            compliance_flags=[flag.value for flag in license_flags(lic, today)],
            assignments=[
                ExportAssignment(
                    user_id=a.user_id,
                    user_name=a.user.name if a.user else "",
                    username=a.user.username if a.user else "",
                    assigned_at=a.assigned_at,
                )
                for a in lic.assignments
            ],
        )

    @staticmethod
    def _executive_summary(licenses: list[LicenseORM], today: date) -> ExecutiveSummary:
        active = [lic for lic in licenses if lic.active]
        total_seats = sum(lic.total_seats for lic in active)
        used_seats = sum(lic.used_seats for lic in active)
        over_allocated = expired_active = 0
        for lic in active:
            flags = license_flags(lic, today)
            if ComplianceFlag.OVER_ALLOCATED in flags:
                over_allocated += 1
            if ComplianceFlag.EXPIRED_ACTIVE in flags:
                expired_active += 1

        return ExecutiveSummary(
            total_licenses=len(licenses),
            active_licenses=len(active),
            inactive_licenses=len(licenses) - len(active),
            total_seats=total_seats,
            used_seats=used_seats,
            utilization_rate=utilization_rate(used_seats, total_seats),
            total_cost=sum((to_decimal(lic.unit_cost) for lic in active), ZERO),
            monthly_cost=sum(
                (normalize_to_monthly(lic.installment_cost, lic.billing_cycle) for lic in active),
                ZERO,
            ),
            compliance_score=compliance_score(len(active), over_allocated, expired_active),
        )

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    @staticmethod
    def _license_row(lic: ExportLicense) -> list[object]:
        return [
            lic.id,
            lic.site or "",
            lic.provider,
            lic.model or "",
            lic.plan or "",
            lic.department_name,
            lic.start_date.isoformat() if lic.start_date else "",
            lic.expiration.isoformat() if lic.expiration else "",
            lic.total_seats,
            lic.used_seats,
            utilization_rate(lic.used_seats, lic.total_seats),
            f"{lic.unit_cost:.2f}",
            f"{lic.installment_cost:.2f}",
            f"{lic.penalty_cost:.2f}",
            lic.billing_cycle,
            "Active" if lic.active else "Inactive",
            "; ".join(a.user_name for a in lic.assignments if a.user_name),
            "; ".join(lic.compliance_flags),
        ]

    def render_csv(self, report: FullExportResponse) -> bytes:
        """Render one quoted row per license.

        Returns:
            CSV bytes with a UTF-8 byte-order mark
        """
        output = io.StringIO()
        writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(LICENSE_COLUMNS)
        for lic in report.licenses:
            writer.writerow(self._license_row(lic))
        return output.getvalue().encode("utf-8-sig")

    def render_excel(self, report: FullExportResponse) -> bytes:
        """Render a workbook with Summary, Licenses and Providers sheets.

        Returns:
            Excel file bytes
        """
        wb = Workbook()
        currency = report.metadata.currency
        summary = report.executive_summary

        header_font = Font(bold=True)
        header_fill = PatternFill(start_color="E0E0E0", end_color="E0E0E0", fill_type="solid")

        # Summary Sheet
        ws_summary = wb.active
        ws_summary.title = "Summary"
        ws_summary["A1"] = "License Report Summary"
        ws_summary["A1"].font = Font(bold=True, size=14)

        rows = [
            ("System", report.metadata.system),
            ("Generated", report.metadata.generated_at.strftime("%Y-%m-%d %H:%M")),
            ("Total Licenses", summary.total_licenses),
            ("Active Licenses", summary.active_licenses),
            ("Inactive Licenses", summary.inactive_licenses),
            ("Total Seats", summary.total_seats),
            ("Used Seats", summary.used_seats),
            ("Utilization (%)", summary.utilization_rate),
            (f"Total Cost ({currency})", float(summary.total_cost)),
            (f"Monthly Cost ({currency})", float(summary.monthly_cost)),
            ("Compliance Score", summary.compliance_score),
        ]
        for offset, (label, value) in enumerate(rows):
            ws_summary.cell(row=3 + offset, column=1, value=label).font = header_font
            ws_summary.cell(row=3 + offset, column=2, value=value)
        ws_summary.column_dimensions["A"].width = 25
        ws_summary.column_dimensions["B"].width = 30

        # Licenses Sheet
        ws_licenses = wb.create_sheet("Licenses")
        self._write_header(ws_licenses, LICENSE_COLUMNS, header_font, header_fill)
        for row, lic in enumerate(report.licenses, start=2):
            for col, value in enumerate(self._license_row(lic), start=1):
                ws_licenses.cell(row=row, column=col, value=value)
        for col in range(1, len(LICENSE_COLUMNS) + 1):
            ws_licenses.column_dimensions[get_column_letter(col)].width = 18

        # Providers Sheet
        ws_providers = wb.create_sheet("Providers")
        provider_headers = [
            "Provider", "Licenses", "Active", "Total Seats", "Used Seats",
            f"Total Cost ({currency})", "Utilization (%)",
        ]
        self._write_header(ws_providers, provider_headers, header_font, header_fill)
        for row, p in enumerate(report.provider_analysis, start=2):
            ws_providers.cell(row=row, column=1, value=p.provider)
            ws_providers.cell(row=row, column=2, value=p.license_count)
            ws_providers.cell(row=row, column=3, value=p.active_count)
            ws_providers.cell(row=row, column=4, value=p.total_seats)
            ws_providers.cell(row=row, column=5, value=p.used_seats)
            ws_providers.cell(row=row, column=6, value=float(p.total_cost))
            ws_providers.cell(row=row, column=7, value=p.utilization_rate)
        for col in range(1, len(provider_headers) + 1):
            ws_providers.column_dimensions[get_column_letter(col)].width = 18

        output = io.BytesIO()
        wb.save(output)
        return output.getvalue()

    @staticmethod
    def _write_header(ws, headers: list[str], font: Font, fill: PatternFill) -> None:
        for col, header in enumerate(headers, 1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = font
            cell.fill = fill
