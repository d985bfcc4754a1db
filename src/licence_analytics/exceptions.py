"""Domain-specific exceptions for the licence analytics API.

These exceptions provide a clean separation between engine errors and HTTP
responses. They are mapped to status codes in the error handler middleware.
"""

from typing import Any


class LicenceAnalyticsError(Exception):
    """Base exception for all licence analytics errors."""

    def __init__(self, message: str = "An error occurred", details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# =============================================================================
# Validation Errors (400)
# =============================================================================


class ValidationError(LicenceAnalyticsError):
    """Raised when a filter, date or report configuration is invalid."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        details = {"field": field} if field else {}
        super().__init__(message, details)


class UnknownMetricError(ValidationError):
    """Raised when a report configuration names a metric missing from the catalog."""

    def __init__(self, metric_id: str) -> None:
        self.metric_id = metric_id
        super().__init__(f"Unknown metric: {metric_id}", field="metrics")
        self.details["metric_id"] = metric_id


# =============================================================================
# Resource Not Found Errors (404)
# =============================================================================


class NotFoundError(LicenceAnalyticsError):
    """Base class for resource not found errors."""

    pass


class SavedReportNotFoundError(NotFoundError):
    """Raised when a saved report cannot be found."""

    def __init__(self, report_id: int | None = None) -> None:
        details = {"report_id": report_id} if report_id is not None else {}
        super().__init__("Saved report not found", details)


# =============================================================================
# Server-side Errors (500)
# =============================================================================


class RepositoryError(LicenceAnalyticsError):
    """Raised when an aggregate read against the store fails.

    The message is always generic; storage details are only logged.
    """

    def __init__(self, operation: str | None = None) -> None:
        details = {"operation": operation} if operation else {}
        super().__init__("Failed to read report data", details)


class ExportError(LicenceAnalyticsError):
    """Raised when a computed report cannot be serialized."""

    def __init__(self, export_format: str, message: str = "Failed to export report") -> None:
        super().__init__(message, {"format": export_format})
