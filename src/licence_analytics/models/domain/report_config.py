"""Custom report configuration value objects.

A ``ReportConfig`` is the closed, validated form of what a user builds in the
report builder. Unknown keys are rejected at the boundary; metric ids are
checked against the catalog by the compiler.
"""

from datetime import date
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class GroupByDimension(StrEnum):
    """Dimensions offered by the report builder."""

    PROVIDER = "provider"
    DEPARTMENT = "department"
    BILLING_CYCLE = "billingCycle"
    MONTH = "month"
    STATUS = "status"
    USER = "user"


class ChartType(StrEnum):
    """Chart type hint stored with a report."""

    BAR = "bar"
    LINE = "line"
    PIE = "pie"
    AREA = "area"
    TABLE = "table"


class ReportPurpose(StrEnum):
    """What a configuration is being validated for."""

    SAVE = "save"
    GENERATE = "generate"
    EXPORT = "export"


class ReportFilters(BaseModel):
    """Filter map of a custom report."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    provider: str | None = Field(default=None, max_length=255)
    department: int | None = None
    billing_cycle: str | None = Field(default=None, max_length=50)
    start_date: date | None = None
    end_date: date | None = None

    @field_validator("provider", "billing_cycle", mode="before")
    @classmethod
    def blank_to_none(cls, value: object) -> object:
        """Treat empty strings from the builder form as unset."""
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ReportConfig(BaseModel):
    """User-defined report: chosen metrics, filters, grouping and date range."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    name: str = Field(default="", max_length=255)
    description: str = Field(default="", max_length=2000)
    metrics: list[str] = Field(default_factory=list, max_length=50)
    filters: ReportFilters = Field(default_factory=ReportFilters)
    group_by: GroupByDimension | None = None
    chart_type: ChartType | None = None
    date_range: str = Field(default="all", max_length=10)
    sort_by: str | None = Field(default=None, max_length=50)

    @field_validator("group_by", mode="before")
    @classmethod
    def blank_group_by(cls, value: object) -> object:
        """An empty group-by selection means no grouping."""
        if value == "":
            return None
        return value
