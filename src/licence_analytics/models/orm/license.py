"""License ORM model."""

from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from licence_analytics.models.orm.base import Base, IdMixin, TimestampMixin


class LicenseORM(Base, IdMixin, TimestampMixin):
    """License database model.

    ``used_seats <= total_seats`` is expected but not enforced; the compliance
    scorer reports violations.
    """

    __tablename__ = "licenses"

    site: Mapped[str | None] = mapped_column(String(255), nullable=True)
    provider: Mapped[str] = mapped_column(String(255), nullable=False)
    model: Mapped[str | None] = mapped_column(String(255), nullable=True)
    plan: Mapped[str | None] = mapped_column(String(255), nullable=True)
    billing_cycle: Mapped[str] = mapped_column(String(50), default="MONTHLY", nullable=False)

    unit_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    installment_cost: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0"), nullable=False
    )
    penalty_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)

    total_seats: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    used_seats: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    expiration: Mapped[date | None] = mapped_column(Date, nullable=True)

    department_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("departments.id", ondelete="SET NULL"), nullable=True
    )

    # Relationships
    department: Mapped["DepartmentORM | None"] = relationship(
        "DepartmentORM", back_populates="licenses"
    )
    assignments: Mapped[list["AssignmentORM"]] = relationship(
        "AssignmentORM",
        back_populates="license",
        order_by="AssignmentORM.assigned_at",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_licenses_provider", "provider"),
        Index("idx_licenses_department", "department_id"),
        Index("idx_licenses_active_expiration", "active", "expiration"),
        Index("idx_licenses_created_at", "created_at"),
    )


from licence_analytics.models.orm.assignment import AssignmentORM  # noqa: E402, F401
from licence_analytics.models.orm.department import DepartmentORM  # noqa: E402, F401
