"""License assignment ORM model."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from licence_analytics.models.orm.base import Base, IdMixin, utcnow


class AssignmentORM(Base, IdMixin):
    """Links a user to a license at a point in time."""

    __tablename__ = "assignments"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    license_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("licenses.id", ondelete="CASCADE"), nullable=False
    )
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    user: Mapped["UserORM"] = relationship("UserORM", back_populates="assignments")
    license: Mapped["LicenseORM"] = relationship("LicenseORM", back_populates="assignments")

    __table_args__ = (
        Index("idx_assignments_user", "user_id"),
        Index("idx_assignments_license", "license_id"),
        Index("idx_assignments_assigned_at", "assigned_at"),
    )


from licence_analytics.models.orm.license import LicenseORM  # noqa: E402, F401
from licence_analytics.models.orm.user import UserORM  # noqa: E402, F401
