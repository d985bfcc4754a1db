"""Licensed end-user ORM model."""

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from licence_analytics.models.domain.license import UserStatus
from licence_analytics.models.orm.base import Base, IdMixin, TimestampMixin


class UserORM(Base, IdMixin, TimestampMixin):
    """User database model (a person licenses are assigned to)."""

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    status: Mapped[str] = mapped_column(String(50), default=UserStatus.ACTIVE.value, nullable=False)
    department_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("departments.id", ondelete="SET NULL"), nullable=True
    )

    department: Mapped["DepartmentORM | None"] = relationship("DepartmentORM", back_populates="users")
    assignments: Mapped[list["AssignmentORM"]] = relationship(
        "AssignmentORM",
        back_populates="user",
        order_by="AssignmentORM.assigned_at",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_users_status", "status"),
        Index("idx_users_created_at", "created_at"),
    )


from licence_analytics.models.orm.assignment import AssignmentORM  # noqa: E402, F401
from licence_analytics.models.orm.department import DepartmentORM  # noqa: E402, F401
