"""Department ORM model."""

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from licence_analytics.models.orm.base import Base, IdMixin, TimestampMixin


class DepartmentORM(Base, IdMixin, TimestampMixin):
    """Department database model."""

    __tablename__ = "departments"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    licenses: Mapped[list["LicenseORM"]] = relationship("LicenseORM", back_populates="department")
    users: Mapped[list["UserORM"]] = relationship("UserORM", back_populates="department")


from licence_analytics.models.orm.license import LicenseORM  # noqa: E402, F401
from licence_analytics.models.orm.user import UserORM  # noqa: E402, F401
