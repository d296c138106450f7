"""Platform staff ORM model. Table: platform_staff (1:1 with actor)."""

from datetime import date

from sqlalchemy import Date, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from platform_core.domain.enums import EntityStatus
from platform_core.infrastructure.persistence.database import Base
from platform_core.infrastructure.persistence.models.mixins import (
    IntegerIdMixin,
    TimestampMixin,
    deferrable_fk,
)


class PlatformStaff(IntegerIdMixin, TimestampMixin, Base):
    """Staff member of the platform operator. Unique actor_id and employee_id."""

    __tablename__ = "platform_staff"

    actor_id: Mapped[int] = mapped_column(
        Integer, deferrable_fk("actor.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    employee_id: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    full_name: Mapped[str] = mapped_column(String(250), nullable=False)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    hire_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=EntityStatus.ACTIVE.value
    )
