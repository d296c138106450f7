"""Customer ORM models: customers, their branches and employees."""

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from platform_core.domain.enums import EntityStatus
from platform_core.infrastructure.persistence.database import Base
from platform_core.infrastructure.persistence.models.mixins import (
    IntegerIdMixin,
    TimestampMixin,
    deferrable_fk,
)


class Customer(IntegerIdMixin, TimestampMixin, Base):
    """Customer organization. Table: customer. actor_id is the owning actor."""

    __tablename__ = "customer"

    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(250), nullable=False)
    email: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=EntityStatus.ACTIVE.value
    )
    actor_id: Mapped[int | None] = mapped_column(
        Integer, deferrable_fk("actor.id", ondelete="SET NULL"), nullable=True, index=True
    )


class Branch(IntegerIdMixin, TimestampMixin, Base):
    """Sub-unit of a customer. Table: branch. Unique (customer_id, code)."""

    __tablename__ = "branch"

    customer_id: Mapped[int] = mapped_column(
        Integer, deferrable_fk("customer.id", ondelete="CASCADE"), nullable=False, index=True
    )
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(250), nullable=False)
    admin_actor_id: Mapped[int | None] = mapped_column(
        Integer, deferrable_fk("actor.id", ondelete="SET NULL"), nullable=True, index=True
    )

    __table_args__ = (UniqueConstraint("customer_id", "code", name="uq_branch_customer_code"),)


class CustomerEmployee(IntegerIdMixin, TimestampMixin, Base):
    """Employee of a customer, linked 1:1 to an actor. Table: customer_employee."""

    __tablename__ = "customer_employee"

    customer_id: Mapped[int] = mapped_column(
        Integer, deferrable_fk("customer.id", ondelete="CASCADE"), nullable=False, index=True
    )
    branch_id: Mapped[int | None] = mapped_column(
        Integer, deferrable_fk("branch.id", ondelete="SET NULL"), nullable=True
    )
    actor_id: Mapped[int] = mapped_column(
        Integer, deferrable_fk("actor.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    name: Mapped[str] = mapped_column(String(250), nullable=False)
    position: Mapped[str | None] = mapped_column(String(100), nullable=True)
