"""Actor ORM models: shared identities, their roles and role capabilities."""

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from platform_core.infrastructure.persistence.database import Base
from platform_core.infrastructure.persistence.models.mixins import (
    IntegerIdMixin,
    TimestampMixin,
    deferrable_fk,
)


class Actor(IntegerIdMixin, TimestampMixin, Base):
    """Login principal shared by every entity type. Table: actor."""

    __tablename__ = "actor"

    login: Mapped[str] = mapped_column(String(60), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    display_name: Mapped[str | None] = mapped_column(String(250), nullable=True)


class ActorRole(IntegerIdMixin, Base):
    """Role held by an actor. Table: actor_role. Unique (actor_id, role)."""

    __tablename__ = "actor_role"

    actor_id: Mapped[int] = mapped_column(
        Integer, deferrable_fk("actor.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[str] = mapped_column(String(100), nullable=False)

    __table_args__ = (UniqueConstraint("actor_id", "role", name="uq_actor_role"),)


class RoleCapability(IntegerIdMixin, Base):
    """Capability carried by a role. Table: role_capability. Unique (role, capability)."""

    __tablename__ = "role_capability"

    role: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    capability: Mapped[str] = mapped_column(String(100), nullable=False)

    __table_args__ = (
        UniqueConstraint("role", "capability", name="uq_role_capability"),
    )
