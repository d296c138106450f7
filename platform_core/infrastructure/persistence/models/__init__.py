"""Persistence models: ORM entities and mixins."""

from platform_core.infrastructure.persistence.models.actor import (
    Actor,
    ActorRole,
    RoleCapability,
)
from platform_core.infrastructure.persistence.models.customer import (
    Branch,
    Customer,
    CustomerEmployee,
)
from platform_core.infrastructure.persistence.models.mixins import (
    IntegerIdMixin,
    TimestampMixin,
    deferrable_fk,
)
from platform_core.infrastructure.persistence.models.platform_staff import PlatformStaff

__all__ = [
    "Actor",
    "ActorRole",
    "Branch",
    "Customer",
    "CustomerEmployee",
    "IntegerIdMixin",
    "PlatformStaff",
    "RoleCapability",
    "TimestampMixin",
    "deferrable_fk",
]
