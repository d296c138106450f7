"""Entity modules: descriptors, relation providers and cross-module grants.

Each module declares its EntityDescriptor(s). build_registry() wires the
extension subscribers of every module into a fresh ExtensionRegistry;
there is no global registry.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import MappingProxyType

from sqlalchemy.ext.asyncio import AsyncSession

from platform_core.application.interfaces.services import RelationProvider
from platform_core.core.config import Settings
from platform_core.domain.descriptors import CacheDescriptor, EntityDescriptor
from platform_core.domain.exceptions import ResourceNotFoundException
from platform_core.infrastructure.extensions.registry import ExtensionRegistry
from platform_core.infrastructure.services import (
    BranchRelationProvider,
    CustomerRelationProvider,
    PlatformAccessGrant,
    PlatformStaffRelationProvider,
    RoleCapabilityResolver,
)
from platform_core.modules.actor import ACTOR
from platform_core.modules.customer import BRANCH, CUSTOMER, CUSTOMER_EMPLOYEE
from platform_core.modules.platform_staff import PLATFORM_ROLES, PLATFORM_STAFF

ENTITY_DESCRIPTORS: Mapping[str, EntityDescriptor] = MappingProxyType(
    {d.name: d for d in (ACTOR, CUSTOMER, BRANCH, CUSTOMER_EMPLOYEE, PLATFORM_STAFF)}
)

# Table -> cache shape of the entity stored there; lets a write drop cached
# rows of other entity types it changes through foreign keys.
CACHE_DESCRIPTORS_BY_TABLE: Mapping[str, CacheDescriptor] = MappingProxyType(
    {d.table: d.cache for d in ENTITY_DESCRIPTORS.values()}
)

RELATION_PROVIDERS: Mapping[str, Callable[[AsyncSession], RelationProvider]] = MappingProxyType(
    {
        CUSTOMER.name: CustomerRelationProvider,
        BRANCH.name: BranchRelationProvider,
        PLATFORM_STAFF.name: PlatformStaffRelationProvider,
    }
)

def get_descriptor(entity: str) -> EntityDescriptor:
    """Return the descriptor of a registered entity type."""
    descriptor = ENTITY_DESCRIPTORS.get(entity)
    if descriptor is None:
        raise ResourceNotFoundException("entity type", entity)
    return descriptor


def get_relation_provider(entity: str, db: AsyncSession) -> RelationProvider | None:
    """Relation provider of entity, or None for entity types without relations (actor)."""
    factory = RELATION_PROVIDERS.get(entity)
    return factory(db) if factory is not None else None


def build_registry(db: AsyncSession, settings: Settings | None = None) -> ExtensionRegistry:
    """Registry with every module's extension subscribers bound to db."""
    registry = ExtensionRegistry()
    platform_grant = PlatformAccessGrant(RoleCapabilityResolver(db), settings=settings)
    for entity in (CUSTOMER.name, BRANCH.name):
        platform_grant.register(registry, entity)
    return registry


__all__ = [
    "ACTOR",
    "BRANCH",
    "CACHE_DESCRIPTORS_BY_TABLE",
    "CUSTOMER",
    "CUSTOMER_EMPLOYEE",
    "ENTITY_DESCRIPTORS",
    "PLATFORM_ROLES",
    "PLATFORM_STAFF",
    "RELATION_PROVIDERS",
    "build_registry",
    "get_descriptor",
    "get_relation_provider",
]
