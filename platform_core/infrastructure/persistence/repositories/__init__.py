"""Repositories: descriptor-driven entity store and identity assignment."""

from platform_core.infrastructure.persistence.repositories.entity_store import (
    EntityStore,
    format_value,
)
from platform_core.infrastructure.persistence.repositories.identity_assignment import (
    IdentityAssigner,
    static_identity_filter,
)

__all__ = [
    "EntityStore",
    "IdentityAssigner",
    "format_value",
    "static_identity_filter",
]
