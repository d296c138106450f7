"""Domain value objects for the platform core.

Value objects are immutable results passed between the entity store,
the identity assigner, and the authorization resolver.
"""

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from typing import Any

from platform_core.domain.enums import (
    AccessType,
    Capability,
    GrantSource,
    IdentityAssignmentStatus,
)


@dataclass(frozen=True)
class EntityRelation:
    """Module-local relation between an actor and one entity instance.

    Computed by a RelationProvider from direct relational lookups and
    cached briefly by the authorization resolver.
    """

    actor_id: int
    entity_id: int
    is_owner: bool = False
    is_admin: bool = False
    is_member: bool = False

    @property
    def access_type(self) -> AccessType:
        """Strongest relation held (owner > admin > member > none)."""
        if self.is_owner:
            return AccessType.OWNER
        if self.is_admin:
            return AccessType.ADMIN
        if self.is_member:
            return AccessType.MEMBER
        return AccessType.NONE

    @property
    def grants_access(self) -> bool:
        return self.access_type is not AccessType.NONE

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["access_type"] = self.access_type.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EntityRelation":
        return cls(
            actor_id=int(data["actor_id"]),
            entity_id=int(data["entity_id"]),
            is_owner=bool(data.get("is_owner")),
            is_admin=bool(data.get("is_admin")),
            is_member=bool(data.get("is_member")),
        )

    @classmethod
    def none(cls, actor_id: int, entity_id: int) -> "EntityRelation":
        return cls(actor_id=actor_id, entity_id=entity_id)


@dataclass(frozen=True)
class GrantDecision:
    """Outcome of one authorization check for (actor, entity instance, capability)."""

    actor_id: int | None
    entity: str
    entity_id: int
    capability: Capability
    granted: bool
    source: GrantSource
    access_type: AccessType = AccessType.NONE

    def __bool__(self) -> bool:
        return self.granted


@dataclass(frozen=True)
class IdentityAssignment:
    """Outcome of a deterministic identity assignment.

    effective_id is the key the record holds afterwards: target_id when
    ASSIGNED, current_id otherwise.

    touched maps each table whose rows were rewritten (the record's own
    table included) to the primary keys of those rows.
    """

    table: str
    current_id: int
    target_id: int
    status: IdentityAssignmentStatus
    dependents_updated: int = 0
    touched: Mapping[str, frozenset[int]] = field(default_factory=dict)

    @property
    def effective_id(self) -> int:
        if self.status is IdentityAssignmentStatus.ASSIGNED:
            return self.target_id
        return self.current_id

    @property
    def is_conflict(self) -> bool:
        return self.status is IdentityAssignmentStatus.CONFLICT
