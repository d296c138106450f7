"""Domain enumerations for the platform core.

Enums represent fixed sets of domain values (capabilities, relation types,
storage formats, identity-assignment outcomes).
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class Capability(_ValuesMixin, str, Enum):
    """Capability checked by the authorization resolver.

    hook_suffix is the filter-chain event name: "<entity>.canView" etc.
    """

    VIEW = "view"
    EDIT = "edit"
    DELETE = "delete"

    @property
    def hook_suffix(self) -> str:
        return f"can{self.value.capitalize()}"


class AccessType(_ValuesMixin, str, Enum):
    """Module-local relation between an actor and an entity instance.

    Also used as the access scope of paginated list views.
    """

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    PLATFORM = "platform"
    NONE = "none"


class GrantSource(_ValuesMixin, str, Enum):
    """Where a grant decision came from."""

    RELATION = "relation"
    EXTENSION = "extension"
    CACHE = "cache"
    DENIED = "denied"


class FieldFormat(_ValuesMixin, str, Enum):
    """Storage format of a column; values are coerced before writes."""

    INTEGER = "%d"
    FLOAT = "%f"
    STRING = "%s"
    BOOLEAN = "%b"


class IdentityAssignmentStatus(_ValuesMixin, str, Enum):
    """Outcome of a deterministic identity assignment."""

    ASSIGNED = "assigned"
    UNCHANGED = "unchanged"
    CONFLICT = "conflict"


class EntityStatus(_ValuesMixin, str, Enum):
    """Lifecycle status shared by the shipped business entities."""

    ACTIVE = "active"
    INACTIVE = "inactive"
