"""Shared enumerations for the platform core.

Cross-cutting enums used by application and infrastructure. Domain-specific
enums (capabilities, access types) live in platform_core.domain.enums.
"""

from enum import Enum


class ActorType(str, Enum):
    """Who is performing the current operation."""

    USER = "user"
    SYSTEM = "system"
    SEEDER = "seeder"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]
