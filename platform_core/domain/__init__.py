"""Domain layer: descriptors, value objects, enums, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from platform_core.domain.descriptors import (
    CacheDescriptor,
    EntityDescriptor,
    PagedQuery,
    PageResult,
)
from platform_core.domain.enums import (
    AccessType,
    Capability,
    EntityStatus,
    FieldFormat,
    GrantSource,
    IdentityAssignmentStatus,
)
from platform_core.domain.exceptions import (
    AuthenticationException,
    AuthorizationException,
    DatabaseNotConfiguredException,
    EntityDescriptorError,
    EntityWriteRejectedException,
    IdentityConflictException,
    PlatformException,
    ResourceNotFoundException,
    ValidationException,
)
from platform_core.domain.value_objects import (
    EntityRelation,
    GrantDecision,
    IdentityAssignment,
)

__all__ = [
    # Descriptors
    "CacheDescriptor",
    "EntityDescriptor",
    "PagedQuery",
    "PageResult",
    # Enums
    "AccessType",
    "Capability",
    "EntityStatus",
    "FieldFormat",
    "GrantSource",
    "IdentityAssignmentStatus",
    # Exceptions
    "AuthenticationException",
    "AuthorizationException",
    "DatabaseNotConfiguredException",
    "EntityDescriptorError",
    "EntityWriteRejectedException",
    "IdentityConflictException",
    "PlatformException",
    "ResourceNotFoundException",
    "ValidationException",
    # Value objects
    "EntityRelation",
    "GrantDecision",
    "IdentityAssignment",
]
