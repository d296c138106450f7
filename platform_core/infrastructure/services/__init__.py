"""Infrastructure implementations of application service interfaces."""

from platform_core.infrastructure.services.platform_access import (
    CUSTOMER_CAPABILITY_MAP,
    PlatformAccessGrant,
)
from platform_core.infrastructure.services.relation_providers import (
    BranchRelationProvider,
    CustomerRelationProvider,
    PlatformStaffRelationProvider,
)
from platform_core.infrastructure.services.role_capabilities import RoleCapabilityResolver

__all__ = [
    "CUSTOMER_CAPABILITY_MAP",
    "BranchRelationProvider",
    "CustomerRelationProvider",
    "PlatformAccessGrant",
    "PlatformStaffRelationProvider",
    "RoleCapabilityResolver",
]
