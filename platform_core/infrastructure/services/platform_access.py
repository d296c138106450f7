"""Cross-module grant: platform roles open customer records and their branches.

Platform staff hold roles named "<platform_role_prefix>*". A role that
carries the capability mapped to a check grants it on every record of the
subscribed entity, whether or not the actor is related to it. The subscriber only
ever upgrades a decision; an incoming True is passed through untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType

from platform_core.application.interfaces.services import RoleCapabilityLookup
from platform_core.core.config import Settings, get_settings
from platform_core.domain.enums import Capability
from platform_core.domain.value_objects import EntityRelation
from platform_core.infrastructure.extensions.registry import ExtensionRegistry, hook_name

logger = logging.getLogger(__name__)

CUSTOMER_CAPABILITY_MAP: Mapping[Capability, str] = MappingProxyType(
    {
        Capability.VIEW: "view_customer_detail",
        Capability.EDIT: "edit_all_customers",
        Capability.DELETE: "delete_customer",
    }
)


class PlatformAccessGrant:
    """Filter subscriber for "<entity>.canView|canEdit|canDelete".

    Args:
        capabilities: Role capability lookup (usually RoleCapabilityResolver).
        capability_map: Checked capability -> role capability code.
        settings: Source of platform_role_prefix.
    """

    def __init__(
        self,
        capabilities: RoleCapabilityLookup,
        capability_map: Mapping[Capability, str] = CUSTOMER_CAPABILITY_MAP,
        settings: Settings | None = None,
    ) -> None:
        self.capabilities = capabilities
        self.capability_map = capability_map
        self.settings = settings or get_settings()

    def for_capability(self, capability: Capability):
        """Return the filter callback for one capability."""
        required = self.capability_map[capability]

        async def _grant(decision: bool, relation: EntityRelation) -> bool:
            if decision:
                return decision
            held = await self.capabilities.get_capabilities(
                relation.actor_id, self.settings.platform_role_prefix
            )
            if required in held:
                logger.debug(
                    "Platform role grants %s to actor %s", required, relation.actor_id
                )
                return True
            return decision

        return _grant

    def register(self, registry: ExtensionRegistry, entity: str = "customer") -> None:
        """Subscribe to every mapped capability check of entity."""
        for capability in self.capability_map:
            registry.add_filter(
                hook_name(entity, capability.hook_suffix), self.for_capability(capability)
            )
