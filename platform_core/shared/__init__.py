"""Shared utilities: context, enums, telemetry, and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from platform_core.shared.context import (
    ActorContext,
    clear_current_actor,
    get_actor_context,
    get_current_actor_id,
    get_current_actor_type,
    set_current_actor,
)
from platform_core.shared.enums import ActorType
from platform_core.shared.utils import canonical_json, content_hash, to_record

__all__ = [
    "set_current_actor",
    "clear_current_actor",
    "get_current_actor_id",
    "get_current_actor_type",
    "get_actor_context",
    "ActorContext",
    "ActorType",
    "canonical_json",
    "content_hash",
    "to_record",
]
