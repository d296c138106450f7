"""Create an entity together with the actor it is linked to.

Optionally places both records at caller-chosen primary keys (seeding).
Static ids travel through the "<entity>.beforeInsert" filter chain as the
STATIC_ID_FIELD input field, so both stores must have an identity assigner
and static_identity_filter() subscribed when ids are requested.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from platform_core.core.constants import STATIC_ID_FIELD
from platform_core.infrastructure.persistence.repositories.entity_store import EntityStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkedRecord:
    """Ids of an actor and the entity record linked to it."""

    actor_id: int
    entity_id: int


class ActorLinkedEntityService:
    """Creates Actor + Entity pairs (e.g. platform staff, customer employees).

    Args:
        actor_store: Entity store of the actor table.
        entity_store: Entity store of the linked entity table.
        link_field: Entity column that references the actor (unique FK).
    """

    def __init__(
        self,
        actor_store: EntityStore,
        entity_store: EntityStore,
        link_field: str = "actor_id",
    ) -> None:
        if link_field not in entity_store.descriptor.insert_fields:
            raise ValueError(
                f"{link_field!r} is not an insert field of {entity_store.descriptor.name}"
            )
        self.actor_store = actor_store
        self.entity_store = entity_store
        self.link_field = link_field

    @staticmethod
    def _with_static_id(
        store: EntityStore, data: dict[str, Any], static_id: int | None
    ) -> dict[str, Any]:
        if static_id is None:
            return data
        if store.identity_assigner is None:
            raise ValueError(
                f"Static ids for {store.descriptor.name} need an identity assigner"
            )
        return {**data, STATIC_ID_FIELD: static_id}

    async def create_with_actor(
        self,
        actor_data: dict[str, Any],
        entity_data: dict[str, Any],
        actor_id: int | None = None,
        entity_id: int | None = None,
    ) -> LinkedRecord | None:
        """Create the actor, then the entity linked to it.

        Returns:
            LinkedRecord, or None when either record is rejected by a
            constraint (the fresh actor is removed again in that case).

        Raises:
            IdentityConflictException: A requested id is occupied. The
                conflicting record keeps its store-assigned id; the caller's
                transaction decides whether the partial pair is kept.
        """
        new_actor_id = await self.actor_store.create(
            self._with_static_id(self.actor_store, actor_data, actor_id)
        )
        if new_actor_id is None:
            logger.info("Actor rejected for %s", self.entity_store.descriptor.name)
            return None

        linked = {**entity_data, self.link_field: new_actor_id}
        new_entity_id = await self.entity_store.create(
            self._with_static_id(self.entity_store, linked, entity_id)
        )
        if new_entity_id is None:
            logger.info(
                "%s rejected; removing actor %s",
                self.entity_store.descriptor.name,
                new_actor_id,
            )
            await self.actor_store.delete(new_actor_id)
            return None
        return LinkedRecord(actor_id=new_actor_id, entity_id=new_entity_id)
