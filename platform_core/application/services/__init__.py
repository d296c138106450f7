"""Application services: authorization, actor-linked creation, fixtures."""

from platform_core.application.services.actor_linked_entity_service import (
    ActorLinkedEntityService,
    LinkedRecord,
)
from platform_core.application.services.authorization_resolver import (
    AuthorizationResolver,
    access_cache_descriptor,
)
from platform_core.application.services.fixture_seeder import FixtureSeeder, SeedResult

__all__ = [
    "ActorLinkedEntityService",
    "AuthorizationResolver",
    "FixtureSeeder",
    "LinkedRecord",
    "SeedResult",
    "access_cache_descriptor",
]
