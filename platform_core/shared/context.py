"""Request context management using contextvars.

Provides async-safe storage for the current actor of a request. This is the
ambient "current actor" accessor the authorization resolver and the entity
store read from. Similar to Flask's `g` or Django's request.user.

Usage:
    set_current_actor(actor_id=42, actor_type=ActorType.USER)
    actor_id = get_current_actor_id()
"""

from contextvars import ContextVar
from dataclasses import dataclass

from platform_core.shared.enums import ActorType

_current_actor_id: ContextVar[int | None] = ContextVar("current_actor_id", default=None)
_current_actor_type: ContextVar[ActorType] = ContextVar(
    "current_actor_type", default=ActorType.SYSTEM
)


@dataclass(frozen=True)
class ActorContext:
    """Immutable snapshot of the current actor context."""

    actor_id: int | None
    actor_type: ActorType


def set_current_actor(
    actor_id: int | None,
    actor_type: ActorType = ActorType.USER,
) -> None:
    """Set the current actor for this request.

    Call in a dependency after the actor has been identified.
    Context is scoped to the current async task.

    Args:
        actor_id: Authenticated actor ID or None.
        actor_type: Who is performing the action (USER, SYSTEM, SEEDER).

    Raises:
        ValueError: If actor_type is USER and actor_id is None.
    """
    if actor_type == ActorType.USER and actor_id is None:
        raise ValueError("actor_id is required when actor_type is USER")
    _current_actor_id.set(actor_id)
    _current_actor_type.set(actor_type)


def clear_current_actor() -> None:
    """Clear the current actor context."""
    _current_actor_id.set(None)
    _current_actor_type.set(ActorType.SYSTEM)


def get_current_actor_id() -> int | None:
    """Return the current actor ID, or None if not identified."""
    return _current_actor_id.get()


def get_current_actor_type() -> ActorType:
    """Return the current actor type (defaults to SYSTEM if not set)."""
    return _current_actor_type.get()


def get_actor_context() -> ActorContext:
    """Return a snapshot of the current actor context."""
    return ActorContext(
        actor_id=_current_actor_id.get(),
        actor_type=_current_actor_type.get(),
    )
