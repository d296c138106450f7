"""In-process extension registry: filter chains and notifications.

Modules extend each other's behaviour by subscribing to named hooks
("customer.beforeInsert", "customer.canView", "customer.created").
The registry is an explicit object handed to the entity stores and the
authorization resolver; there is no process-wide instance.

Delivery is process-local and in-line: subscribers run in ascending
priority, then registration order, inside the publishing call. A raising
subscriber is logged and contributes nothing.
"""

from __future__ import annotations

import inspect
import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from platform_core.core.constants import DEFAULT_HOOK_PRIORITY

logger = logging.getLogger(__name__)

Callback = Callable[..., Any]


def hook_name(entity: str, event: str) -> str:
    """Full hook name for an entity event, e.g. hook_name('customer', 'canView')."""
    return f"{entity}.{event}"


@dataclass(frozen=True)
class _Subscription:
    callback: Callback
    priority: int
    sequence: int


async def invoke_callback(callback: Callback, *args: Any) -> Any:
    """Call a sync or async subscriber and return its (awaited) result."""
    result = callback(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class ExtensionRegistry:
    """Ordered hook subscribers for filter chains and notifications."""

    def __init__(self) -> None:
        self._filters: dict[str, list[_Subscription]] = {}
        self._listeners: dict[str, list[_Subscription]] = {}
        self._sequence = itertools.count()

    # ----- subscription -----

    def _add(
        self,
        table: dict[str, list[_Subscription]],
        name: str,
        callback: Callback,
        priority: int,
    ) -> None:
        if not name:
            raise ValueError("hook name must be non-empty")
        if not callable(callback):
            raise TypeError(f"subscriber for {name!r} is not callable")
        subs = table.setdefault(name, [])
        subs.append(_Subscription(callback, priority, next(self._sequence)))
        subs.sort(key=lambda s: (s.priority, s.sequence))

    @staticmethod
    def _remove(table: dict[str, list[_Subscription]], name: str, callback: Callback) -> bool:
        subs = table.get(name)
        if not subs:
            return False
        for sub in subs:
            if sub.callback == callback:
                subs.remove(sub)
                if not subs:
                    del table[name]
                return True
        return False

    def add_filter(
        self, name: str, callback: Callback, priority: int = DEFAULT_HOOK_PRIORITY
    ) -> None:
        """Subscribe callback(value, *context) -> value to the filter chain name."""
        self._add(self._filters, name, callback, priority)

    def add_listener(
        self, name: str, callback: Callback, priority: int = DEFAULT_HOOK_PRIORITY
    ) -> None:
        """Subscribe callback(*context) to the notification name."""
        self._add(self._listeners, name, callback, priority)

    def remove_filter(self, name: str, callback: Callback) -> bool:
        return self._remove(self._filters, name, callback)

    def remove_listener(self, name: str, callback: Callback) -> bool:
        return self._remove(self._listeners, name, callback)

    def has_filter(self, name: str, callback: Callback | None = None) -> bool:
        subs = self._filters.get(name, [])
        if callback is None:
            return bool(subs)
        return any(s.callback == callback for s in subs)

    def has_listener(self, name: str, callback: Callback | None = None) -> bool:
        subs = self._listeners.get(name, [])
        if callback is None:
            return bool(subs)
        return any(s.callback == callback for s in subs)

    def filters(self, name: str) -> list[Callback]:
        """Filter subscribers of name in execution order (a snapshot)."""
        return [s.callback for s in self._filters.get(name, [])]

    def listeners(self, name: str) -> list[Callback]:
        """Notification subscribers of name in execution order (a snapshot)."""
        return [s.callback for s in self._listeners.get(name, [])]

    # ----- publication -----

    async def apply_filters(self, name: str, value: Any, *context: Any) -> Any:
        """Run the filter chain name over value.

        Each subscriber receives the previous subscriber's result plus the
        original context. A raising subscriber is skipped: the value it
        received is passed on unchanged.
        """
        for callback in self.filters(name):
            try:
                value = await invoke_callback(callback, value, *context)
            except Exception:
                logger.exception("Filter subscriber %r for %s failed; skipped", callback, name)
        return value

    async def notify(self, name: str, *context: Any) -> None:
        """Invoke every listener of name with context; results are discarded."""
        for callback in self.listeners(name):
            try:
                await invoke_callback(callback, *context)
            except Exception:
                logger.exception("Listener %r for %s failed; skipped", callback, name)
