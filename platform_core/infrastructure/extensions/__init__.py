"""Extension hooks: filter chains and notifications between modules."""

from platform_core.infrastructure.extensions.registry import (
    ExtensionRegistry,
    hook_name,
    invoke_callback,
)

__all__ = ["ExtensionRegistry", "hook_name", "invoke_callback"]
