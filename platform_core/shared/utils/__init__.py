"""Shared utilities: serialization and hashing."""

from platform_core.shared.utils.serialization import (
    canonical_json,
    content_hash,
    to_record,
)

__all__ = ["canonical_json", "content_hash", "to_record"]
