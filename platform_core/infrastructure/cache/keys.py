"""Cache key builders. Single place for key format (DRY).

Keys are the non-empty components joined with CACHE_KEY_SEP. Keys longer
than the bound are truncated and suffixed with a sha256 of the full key, so
the result never exceeds the bound and distinct long keys stay distinct.
"""

import hashlib
import re
from collections.abc import Iterable
from typing import Any

from platform_core.core.constants import (
    CACHE_KEY_DEFAULT_PREFIX,
    CACHE_KEY_MAX_LENGTH,
    CACHE_KEY_SEP,
)
from platform_core.shared.utils.serialization import canonical_json

_HASH_LENGTH = 64  # sha256 hex
_GLOB_SPECIAL_RE = re.compile(r"([\\*?\[\]])")


def _valid_components(components: Iterable[Any]) -> list[str]:
    """Stringify components, dropping None and empty strings (0 is kept)."""
    return [str(c) for c in components if c is not None and str(c) != ""]


def build_key(*components: Any, max_length: int = CACHE_KEY_MAX_LENGTH) -> str:
    """Join components into a bounded cache key.

    Args:
        *components: Key type followed by key components.
        max_length: Upper bound for the returned key.

    Returns:
        Key of at most max_length characters. When every component is empty,
        "default:<sha256 of the serialized raw components>".
    """
    parts = _valid_components(components)
    if not parts:
        raw = canonical_json([None if c is None else str(c) for c in components])
        digest = hashlib.sha256(raw.encode("utf-8")).hexdigest()
        return f"{CACHE_KEY_DEFAULT_PREFIX}{CACHE_KEY_SEP}{digest}"
    key = CACHE_KEY_SEP.join(parts)
    if len(key) > max_length:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        head = key[: max_length - _HASH_LENGTH - len(CACHE_KEY_SEP)]
        key = f"{head}{CACHE_KEY_SEP}{digest}"
    return key


def namespaced(namespace: str, key: str) -> str:
    """Prefix a derived key with its cache namespace (group)."""
    return f"{namespace}{CACHE_KEY_SEP}{key}"


def escape_pattern(value: str) -> str:
    """Escape Redis glob metacharacters so value matches literally in SCAN MATCH."""
    return _GLOB_SPECIAL_RE.sub(r"\\\1", value)


def prefix_pattern(namespace: str, prefix: str) -> str:
    """SCAN pattern for every key in namespace whose derived key starts with prefix.

    The prefix is matched on a component boundary: "paged:customer_list"
    matches "paged:customer_list:..." but not "paged:customer_list_archive:...".
    """
    return f"{escape_pattern(namespaced(namespace, prefix))}{CACHE_KEY_SEP}*"


def namespace_pattern(namespace: str) -> str:
    """SCAN pattern for every key in namespace."""
    return f"{escape_pattern(namespace)}{CACHE_KEY_SEP}*"
