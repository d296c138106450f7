"""Canonical serialization and content hashing.

Used for cache key components (search terms, extra list parameters) and for
turning database rows into JSON-safe records that look the same whether
they come from the cache or from the store.
"""

import hashlib
import json
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any


def _default(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    if isinstance(value, Mapping):
        return dict(value)
    return str(value)


def canonical_json(value: Any) -> str:
    """Serialize value to JSON with sorted keys and no whitespace."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=_default)


def content_hash(value: Any) -> str:
    """Return the sha256 hex digest of value's canonical form.

    Strings are hashed as-is so that hashing a search term does not depend
    on JSON quoting.
    """
    raw = value if isinstance(value, str) else canonical_json(value)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def to_record(row: Mapping[str, Any]) -> dict[str, Any]:
    """Convert a row mapping to a JSON-safe dict (dates to ISO strings, decimals to str)."""
    record: dict[str, Any] = {}
    for key, value in row.items():
        if isinstance(value, (datetime, date, time)):
            record[key] = value.isoformat()
        elif isinstance(value, Decimal):
            record[key] = str(value)
        else:
            record[key] = value
    return record
