"""Entity and cache descriptors: the declarative shape of one entity type.

A module (plugin) declares one EntityDescriptor per entity type it owns.
Descriptors are immutable once declared; they are validated here for
internal consistency and again by the entity store against the table.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from platform_core.core.constants import (
    CACHE_KEY_SEP,
    CACHE_KEY_TYPE_LIST,
    CACHE_KEY_TYPE_PAGED,
    CACHE_KEY_TYPE_STATS,
    PAGE_LIMIT_DEFAULT,
)
from platform_core.domain.enums import FieldFormat
from platform_core.domain.exceptions import EntityDescriptorError

_ENTITY_NAME_RE = re.compile(r"^[a-z][a-z0-9_]*$")
_SORT_DIRECTIONS = ("asc", "desc")


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _freeze(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class CacheDescriptor:
    """Cache shape of one entity type.

    Attributes:
        namespace: Cache group; every backend key starts with "<namespace>:".
        entity_label: Label used in log messages.
        record_key_type: Logical key type of single-record entries.
        key_map: Logical key type -> key prefix string.
        known_key_types: Key types cleared by clear() without arguments.
            Defaults to every key in key_map plus the paged key type.
        default_ttl: TTL in seconds; None means settings.cache_ttl_default.
        paged_key_type: Logical key type of paginated list results.
    """

    namespace: str
    entity_label: str
    record_key_type: str
    key_map: Mapping[str, str] = field(default_factory=dict)
    known_key_types: tuple[str, ...] = ()
    default_ttl: int | None = None
    paged_key_type: str = CACHE_KEY_TYPE_PAGED

    def __post_init__(self) -> None:
        if not self.namespace or CACHE_KEY_SEP in self.namespace:
            raise EntityDescriptorError(
                self.entity_label,
                f"cache namespace must be non-empty and must not contain {CACHE_KEY_SEP!r}",
            )
        if self.default_ttl is not None and self.default_ttl <= 0:
            raise EntityDescriptorError(self.entity_label, "default_ttl must be positive")
        key_map = dict(self.key_map)
        key_map.setdefault(self.record_key_type, self.record_key_type)
        key_map.setdefault(self.paged_key_type, self.paged_key_type)
        for key_type, prefix in key_map.items():
            if not prefix or CACHE_KEY_SEP in prefix:
                raise EntityDescriptorError(
                    self.entity_label,
                    f"key prefix for {key_type!r} must be non-empty"
                    f" and must not contain {CACHE_KEY_SEP!r}",
                )
        known = list(self.known_key_types) or list(key_map)
        if self.paged_key_type not in known:
            known.append(self.paged_key_type)
        object.__setattr__(self, "key_map", _freeze(key_map))
        object.__setattr__(self, "known_key_types", tuple(known))

    @classmethod
    def for_entity(
        cls,
        entity: str,
        *,
        namespace: str | None = None,
        default_ttl: int | None = None,
        extra_key_types: Mapping[str, str] | None = None,
    ) -> "CacheDescriptor":
        """Build the conventional descriptor: record, list, stats and paged key types."""
        key_map = {
            entity: entity,
            CACHE_KEY_TYPE_LIST: f"{entity}_list",
            CACHE_KEY_TYPE_STATS: f"{entity}_stats",
            CACHE_KEY_TYPE_PAGED: "datatable",
        }
        key_map.update(extra_key_types or {})
        return cls(
            namespace=namespace or entity,
            entity_label=entity,
            record_key_type=entity,
            key_map=key_map,
            default_ttl=default_ttl,
        )

    def resolve(self, key_type: str) -> str:
        """Return the key prefix for a logical key type (unknown types are used verbatim)."""
        return self.key_map.get(key_type, key_type)

    @property
    def collection_key_types(self) -> tuple[str, ...]:
        """Known key types other than the single-record and paged types."""
        return tuple(
            k
            for k in self.known_key_types
            if k not in (self.record_key_type, self.paged_key_type)
        )


@dataclass(frozen=True)
class EntityDescriptor:
    """Storage and caching shape of one entity type.

    Attributes:
        name: Entity name used for hook names and diagnostics (e.g. 'customer').
        table: Table name in the relational store.
        mutable_fields: Fields accepted by create() and update().
        cache: Cache descriptor for this entity.
        primary_key: Integer primary key column.
        insert_fields: Fields accepted by create() only (e.g. actor foreign key).
        defaults: Values used by create() when the field is absent from input.
        format_map: Field -> storage format; fields not listed are written as given.
        searchable_fields: Columns matched by the free-text search of list views.
        sortable_fields: Columns list views may sort on.
        default_sort: Sort column when none (or an unknown one) is requested.
        list_context: Context name of the entity's paginated list view.
    """

    name: str
    table: str
    mutable_fields: tuple[str, ...]
    cache: CacheDescriptor
    primary_key: str = "id"
    insert_fields: tuple[str, ...] = ()
    defaults: Mapping[str, Any] = field(default_factory=dict)
    format_map: Mapping[str, FieldFormat] = field(default_factory=dict)
    searchable_fields: tuple[str, ...] = ()
    sortable_fields: tuple[str, ...] = ()
    default_sort: str | None = None
    list_context: str = ""

    def __post_init__(self) -> None:
        if not _ENTITY_NAME_RE.match(self.name or ""):
            raise EntityDescriptorError(
                self.name, "name must be lowercase alphanumeric with underscores"
            )
        if not self.table:
            raise EntityDescriptorError(self.name, "table is required")
        if self.primary_key in self.mutable_fields or self.primary_key in self.insert_fields:
            raise EntityDescriptorError(
                self.name, "primary key must not be listed as a writable field"
            )
        overlap = set(self.mutable_fields) & set(self.insert_fields)
        if overlap:
            raise EntityDescriptorError(
                self.name, f"fields both mutable and insert-only: {sorted(overlap)}"
            )
        unknown_defaults = set(self.defaults) - set(self.writable_fields)
        if unknown_defaults:
            raise EntityDescriptorError(
                self.name, f"defaults for non-writable fields: {sorted(unknown_defaults)}"
            )
        unknown_formats = set(self.format_map) - set(self.writable_fields) - {self.primary_key}
        if unknown_formats:
            raise EntityDescriptorError(
                self.name, f"formats for unknown fields: {sorted(unknown_formats)}"
            )
        object.__setattr__(self, "defaults", _freeze(self.defaults))
        object.__setattr__(self, "format_map", _freeze(self.format_map))
        if not self.list_context:
            object.__setattr__(self, "list_context", f"{self.name}_list")
        if self.default_sort is None:
            object.__setattr__(self, "default_sort", self.primary_key)

    @property
    def writable_fields(self) -> tuple[str, ...]:
        """Fields accepted by create(): insert-only fields then mutable fields."""
        return tuple(self.insert_fields) + tuple(self.mutable_fields)

    def hook(self, event: str) -> str:
        """Extension hook name for this entity, e.g. 'customer.beforeInsert'."""
        return f"{self.name}.{event}"


@dataclass(frozen=True)
class PagedQuery:
    """Shape of one paginated/search list query (the paged-result cache key)."""

    context: str
    access_scope: str
    offset: int = 0
    limit: int = PAGE_LIMIT_DEFAULT
    search: str = ""
    sort_column: str = ""
    sort_direction: str = "asc"
    extra_params: Mapping[str, Any] | None = None

    def is_valid(self) -> bool:
        """Return True when the query can be cached (context, scope, non-negative window)."""
        return (
            bool(self.context)
            and bool(self.access_scope)
            and _is_count(self.offset)
            and _is_count(self.limit)
            and isinstance(self.sort_direction, str)
            and self.sort_direction.lower() in _SORT_DIRECTIONS
        )


@dataclass
class PageResult:
    """One page of a list view plus the unpaginated total."""

    items: list[dict[str, Any]]
    total: int
    offset: int
    limit: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": self.items,
            "total": self.total,
            "offset": self.offset,
            "limit": self.limit,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PageResult":
        return cls(
            items=list(data.get("items") or []),
            total=int(data.get("total") or 0),
            offset=int(data.get("offset") or 0),
            limit=int(data.get("limit") or 0),
        )
