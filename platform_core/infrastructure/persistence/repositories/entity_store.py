"""Entity store: descriptor-driven CRUD with cache and extension hooks.

One EntityStore serves one EntityDescriptor. Reads are cache-first;
every mutation invalidates the affected cache entries before it returns.
Expected write failures (unknown id, zero rows, unique constraint
violations) are reported as None/False, not raised.

Hooks published (name = "<entity>.<event>"):
    beforeInsert  filter        (payload, data) -> payload
    created       notification  (new_id, payload)
    updated       notification  (id, changed_fields)
    deleted       notification  (id,)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any

from sqlalchemy import Table, delete, func, insert, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from platform_core.core.constants import (
    CACHE_KEY_TYPE_STATS,
    HOOK_BEFORE_INSERT,
    HOOK_CREATED,
    HOOK_DELETED,
    HOOK_UPDATED,
    PAGE_LIMIT_DEFAULT,
    PAGE_LIMIT_MAX,
    STATIC_ID_FIELD,
)
from platform_core.domain.descriptors import (
    CacheDescriptor,
    EntityDescriptor,
    PagedQuery,
    PageResult,
)
from platform_core.domain.enums import FieldFormat
from platform_core.domain.exceptions import (
    EntityDescriptorError,
    IdentityConflictException,
    ValidationException,
)
from platform_core.infrastructure.cache.entity_cache import EntityCacheManager
from platform_core.infrastructure.extensions.registry import ExtensionRegistry
from platform_core.infrastructure.persistence.database import Base
from platform_core.infrastructure.persistence.repositories.dependents import (
    invalidate_touched,
    referencing_rows,
)
from platform_core.shared.utils.serialization import to_record

if TYPE_CHECKING:
    from platform_core.infrastructure.persistence.repositories.identity_assignment import (
        IdentityAssigner,
    )

logger = logging.getLogger(__name__)

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off", ""})


def format_value(field: str, value: Any, fmt: FieldFormat | None) -> Any:
    """Coerce value to its storage format; None and unformatted fields pass through.

    Raises:
        ValidationException: value cannot be represented in the format.
    """
    if isinstance(value, Enum):
        value = value.value
    if value is None or fmt is None:
        return value
    try:
        if fmt is FieldFormat.INTEGER:
            if isinstance(value, float) and not value.is_integer():
                raise ValueError("not an integer")
            return int(value)
        if fmt is FieldFormat.FLOAT:
            return float(value)
        if fmt is FieldFormat.BOOLEAN:
            if isinstance(value, str):
                lowered = value.strip().lower()
                if lowered in _TRUE_STRINGS:
                    return True
                if lowered in _FALSE_STRINGS:
                    return False
                raise ValueError("not a boolean")
            return bool(value)
        return str(value)
    except (TypeError, ValueError) as e:
        raise ValidationException(
            f"Invalid value for {field}: expected {fmt.name.lower()} ({e})", field=field
        ) from e


class EntityStore:
    """CRUD for one entity type against its table, cache and hooks.

    Args:
        db: Session; the caller owns the transaction (commit/rollback).
        descriptor: Entity descriptor (table, fields, cache shape).
        cache: Cache manager built for descriptor.cache.
        registry: Extension registry hooks are published on.
        identity_assigner: When set, a primary key injected by a beforeInsert
            filter is honoured after the insert. Only seeding code sets it.
        related_caches: Table name -> cache descriptor of every cached entity
            type. Rows of other tables changed by a delete (cascades, SET NULL)
            or by an identity move are dropped from their caches. Without it
            only this entity's cache is invalidated.
    """

    def __init__(
        self,
        db: AsyncSession,
        descriptor: EntityDescriptor,
        cache: EntityCacheManager,
        registry: ExtensionRegistry,
        identity_assigner: IdentityAssigner | None = None,
        related_caches: Mapping[str, CacheDescriptor] | None = None,
    ) -> None:
        self.db = db
        self.descriptor = descriptor
        self.cache = cache
        self.registry = registry
        self.identity_assigner = identity_assigner
        self.related_caches = related_caches or {}
        self.table = self._resolve_table(descriptor)

    @staticmethod
    def _resolve_table(descriptor: EntityDescriptor) -> Table:
        table = Base.metadata.tables.get(descriptor.table)
        if table is None:
            raise EntityDescriptorError(descriptor.name, f"unknown table {descriptor.table!r}")
        columns = set(table.c.keys())
        referenced = {descriptor.primary_key, *descriptor.writable_fields}
        referenced.update(descriptor.searchable_fields, descriptor.sortable_fields)
        missing = referenced - columns
        if missing:
            raise EntityDescriptorError(
                descriptor.name, f"columns missing from {descriptor.table}: {sorted(missing)}"
            )
        return table

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def pk(self):
        return self.table.c[self.descriptor.primary_key]

    def _format(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        formats = self.descriptor.format_map
        return {k: format_value(k, v, formats.get(k)) for k, v in fields.items()}

    @staticmethod
    def _requested_static_id(data: Mapping[str, Any]) -> int | None:
        """Validated caller-chosen id from the create() input, or None."""
        value = data.get(STATIC_ID_FIELD)
        if value is None or value == "":
            return None
        if not isinstance(value, bool):
            static_id = format_value(STATIC_ID_FIELD, value, FieldFormat.INTEGER)
            if static_id >= 1:
                return static_id
        raise ValidationException(
            f"Invalid {STATIC_ID_FIELD}: expected a positive integer, got {value!r}",
            field=STATIC_ID_FIELD,
        )

    async def _invalidate_related(self, touched: Mapping[str, Iterable[int]]) -> None:
        if touched and self.related_caches:
            await invalidate_touched(
                self.cache.cache, self.related_caches, touched, self.cache.settings
            )

    # ----- reads -----

    async def find(self, entity_id: int) -> dict[str, Any] | None:
        """Return the record as a dict (cache-first), or None if it does not exist."""
        record_type = self.descriptor.cache.record_key_type
        cached = await self.cache.get(record_type, entity_id)
        if cached is not None:
            return cached
        result = await self.db.execute(select(self.table).where(self.pk == entity_id))
        row = result.mappings().first()
        if row is None:
            return None
        record = to_record(row)
        await self.cache.set(record_type, record, None, entity_id)
        return record

    async def count(self) -> int:
        """Total number of records (cached under the stats key type)."""
        cached = await self.cache.get(CACHE_KEY_TYPE_STATS, "count")
        if cached is not None:
            return int(cached)
        result = await self.db.execute(select(func.count()).select_from(self.table))
        total = int(result.scalar_one())
        await self.cache.set(CACHE_KEY_TYPE_STATS, total, None, "count")
        return total

    async def paginate(
        self,
        access_scope: str,
        offset: int = 0,
        limit: int = PAGE_LIMIT_DEFAULT,
        search: str = "",
        sort_column: str | None = None,
        sort_direction: str = "asc",
        filters: Mapping[str, Any] | None = None,
    ) -> PageResult:
        """One page of the entity's list view, served from the paged-result cache.

        Args:
            access_scope: Visibility scope of the caller (part of the cache key).
            offset: Rows to skip.
            limit: Page size, clamped to PAGE_LIMIT_MAX.
            search: Free-text term matched against searchable_fields.
            sort_column: Must be a sortable field; otherwise the default sort.
            sort_direction: 'asc' or 'desc'.
            filters: Column -> value equality filters; a list, tuple or set value
                matches any of its members (e.g. the ids related to the caller).
        """
        offset = max(int(offset), 0)
        limit = min(max(int(limit), 1), PAGE_LIMIT_MAX)
        direction = "desc" if str(sort_direction).lower() == "desc" else "asc"
        if sort_column not in self.descriptor.sortable_fields:
            sort_column = self.descriptor.default_sort
        filters = dict(filters or {})
        unknown = set(filters) - set(self.table.c.keys())
        if unknown:
            raise ValidationException(f"Unknown filter fields: {sorted(unknown)}")
        filters = {
            column: sorted(value) if isinstance(value, (list, tuple, set, frozenset)) else value
            for column, value in filters.items()
        }

        query = PagedQuery(
            context=self.descriptor.list_context,
            access_scope=access_scope,
            offset=offset,
            limit=limit,
            search=search or "",
            sort_column=sort_column or "",
            sort_direction=direction,
            extra_params=filters or None,
        )
        cached = await self.cache.get_paged(query)
        if cached is not None:
            return PageResult.from_dict(cached)

        stmt = select(self.table)
        for column, value in filters.items():
            if isinstance(value, list):
                stmt = stmt.where(self.table.c[column].in_(value))
            else:
                stmt = stmt.where(self.table.c[column] == value)
        if search and self.descriptor.searchable_fields:
            term = search.lower()
            stmt = stmt.where(
                or_(
                    *(
                        func.lower(self.table.c[f]).contains(term, autoescape=True)
                        for f in self.descriptor.searchable_fields
                    )
                )
            )
        total_result = await self.db.execute(select(func.count()).select_from(stmt.subquery()))
        total = int(total_result.scalar_one())

        order_col = self.table.c[sort_column]
        ordering = order_col.desc() if direction == "desc" else order_col.asc()
        stmt = stmt.order_by(ordering, self.pk.asc()).offset(offset).limit(limit)
        rows = (await self.db.execute(stmt)).mappings().all()
        page = PageResult(
            items=[to_record(r) for r in rows], total=total, offset=offset, limit=limit
        )
        await self.cache.set_paged(query, page.to_dict())
        return page

    # ----- writes -----

    def _build_insert_payload(self, data: Mapping[str, Any]) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for field in self.descriptor.writable_fields:
            if field in data:
                payload[field] = data[field]
            elif field in self.descriptor.defaults:
                payload[field] = self.descriptor.defaults[field]
        return self._format(payload)

    async def create(self, data: Mapping[str, Any]) -> int | None:
        """Insert a record and return its effective id, or None on a constraint violation.

        The payload passes through "<entity>.beforeInsert". A primary key
        injected there is moved onto the record after the insert when an
        identity assigner is wired in, and ignored otherwise.

        Raises:
            IdentityConflictException: The injected key is already taken. The
                record exists under its store-assigned id (exc.current_id).
            ValidationException: data carries a malformed static id
                (STATIC_ID_FIELD); nothing is written.
        """
        self._requested_static_id(data)
        payload = self._build_insert_payload(data)
        filtered = await self.registry.apply_filters(
            self.descriptor.hook(HOOK_BEFORE_INSERT), payload, data
        )
        if isinstance(filtered, Mapping):
            payload = dict(filtered)
        else:
            logger.warning(
                "%s.beforeInsert returned %s, keeping unfiltered payload",
                self.name,
                type(filtered).__name__,
            )

        requested_id = payload.pop(self.descriptor.primary_key, None)
        unknown = set(payload) - set(self.table.c.keys())
        if unknown:
            logger.warning("Dropping unknown %s insert fields: %s", self.name, sorted(unknown))
            payload = {k: v for k, v in payload.items() if k not in unknown}

        try:
            async with self.db.begin_nested():
                result = await self.db.execute(insert(self.table).values(**payload))
        except IntegrityError as e:
            logger.info("Create %s rejected by constraint: %s", self.name, e.orig)
            return None
        new_id = int(result.inserted_primary_key[0])

        effective_id = new_id
        conflict: IdentityConflictException | None = None
        if requested_id is not None and int(requested_id) != new_id:
            if self.identity_assigner is None:
                logger.warning(
                    "Ignoring injected %s id %s: no identity assigner configured",
                    self.name,
                    requested_id,
                )
            else:
                assignment = await self.identity_assigner.reassign(
                    self.descriptor.table, new_id, int(requested_id)
                )
                await self._invalidate_related(assignment.touched)
                if assignment.is_conflict:
                    conflict = IdentityConflictException(
                        self.descriptor.table, int(requested_id), new_id
                    )
                effective_id = assignment.effective_id

        await self.cache.invalidate_record(effective_id)
        await self.registry.notify(self.descriptor.hook(HOOK_CREATED), effective_id, payload)
        if conflict is not None:
            raise conflict
        return effective_id

    async def update(self, entity_id: int, data: Mapping[str, Any]) -> bool:
        """Write the mutable fields present in data. False if nothing was written."""
        fields = {k: data[k] for k in self.descriptor.mutable_fields if k in data}
        if not fields:
            logger.debug("Update %s %s: no mutable fields in input", self.name, entity_id)
            return False
        fields = self._format(fields)
        try:
            async with self.db.begin_nested():
                result = await self.db.execute(
                    update(self.table).where(self.pk == entity_id).values(**fields)
                )
        except IntegrityError as e:
            logger.info("Update %s %s rejected by constraint: %s", self.name, entity_id, e.orig)
            return False
        if not result.rowcount:
            return False
        await self.cache.invalidate_record(entity_id)
        await self.registry.notify(self.descriptor.hook(HOOK_UPDATED), entity_id, fields)
        return True

    async def delete(self, entity_id: int) -> bool:
        """Remove the record. False if it did not exist or is still referenced.

        Cached rows of other entity types that the delete removes or nulls
        through their foreign keys are invalidated as well.
        """
        touched = {}
        if self.related_caches:
            touched = await referencing_rows(
                self.db,
                self.table.metadata,
                self.descriptor.table,
                [entity_id],
                follow_cascade=True,
            )
        try:
            async with self.db.begin_nested():
                result = await self.db.execute(delete(self.table).where(self.pk == entity_id))
        except IntegrityError as e:
            logger.info("Delete %s %s rejected by constraint: %s", self.name, entity_id, e.orig)
            return False
        if not result.rowcount:
            return False
        await self.cache.invalidate_record(entity_id)
        await self._invalidate_related(touched)
        await self.registry.notify(self.descriptor.hook(HOOK_DELETED), entity_id)
        return True
