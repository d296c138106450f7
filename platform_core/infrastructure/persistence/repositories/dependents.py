"""Foreign-key dependents of a table and the cached records they back.

Deleting a record or rewriting its key also changes rows of other tables
(ON DELETE CASCADE / SET NULL, or the rewritten reference column). Those
rows can be cached by other entity types, so writers collect them here,
from the SQLAlchemy metadata, and drop their cache entries afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from sqlalchemy import Column, MetaData, Table, select
from sqlalchemy.ext.asyncio import AsyncSession

from platform_core.core.config import Settings
from platform_core.domain.descriptors import CacheDescriptor
from platform_core.infrastructure.cache.cache_protocol import CacheProtocol
from platform_core.infrastructure.cache.entity_cache import EntityCacheManager

logger = logging.getLogger(__name__)

# Table name -> primary keys of rows changed by a write.
TouchedRows = dict[str, set[int]]


@dataclass(frozen=True)
class ForeignKeyDependent:
    """Column of table holding a foreign key to another table's primary key."""

    table: str
    column: str
    ondelete: str | None = None

    @property
    def cascades(self) -> bool:
        return (self.ondelete or "").upper() == "CASCADE"


def single_primary_key(table: Table) -> Column:
    """Return the primary key column; composite keys are rejected."""
    columns = list(table.primary_key.columns)
    if len(columns) != 1:
        raise ValueError(f"Table {table.name!r} must have a single-column primary key")
    return columns[0]


def foreign_key_dependents(metadata: MetaData, table_name: str) -> list[ForeignKeyDependent]:
    """Every foreign key in metadata that targets table_name's primary key."""
    target = metadata.tables.get(table_name)
    if target is None:
        raise ValueError(f"Unknown table {table_name!r}")
    pk = single_primary_key(target)
    return [
        ForeignKeyDependent(table.name, fk.parent.name, fk.ondelete)
        for table in metadata.sorted_tables
        for fk in table.foreign_keys
        if fk.column is pk
    ]


async def referencing_rows(
    db: AsyncSession,
    metadata: MetaData,
    table_name: str,
    ids: Iterable[int],
    *,
    follow_cascade: bool = False,
) -> TouchedRows:
    """Primary keys of rows in other tables that reference ids of table_name.

    Args:
        follow_cascade: Also collect the dependents of rows reached through
            an ON DELETE CASCADE key, since deleting the parent removes them
            and reaches their own dependents in turn. Use it before a delete.
    """
    touched: TouchedRows = {}
    pending: list[tuple[str, set[int]]] = [(table_name, set(ids))]
    while pending:
        parent, parent_ids = pending.pop()
        for dependent in foreign_key_dependents(metadata, parent):
            table = metadata.tables[dependent.table]
            if len(table.primary_key.columns) != 1:
                continue
            pk = single_primary_key(table)
            result = await db.execute(
                select(pk).where(table.c[dependent.column].in_(sorted(parent_ids)))
            )
            found = {int(key) for key in result.scalars().all()}
            new = found - touched.get(dependent.table, set())
            if not new:
                continue
            touched.setdefault(dependent.table, set()).update(new)
            if follow_cascade and dependent.cascades:
                pending.append((dependent.table, new))
    return touched


async def invalidate_touched(
    cache: CacheProtocol | None,
    descriptors: Mapping[str, CacheDescriptor],
    touched: Mapping[str, Iterable[int]],
    settings: Settings | None = None,
) -> bool:
    """Drop the cached records in touched, plus the lists and pages of their entity types.

    Args:
        cache: Cache backend shared by the entity caches.
        descriptors: Table name -> cache descriptor of the entity stored there.
            Tables without a descriptor are not cached and are skipped.
        touched: Table name -> primary keys, as returned by referencing_rows().
    """
    ok = True
    for table_name, ids in touched.items():
        descriptor = descriptors.get(table_name)
        if descriptor is None:
            continue
        manager = EntityCacheManager(cache, descriptor, settings)
        for record_id in sorted(ids):
            ok = await manager.delete(descriptor.record_key_type, record_id) and ok
        ok = await manager.invalidate_record() and ok
        logger.debug("[%s cache] invalidated %s dependent rows", manager.label, len(ids))
    return ok
