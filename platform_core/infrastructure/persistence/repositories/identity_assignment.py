"""Deterministic identity assignment: move a fresh record to a caller-chosen key.

Used only by offline, serialized code paths (fixture seeding). The store
assigns its own key on insert; reassign() then rewrites the primary key
and every foreign key that points at it, as one unit of work, with
referential integrity enforcement relaxed for the duration.

Not safe for concurrent use against the same key space: the target key is
checked before the rewrite without a lock, so callers must serialize.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from sqlalchemy import MetaData, Table, func, select, text, update
from sqlalchemy.ext.asyncio import AsyncSession

from platform_core.core.config import Settings
from platform_core.core.constants import STATIC_ID_FIELD
from platform_core.domain.descriptors import CacheDescriptor
from platform_core.domain.enums import IdentityAssignmentStatus
from platform_core.domain.exceptions import ResourceNotFoundException
from platform_core.domain.value_objects import IdentityAssignment
from platform_core.infrastructure.cache.cache_protocol import CacheProtocol
from platform_core.infrastructure.persistence.database import Base
from platform_core.infrastructure.persistence.repositories.dependents import (
    foreign_key_dependents,
    invalidate_touched,
    referencing_rows,
    single_primary_key,
)

logger = logging.getLogger(__name__)


def static_identity_filter(
    source_field: str = STATIC_ID_FIELD, primary_key: str = "id"
) -> Callable[[dict[str, Any], Mapping[str, Any]], dict[str, Any]]:
    """Build a beforeInsert filter that injects a caller-chosen primary key.

    The filter copies data[source_field] (the original create() input) into
    payload[primary_key]. Inputs without the field pass through unchanged.
    """

    def _inject(payload: dict[str, Any], data: Mapping[str, Any]) -> dict[str, Any]:
        value = data.get(source_field) if isinstance(data, Mapping) else None
        if value is None or value == "":
            return payload
        return {**payload, primary_key: int(value)}

    return _inject


class IdentityAssigner:
    """Rewrites a record's integer primary key and all references to it.

    Args:
        db: Session; the caller owns the transaction.
        metadata: Schema to discover dependents from (defaults to Base.metadata).
        cache: Cache backend holding the entity records; with cache_descriptors
            set, every rewritten row's cached record is dropped after a move.
        cache_descriptors: Table name -> cache descriptor of the entity stored there.
        settings: Source of the cache key bound and TTLs.
    """

    def __init__(
        self,
        db: AsyncSession,
        metadata: MetaData | None = None,
        cache: CacheProtocol | None = None,
        cache_descriptors: Mapping[str, CacheDescriptor] | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.db = db
        self.metadata = metadata or Base.metadata
        self.cache = cache
        self.cache_descriptors = cache_descriptors or {}
        self.settings = settings

    def _table(self, name: str) -> Table:
        table = self.metadata.tables.get(name)
        if table is None:
            raise ValueError(f"Unknown table {name!r}")
        single_primary_key(table)
        return table

    def dependents_of(self, table_name: str) -> list[tuple[str, str]]:
        """Return (table, column) pairs whose foreign key targets table_name's primary key."""
        self._table(table_name)
        return [(d.table, d.column) for d in foreign_key_dependents(self.metadata, table_name)]

    @property
    def dialect(self) -> str:
        return self.db.get_bind().dialect.name

    async def _relax_integrity(self) -> None:
        if self.dialect == "sqlite":
            await self.db.execute(text("PRAGMA defer_foreign_keys=ON"))
        elif self.dialect == "postgresql":
            await self.db.execute(text("SET CONSTRAINTS ALL DEFERRED"))
        elif self.dialect in ("mysql", "mariadb"):
            await self.db.execute(text("SET FOREIGN_KEY_CHECKS=0"))

    async def _restore_integrity(self) -> None:
        if self.dialect == "sqlite":
            await self.db.execute(text("PRAGMA defer_foreign_keys=OFF"))
        elif self.dialect == "postgresql":
            # Checks the deferred constraints now rather than at commit.
            await self.db.execute(text("SET CONSTRAINTS ALL IMMEDIATE"))
        elif self.dialect in ("mysql", "mariadb"):
            await self.db.execute(text("SET FOREIGN_KEY_CHECKS=1"))

    async def _sync_sequence(self, table: Table) -> None:
        if self.dialect != "postgresql":
            return
        pk = next(iter(table.primary_key.columns))
        await self.db.execute(
            text(
                "SELECT setval(pg_get_serial_sequence(:table, :column), "
                f'(SELECT MAX("{pk.name}") FROM "{table.name}"))'
            ),
            {"table": table.name, "column": pk.name},
        )

    async def _exists(self, table: Table, key: int) -> bool:
        pk = next(iter(table.primary_key.columns))
        result = await self.db.execute(
            select(func.count()).select_from(table).where(pk == key)
        )
        return bool(result.scalar_one())

    async def reassign(
        self, table_name: str, current_id: int, target_id: int
    ) -> IdentityAssignment:
        """Move the record at current_id to target_id, dependents included.

        Args:
            table_name: Table of the record (e.g. 'actor').
            current_id: Store-assigned key of the record.
            target_id: Caller-chosen key.

        Returns:
            IdentityAssignment with status ASSIGNED, UNCHANGED (keys equal) or
            CONFLICT (target occupied; nothing was changed). On ASSIGNED,
            touched lists the rewritten rows so callers can drop cached copies.

        Raises:
            ResourceNotFoundException: No record exists at current_id.
        """
        table = self._table(table_name)
        if current_id == target_id:
            return IdentityAssignment(
                table_name, current_id, target_id, IdentityAssignmentStatus.UNCHANGED
            )
        if not await self._exists(table, current_id):
            raise ResourceNotFoundException(table_name, current_id)
        if await self._exists(table, target_id):
            logger.warning(
                "Identity conflict on %s: id %s already in use, record keeps id %s",
                table_name,
                target_id,
                current_id,
            )
            return IdentityAssignment(
                table_name, current_id, target_id, IdentityAssignmentStatus.CONFLICT
            )

        pk = single_primary_key(table)
        touched = await referencing_rows(self.db, self.metadata, table_name, [current_id])
        dependents_updated = 0
        async with self.db.begin_nested():
            await self._relax_integrity()
            try:
                await self.db.execute(
                    update(table).where(pk == current_id).values({pk.name: target_id})
                )
                for dep_table_name, column in self.dependents_of(table_name):
                    dep_table = self.metadata.tables[dep_table_name]
                    result = await self.db.execute(
                        update(dep_table)
                        .where(dep_table.c[column] == current_id)
                        .values({column: target_id})
                    )
                    dependents_updated += result.rowcount or 0
            except Exception:
                # FOREIGN_KEY_CHECKS is session state and survives the rollback.
                if self.dialect in ("mysql", "mariadb"):
                    await self._restore_integrity()
                raise
            await self._restore_integrity()
            await self._sync_sequence(table)
        touched.setdefault(table_name, set()).update((current_id, target_id))
        if self.cache is not None and self.cache_descriptors:
            await invalidate_touched(self.cache, self.cache_descriptors, touched, self.settings)
        logger.info(
            "Reassigned %s id %s -> %s (%s dependent rows)",
            table_name,
            current_id,
            target_id,
            dependents_updated,
        )
        return IdentityAssignment(
            table_name,
            current_id,
            target_id,
            IdentityAssignmentStatus.ASSIGNED,
            dependents_updated=dependents_updated,
            touched={name: frozenset(ids) for name, ids in touched.items()},
        )
