"""SQL-backed relation providers (implement RelationProvider).

Each provider answers "how is this actor related to this record" for one
entity type with direct lookups: ownership, administration of the owning
unit, employment. Results are cached by the authorization resolver.
"""

from __future__ import annotations

from sqlalchemy import exists, select, union
from sqlalchemy.ext.asyncio import AsyncSession

from platform_core.domain.value_objects import EntityRelation
from platform_core.infrastructure.persistence.models import (
    Branch,
    Customer,
    CustomerEmployee,
    PlatformStaff,
)


async def _sorted_ids(db: AsyncSession, query) -> list[int]:
    return sorted(int(key) for key in (await db.execute(query)).scalars().all())


class CustomerRelationProvider:
    """Owner: customer.actor_id. Admin: admin of any branch. Member: employee."""

    entity = "customer"

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_relation(self, actor_id: int, entity_id: int) -> EntityRelation:
        query = select(
            exists().where(Customer.id == entity_id, Customer.actor_id == actor_id),
            exists().where(Branch.customer_id == entity_id, Branch.admin_actor_id == actor_id),
            exists().where(
                CustomerEmployee.customer_id == entity_id,
                CustomerEmployee.actor_id == actor_id,
            ),
        )
        is_owner, is_admin, is_member = (await self.db.execute(query)).one()
        return EntityRelation(
            actor_id=actor_id,
            entity_id=entity_id,
            is_owner=bool(is_owner),
            is_admin=bool(is_admin),
            is_member=bool(is_member),
        )

    async def related_ids(self, actor_id: int) -> list[int]:
        query = union(
            select(Customer.id).where(Customer.actor_id == actor_id),
            select(Branch.customer_id).where(Branch.admin_actor_id == actor_id),
            select(CustomerEmployee.customer_id).where(CustomerEmployee.actor_id == actor_id),
        )
        return await _sorted_ids(self.db, query)


class BranchRelationProvider:
    """Owner: owner of the parent customer. Admin: branch admin. Member: branch employee."""

    entity = "branch"

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_relation(self, actor_id: int, entity_id: int) -> EntityRelation:
        query = select(
            exists().where(
                Branch.id == entity_id,
                Branch.customer_id == Customer.id,
                Customer.actor_id == actor_id,
            ),
            exists().where(Branch.id == entity_id, Branch.admin_actor_id == actor_id),
            exists().where(
                CustomerEmployee.branch_id == entity_id,
                CustomerEmployee.actor_id == actor_id,
            ),
        )
        is_owner, is_admin, is_member = (await self.db.execute(query)).one()
        return EntityRelation(
            actor_id=actor_id,
            entity_id=entity_id,
            is_owner=bool(is_owner),
            is_admin=bool(is_admin),
            is_member=bool(is_member),
        )

    async def related_ids(self, actor_id: int) -> list[int]:
        query = union(
            select(Branch.id).where(
                Branch.customer_id == Customer.id, Customer.actor_id == actor_id
            ),
            select(Branch.id).where(Branch.admin_actor_id == actor_id),
            select(CustomerEmployee.branch_id).where(
                CustomerEmployee.actor_id == actor_id, CustomerEmployee.branch_id.is_not(None)
            ),
        )
        return await _sorted_ids(self.db, query)


class PlatformStaffRelationProvider:
    """Owner: the staff member's own actor. Staff records have no admins or members."""

    entity = "platform_staff"

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_relation(self, actor_id: int, entity_id: int) -> EntityRelation:
        query = select(
            exists().where(PlatformStaff.id == entity_id, PlatformStaff.actor_id == actor_id)
        )
        is_owner = (await self.db.execute(query)).scalar_one()
        return EntityRelation(actor_id=actor_id, entity_id=entity_id, is_owner=bool(is_owner))

    async def related_ids(self, actor_id: int) -> list[int]:
        return await _sorted_ids(
            self.db, select(PlatformStaff.id).where(PlatformStaff.actor_id == actor_id)
        )
