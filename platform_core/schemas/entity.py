"""Entity API schemas: per-entity write bodies and generic record/page responses."""

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from platform_core.core.constants import PAGE_LIMIT_MAX
from platform_core.domain.enums import EntityStatus


class _WriteBody(BaseModel):
    """Unknown fields are rejected rather than silently dropped by the store."""

    model_config = ConfigDict(extra="forbid", use_enum_values=True)


class CustomerCreate(_WriteBody):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=250)
    email: str | None = Field(default=None, max_length=100)
    status: EntityStatus = EntityStatus.ACTIVE
    actor_id: int | None = Field(default=None, gt=0)


class CustomerUpdate(_WriteBody):
    name: str | None = Field(default=None, min_length=1, max_length=250)
    email: str | None = Field(default=None, max_length=100)
    status: EntityStatus | None = None


class BranchCreate(_WriteBody):
    customer_id: int = Field(..., gt=0)
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=250)
    admin_actor_id: int | None = Field(default=None, gt=0)


class BranchUpdate(_WriteBody):
    name: str | None = Field(default=None, min_length=1, max_length=250)
    admin_actor_id: int | None = Field(default=None, gt=0)


class PlatformStaffCreate(_WriteBody):
    actor_id: int = Field(..., gt=0)
    employee_id: str = Field(..., min_length=1, max_length=50)
    full_name: str = Field(..., min_length=1, max_length=250)
    department: str | None = Field(default=None, max_length=100)
    hire_date: date | None = None
    phone: str | None = Field(default=None, max_length=50)
    status: EntityStatus = EntityStatus.ACTIVE


class PlatformStaffUpdate(_WriteBody):
    full_name: str | None = Field(default=None, min_length=1, max_length=250)
    department: str | None = Field(default=None, max_length=100)
    hire_date: date | None = None
    phone: str | None = Field(default=None, max_length=50)
    status: EntityStatus | None = None


# Entity name -> (create body, update body)
WRITE_SCHEMAS: dict[str, tuple[type[BaseModel], type[BaseModel]]] = {
    "customer": (CustomerCreate, CustomerUpdate),
    "branch": (BranchCreate, BranchUpdate),
    "platform_staff": (PlatformStaffCreate, PlatformStaffUpdate),
}


class EntityRecordResponse(BaseModel):
    """Single record response (GET /{id}, POST)."""

    entity: str
    id: int
    data: dict[str, Any]


class EntityPageResponse(BaseModel):
    """Paginated list response."""

    entity: str
    items: list[dict[str, Any]]
    total: int
    offset: int
    limit: int = Field(..., ge=1, le=PAGE_LIMIT_MAX)
