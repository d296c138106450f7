"""Customer module: customers, their branches and their employees."""

from platform_core.domain.descriptors import CacheDescriptor, EntityDescriptor
from platform_core.domain.enums import EntityStatus, FieldFormat

CUSTOMER = EntityDescriptor(
    name="customer",
    table="customer",
    insert_fields=("code", "actor_id"),
    mutable_fields=("name", "email", "status"),
    defaults={"status": EntityStatus.ACTIVE.value},
    format_map={
        "code": FieldFormat.STRING,
        "actor_id": FieldFormat.INTEGER,
        "name": FieldFormat.STRING,
        "email": FieldFormat.STRING,
        "status": FieldFormat.STRING,
    },
    searchable_fields=("code", "name", "email"),
    sortable_fields=("id", "code", "name", "status", "created_at"),
    cache=CacheDescriptor.for_entity("customer"),
)

BRANCH = EntityDescriptor(
    name="branch",
    table="branch",
    insert_fields=("customer_id", "code"),
    mutable_fields=("name", "admin_actor_id"),
    format_map={
        "customer_id": FieldFormat.INTEGER,
        "admin_actor_id": FieldFormat.INTEGER,
        "code": FieldFormat.STRING,
        "name": FieldFormat.STRING,
    },
    searchable_fields=("code", "name"),
    sortable_fields=("id", "code", "name"),
    cache=CacheDescriptor.for_entity("branch"),
)

CUSTOMER_EMPLOYEE = EntityDescriptor(
    name="customer_employee",
    table="customer_employee",
    insert_fields=("customer_id", "actor_id"),
    mutable_fields=("name", "position", "branch_id"),
    format_map={
        "customer_id": FieldFormat.INTEGER,
        "actor_id": FieldFormat.INTEGER,
        "branch_id": FieldFormat.INTEGER,
    },
    searchable_fields=("name", "position"),
    sortable_fields=("id", "name", "position"),
    cache=CacheDescriptor.for_entity("customer_employee"),
)
