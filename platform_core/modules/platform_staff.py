"""Platform staff module: staff of the platform operator, 1:1 with an actor."""

from platform_core.domain.descriptors import CacheDescriptor, EntityDescriptor
from platform_core.domain.enums import EntityStatus, FieldFormat

PLATFORM_STAFF = EntityDescriptor(
    name="platform_staff",
    table="platform_staff",
    insert_fields=("actor_id", "employee_id"),
    mutable_fields=("full_name", "department", "hire_date", "phone", "status"),
    defaults={"status": EntityStatus.ACTIVE.value},
    format_map={
        "actor_id": FieldFormat.INTEGER,
        "employee_id": FieldFormat.STRING,
        "full_name": FieldFormat.STRING,
        "status": FieldFormat.STRING,
    },
    searchable_fields=("employee_id", "full_name", "department"),
    sortable_fields=("id", "employee_id", "full_name", "department", "hire_date"),
    cache=CacheDescriptor.for_entity("platform_staff", namespace="staff"),
)

# Role -> capabilities seeded for platform staff.
PLATFORM_ROLES: dict[str, tuple[str, ...]] = {
    "platform_admin": ("view_customer_detail", "edit_all_customers", "delete_customer"),
    "platform_support": ("view_customer_detail", "edit_all_customers"),
    "platform_auditor": ("view_customer_detail",),
}
