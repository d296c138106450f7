"""Actor module: shared login principals referenced by every entity type."""

from platform_core.domain.descriptors import CacheDescriptor, EntityDescriptor
from platform_core.domain.enums import FieldFormat

ACTOR = EntityDescriptor(
    name="actor",
    table="actor",
    insert_fields=("login",),
    mutable_fields=("email", "display_name"),
    format_map={
        "login": FieldFormat.STRING,
        "email": FieldFormat.STRING,
        "display_name": FieldFormat.STRING,
    },
    searchable_fields=("login", "email", "display_name"),
    sortable_fields=("id", "login", "email", "display_name"),
    cache=CacheDescriptor.for_entity("actor"),
)
