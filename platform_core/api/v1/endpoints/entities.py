"""Entity API: generic CRUD routes for every entity type with a relation provider.

Thin routes: authorization through the resolver, persistence through the
entity store. Store outcomes None/False are translated to 404 (record
does not exist) or 409 (write rejected by a constraint).
"""

from typing import Annotated, Any, Literal

from fastapi import APIRouter, Body, Depends, Path, Query, Response
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from platform_core.api.v1.dependencies import (
    EntityContext,
    get_entity_context,
    get_entity_context_for_write,
)
from platform_core.core.constants import PAGE_LIMIT_DEFAULT, PAGE_LIMIT_MAX
from platform_core.domain.enums import AccessType, Capability
from platform_core.domain.exceptions import (
    AuthorizationException,
    EntityWriteRejectedException,
    ResourceNotFoundException,
    ValidationException,
)
from platform_core.schemas.entity import (
    WRITE_SCHEMAS,
    EntityPageResponse,
    EntityRecordResponse,
)

router = APIRouter()

EntityId = Annotated[int, Path(ge=1, description="Record id")]


def _validate_body(
    schema: type[BaseModel], body: dict[str, Any], partial: bool = False
) -> dict[str, Any]:
    """Validate a raw body against the entity's write schema (422 on failure)."""
    try:
        model = schema.model_validate(body)
    except ValidationError as e:
        raise RequestValidationError(
            e.errors(include_url=False, include_context=False)
        ) from None
    return model.model_dump(exclude_unset=partial)


async def _record_or_404(ctx: EntityContext, entity_id: int) -> dict[str, Any]:
    record = await ctx.store.find(entity_id)
    if record is None:
        raise ResourceNotFoundException(ctx.name, entity_id)
    return record


@router.get("", response_model=EntityPageResponse)
async def list_entities(
    ctx: Annotated[EntityContext, Depends(get_entity_context)],
    offset: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=PAGE_LIMIT_MAX)] = PAGE_LIMIT_DEFAULT,
    search: Annotated[str, Query(max_length=200)] = "",
    sort: Annotated[str | None, Query(description="Sortable column")] = None,
    direction: Literal["asc", "desc"] = "asc",
):
    """List records visible to the actor.

    A platform grant (view) sees every record; anyone else sees the records
    they own, administer or belong to, as reported by the relation provider.
    """
    platform = await ctx.resolver.resolve_unrelated(Capability.VIEW)
    if platform.granted:
        scope, filters = AccessType.PLATFORM.value, None
    else:
        scope = f"actor_{ctx.actor_id}"
        related = await ctx.resolver.relation_provider.related_ids(ctx.actor_id)
        filters = {"id": sorted(related)}
    page = await ctx.store.paginate(
        scope,
        offset=offset,
        limit=limit,
        search=search,
        sort_column=sort,
        sort_direction=direction,
        filters=filters,
    )
    return EntityPageResponse(entity=ctx.name, **page.to_dict())


@router.post("", response_model=EntityRecordResponse, status_code=201)
async def create_entity(
    body: Annotated[dict[str, Any], Body()],
    ctx: Annotated[EntityContext, Depends(get_entity_context_for_write)],
):
    """Create a record. Requires a platform grant for edit on the entity type."""
    decision = await ctx.resolver.resolve_unrelated(Capability.EDIT)
    if not decision.granted:
        raise AuthorizationException(resource=ctx.name, action="create")
    create_schema, _ = WRITE_SCHEMAS[ctx.name]
    data = _validate_body(create_schema, body)
    new_id = await ctx.store.create(data)
    if new_id is None:
        raise EntityWriteRejectedException(ctx.name, "create")
    record = await _record_or_404(ctx, new_id)
    return EntityRecordResponse(entity=ctx.name, id=new_id, data=record)


@router.get("/{entity_id}", response_model=EntityRecordResponse)
async def get_entity(
    entity_id: EntityId,
    ctx: Annotated[EntityContext, Depends(get_entity_context)],
):
    """Return one record (owner, admin, member or platform grant)."""
    await ctx.resolver.require(Capability.VIEW, entity_id)
    record = await _record_or_404(ctx, entity_id)
    return EntityRecordResponse(entity=ctx.name, id=entity_id, data=record)


@router.patch("/{entity_id}", response_model=EntityRecordResponse)
async def update_entity(
    entity_id: EntityId,
    body: Annotated[dict[str, Any], Body()],
    ctx: Annotated[EntityContext, Depends(get_entity_context_for_write)],
):
    """Update the mutable fields present in the body."""
    await ctx.resolver.require(Capability.EDIT, entity_id)
    _, update_schema = WRITE_SCHEMAS[ctx.name]
    data = _validate_body(update_schema, body, partial=True)
    if not data:
        raise ValidationException("No updatable fields in request body")
    if not await ctx.store.update(entity_id, data):
        await _record_or_404(ctx, entity_id)
        raise EntityWriteRejectedException(ctx.name, "update", entity_id)
    record = await _record_or_404(ctx, entity_id)
    return EntityRecordResponse(entity=ctx.name, id=entity_id, data=record)


@router.delete("/{entity_id}", status_code=204)
async def delete_entity(
    entity_id: EntityId,
    ctx: Annotated[EntityContext, Depends(get_entity_context_for_write)],
) -> Response:
    """Delete a record. 409 while other records still reference it."""
    await ctx.resolver.require(Capability.DELETE, entity_id)
    if not await ctx.store.delete(entity_id):
        await _record_or_404(ctx, entity_id)
        raise EntityWriteRejectedException(ctx.name, "delete", entity_id)
    return Response(status_code=204)
