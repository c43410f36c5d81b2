"""Content types API router."""
from fastapi import APIRouter, Depends, Query

from cms.config import settings
from cms.dependencies import get_hook_context, get_registry, get_store
from cms.exceptions import NotFoundError
from cms.schemas.content_item import PaginatedContentItems
from cms.schemas.content_type import ContentType, ContentTypeWithCount, InverseRelationList
from cms.services.content_store import ContentItemStore
from cms.services.hooks import HookContext
from cms.services.schema_registry import SchemaRegistry

router = APIRouter()


@router.get("", response_model=list[ContentTypeWithCount])
async def list_content_types(registry: SchemaRegistry = Depends(get_registry)):
    """List all content types with their item counts."""
    return await registry.list_content_types(with_counts=True)


@router.get("/{slug}", response_model=ContentType)
async def get_content_type(slug: str, registry: SchemaRegistry = Depends(get_registry)):
    """Get a content type by slug."""
    content_type = await registry.get_content_type(slug)
    if not content_type:
        raise NotFoundError("Content type not found")
    return registry.serialize_content_type(content_type)


@router.get("/{slug}/inverse-relations", response_model=InverseRelationList)
async def get_inverse_relations(
    slug: str,
    item_id: str | None = Query(default=None, alias="itemId"),
    registry: SchemaRegistry = Depends(get_registry),
):
    """List belongsTo fields of other types that point at this type."""
    return {"inverse_relations": await registry.inverse_relations(slug, item_id)}


@router.get("/{slug}/inverse-relations/{source_type}", response_model=PaginatedContentItems)
async def list_inverse_relation_items(
    slug: str,
    source_type: str,
    item_id: str = Query(alias="itemId"),
    field_name: str = Query(alias="fieldName"),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    offset: int = Query(default=0, ge=0),
    store: ContentItemStore = Depends(get_store),
    ctx: HookContext = Depends(get_hook_context),
):
    """List items of ``source_type`` that reference an item of this type."""
    return await store.list_inverse_items(
        slug, source_type, field_name, item_id, limit, offset, ctx=ctx.for_type(source_type)
    )
