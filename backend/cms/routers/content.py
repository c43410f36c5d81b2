"""Content items API router."""
from fastapi import APIRouter, Depends, Query

from cms.config import settings
from cms.dependencies import get_hook_context, get_store
from cms.schemas.content_item import (
    ContentItem,
    ContentItemCreate,
    ContentItemUpdate,
    PaginatedContentItems,
    PopulatedContentItem,
)
from cms.services.content_store import ContentItemStore
from cms.services.hooks import HookContext

router = APIRouter()


@router.get("/{type_slug}", response_model=PaginatedContentItems)
async def list_content(
    type_slug: str,
    slug: str | None = Query(default=None),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    offset: int = Query(default=0, ge=0),
    store: ContentItemStore = Depends(get_store),
    ctx: HookContext = Depends(get_hook_context),
):
    """List items of a content type, newest first."""
    return await store.list_items(type_slug, slug=slug, limit=limit, offset=offset, ctx=ctx)


@router.get("/{type_slug}/by-relation", response_model=PaginatedContentItems)
async def list_content_by_relation(
    type_slug: str,
    field: str = Query(),
    target_id: str = Query(alias="targetId"),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    offset: int = Query(default=0, ge=0),
    store: ContentItemStore = Depends(get_store),
    ctx: HookContext = Depends(get_hook_context),
):
    """List items whose relation field references the given target."""
    return await store.list_by_relation(type_slug, field, target_id, limit, offset, ctx=ctx)


@router.get("/{type_slug}/{item_id}", response_model=ContentItem)
async def get_content(
    type_slug: str,
    item_id: str,
    store: ContentItemStore = Depends(get_store),
    ctx: HookContext = Depends(get_hook_context),
):
    """Get a content item by ID."""
    return await store.get_item(type_slug, item_id, ctx=ctx)


@router.get("/{type_slug}/{item_id}/populated", response_model=PopulatedContentItem)
async def get_populated_content(
    type_slug: str,
    item_id: str,
    store: ContentItemStore = Depends(get_store),
    ctx: HookContext = Depends(get_hook_context),
):
    """Get a content item with its related items."""
    return await store.get_populated(type_slug, item_id, ctx=ctx)


@router.post("/{type_slug}", response_model=ContentItem)
async def create_content(
    type_slug: str,
    payload: ContentItemCreate,
    store: ContentItemStore = Depends(get_store),
    ctx: HookContext = Depends(get_hook_context),
):
    """Create a content item."""
    return await store.create_item(type_slug, payload.slug, payload.data, ctx=ctx)


@router.put("/{type_slug}/{item_id}", response_model=ContentItem)
async def update_content(
    type_slug: str,
    item_id: str,
    payload: ContentItemUpdate,
    store: ContentItemStore = Depends(get_store),
    ctx: HookContext = Depends(get_hook_context),
):
    """Update a content item."""
    return await store.update_item(
        type_slug, item_id, slug=payload.slug, data=payload.data, ctx=ctx
    )


@router.delete("/{type_slug}/{item_id}")
async def delete_content(
    type_slug: str,
    item_id: str,
    store: ContentItemStore = Depends(get_store),
    ctx: HookContext = Depends(get_hook_context),
):
    """Delete a content item."""
    await store.delete_item(type_slug, item_id, ctx=ctx)
    return {"success": True}
