"""FastAPI dependencies shared by the routers."""
from fastapi import Header, Request

from cms.services.content_store import ContentItemStore
from cms.services.hooks import HookContext
from cms.services.schema_registry import SchemaRegistry


def get_store(request: Request) -> ContentItemStore:
    """Content item store attached to the application."""
    return request.app.state.store


def get_registry(request: Request) -> SchemaRegistry:
    return request.app.state.store.registry


def get_hook_context(
    request: Request,
    x_user_id: str | None = Header(default=None),
) -> HookContext:
    """Hook context for the content type named in the request path."""
    type_slug = request.path_params.get("type_slug") or request.path_params.get("slug", "")
    return HookContext(
        type_slug=type_slug,
        user_id=x_user_id,
        headers=dict(request.headers),
    )
