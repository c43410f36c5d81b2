"""FastAPI application entry point."""
import importlib
import logging
from typing import Iterable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cms.adapter.base import Adapter
from cms.config import settings
from cms.errors import register_exception_handlers
from cms.exceptions import SchemaSyncError
from cms.services.content_store import ContentItemStore
from cms.services.hooks import CMSHooks
from cms.services.relations import RelationEngine
from cms.services.schema_registry import ContentTypeDeclaration, SchemaRegistry

logger = logging.getLogger(__name__)


def configure_logging(level: str = settings.log_level) -> None:
    """Configure root logging for the service."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_content_types(path: str) -> list[ContentTypeDeclaration]:
    """Import a declarations list given as ``module:attribute``."""
    module_name, _, attribute = path.partition(":")
    module = importlib.import_module(module_name)
    return list(getattr(module, attribute or "CONTENT_TYPES"))


def create_app(
    content_types: Iterable[ContentTypeDeclaration],
    hooks: CMSHooks | None = None,
    adapter: Adapter | None = None,
) -> FastAPI:
    """Build the content API for a set of content type declarations.

    Args:
        content_types: Declarations to register
        hooks: Lifecycle hooks; none by default
        adapter: Backend store; defaults to the SQLAlchemy adapter over
            ``settings.database_url``
    """
    if adapter is None:
        from cms.adapter.sql import SqlAlchemyAdapter
        from cms.database import SessionLocal, init_db

        init_db()
        adapter = SqlAlchemyAdapter(SessionLocal)

    registry = SchemaRegistry(adapter, content_types)
    store = ContentItemStore(
        adapter,
        registry,
        relations=RelationEngine(adapter, registry),
        hooks=hooks,
        settings=settings,
    )

    app = FastAPI(
        title="Content API",
        description="Content types, content items and their relations",
        version="0.1.0",
    )
    app.state.store = store

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "synced": registry.is_synced}

    @app.on_event("startup")
    async def sync_content_types() -> None:
        """Register content types on startup; requests retry if this fails."""
        try:
            await registry.ensure_synced()
        except SchemaSyncError as exc:
            logger.warning("Content type sync failed on startup: %s", exc)

    # Import and include routers
    from cms.routers import content, content_types as content_types_router

    app.include_router(
        content_types_router.router,
        prefix=f"{settings.api_prefix}/content-types",
        tags=["content-types"],
    )
    app.include_router(content.router, prefix=f"{settings.api_prefix}/content", tags=["content"])
    return app


def build_default_app() -> FastAPI:
    configure_logging(settings.log_level)
    return create_app(load_content_types(settings.content_types_module))
