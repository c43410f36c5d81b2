"""Content item store: validated CRUD over content items."""
from __future__ import annotations

import json
import logging
from typing import Any, Awaitable

from cms.adapter.base import Adapter, SortBy, eq
from cms.config import Settings, settings as default_settings
from cms.exceptions import ConflictError, InvalidSlugError, NotFoundError, UniqueViolationError
from cms.services.hooks import CMSHooks, HookContext, Operation
from cms.services.relations import RelationEngine
from cms.services.schema_registry import SchemaRegistry
from cms.services.serializers import parse_item_data, serialize_content_item
from cms.utils import slugify, utcnow

logger = logging.getLogger(__name__)


class ContentItemStore:
    """CRUD over content items of registered content types.

    Writes resolve relation fields, validate against the type's schema,
    enforce slug uniqueness per type and run the lifecycle hooks around the
    storage call. Any error raised by an operation is reported to the
    ``on_error`` hooks before it propagates.
    """

    def __init__(
        self,
        adapter: Adapter,
        registry: SchemaRegistry,
        relations: RelationEngine | None = None,
        hooks: CMSHooks | None = None,
        settings: Settings | None = None,
    ):
        self.adapter = adapter
        self.registry = registry
        self.relations = relations or RelationEngine(adapter, registry)
        self.hooks = hooks or CMSHooks()
        self.settings = settings or default_settings

    async def _reported(self, operation: Operation, ctx: HookContext, work: Awaitable[Any]) -> Any:
        try:
            return await work
        except Exception as exc:
            await self.hooks.on_error(exc, operation, ctx)
            raise

    @staticmethod
    def normalize_slug(slug: str) -> str:
        """Normalize ``slug``, rejecting input with nothing URL-safe left."""
        normalized = slugify(slug)
        if not normalized:
            raise InvalidSlugError("Slug must contain at least one letter or number")
        return normalized

    async def _require_item(self, content_type: dict[str, Any], item_id: str) -> dict[str, Any]:
        item = await self.adapter.find_one(
            "content_item",
            [eq("id", item_id), eq("content_type_id", content_type["id"])],
            join={"content_type": True},
        )
        if item is None:
            raise NotFoundError("Content item not found")
        return item

    async def _ensure_slug_available(self, content_type: dict[str, Any], slug: str) -> None:
        existing = await self.adapter.find_one(
            "content_item",
            [eq("content_type_id", content_type["id"]), eq("slug", slug)],
        )
        if existing is not None:
            raise ConflictError("Content item with this slug already exists")

    # Reads

    async def list_items(
        self,
        type_slug: str,
        slug: str | None = None,
        limit: int | None = None,
        offset: int = 0,
        include_type: bool = True,
        ctx: HookContext | None = None,
    ) -> dict[str, Any]:
        """Page through items of a type, newest first.

        Returns:
            ``{items, total, limit, offset}`` where ``total`` counts every
            matching item regardless of the page
        """
        ctx = ctx or HookContext(type_slug=type_slug)
        return await self._reported(
            "list", ctx, self._list_items(type_slug, slug, limit, offset, include_type)
        )

    async def _list_items(
        self,
        type_slug: str,
        slug: str | None,
        limit: int | None,
        offset: int,
        include_type: bool,
    ) -> dict[str, Any]:
        limit = limit or self.settings.default_page_size
        content_type = await self.registry.require_content_type(type_slug)
        where = [eq("content_type_id", content_type["id"])]
        if slug:
            where.append(eq("slug", slug))

        total = await self.adapter.count("content_item", where)
        rows = await self.adapter.find_many(
            "content_item",
            where,
            limit=limit,
            offset=offset,
            sort_by=SortBy(field="created_at", direction="desc"),
            join={"content_type": True} if include_type else None,
        )
        return {
            "items": [serialize_content_item(row, include_type=include_type) for row in rows],
            "total": total,
            "limit": limit,
            "offset": offset,
        }

    async def get_item(
        self, type_slug: str, item_id: str, ctx: HookContext | None = None
    ) -> dict[str, Any]:
        """Fetch one item; it must belong to ``type_slug``."""
        ctx = ctx or HookContext(type_slug=type_slug)
        return await self._reported("get", ctx, self._get_item(type_slug, item_id))

    async def _get_item(self, type_slug: str, item_id: str) -> dict[str, Any]:
        content_type = await self.registry.require_content_type(type_slug)
        return serialize_content_item(await self._require_item(content_type, item_id))

    async def get_item_by_slug(
        self, type_slug: str, slug: str, ctx: HookContext | None = None
    ) -> dict[str, Any] | None:
        """Fetch one item of ``type_slug`` by slug, or None when absent."""
        ctx = ctx or HookContext(type_slug=type_slug)
        return await self._reported("get", ctx, self._get_item_by_slug(type_slug, slug))

    async def _get_item_by_slug(self, type_slug: str, slug: str) -> dict[str, Any] | None:
        content_type = await self.registry.require_content_type(type_slug)
        row = await self.adapter.find_one(
            "content_item",
            [eq("content_type_id", content_type["id"]), eq("slug", slug)],
            join={"content_type": True},
        )
        return serialize_content_item(row) if row else None

    async def get_populated(
        self, type_slug: str, item_id: str, ctx: HookContext | None = None
    ) -> dict[str, Any]:
        """Fetch one item with its relation targets under ``_relations``."""
        ctx = ctx or HookContext(type_slug=type_slug)
        return await self._reported("get", ctx, self._get_populated(type_slug, item_id))

    async def _get_populated(self, type_slug: str, item_id: str) -> dict[str, Any]:
        content_type = await self.registry.require_content_type(type_slug)
        row = await self._require_item(content_type, item_id)
        item = serialize_content_item(row)
        item["_relations"] = await self.relations.populate(content_type, row)
        return item

    async def list_by_relation(
        self,
        type_slug: str,
        field_name: str,
        target_id: str,
        limit: int | None = None,
        offset: int = 0,
        ctx: HookContext | None = None,
    ) -> dict[str, Any]:
        """Items of ``type_slug`` whose relation field references ``target_id``."""
        ctx = ctx or HookContext(type_slug=type_slug)

        async def work() -> dict[str, Any]:
            source_type = await self.registry.require_content_type(type_slug)
            return await self.relations.list_by_relation(
                source_type,
                field_name,
                target_id,
                limit or self.settings.default_page_size,
                offset,
            )

        return await self._reported("list", ctx, work())

    async def list_inverse_items(
        self,
        target_slug: str,
        source_slug: str,
        field_name: str,
        item_id: str,
        limit: int | None = None,
        offset: int = 0,
        ctx: HookContext | None = None,
    ) -> dict[str, Any]:
        """Items of ``source_slug`` pointing at an item of ``target_slug``."""
        ctx = ctx or HookContext(type_slug=source_slug)

        async def work() -> dict[str, Any]:
            if await self.registry.get_content_type(target_slug) is None:
                raise NotFoundError("Target content type not found")
            source_type = await self.registry.get_content_type(source_slug)
            if source_type is None:
                raise NotFoundError("Source content type not found")
            return await self.relations.list_by_relation(
                source_type,
                field_name,
                item_id,
                limit or self.settings.default_page_size,
                offset,
            )

        return await self._reported("list", ctx, work())

    # Writes

    async def create_item(
        self, type_slug: str, slug: str, data: dict[str, Any], ctx: HookContext | None = None
    ) -> dict[str, Any]:
        """Validate and store a new item.

        Raises:
            InvalidSlugError: If ``slug`` normalizes to an empty string
            NotFoundError: If the content type is not registered
            PayloadValidationError: If ``data`` does not satisfy the schema
            ConflictError: If the slug is taken within the type
            DeniedError: If a ``before_create`` hook vetoes the write
        """
        ctx = ctx or HookContext(type_slug=type_slug)
        return await self._reported("create", ctx, self._create_item(type_slug, slug, data, ctx))

    async def _create_item(
        self, type_slug: str, slug: str, data: dict[str, Any], ctx: HookContext
    ) -> dict[str, Any]:
        slug = self.normalize_slug(slug)
        content_type = await self.registry.require_content_type(type_slug)

        processed, relation_ids = await self.relations.process_relations(
            content_type, data, ctx, self._create_item
        )
        validator = await self.registry.get_validator(content_type)
        validated = validator.validate(processed)

        await self._ensure_slug_available(content_type, slug)
        validated = await self.hooks.before_create(validated, ctx)

        now = utcnow()
        try:
            row = await self.adapter.create(
                "content_item",
                {
                    "content_type_id": content_type["id"],
                    "slug": slug,
                    "data": json.dumps(validated),
                    "author_id": ctx.user_id,
                    "created_at": now,
                    "updated_at": now,
                },
            )
        except UniqueViolationError as exc:
            raise ConflictError("Content item with this slug already exists") from exc

        await self.relations.sync_relations(row["id"], relation_ids)
        item = serialize_content_item(row, include_type=False)
        logger.info("Created %s item %s (%s)", type_slug, row["id"], slug)
        await self.hooks.after_create(item, ctx)
        return item

    async def update_item(
        self,
        type_slug: str,
        item_id: str,
        slug: str | None = None,
        data: dict[str, Any] | None = None,
        ctx: HookContext | None = None,
    ) -> dict[str, Any]:
        """Update an item's slug and/or payload.

        Supplied ``data`` is merged over the stored payload key by key and the
        result is validated against the full schema. Relation edges are only
        replaced for relation fields present in ``data``.
        """
        ctx = ctx or HookContext(type_slug=type_slug)
        return await self._reported(
            "update", ctx, self._update_item(type_slug, item_id, slug, data, ctx)
        )

    async def _update_item(
        self,
        type_slug: str,
        item_id: str,
        slug: str | None,
        data: dict[str, Any] | None,
        ctx: HookContext,
    ) -> dict[str, Any]:
        if slug is not None:
            slug = self.normalize_slug(slug)
        content_type = await self.registry.require_content_type(type_slug)
        existing = await self._require_item(content_type, item_id)
        current = parse_item_data(existing["data"], item_id) or {}

        update: dict[str, Any] = {}
        if slug is not None:
            if slug != existing["slug"]:
                await self._ensure_slug_available(content_type, slug)
                update["slug"] = slug

        relation_ids: dict[str, list[str]] = {}
        payload = current
        if data is not None:
            processed, relation_ids = await self.relations.process_relations(
                content_type, data, ctx, self._create_item
            )
            validator = await self.registry.get_validator(content_type)
            payload = validator.validate({**current, **processed})

        payload = await self.hooks.before_update(item_id, payload, ctx)
        if data is not None or payload != current:
            update["data"] = json.dumps(payload)
        update["updated_at"] = utcnow()

        try:
            row = await self.adapter.update("content_item", [eq("id", item_id)], update)
        except UniqueViolationError as exc:
            raise ConflictError("Content item with this slug already exists") from exc
        if row is None:
            raise NotFoundError("Content item not found")

        await self.relations.sync_relations(item_id, relation_ids)
        item = serialize_content_item(row, include_type=False)
        logger.info("Updated %s item %s", type_slug, item_id)
        await self.hooks.after_update(item, ctx)
        return item

    async def delete_item(
        self, type_slug: str, item_id: str, ctx: HookContext | None = None
    ) -> None:
        """Delete an item; its relation edges go with it."""
        ctx = ctx or HookContext(type_slug=type_slug)
        await self._reported("delete", ctx, self._delete_item(type_slug, item_id, ctx))

    async def _delete_item(self, type_slug: str, item_id: str, ctx: HookContext) -> None:
        content_type = await self.registry.require_content_type(type_slug)
        await self._require_item(content_type, item_id)
        await self.hooks.before_delete(item_id, ctx)
        await self.adapter.delete("content_item", [eq("id", item_id)])
        logger.info("Deleted %s item %s", type_slug, item_id)
        await self.hooks.after_delete(item_id, ctx)
