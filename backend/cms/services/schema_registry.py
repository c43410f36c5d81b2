"""Schema registry: declared content types and their stored representations."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, field_validator

from cms.adapter.base import Adapter, SortBy, Where, eq
from cms.exceptions import (
    AdapterError,
    CMSError,
    NotFoundError,
    SchemaSyncError,
)
from cms.schema.fields import (
    RelationConfig,
    extract_relation_fields,
    parse_representation,
    relation_targets,
)
from cms.schema.representation import CURRENT_REPRESENTATION_VERSION, serialize_representation
from cms.schema.validator import PayloadValidator, compile_validator
from cms.services.serializers import serialize_content_type
from cms.utils import slugify, utcnow

logger = logging.getLogger(__name__)


class ContentTypeDeclaration(BaseModel):
    """A content type as declared by the host application.

    ``shape`` is a pydantic model class or a structural dict with
    ``properties`` and ``required``.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str
    slug: str
    description: str | None = None
    shape: Any

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        if not v or slugify(v) != v:
            raise ValueError(f"Content type slug '{v}' must be lowercase and URL-safe")
        return v


class SchemaRegistry:
    """Registry of content types backed by the store.

    Declarations are written to storage once per registry lifetime. The first
    operation that needs synced schemas starts the sync; concurrent callers
    await the same outcome. A failed sync resets the gate so the next call
    retries.
    """

    def __init__(self, adapter: Adapter, declarations: Iterable[ContentTypeDeclaration]):
        """Initialize the registry.

        Args:
            adapter: Backend store adapter
            declarations: Content types to register, in order
        """
        self.adapter = adapter
        self.declarations = list(declarations)
        seen: set[str] = set()
        for declaration in self.declarations:
            if declaration.slug in seen:
                raise ValueError(f"Duplicate content type slug '{declaration.slug}'")
            seen.add(declaration.slug)
        self._sync_task: asyncio.Task | None = None
        self._synced = False

    @property
    def is_synced(self) -> bool:
        return self._synced

    async def ensure_synced(self) -> None:
        """Sync declarations into storage at most once.

        Raises:
            SchemaSyncError: If any declaration failed to sync
        """
        if self._synced:
            return
        if self._sync_task is None:
            self._sync_task = asyncio.ensure_future(self._run_sync())
        await asyncio.shield(self._sync_task)

    async def _run_sync(self) -> None:
        try:
            await self.sync_content_types()
        except BaseException:
            self._sync_task = None
            raise
        self._synced = True

    async def sync_content_types(self) -> None:
        """Create or update a content type row for every declaration.

        Each declaration is synced independently; failures are collected and
        raised together after all declarations have been attempted.

        Raises:
            SchemaSyncError: If one or more declarations failed
        """
        failures: dict[str, str] = {}
        for declaration in self.declarations:
            try:
                await self._sync_declaration(declaration)
            except (AdapterError, CMSError) as exc:
                logger.error("Failed to sync content type %s: %s", declaration.slug, exc)
                failures[declaration.slug] = str(exc)
        if failures:
            raise SchemaSyncError(
                f"Failed to sync {len(failures)} content type(s): {', '.join(failures)}",
                failures,
            )
        logger.info("Synced %s content type(s)", len(self.declarations))

    async def _sync_declaration(self, declaration: ContentTypeDeclaration) -> None:
        json_schema = serialize_representation(declaration.shape)
        now = utcnow()
        existing = await self.adapter.find_one("content_type", [eq("slug", declaration.slug)])
        if existing:
            await self.adapter.update(
                "content_type",
                [eq("id", existing["id"])],
                {
                    "name": declaration.name,
                    "description": declaration.description,
                    "json_schema": json_schema,
                    "field_config": None,
                    "representation_version": CURRENT_REPRESENTATION_VERSION,
                    "updated_at": now,
                },
            )
            return

        try:
            await self.adapter.create(
                "content_type",
                {
                    "name": declaration.name,
                    "slug": declaration.slug,
                    "description": declaration.description,
                    "json_schema": json_schema,
                    "field_config": None,
                    "representation_version": CURRENT_REPRESENTATION_VERSION,
                    "created_at": now,
                    "updated_at": now,
                },
            )
        except AdapterError as exc:
            # Another process may have created the row between lookup and insert
            now_exists = await self.adapter.find_one(
                "content_type", [eq("slug", declaration.slug)]
            )
            if now_exists:
                logger.warning(
                    "Content type %s was created concurrently; using existing row",
                    declaration.slug,
                )
                return
            raise SchemaSyncError(
                f'Failed to create content type "{declaration.slug}": {exc}'
            ) from exc

    async def get_content_type(self, slug: str) -> dict[str, Any] | None:
        """Return the stored content type row for ``slug``, or None."""
        await self.ensure_synced()
        return await self.adapter.find_one("content_type", [eq("slug", slug)])

    async def require_content_type(self, slug: str) -> dict[str, Any]:
        """Return the stored content type row for ``slug``.

        Raises:
            NotFoundError: If no such content type exists
        """
        content_type = await self.get_content_type(slug)
        if content_type is None:
            raise NotFoundError("Content type not found")
        return content_type

    async def list_content_types(self, with_counts: bool = False) -> list[dict[str, Any]]:
        """Return all content types sorted by name, serialized."""
        await self.ensure_synced()
        rows = await self.adapter.find_many(
            "content_type", sort_by=SortBy(field="name", direction="asc")
        )
        serialized = [serialize_content_type(row) for row in rows]
        if with_counts:
            counts = await asyncio.gather(
                *(
                    self.adapter.count("content_item", [eq("content_type_id", row["id"])])
                    for row in rows
                )
            )
            for item, count in zip(serialized, counts):
                item["item_count"] = count
        return serialized

    def serialize_content_type(self, row: dict[str, Any]) -> dict[str, Any]:
        return serialize_content_type(row)

    def relation_fields(self, content_type: dict[str, Any]) -> dict[str, RelationConfig]:
        """Relation declarations of a content type, keyed by field name."""
        root = parse_representation(serialize_content_type(content_type)["json_schema"])
        return extract_relation_fields(root)

    async def get_validator(self, content_type: dict[str, Any]) -> PayloadValidator:
        """Derive the payload validator of a content type.

        Raises:
            SchemaDefinitionError: If the stored representation is malformed or
                a relation targets a content type that is not registered
        """
        root = parse_representation(serialize_content_type(content_type)["json_schema"])
        registered = set()
        for target in relation_targets(root):
            if await self.adapter.find_one("content_type", [eq("slug", target)]):
                registered.add(target)
        return compile_validator(root, registered_slugs=registered, name=content_type["slug"])

    async def inverse_relations(
        self, slug: str, item_id: str | None = None
    ) -> list[dict[str, Any]]:
        """List ``belongsTo`` fields of any content type that point at ``slug``.

        When ``item_id`` is given, each entry counts the source items whose
        field references that item.
        """
        await self.require_content_type(slug)
        inverse: list[dict[str, Any]] = []
        for content_type in await self.adapter.find_many("content_type"):
            for field_name, config in self.relation_fields(content_type).items():
                if config.type != "belongsTo" or config.target_type != slug:
                    continue
                count = 0
                if item_id:
                    count = await self.count_referencing(content_type["id"], field_name, item_id)
                inverse.append(
                    {
                        "source_type": content_type["slug"],
                        "source_type_name": content_type["name"],
                        "field_name": field_name,
                        "count": count,
                    }
                )
        return inverse

    async def count_referencing(self, source_type_id: str, field_name: str, target_id: str) -> int:
        edges = await self.adapter.find_many(
            "content_relation",
            [eq("target_id", target_id), eq("field_name", field_name)],
        )
        source_ids = list(dict.fromkeys(edge["source_id"] for edge in edges))
        if not source_ids:
            return 0
        return await self.adapter.count(
            "content_item",
            [
                eq("content_type_id", source_type_id),
                Where(field="id", value=source_ids, operator="in"),
            ],
        )
