"""Relation engine: inline creation, junction edges and lookups."""
from __future__ import annotations

import logging
import time
from typing import Any, Awaitable, Callable

from cms.adapter.base import Adapter, SortBy, Where, eq
from cms.exceptions import PayloadValidationError, SchemaDefinitionError
from cms.schema.fields import RelationConfig
from cms.services.hooks import HookContext
from cms.services.schema_registry import SchemaRegistry
from cms.services.serializers import serialize_content_item
from cms.utils import slugify, utcnow

logger = logging.getLogger(__name__)

# (target type slug, slug, data, ctx) -> created item record
CreateRelated = Callable[[str, str, dict[str, Any], HookContext], Awaitable[dict[str, Any]]]


def is_new_relation_value(value: Any) -> bool:
    return isinstance(value, dict) and value.get("_new") is True and "data" in value


def derive_slug(data: dict[str, Any]) -> str:
    """Slug for an inline-created item: ``slug``, ``name`` or ``title``, else a timestamp."""
    for key in ("slug", "name", "title"):
        value = data.get(key)
        if isinstance(value, str) and slugify(value):
            return slugify(value)
    return f"item-{int(time.time() * 1000)}"


class RelationEngine:
    """Resolves relation field values and maintains ``content_relation`` edges."""

    def __init__(self, adapter: Adapter, registry: SchemaRegistry):
        self.adapter = adapter
        self.registry = registry

    async def process_relations(
        self,
        content_type: dict[str, Any],
        data: dict[str, Any],
        ctx: HookContext,
        create_related: CreateRelated,
    ) -> tuple[dict[str, Any], dict[str, list[str]]]:
        """Resolve relation values in ``data`` before validation.

        Only relation fields present in ``data`` are touched. Inline creation
        requests are replaced with references to the created (or reused)
        target item. Entries that are neither a reference nor a creation
        request are left as-is so validation reports them.

        Returns:
            Processed payload and the target ids per relation field
        """
        processed = dict(data)
        relation_ids: dict[str, list[str]] = {}
        for field_name, config in self.registry.relation_fields(content_type).items():
            if field_name not in data:
                continue
            value = data[field_name]
            if not value:
                relation_ids[field_name] = []
                continue

            target_type = await self.registry.get_content_type(config.target_type)
            if target_type is None:
                raise SchemaDefinitionError(
                    f'Relation field "{field_name}" targets unknown content type '
                    f'"{config.target_type}"'
                )

            if config.is_single:
                resolved = await self._resolve(field_name, config, target_type, value, ctx, create_related)
                processed[field_name] = resolved
                entries = [resolved]
            elif isinstance(value, list):
                entries = [
                    await self._resolve(field_name, config, target_type, entry, ctx, create_related)
                    for entry in value
                ]
                processed[field_name] = entries
            else:
                continue

            relation_ids[field_name] = [
                entry["id"]
                for entry in entries
                if isinstance(entry, dict) and isinstance(entry.get("id"), str)
            ]
        return processed, relation_ids

    async def _resolve(
        self,
        field_name: str,
        config: RelationConfig,
        target_type: dict[str, Any],
        value: Any,
        ctx: HookContext,
        create_related: CreateRelated,
    ) -> Any:
        if not is_new_relation_value(value):
            return value
        if not config.creatable:
            raise PayloadValidationError(
                "Validation failed",
                [
                    {
                        "path": field_name,
                        "message": f'Relation field "{field_name}" does not allow creating new items',
                        "type": "relation_not_creatable",
                    }
                ],
            )

        new_data = value["data"] if isinstance(value["data"], dict) else {}
        slug = derive_slug(new_data)
        existing = await self.adapter.find_one(
            "content_item",
            [eq("content_type_id", target_type["id"]), eq("slug", slug)],
        )
        if existing:
            logger.debug("Reusing %s item %s for field %s", target_type["slug"], slug, field_name)
            return {"id": existing["id"]}

        created = await create_related(
            target_type["slug"], slug, new_data, ctx.for_type(target_type["slug"])
        )
        logger.info("Created %s item %s inline for field %s", target_type["slug"], created["id"], field_name)
        return {"id": created["id"]}

    async def sync_relations(self, source_id: str, relation_ids: dict[str, list[str]]) -> None:
        """Replace the edges of each given field.

        Fields absent from ``relation_ids`` keep their edges. Edges are only
        written for targets that exist; the payload keeps every reference.
        """
        for field_name, target_ids in relation_ids.items():
            await self.adapter.delete(
                "content_relation",
                [eq("source_id", source_id), eq("field_name", field_name)],
            )
            target_ids = list(dict.fromkeys(target_ids))
            if not target_ids:
                continue
            existing = {
                row["id"]
                for row in await self.adapter.find_many(
                    "content_item", [Where(field="id", value=target_ids, operator="in")]
                )
            }
            skipped = [target_id for target_id in target_ids if target_id not in existing]
            if skipped:
                logger.debug(
                    "No edge for missing %s target(s) of %s: %s",
                    field_name,
                    source_id,
                    ", ".join(skipped),
                )
            for target_id in target_ids:
                if target_id not in existing:
                    continue
                await self.adapter.create(
                    "content_relation",
                    {
                        "source_id": source_id,
                        "target_id": target_id,
                        "field_name": field_name,
                        "created_at": utcnow(),
                    },
                )

    async def populate(
        self, content_type: dict[str, Any], item: dict[str, Any]
    ) -> dict[str, list[dict[str, Any]]]:
        """Load the targets of every relation field declared on the item's type.

        Targets that no longer exist are omitted.
        """
        populated: dict[str, list[dict[str, Any]]] = {}
        for field_name in self.registry.relation_fields(content_type):
            edges = await self.adapter.find_many(
                "content_relation",
                [eq("source_id", item["id"]), eq("field_name", field_name)],
                sort_by=SortBy(field="created_at", direction="asc"),
            )
            target_ids = list(dict.fromkeys(edge["target_id"] for edge in edges))
            if not target_ids:
                populated[field_name] = []
                continue
            targets = await self.adapter.find_many(
                "content_item",
                [Where(field="id", value=target_ids, operator="in")],
                join={"content_type": True},
            )
            by_id = {target["id"]: target for target in targets}
            populated[field_name] = [
                serialize_content_item(by_id[target_id])
                for target_id in target_ids
                if target_id in by_id
            ]
        return populated

    async def list_by_relation(
        self,
        source_type: dict[str, Any],
        field_name: str,
        target_id: str,
        limit: int,
        offset: int,
    ) -> dict[str, Any]:
        """Items of ``source_type`` whose ``field_name`` references ``target_id``, newest first."""
        edges = await self.adapter.find_many(
            "content_relation",
            [eq("target_id", target_id), eq("field_name", field_name)],
        )
        source_ids = list(dict.fromkeys(edge["source_id"] for edge in edges))
        if not source_ids:
            return {"items": [], "total": 0, "limit": limit, "offset": offset}

        where = [
            eq("content_type_id", source_type["id"]),
            Where(field="id", value=source_ids, operator="in"),
        ]
        total = await self.adapter.count("content_item", where)
        rows = await self.adapter.find_many(
            "content_item",
            where,
            limit=limit,
            offset=offset,
            sort_by=SortBy(field="created_at", direction="desc"),
            join={"content_type": True},
        )
        return {
            "items": [serialize_content_item(row) for row in rows],
            "total": total,
            "limit": limit,
            "offset": offset,
        }
