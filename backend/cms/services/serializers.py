"""Serialization of stored rows for API and server-side use."""
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any

from cms.schema.migration import migrate_to_unified_schema, needs_migration

logger = logging.getLogger(__name__)


def _iso(value: Any) -> Any:
    return value.isoformat() if isinstance(value, datetime) else value


def serialize_content_type(row: dict[str, Any]) -> dict[str, Any]:
    """Serialize a content type, upgrading legacy representations on the fly.

    The upgrade is never written back; the stored row keeps its version
    until the next sync rewrites it.
    """
    json_schema = row["json_schema"]
    if needs_migration(row.get("representation_version")):
        json_schema = migrate_to_unified_schema(json_schema, row.get("field_config"))
    return {
        "id": row["id"],
        "name": row["name"],
        "slug": row["slug"],
        "description": row.get("description"),
        "json_schema": json_schema,
        "created_at": _iso(row.get("created_at")),
        "updated_at": _iso(row.get("updated_at")),
    }


def parse_item_data(raw: str | None, item_id: str | None = None) -> dict[str, Any] | None:
    """Parse a stored payload; corrupted JSON yields None instead of raising."""
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (TypeError, json.JSONDecodeError):
        logger.warning("Content item %s has corrupted data; returning parsedData=null", item_id)
        return None


def serialize_content_item(row: dict[str, Any], include_type: bool = True) -> dict[str, Any]:
    """Serialize a content item with its parsed payload and, if joined, its type."""
    serialized = {
        "id": row["id"],
        "content_type_id": row["content_type_id"],
        "slug": row["slug"],
        "data": row["data"],
        "author_id": row.get("author_id"),
        "created_at": _iso(row.get("created_at")),
        "updated_at": _iso(row.get("updated_at")),
        "parsed_data": parse_item_data(row.get("data"), row.get("id")),
    }
    content_type = row.get("content_type")
    if include_type and content_type:
        serialized["content_type"] = serialize_content_type(content_type)
    return serialized
