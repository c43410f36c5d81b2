"""Lazy upgrade of legacy schema representations."""
import json
import logging
from typing import Any

from cms.schema.representation import CURRENT_REPRESENTATION_VERSION, STRUCTURAL_KEYS

logger = logging.getLogger(__name__)


def needs_migration(version: int | None) -> bool:
    """Version 1 rows (or rows predating the version column) keep hints apart."""
    return not version or version < CURRENT_REPRESENTATION_VERSION


def merge_field_hints(schema: dict[str, Any], field_config: dict[str, Any]) -> dict[str, Any]:
    """Embed per-field presentation hints into matching properties.

    Hint entries for fields the schema does not declare are dropped, and
    hints never overwrite structural keys.
    """
    merged = dict(schema)
    properties = {name: dict(prop) for name, prop in (schema.get("properties") or {}).items()}
    for field_name, hints in field_config.items():
        if field_name not in properties or not isinstance(hints, dict):
            continue
        for key, value in hints.items():
            if key in STRUCTURAL_KEYS or value is None:
                continue
            properties[field_name][key] = value
    merged["properties"] = properties
    return merged


def migrate_to_unified_schema(json_schema: str, field_config: str | None) -> str:
    """Return the version 2 form of a version 1 representation.

    Pure: nothing is written back. Input that cannot be parsed is returned
    unchanged so a single bad row never breaks a listing.
    """
    if not field_config:
        return json_schema
    try:
        schema = json.loads(json_schema)
        config = json.loads(field_config)
    except json.JSONDecodeError:
        logger.warning("Skipping schema migration: stored representation is not valid JSON")
        return json_schema
    if not isinstance(schema, dict) or not isinstance(schema.get("properties"), dict):
        return json_schema
    if not isinstance(config, dict):
        return json_schema
    return json.dumps(merge_field_hints(schema, config))
