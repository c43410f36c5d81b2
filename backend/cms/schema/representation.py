"""Conversion of declared shapes into the stored schema representation."""
from __future__ import annotations

import copy
import inspect
import json
from typing import Any

from pydantic import BaseModel, Field

from cms.exceptions import SchemaDefinitionError
from cms.schema.fields import (
    RELATION_FIELD_TYPE,
    RelationKind,
    dump_representation,
    parse_representation,
)

CURRENT_REPRESENTATION_VERSION = 2

# Keys that describe structure rather than presentation
STRUCTURAL_KEYS = frozenset(
    {"type", "properties", "items", "required", "nullable", "$ref", "$defs"}
)

_RELATION_REFERENCE = {
    "type": "object",
    "properties": {"id": {"type": "string"}},
    "required": ["id"],
}


class RelationRef(BaseModel):
    """Stored value of a relation entry: a reference to the target item."""

    id: str


def relation_field(
    kind: RelationKind,
    target_type: str,
    *,
    display_field: str = "name",
    creatable: bool = False,
    description: str | None = None,
    **kwargs: Any,
) -> Any:
    """Declare a relation field on a pydantic shape.

    Example:
        >>> class Post(BaseModel):
        ...     author: RelationRef | None = relation_field("belongsTo", "author")
        ...     tags: list[RelationRef] = relation_field("manyToMany", "tag", creatable=True)
    """
    relation = {
        "type": kind,
        "targetType": target_type,
        "displayField": display_field,
        "creatable": creatable,
    }
    if "default_factory" not in kwargs:
        kwargs.setdefault("default", None)
    return Field(
        description=description,
        json_schema_extra={"fieldType": RELATION_FIELD_TYPE, "relation": relation},
        **kwargs,
    )


def _resolve_ref(ref: str, defs: dict[str, Any]) -> dict[str, Any]:
    prefix = "#/$defs/"
    if not ref.startswith(prefix) or ref[len(prefix):] not in defs:
        raise SchemaDefinitionError(f"Unresolvable schema reference '{ref}'")
    return defs[ref[len(prefix):]]


def _normalize(node: dict[str, Any], defs: dict[str, Any], depth: int = 0) -> dict[str, Any]:
    if depth > 32:
        raise SchemaDefinitionError("Schema nesting is too deep (recursive model?)")

    node = dict(node)
    node.pop("title", None)
    node.pop("$defs", None)

    if "$ref" in node:
        base = _normalize(_resolve_ref(node.pop("$ref"), defs), defs, depth + 1)
        node = {**base, **node}

    all_of = node.pop("allOf", None)
    if all_of:
        if len(all_of) != 1:
            raise SchemaDefinitionError("Only single-member allOf is supported")
        node = {**_normalize(all_of[0], defs, depth + 1), **node}

    any_of = node.pop("anyOf", None)
    if any_of:
        variants = [v for v in any_of if v.get("type") != "null"]
        if len(variants) != 1:
            raise SchemaDefinitionError("Union fields are not supported; use one type per field")
        node = {**_normalize(variants[0], defs, depth + 1), **node}
        if len(variants) < len(any_of):
            node["nullable"] = True

    if isinstance(node.get("type"), list):
        types = [t for t in node["type"] if t != "null"]
        if len(types) != 1:
            raise SchemaDefinitionError("Union fields are not supported; use one type per field")
        if len(types) < len(node["type"]):
            node["nullable"] = True
        node["type"] = types[0]

    if node.get("default", ...) is None:
        # Optional[...] = None is expressed by leaving the field absent
        node.pop("default")

    if node.get("fieldType") == RELATION_FIELD_TYPE and "type" not in node:
        relation = node.get("relation") or {}
        if relation.get("type") == "belongsTo":
            node.update(copy.deepcopy(_RELATION_REFERENCE))
        else:
            node["type"] = "array"
            node["items"] = copy.deepcopy(_RELATION_REFERENCE)

    if "properties" in node:
        node["properties"] = {
            name: _normalize(prop, defs, depth + 1)
            for name, prop in node["properties"].items()
        }
    if isinstance(node.get("items"), dict):
        node["items"] = _normalize(node["items"], defs, depth + 1)
    return node


def shape_to_representation(shape: type[BaseModel] | dict[str, Any]) -> dict[str, Any]:
    """Serialize a declared shape into the current representation version.

    ``shape`` is either a pydantic model class or a structural dict with
    ``properties``/``required``. Per-field hints are embedded directly in the
    properties, which is what version 2 means. ``X | None`` is stored as ``X``
    with ``"nullable": true``.
    """
    if inspect.isclass(shape) and issubclass(shape, BaseModel):
        raw = shape.model_json_schema()
    elif isinstance(shape, dict):
        raw = copy.deepcopy(shape)
    else:
        raise SchemaDefinitionError(
            f"Unsupported shape {shape!r}; expected a pydantic model or a dict"
        )
    normalized = _normalize(raw, raw.get("$defs", {}))
    normalized.setdefault("type", "object")
    normalized.setdefault("required", [])
    return dump_representation(parse_representation(normalized))


def serialize_representation(shape: type[BaseModel] | dict[str, Any]) -> str:
    return json.dumps(shape_to_representation(shape))
