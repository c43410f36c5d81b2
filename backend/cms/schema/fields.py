"""Field descriptor tree for content type schema representations.

A stored representation is a JSON document whose ``properties`` describe
each field. It is parsed into a tagged union of descriptors, one variant
per JSON ``type``, each carrying its constraint metadata. Presentation hints
(``fieldType``, ``placeholder``, ...) ride along as extra attributes and
survive a parse/dump cycle unchanged. ``nullable`` marks fields that accept
an explicit null.
"""
from __future__ import annotations

import json
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cms.exceptions import SchemaDefinitionError

RELATION_FIELD_TYPE = "relation"

RelationKind = Literal["belongsTo", "hasMany", "manyToMany"]


class RelationConfig(BaseModel):
    """Declaration of a relation field."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: RelationKind
    target_type: str = Field(alias="targetType")
    display_field: str = Field(default="name", alias="displayField")
    creatable: bool = False

    @property
    def is_single(self) -> bool:
        return self.type == "belongsTo"


class BaseField(BaseModel):
    """Attributes shared by every descriptor variant."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    description: str | None = None
    field_type: str | None = Field(default=None, alias="fieldType")
    enum: list[Any] | None = None
    nullable: bool = False
    default: Any = None
    relation: RelationConfig | None = None

    @property
    def has_default(self) -> bool:
        return "default" in self.model_fields_set

    @property
    def is_relation(self) -> bool:
        return self.field_type == RELATION_FIELD_TYPE and self.relation is not None


class StringField(BaseField):
    type: Literal["string"]
    min_length: int | None = Field(default=None, alias="minLength")
    max_length: int | None = Field(default=None, alias="maxLength")
    pattern: str | None = None
    format: str | None = None


class NumberField(BaseField):
    type: Literal["number", "integer"]
    minimum: float | None = None
    maximum: float | None = None
    exclusive_minimum: float | None = Field(default=None, alias="exclusiveMinimum")
    exclusive_maximum: float | None = Field(default=None, alias="exclusiveMaximum")


class BooleanField(BaseField):
    type: Literal["boolean"]


class ArrayField(BaseField):
    type: Literal["array"]
    items: FieldDescriptor | None = None
    min_items: int | None = Field(default=None, alias="minItems")
    max_items: int | None = Field(default=None, alias="maxItems")


class ObjectField(BaseField):
    type: Literal["object"] = "object"
    properties: dict[str, FieldDescriptor] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)


FieldDescriptor = Annotated[
    Union[StringField, NumberField, BooleanField, ArrayField, ObjectField],
    Field(discriminator="type"),
]

ArrayField.model_rebuild()
ObjectField.model_rebuild()


def parse_representation(raw: str | dict[str, Any]) -> ObjectField:
    """Parse a stored representation into its root object descriptor.

    Raises:
        SchemaDefinitionError: If the JSON is malformed or structurally invalid
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SchemaDefinitionError(f"Schema representation is not valid JSON: {exc}")
    if not isinstance(raw, dict):
        raise SchemaDefinitionError("Schema representation must be a JSON object")
    root = dict(raw)
    root.setdefault("type", "object")
    if root["type"] != "object":
        raise SchemaDefinitionError(
            f"Schema representation root must be an object, got '{root['type']}'"
        )
    try:
        parsed = ObjectField.model_validate(root)
    except ValidationError as exc:
        raise SchemaDefinitionError(f"Invalid schema representation: {exc}") from exc
    unknown = set(parsed.required) - set(parsed.properties)
    if unknown:
        raise SchemaDefinitionError(
            f"Required fields missing from properties: {', '.join(sorted(unknown))}"
        )
    return parsed


def dump_representation(root: ObjectField) -> dict[str, Any]:
    """Dump a descriptor tree back to its JSON form."""
    return root.model_dump(by_alias=True, exclude_unset=True)


def extract_relation_fields(root: ObjectField) -> dict[str, RelationConfig]:
    """Return the relation declarations of the top-level fields."""
    return {
        name: descriptor.relation
        for name, descriptor in root.properties.items()
        if descriptor.is_relation
    }


def relation_targets(descriptor: BaseField) -> set[str]:
    """Collect the target type slugs of every relation in a descriptor tree."""
    targets: set[str] = set()
    if descriptor.is_relation:
        targets.add(descriptor.relation.target_type)
    if isinstance(descriptor, ObjectField):
        for child in descriptor.properties.values():
            targets |= relation_targets(child)
    elif isinstance(descriptor, ArrayField) and descriptor.items is not None:
        targets |= relation_targets(descriptor.items)
    return targets
