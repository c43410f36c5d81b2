"""Tests for shape serialization and the lazy representation upgrade."""
import json

import pytest
from pydantic import BaseModel, Field

from cms.exceptions import SchemaDefinitionError
from cms.schema.fields import extract_relation_fields, parse_representation
from cms.schema.migration import merge_field_hints, migrate_to_unified_schema, needs_migration
from cms.schema.representation import (
    CURRENT_REPRESENTATION_VERSION,
    RelationRef,
    relation_field,
    shape_to_representation,
)
from tests.conftest import Article, Comment, Post


def test_pydantic_shape_is_flattened():
    rep = shape_to_representation(Article)

    assert rep["type"] == "object"
    assert rep["required"] == ["title"]
    assert "title" not in rep["properties"]["title"]
    assert rep["properties"]["title"] == {"type": "string", "minLength": 1, "maxLength": 200}
    # str | None collapses to a nullable str and keeps its hint
    assert rep["properties"]["body"] == {"type": "string", "fieldType": "textarea", "nullable": True}
    assert rep["properties"]["views"] == {"type": "integer", "minimum": 0, "default": 0}
    assert rep["properties"]["status"]["enum"] == ["draft", "published"]
    assert rep["properties"]["status"]["default"] == "draft"
    assert rep["properties"]["tags"] == {"type": "array", "items": {"type": "string"}, "nullable": True}


def test_relation_fields_are_embedded():
    rep = shape_to_representation(Post)
    categories = rep["properties"]["categories"]

    assert categories["type"] == "array"
    assert categories["fieldType"] == "relation"
    assert categories["relation"] == {
        "type": "manyToMany",
        "targetType": "category",
        "displayField": "name",
        "creatable": True,
    }
    assert categories["items"]["properties"]["id"] == {"type": "string"}
    assert "categories" not in rep["required"]

    post = shape_to_representation(Comment)["properties"]["post"]
    assert post["type"] == "object"
    assert post["relation"]["type"] == "belongsTo"
    assert post["relation"]["displayField"] == "title"


def test_extract_relation_fields():
    root = parse_representation(shape_to_representation(Post))
    relations = extract_relation_fields(root)

    assert set(relations) == {"categories", "tags"}
    assert relations["categories"].target_type == "category"
    assert relations["categories"].creatable is True
    assert relations["tags"].type == "hasMany"
    assert relations["tags"].creatable is False


def test_dict_shape_keeps_unknown_hints():
    shape = {
        "properties": {
            "email": {"type": "string", "format": "email", "placeholder": "you@example.com"},
        },
        "required": ["email"],
    }
    rep = shape_to_representation(shape)

    assert rep["type"] == "object"
    assert rep["properties"]["email"]["placeholder"] == "you@example.com"


def test_nested_models_are_inlined():
    class Address(BaseModel):
        city: str

    class Venue(BaseModel):
        name: str
        address: Address

    rep = shape_to_representation(Venue)

    assert "$defs" not in rep
    assert rep["properties"]["address"] == {
        "type": "object",
        "properties": {"city": {"type": "string"}},
        "required": ["city"],
    }


def test_union_fields_are_rejected():
    class Ambiguous(BaseModel):
        value: int | str

    with pytest.raises(SchemaDefinitionError, match="Union"):
        shape_to_representation(Ambiguous)


def test_relation_field_declared_without_ref_type():
    shape = {
        "properties": {
            "owner": {
                "fieldType": "relation",
                "relation": {"type": "belongsTo", "targetType": "user"},
            },
        },
    }
    owner = shape_to_representation(shape)["properties"]["owner"]

    assert owner["type"] == "object"
    assert owner["required"] == ["id"]


def test_parse_rejects_required_outside_properties():
    with pytest.raises(SchemaDefinitionError, match="missing from properties"):
        parse_representation({"properties": {}, "required": ["ghost"]})


def test_parse_rejects_malformed_json():
    with pytest.raises(SchemaDefinitionError):
        parse_representation("{not json")


@pytest.mark.parametrize("version, expected", [(None, True), (1, True), (2, False)])
def test_needs_migration(version, expected):
    assert CURRENT_REPRESENTATION_VERSION == 2
    assert needs_migration(version) is expected


def test_merge_field_hints_drops_unknown_fields_and_structural_keys():
    schema = {"type": "object", "properties": {"title": {"type": "string"}}, "required": []}
    merged = merge_field_hints(
        schema,
        {
            "title": {"placeholder": "Title", "type": "number", "helpText": None},
            "ghost": {"placeholder": "never"},
        },
    )

    assert merged["properties"] == {"title": {"type": "string", "placeholder": "Title"}}
    assert schema["properties"]["title"] == {"type": "string"}


def test_legacy_and_current_representations_read_the_same():
    v1_schema = {
        "type": "object",
        "properties": {"body": {"type": "string"}, "title": {"type": "string"}},
        "required": ["title"],
    }
    v1_hints = {"body": {"fieldType": "textarea", "placeholder": "Write..."}}
    v2_schema = {
        "type": "object",
        "properties": {
            "body": {"type": "string", "fieldType": "textarea", "placeholder": "Write..."},
            "title": {"type": "string"},
        },
        "required": ["title"],
    }

    migrated = migrate_to_unified_schema(json.dumps(v1_schema), json.dumps(v1_hints))

    assert json.loads(migrated) == v2_schema


@pytest.mark.parametrize(
    "json_schema, field_config",
    [
        ("{broken", '{"a": {}}'),
        ('{"type": "object", "properties": {}}', "{broken"),
        ('{"type": "object", "properties": {}}', None),
        ('["not", "an", "object"]', '{"a": {}}'),
    ],
)
def test_migration_leaves_unusable_input_unchanged(json_schema, field_config):
    assert migrate_to_unified_schema(json_schema, field_config) == json_schema


def test_relation_field_keeps_description():
    class Note(BaseModel):
        parent: RelationRef | None = relation_field("belongsTo", "note", description="Parent note")
        label: str = Field(default="untitled")

    rep = shape_to_representation(Note)

    assert rep["properties"]["parent"]["description"] == "Parent note"
    assert "parent" not in rep["required"]
    assert rep["properties"]["label"] == {"type": "string", "default": "untitled"}


def test_nullable_fields_are_marked():
    class Draft(BaseModel):
        subtitle: str | None
        summary: str = "none"

    rep = shape_to_representation(Draft)

    assert rep["required"] == ["subtitle"]
    assert rep["properties"]["subtitle"] == {"type": "string", "nullable": True}
    assert "nullable" not in rep["properties"]["summary"]


def test_dict_shape_type_list_with_null_is_nullable():
    rep = shape_to_representation({"properties": {"note": {"type": ["string", "null"]}}})

    assert rep["properties"]["note"] == {"type": "string", "nullable": True}
