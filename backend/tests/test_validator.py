"""Tests for payload validators compiled from representations."""
import pytest
from pydantic import BaseModel

from cms.exceptions import PayloadValidationError, SchemaDefinitionError
from cms.schema.representation import shape_to_representation
from cms.schema.validator import compile_validator
from tests.conftest import Article, Post


@pytest.fixture
def article_validator():
    return compile_validator(shape_to_representation(Article), name="article")


def _paths(exc_info):
    return {error["path"] for error in exc_info.value.errors}


def test_valid_payload_round_trips(article_validator):
    payload = {
        "title": "Hello",
        "body": "World",
        "views": 3,
        "status": "published",
        "tags": ["a", "b"],
    }

    assert article_validator.validate(payload) == payload


def test_defaults_filled_and_absent_optionals_stay_absent(article_validator):
    assert article_validator.validate({"title": "Hello"}) == {
        "title": "Hello",
        "views": 0,
        "status": "draft",
    }


def test_explicit_null_for_optional_field_is_kept(article_validator):
    assert article_validator.validate({"title": "Hello", "body": None})["body"] is None


def test_unknown_keys_are_dropped(article_validator):
    result = article_validator.validate({"title": "Hello", "extra": 1})

    assert "extra" not in result


def test_missing_required_field(article_validator):
    with pytest.raises(PayloadValidationError) as exc_info:
        article_validator.validate({"body": "no title"})

    assert exc_info.value.kind == "ValidationFailed"
    assert _paths(exc_info) == {"title"}
    assert exc_info.value.errors[0]["type"] == "missing"


@pytest.mark.parametrize(
    "payload, path",
    [
        ({"title": ""}, "title"),
        ({"title": "x" * 201}, "title"),
        ({"title": "ok", "views": -1}, "views"),
        ({"title": "ok", "views": "5"}, "views"),
        ({"title": "ok", "status": "archived"}, "status"),
        ({"title": "ok", "tags": ["a", 2]}, "tags.1"),
        ({"title": 42}, "title"),
    ],
)
def test_constraint_violations(article_validator, payload, path):
    with pytest.raises(PayloadValidationError) as exc_info:
        article_validator.validate(payload)

    assert path in _paths(exc_info)


def test_every_violation_is_reported(article_validator):
    with pytest.raises(PayloadValidationError) as exc_info:
        article_validator.validate({"views": -5, "status": "nope"})

    assert _paths(exc_info) == {"title", "views", "status"}


def test_non_object_payload(article_validator):
    with pytest.raises(PayloadValidationError):
        article_validator.validate(["not", "a", "dict"])


@pytest.mark.parametrize(
    "fmt, good, bad",
    [
        ("email", "a@example.com", "not-an-email"),
        ("uri", "https://example.com/x", "example.com"),
        ("date", "2024-05-01", "2024-13-01"),
        ("date-time", "2024-05-01T10:00:00Z", "yesterday"),
    ],
)
def test_string_formats(fmt, good, bad):
    validator = compile_validator(
        {"properties": {"value": {"type": "string", "format": fmt}}, "required": ["value"]}
    )

    assert validator.validate({"value": good}) == {"value": good}
    with pytest.raises(PayloadValidationError):
        validator.validate({"value": bad})


def test_nested_objects_and_arrays():
    validator = compile_validator(
        {
            "properties": {
                "address": {
                    "type": "object",
                    "properties": {
                        "city": {"type": "string"},
                        "zip": {"type": "string", "pattern": "^[0-9]{5}$"},
                    },
                    "required": ["city"],
                },
                "scores": {
                    "type": "array",
                    "items": {"type": "number", "maximum": 10},
                    "maxItems": 3,
                },
            },
            "required": ["address"],
        }
    )

    assert validator.validate({"address": {"city": "Oslo"}, "scores": [1, 2.5]}) == {
        "address": {"city": "Oslo"},
        "scores": [1, 2.5],
    }
    with pytest.raises(PayloadValidationError) as exc_info:
        validator.validate({"address": {"zip": "abc"}, "scores": [11, 1, 1, 1]})

    paths = _paths(exc_info)
    assert "address.city" in paths
    assert "address.zip" in paths
    assert any(path.startswith("scores") for path in paths)


def test_relation_values_must_be_references():
    validator = compile_validator(
        shape_to_representation(Post), registered_slugs={"category", "tag"}
    )

    assert validator.validate({"title": "t", "categories": [{"id": "c1"}]}) == {
        "title": "t",
        "categories": [{"id": "c1"}],
    }
    with pytest.raises(PayloadValidationError) as exc_info:
        validator.validate({"title": "t", "categories": [{"name": "no id"}]})
    assert "categories.0.id" in _paths(exc_info)


def test_relation_to_unregistered_type_fails_derivation():
    with pytest.raises(SchemaDefinitionError, match='targets unknown content type "tag"'):
        compile_validator(shape_to_representation(Post), registered_slugs={"category"})


def test_empty_representation_accepts_any_object():
    validator = compile_validator({"properties": {}})

    assert validator.validate({"anything": [1, 2]}) == {"anything": [1, 2]}


def test_required_nullable_field_accepts_null():
    class Draft(BaseModel):
        subtitle: str | None

    validator = compile_validator(shape_to_representation(Draft))

    assert validator.validate({"subtitle": None}) == {"subtitle": None}
    assert validator.validate({"subtitle": "x"}) == {"subtitle": "x"}
    with pytest.raises(PayloadValidationError) as exc_info:
        validator.validate({})
    assert _paths(exc_info) == {"subtitle"}


def test_null_rejected_for_non_nullable_optional_field():
    validator = compile_validator(
        {"properties": {"n": {"type": "number"}, "s": {"type": "string"}}, "required": ["n"]}
    )

    assert validator.validate({"n": 1}) == {"n": 1}
    with pytest.raises(PayloadValidationError) as exc_info:
        validator.validate({"n": 1, "s": None})
    assert _paths(exc_info) == {"s"}


def test_null_rejected_for_field_with_default(article_validator):
    with pytest.raises(PayloadValidationError) as exc_info:
        article_validator.validate({"title": "Hello", "views": None})

    assert _paths(exc_info) == {"views"}


@pytest.mark.parametrize(
    "fmt, bad",
    [
        ("email", "a@b..c"),
        ("email", "x@-bad-.com"),
        ("uri", "http://exa mple.com"),
        ("date-time", "2024-05-01T25:00:00Z"),
    ],
)
def test_string_formats_reject_malformed_values(fmt, bad):
    validator = compile_validator(
        {"properties": {"value": {"type": "string", "format": fmt}}, "required": ["value"]}
    )

    with pytest.raises(PayloadValidationError) as exc_info:
        validator.validate({"value": bad})
    assert _paths(exc_info) == {"value"}


def test_formatted_values_are_stored_as_given():
    validator = compile_validator(
        {
            "properties": {
                "site": {"type": "string", "format": "uri"},
                "at": {"type": "string", "format": "date-time"},
            },
        }
    )

    payload = {"site": "https://example.com", "at": "2024-05-01T10:00:00Z"}
    assert validator.validate(payload) == payload


def test_integer_enum_rejects_booleans():
    validator = compile_validator(
        {"properties": {"n": {"type": "number"}, "e": {"type": "integer", "enum": [1, 2]}}}
    )

    assert validator.validate({"n": 1, "e": 2}) == {"n": 1, "e": 2}
    with pytest.raises(PayloadValidationError) as exc_info:
        validator.validate({"n": 1, "e": True})
    assert _paths(exc_info) == {"e"}
