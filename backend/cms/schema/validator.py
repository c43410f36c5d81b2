"""Compile descriptor trees into payload validators.

Each object descriptor becomes a dynamic pydantic model. Compilation happens
once per representation; the resulting ``PayloadValidator`` is a pure
function of it and can be reused for any number of payloads.
"""
from __future__ import annotations

import json
import re
from datetime import date, datetime
from typing import Annotated, Any, Callable, Iterable, Optional

from pydantic import (
    AfterValidator,
    AnyUrl,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    Strict,
    TypeAdapter,
    ValidationError,
    create_model,
)

from cms.exceptions import PayloadValidationError, SchemaDefinitionError
from cms.schema.fields import (
    ArrayField,
    BaseField,
    BooleanField,
    NumberField,
    ObjectField,
    StringField,
    parse_representation,
)

Dumper = Callable[[Any], Any]

_PAYLOAD_CONFIG = ConfigDict(extra="ignore")

# String formats checked through pydantic types; payloads keep the string
_FORMAT_ADAPTERS: dict[str, TypeAdapter] = {
    "date": TypeAdapter(date),
    "date-time": TypeAdapter(datetime),
    "email": TypeAdapter(EmailStr),
    "uri": TypeAdapter(AnyUrl),
}


def _format_check(fmt: str | None) -> Callable[[str], str] | None:
    adapter = _FORMAT_ADAPTERS.get(fmt or "")
    if adapter is None:
        return None

    def check(value: str) -> str:
        try:
            adapter.validate_json(json.dumps(value), strict=True)
        except ValidationError as exc:
            raise ValueError(f"Invalid {fmt}: {exc.errors()[0]['msg']}") from None
        return value

    return check


def _enum_check(options: list[Any]) -> Callable[[Any], Any]:
    def check(value: Any) -> Any:
        for option in options:
            # bool is an int subclass; True must not match 1
            if option == value and isinstance(option, bool) == isinstance(value, bool):
                return value
        raise ValueError(
            "Input should be " + " or ".join(json.dumps(option) for option in options)
        )

    return check


def _identity(value: Any) -> Any:
    return value


class _Compiler:
    def __init__(self, name: str, registered_slugs: Iterable[str] | None):
        self.name = name
        self.registered_slugs = set(registered_slugs) if registered_slugs is not None else None
        self._counter = 0

    def _model_name(self) -> str:
        self._counter += 1
        return f"{self.name}Payload{self._counter}"

    def compile(self, descriptor: BaseField, path: str) -> tuple[Any, Dumper]:
        annotation, dump = self._compile_type(descriptor, path)
        if descriptor.nullable:
            return Optional[annotation], dump
        return annotation, dump

    def _compile_type(self, descriptor: BaseField, path: str) -> tuple[Any, Dumper]:
        if descriptor.is_relation and self.registered_slugs is not None:
            target = descriptor.relation.target_type
            if target not in self.registered_slugs:
                raise SchemaDefinitionError(
                    f'Relation field "{path}" targets unknown content type "{target}"'
                )
        if descriptor.enum:
            return Annotated[Any, AfterValidator(_enum_check(descriptor.enum))], _identity
        if isinstance(descriptor, StringField):
            return self._string(descriptor), _identity
        if isinstance(descriptor, NumberField):
            return self._number(descriptor), _identity
        if isinstance(descriptor, BooleanField):
            return Annotated[bool, Strict()], _identity
        if isinstance(descriptor, ArrayField):
            return self._array(descriptor, path)
        if isinstance(descriptor, ObjectField):
            return self.compile_object(descriptor, path)
        raise SchemaDefinitionError(f"Unsupported field descriptor at '{path}'")

    def _string(self, descriptor: StringField) -> Any:
        constraints = Field(
            min_length=descriptor.min_length,
            max_length=descriptor.max_length,
            pattern=descriptor.pattern,
        )
        check = _format_check(descriptor.format)
        if check is not None:
            return Annotated[str, Strict(), constraints, AfterValidator(check)]
        return Annotated[str, Strict(), constraints]

    def _number(self, descriptor: NumberField) -> Any:
        base = int if descriptor.type == "integer" else float
        return Annotated[
            base,
            Strict(),
            Field(
                ge=descriptor.minimum,
                le=descriptor.maximum,
                gt=descriptor.exclusive_minimum,
                lt=descriptor.exclusive_maximum,
            ),
        ]

    def _array(self, descriptor: ArrayField, path: str) -> tuple[Any, Dumper]:
        if descriptor.items is None:
            item_type, item_dump = Any, _identity
        else:
            item_type, item_dump = self.compile(descriptor.items, f"{path}[]")

        def dump(values: Any) -> Any:
            if values is None:
                return None
            return [item_dump(v) for v in values]

        annotation = Annotated[
            list[item_type],
            Field(min_length=descriptor.min_items, max_length=descriptor.max_items),
        ]
        return annotation, dump

    def compile_object(self, descriptor: ObjectField, path: str) -> tuple[Any, Dumper]:
        if not descriptor.properties:
            return dict[str, Any], _identity

        required = set(descriptor.required)
        fields: dict[str, Any] = {}
        # (attribute, key, dumper, omit when not supplied)
        plan: list[tuple[str, str, Dumper, bool]] = []
        for index, (key, child) in enumerate(descriptor.properties.items()):
            attribute = f"f{index}"
            child_path = f"{path}.{key}" if path else key
            annotation, child_dump = self.compile(child, child_path)
            # A null default on a non-nullable field means "absent when omitted"
            has_default = child.has_default and (child.default is not None or child.nullable)
            if key in required and not has_default:
                fields[attribute] = (annotation, Field(alias=key))
                omit = False
            elif has_default:
                fields[attribute] = (
                    annotation,
                    Field(
                        default=child.default,
                        alias=key,
                        validate_default=child.default is not None,
                    ),
                )
                omit = False
            else:
                # Unvalidated None stands in for "not supplied"; dump skips it
                fields[attribute] = (annotation, Field(default=None, alias=key))
                omit = True
            plan.append((attribute, key, child_dump, omit))

        model = create_model(self._model_name(), __config__=_PAYLOAD_CONFIG, **fields)

        def dump(instance: Any) -> Any:
            if instance is None:
                return None
            out: dict[str, Any] = {}
            for attribute, key, child_dump, omit in plan:
                if omit and attribute not in instance.model_fields_set:
                    continue
                out[key] = child_dump(getattr(instance, attribute))
            return out

        return model, dump


def _format_errors(exc: ValidationError) -> list[dict[str, Any]]:
    errors = []
    for error in exc.errors(include_url=False):
        path = ".".join(str(part) for part in error["loc"])
        errors.append({"path": path, "message": error["msg"], "type": error["type"]})
    return errors


class PayloadValidator:
    """Validator derived from one schema representation."""

    def __init__(self, model: type[BaseModel], dump: Dumper, relation_fields: dict[str, Any]):
        self.model = model
        self._dump = dump
        self.relation_fields = relation_fields

    def validate(self, data: Any) -> dict[str, Any]:
        """Validate ``data`` and return the normalized payload.

        Defaults are filled in, undeclared keys are dropped, and optional
        fields the caller left out stay absent.

        Raises:
            PayloadValidationError: With one entry per violated constraint
        """
        if not isinstance(data, dict):
            raise PayloadValidationError(
                "Validation failed",
                [{"path": "", "message": "Payload must be an object", "type": "dict_type"}],
            )
        try:
            instance = self.model.model_validate(data)
        except ValidationError as exc:
            raise PayloadValidationError("Validation failed", _format_errors(exc)) from exc
        return self._dump(instance)


def compile_validator(
    representation: str | dict[str, Any] | ObjectField,
    registered_slugs: Iterable[str] | None = None,
    name: str = "Content",
) -> PayloadValidator:
    """Build a validator from a schema representation.

    Args:
        representation: JSON string, dict or parsed root descriptor
        registered_slugs: Known content type slugs; when given, relation
            fields must target one of them
        name: Prefix for the generated model names

    Raises:
        SchemaDefinitionError: If the representation cannot be compiled
    """
    root = (
        representation
        if isinstance(representation, ObjectField)
        else parse_representation(representation)
    )
    compiler = _Compiler(re.sub(r"\W", "", name.title()) or "Content", registered_slugs)
    if not root.properties:
        model = create_model(compiler._model_name(), __config__=ConfigDict(extra="allow"))
        return PayloadValidator(model, lambda instance: instance.model_dump(), {})
    try:
        model, dump = compiler.compile_object(root, "")
    except (TypeError, ValueError) as exc:
        raise SchemaDefinitionError(f"Cannot build validator: {exc}") from exc
    relation_fields = {
        key: child.relation for key, child in root.properties.items() if child.is_relation
    }
    return PayloadValidator(model, dump, relation_fields)
