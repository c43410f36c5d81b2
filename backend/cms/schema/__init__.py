"""Schema representations, field descriptors and payload validators."""
from cms.schema.fields import (
    ObjectField,
    RelationConfig,
    extract_relation_fields,
    parse_representation,
)
from cms.schema.migration import migrate_to_unified_schema, needs_migration
from cms.schema.representation import (
    CURRENT_REPRESENTATION_VERSION,
    RelationRef,
    relation_field,
    serialize_representation,
    shape_to_representation,
)
from cms.schema.validator import PayloadValidator, compile_validator

__all__ = [
    "CURRENT_REPRESENTATION_VERSION",
    "ObjectField",
    "PayloadValidator",
    "RelationConfig",
    "RelationRef",
    "compile_validator",
    "extract_relation_fields",
    "migrate_to_unified_schema",
    "needs_migration",
    "parse_representation",
    "relation_field",
    "serialize_representation",
    "shape_to_representation",
]
