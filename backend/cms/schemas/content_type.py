"""Content type schemas."""
from pydantic import Field

from cms.schemas.base import CamelModel


class ContentType(CamelModel):
    """Schema for content type response."""

    id: str
    name: str
    slug: str
    description: str | None = None
    json_schema: str
    created_at: str | None = None
    updated_at: str | None = None


class ContentTypeWithCount(ContentType):
    """Content type with the number of items stored under it."""

    item_count: int = 0


class InverseRelation(CamelModel):
    """A ``belongsTo`` field of another type that points at this type."""

    source_type: str
    source_type_name: str
    field_name: str
    count: int = 0


class InverseRelationList(CamelModel):
    inverse_relations: list[InverseRelation] = Field(default_factory=list)
