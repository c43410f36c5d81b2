"""Pydantic schemas for API request/response."""
from cms.schemas.content_type import (
    ContentType,
    ContentTypeWithCount,
    InverseRelation,
    InverseRelationList,
)
from cms.schemas.content_item import (
    ContentItem,
    ContentItemCreate,
    ContentItemUpdate,
    PaginatedContentItems,
    PopulatedContentItem,
)

__all__ = [
    "ContentType",
    "ContentTypeWithCount",
    "InverseRelation",
    "InverseRelationList",
    "ContentItem",
    "ContentItemCreate",
    "ContentItemUpdate",
    "PaginatedContentItems",
    "PopulatedContentItem",
]
