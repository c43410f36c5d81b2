"""Content item schemas."""
from typing import Any

from pydantic import Field

from cms.schemas.base import CamelModel
from cms.schemas.content_type import ContentType


class ContentItemCreate(CamelModel):
    """Schema for creating a content item."""

    slug: str
    data: dict[str, Any]


class ContentItemUpdate(CamelModel):
    """Schema for updating a content item."""

    slug: str | None = None
    data: dict[str, Any] | None = None


class ContentItem(CamelModel):
    """Schema for content item response."""

    id: str
    content_type_id: str
    slug: str
    data: str
    author_id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    parsed_data: dict[str, Any] | None = None
    content_type: ContentType | None = None


class PopulatedContentItem(ContentItem):
    """Content item with its relation targets."""

    relations: dict[str, list[ContentItem]] = Field(default_factory=dict, alias="_relations")


class PaginatedContentItems(CamelModel):
    """One page of content items."""

    items: list[ContentItem]
    total: int
    limit: int
    offset: int
