"""SQLAlchemy models."""
from cms.models.content_type import ContentType
from cms.models.content_item import ContentItem
from cms.models.content_relation import ContentRelation

__all__ = [
    "ContentType",
    "ContentItem",
    "ContentRelation",
]
