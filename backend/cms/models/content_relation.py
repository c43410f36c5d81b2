"""Content relation model."""
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String

from cms.database import Base
from cms.utils import utcnow


class ContentRelation(Base):
    """Junction edge from a source item's relation field to a target item."""

    __tablename__ = "content_relations"

    id = Column(String(36), primary_key=True, default=lambda: uuid.uuid4().hex)
    source_id = Column(
        String(36),
        ForeignKey("content_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    target_id = Column(
        String(36),
        ForeignKey("content_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    field_name = Column(String(255), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
