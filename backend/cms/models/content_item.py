"""Content item model."""
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from cms.database import Base
from cms.utils import utcnow


class ContentItem(Base):
    """One stored instance of a content type."""

    __tablename__ = "content_items"

    id = Column(String(36), primary_key=True, default=lambda: uuid.uuid4().hex)
    content_type_id = Column(
        String(36),
        ForeignKey("content_types.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    slug = Column(String(255), nullable=False, index=True)
    data = Column(Text, nullable=False)
    author_id = Column(String(255), nullable=True)
    created_at = Column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    content_type = relationship("ContentType", back_populates="items")
