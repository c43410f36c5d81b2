"""Content type model."""
import uuid

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship

from cms.database import Base
from cms.utils import utcnow


class ContentType(Base):
    """A named, versioned record shape registered by the host application."""

    __tablename__ = "content_types"

    id = Column(String(36), primary_key=True, default=lambda: uuid.uuid4().hex)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    json_schema = Column(Text, nullable=False)
    field_config = Column(Text, nullable=True)  # legacy v1 presentation hints
    representation_version = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    items = relationship(
        "ContentItem", back_populates="content_type", passive_deletes=True
    )
