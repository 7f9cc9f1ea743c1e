"""Perk category model (hierarchical, levels 0-3)."""

import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, Integer, Boolean
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.types import JSON
from app.core.database import Base

MAX_CATEGORY_LEVEL = 3


class CategoryStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Category(Base):
    __tablename__ = "categories"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)

    parent_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    level = Column(Integer, nullable=False, default=0)
    path = Column(String(500), nullable=True)  # "root-slug/child-slug"

    image = Column(JSON, nullable=True)  # {url, blob_name, filename, alt}
    icon = Column(String(100), nullable=True)
    color = Column(String(7), nullable=True)

    status = Column(String(20), nullable=False, default=CategoryStatus.ACTIVE.value, index=True)
    is_visible = Column(Boolean, nullable=False, default=True)
    show_in_menu = Column(Boolean, nullable=False, default=True)
    show_in_filter = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    display_order = Column(Integer, nullable=False, default=0)

    seo_title = Column(String(60), nullable=True)
    seo_description = Column(String(160), nullable=True)
    seo_keywords = Column(JSON, nullable=False, default=list)

    # Recomputed by CategoryService.update_counters, not by triggers
    perk_count = Column(Integer, nullable=False, default=0)
    total_perk_count = Column(Integer, nullable=False, default=0)
    subcategory_count = Column(Integer, nullable=False, default=0)
    view_count = Column(Integer, nullable=False, default=0)

    created_by = Column(UUID(as_uuid=True), nullable=True)
    updated_by = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @property
    def seo(self) -> dict:
        """SEO fields in the shape the SEO validator reads."""
        return {
            "title": self.seo_title,
            "description": self.seo_description,
            "keywords": self.seo_keywords or [],
        }
