"""Blog post and blog category models."""

import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, Integer, Boolean
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.types import JSON
from app.core.database import Base


class PostStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class BlogCategoryStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DRAFT = "draft"


class BlogCategory(Base):
    """Flat blog taxonomy."""
    __tablename__ = "blog_categories"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), unique=True, nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    color = Column(String(7), nullable=False, default="#3B82F6")
    image = Column(JSON, nullable=True)

    status = Column(String(20), nullable=False, default=BlogCategoryStatus.ACTIVE.value, index=True)
    is_visible = Column(Boolean, nullable=False, default=True)
    show_in_menu = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    display_order = Column(Integer, nullable=False, default=0)

    seo = Column(JSON, nullable=False, default=dict)

    # Published + visible posts, recomputed by BlogCategoryService.update_counters
    post_count = Column(Integer, nullable=False, default=0)
    view_count = Column(Integer, nullable=False, default=0)

    created_by = Column(UUID(as_uuid=True), nullable=True)
    updated_by = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class BlogPost(Base):
    __tablename__ = "blog_posts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(200), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    excerpt = Column(String(500), nullable=True)
    content = Column(Text, nullable=False, default="")

    category_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    tags = Column(JSON, nullable=False, default=list)
    author_id = Column(UUID(as_uuid=True), nullable=True)
    author_name = Column(String(100), nullable=True)

    featured_image = Column(JSON, nullable=True)  # {url, blob_name, filename, alt}
    gallery = Column(JSON, nullable=False, default=list)

    status = Column(String(20), nullable=False, default=PostStatus.DRAFT.value, index=True)
    is_visible = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    published_at = Column(DateTime, nullable=True, index=True)
    read_time = Column(Integer, nullable=False, default=1)

    view_count = Column(Integer, nullable=False, default=0)
    share_count = Column(Integer, nullable=False, default=0)
    click_count = Column(Integer, nullable=False, default=0)

    seo = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
