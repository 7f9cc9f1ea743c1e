"""Pydantic schemas for blog posts and blog categories."""

from datetime import datetime
from uuid import UUID
from typing import Optional
from pydantic import BaseModel, Field

from app.models.blog import BlogCategoryStatus, PostStatus
from app.schemas.common import HexColor, ImageIn, ImageOut, InputModel


class BlogSeo(BaseModel):
    title: Optional[str] = Field(None, max_length=60)
    description: Optional[str] = Field(None, max_length=160)
    keywords: list[str] = []
    og_title: Optional[str] = Field(None, max_length=60)
    og_description: Optional[str] = Field(None, max_length=160)
    og_image: Optional[str] = None
    canonical_url: Optional[str] = None


class BlogPostCreate(InputModel):
    title: str = Field(..., min_length=3, max_length=200)
    slug: Optional[str] = Field(None, max_length=100)
    excerpt: Optional[str] = Field(None, max_length=500)
    content: str = Field(..., min_length=1)
    category_id: Optional[UUID] = None
    tags: list[str] = []
    author_name: Optional[str] = Field(None, max_length=100)
    featured_image_alt: Optional[str] = Field(None, max_length=200)
    status: PostStatus = PostStatus.DRAFT
    is_visible: bool = True
    is_featured: bool = False
    seo: BlogSeo = BlogSeo()


class BlogPostUpdate(InputModel):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    slug: Optional[str] = Field(None, max_length=100)
    excerpt: Optional[str] = Field(None, max_length=500)
    content: Optional[str] = Field(None, min_length=1)
    category_id: Optional[UUID] = None
    tags: Optional[list[str]] = None
    author_name: Optional[str] = Field(None, max_length=100)
    featured_image_alt: Optional[str] = Field(None, max_length=200)
    status: Optional[PostStatus] = None
    is_visible: Optional[bool] = None
    is_featured: Optional[bool] = None
    seo: Optional[BlogSeo] = None
    replace_gallery: bool = False


class BlogPostOut(BaseModel):
    id: UUID
    title: str
    slug: str
    excerpt: Optional[str] = None
    content: str
    category_id: Optional[UUID] = None
    tags: list[str] = []
    author_id: Optional[UUID] = None
    author_name: Optional[str] = None
    featured_image: Optional[ImageOut] = None
    gallery: list[ImageOut] = []
    status: str
    is_visible: bool
    is_featured: bool
    published_at: Optional[datetime] = None
    read_time: int
    view_count: int = 0
    share_count: int = 0
    click_count: int = 0
    seo: dict = {}
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class BlogCategoryCreate(InputModel):
    name: str = Field(..., min_length=2, max_length=100)
    slug: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    color: HexColor = "#3B82F6"
    image: Optional[ImageIn] = None
    status: BlogCategoryStatus = BlogCategoryStatus.ACTIVE
    is_visible: bool = True
    show_in_menu: bool = True
    is_featured: bool = False
    display_order: int = 0
    seo: BlogSeo = BlogSeo()


class BlogCategoryUpdate(InputModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    slug: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    color: Optional[HexColor] = None
    image: Optional[ImageIn] = None
    status: Optional[BlogCategoryStatus] = None
    is_visible: Optional[bool] = None
    show_in_menu: Optional[bool] = None
    is_featured: Optional[bool] = None
    display_order: Optional[int] = None
    seo: Optional[BlogSeo] = None


class BlogCategoryOut(BaseModel):
    id: UUID
    name: str
    slug: str
    description: Optional[str] = None
    color: str
    image: Optional[ImageOut] = None
    status: str
    is_visible: bool
    show_in_menu: bool
    is_featured: bool
    display_order: int
    seo: dict = {}
    post_count: int = 0
    view_count: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
