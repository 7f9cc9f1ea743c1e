"""Pydantic schemas for perk Categories."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID
from typing import Optional
from pydantic import BaseModel, Field

from app.models.category import CategoryStatus
from app.schemas.common import HexColor, ImageOut, InputModel


class CategoryCreate(InputModel):
    name: str = Field(..., min_length=2, max_length=100)
    slug: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    parent_id: Optional[UUID] = None
    icon: Optional[str] = Field(None, max_length=100)
    color: Optional[HexColor] = None
    status: CategoryStatus = CategoryStatus.ACTIVE
    is_visible: bool = True
    show_in_menu: bool = True
    show_in_filter: bool = True
    is_featured: bool = False
    display_order: int = 0
    seo_title: Optional[str] = Field(None, max_length=60)
    seo_description: Optional[str] = Field(None, max_length=160)
    seo_keywords: list[str] = []


class CategoryUpdate(InputModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    slug: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    parent_id: Optional[UUID] = None
    icon: Optional[str] = Field(None, max_length=100)
    color: Optional[HexColor] = None
    status: Optional[CategoryStatus] = None
    is_visible: Optional[bool] = None
    show_in_menu: Optional[bool] = None
    show_in_filter: Optional[bool] = None
    is_featured: Optional[bool] = None
    display_order: Optional[int] = None
    seo_title: Optional[str] = Field(None, max_length=60)
    seo_description: Optional[str] = Field(None, max_length=160)
    seo_keywords: Optional[list[str]] = None


class CategoryStatusUpdate(InputModel):
    status: CategoryStatus


class CategoryOut(BaseModel):
    id: UUID
    name: str
    slug: str
    description: Optional[str] = None
    parent_id: Optional[UUID] = None
    level: int
    path: Optional[str] = None
    image: Optional[ImageOut] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    status: str
    is_visible: bool
    show_in_menu: bool
    show_in_filter: bool
    is_featured: bool
    display_order: int
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    seo_keywords: list[str] = []
    perk_count: int = 0
    total_perk_count: int = 0
    subcategory_count: int = 0
    view_count: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CategoryTreeNode(CategoryOut):
    children: list[CategoryTreeNode] = []
