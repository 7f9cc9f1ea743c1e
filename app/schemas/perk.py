"""Pydantic schemas for Perks.

Create/update arrive as multipart: the ``data`` form field holds a JSON
document validated by ``PerkCreate`` / ``PerkUpdate``; images are separate
file fields.
"""

from datetime import datetime
from uuid import UUID
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, model_validator

from app.models.perk import PerkLocation, PerkStatus, RedemptionMethod
from app.schemas.common import ImageOut, InputModel, NaiveDatetime


class PerkSeo(BaseModel):
    title: Optional[str] = Field(None, max_length=60)
    description: Optional[str] = Field(None, max_length=160)
    keywords: list[str] = []
    og_title: Optional[str] = Field(None, max_length=60)
    og_description: Optional[str] = Field(None, max_length=160)
    canonical_url: Optional[str] = None


class PerkBase(InputModel):
    short_description: Optional[str] = Field(None, max_length=300)
    description: Optional[str] = Field(None, max_length=5000)
    vendor_email: Optional[EmailStr] = None
    vendor_website: Optional[str] = Field(None, max_length=500)
    vendor_description: Optional[str] = Field(None, max_length=1000)
    original_price: Optional[float] = Field(None, ge=0)
    discounted_price: Optional[float] = Field(None, ge=0)
    discount_percentage: Optional[float] = Field(None, ge=0, le=100)
    affiliate_url: Optional[str] = Field(None, max_length=1000)
    coupon_code: Optional[str] = Field(None, max_length=100)
    category_id: Optional[UUID] = None
    client_id: Optional[UUID] = None
    start_date: Optional[NaiveDatetime] = None
    end_date: Optional[NaiveDatetime] = None
    total_quantity: Optional[int] = Field(None, ge=0)
    main_image_alt: Optional[str] = Field(None, max_length=200)
    vendor_logo_alt: Optional[str] = Field(None, max_length=200)

    @model_validator(mode="after")
    def _check_dates(self):
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class PerkCreate(PerkBase):
    title: str = Field(..., min_length=3, max_length=200)
    slug: Optional[str] = Field(None, max_length=100)
    vendor_name: str = Field(..., min_length=1, max_length=200)
    redemption_method: RedemptionMethod = RedemptionMethod.AFFILIATE_LINK
    location: PerkLocation = PerkLocation.GLOBAL
    tags: list[str] = []
    status: PerkStatus = PerkStatus.PENDING
    is_visible: bool = True
    is_featured: bool = False
    is_exclusive: bool = False
    priority: int = 0
    seo: PerkSeo = PerkSeo()


class PerkUpdate(PerkBase):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    slug: Optional[str] = Field(None, max_length=100)
    vendor_name: Optional[str] = Field(None, min_length=1, max_length=200)
    redemption_method: Optional[RedemptionMethod] = None
    location: Optional[PerkLocation] = None
    tags: Optional[list[str]] = None
    status: Optional[PerkStatus] = None
    is_visible: Optional[bool] = None
    is_featured: Optional[bool] = None
    is_exclusive: Optional[bool] = None
    priority: Optional[int] = None
    seo: Optional[PerkSeo] = None
    # Uploaded gallery files are appended unless this is set
    replace_gallery: bool = False


class PerkOut(BaseModel):
    id: UUID
    title: str
    slug: str
    short_description: Optional[str] = None
    description: Optional[str] = None
    vendor_name: str
    vendor_email: Optional[str] = None
    vendor_website: Optional[str] = None
    vendor_description: Optional[str] = None
    vendor_logo: Optional[ImageOut] = None
    main_image: Optional[ImageOut] = None
    gallery: list[ImageOut] = []
    original_price: Optional[float] = None
    discounted_price: Optional[float] = None
    discount_percentage: Optional[float] = None
    redemption_method: str
    affiliate_url: Optional[str] = None
    coupon_code: Optional[str] = None
    location: str
    tags: list[str] = []
    category_id: Optional[UUID] = None
    client_id: Optional[UUID] = None
    status: str
    approval_status: str
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    is_visible: bool
    is_featured: bool
    is_exclusive: bool
    priority: int
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    total_quantity: Optional[int] = None
    redeemed_quantity: int = 0
    view_count: int = 0
    click_count: int = 0
    redemption_count: int = 0
    conversion_rate: float = 0.0
    seo: dict = {}
    is_available: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PerkApprove(BaseModel):
    notes: Optional[str] = Field(None, max_length=1000)


class PerkReject(BaseModel):
    reason: str = Field(..., min_length=3, max_length=1000)
    notes: Optional[str] = Field(None, max_length=1000)
