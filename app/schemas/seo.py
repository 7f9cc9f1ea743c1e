"""Pydantic schemas for SEO and site settings."""

from datetime import datetime
from uuid import UUID
from typing import Any, Literal, Optional
from pydantic import BaseModel, Field


class SitemapSettings(BaseModel):
    enabled: bool = True
    include_perks: bool = True
    include_categories: bool = True
    include_blog_posts: bool = True
    change_freq: Literal["always", "hourly", "daily", "weekly", "monthly", "yearly", "never"] = "daily"
    priority: float = Field(0.5, ge=0, le=1)
    last_generated: Optional[datetime] = None


class RobotsRule(BaseModel):
    user_agent: str = "*"
    allow: list[str] = []
    disallow: list[str] = []


class RobotsSettings(BaseModel):
    enabled: bool = True
    allow_all: bool = True
    custom_rules: list[RobotsRule] = []
    crawl_delay: Optional[int] = Field(None, ge=0)
    sitemap_urls: list[str] = []


class Organization(BaseModel):
    name: Optional[str] = None
    logo: Optional[str] = None
    url: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    same_as: list[str] = []


class AnalyticsIds(BaseModel):
    ga4_id: Optional[str] = None
    gtm_id: Optional[str] = None
    meta_pixel_id: Optional[str] = None


class SeoSettingsUpdate(BaseModel):
    site_name: str = Field(..., min_length=1, max_length=100)
    site_description: str = Field(..., min_length=1, max_length=500)
    site_url: str = Field(..., min_length=1, max_length=500)
    default_meta_title: str = Field(..., min_length=1, max_length=60)
    default_meta_description: str = Field(..., min_length=1, max_length=160)
    default_meta_keywords: list[str] = []
    default_og_title: Optional[str] = Field(None, max_length=60)
    default_og_description: Optional[str] = Field(None, max_length=160)
    default_og_image: Optional[dict] = None
    og_type: str = "website"
    twitter_card_type: Literal["summary", "summary_large_image", "app", "player"] = "summary_large_image"
    twitter_site: Optional[str] = None
    twitter_creator: Optional[str] = None
    organization: Organization = Organization()
    sitemap_settings: SitemapSettings = SitemapSettings()
    robots_settings: RobotsSettings = RobotsSettings()
    analytics: AnalyticsIds = AnalyticsIds()


class SeoSettingsOut(SeoSettingsUpdate):
    id: UUID
    is_active: bool
    default_meta_title: str
    default_meta_description: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SeoAnalyzeRequest(BaseModel):
    """Arbitrary entity to score, e.g. a draft post not yet saved."""
    entity: dict[str, Any]
    entity_type: Literal["post", "category"] = "post"


class MetaTagsRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    keywords: list[str] = []
    image: Optional[str] = None
    url: Optional[str] = None
    type: str = "website"


class SchemaMarkupRequest(BaseModel):
    type: Literal["organization", "website", "breadcrumb"]
    breadcrumbs: list[dict] = []  # [{name, url}]


class SiteSettingsUpdate(BaseModel):
    seo: Optional[dict] = None
    homepage: Optional[dict] = None
    contact: Optional[dict] = None
    social_links: Optional[dict] = None
    footer_text: Optional[str] = Field(None, max_length=1000)


class SiteSettingsOut(BaseModel):
    id: UUID
    seo: dict = {}
    homepage: dict = {}
    contact: dict = {}
    social_links: dict = {}
    footer_text: Optional[str] = None
    updated_at: datetime

    class Config:
        from_attributes = True
