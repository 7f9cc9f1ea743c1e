"""SEO settings (one active row) and site settings (singleton row)."""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, Boolean
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.types import JSON
from app.core.database import Base


def default_sitemap_settings() -> dict:
    return {
        "enabled": True,
        "include_perks": True,
        "include_categories": True,
        "include_blog_posts": True,
        "change_freq": "daily",
        "priority": 0.5,
        "last_generated": None,
    }


def default_robots_settings() -> dict:
    return {
        "enabled": True,
        "allow_all": True,
        "custom_rules": [],  # [{user_agent, allow: [...], disallow: [...]}]
        "crawl_delay": None,
        "sitemap_urls": [],
    }


class SeoSetting(Base):
    """Site-wide SEO configuration.

    Updates never edit a row in place: every active row is deactivated and a
    new active row inserted, so history is kept and one row is active.
    """
    __tablename__ = "seo_settings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    site_name = Column(String(100), nullable=False)
    site_description = Column(String(500), nullable=False)
    site_url = Column(String(500), nullable=False)

    default_meta_title = Column(String(60), nullable=False)
    default_meta_description = Column(String(160), nullable=False)
    default_meta_keywords = Column(JSON, nullable=False, default=list)
    default_og_title = Column(String(60), nullable=True)
    default_og_description = Column(String(160), nullable=True)
    default_og_image = Column(JSON, nullable=True)
    og_type = Column(String(20), nullable=False, default="website")
    twitter_card_type = Column(String(30), nullable=False, default="summary_large_image")
    twitter_site = Column(String(50), nullable=True)
    twitter_creator = Column(String(50), nullable=True)

    organization = Column(JSON, nullable=False, default=dict)
    sitemap_settings = Column(JSON, nullable=False, default=default_sitemap_settings)
    robots_settings = Column(JSON, nullable=False, default=default_robots_settings)
    analytics = Column(JSON, nullable=False, default=dict)  # {ga4_id, gtm_id, meta_pixel_id}

    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_by = Column(UUID(as_uuid=True), nullable=True)
    updated_by = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class SiteSettings(Base):
    __tablename__ = "site_settings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    seo = Column(JSON, nullable=False, default=dict)
    homepage = Column(JSON, nullable=False, default=dict)  # {hero: {...}, sections: {...}}
    contact = Column(JSON, nullable=False, default=dict)
    social_links = Column(JSON, nullable=False, default=dict)
    footer_text = Column(Text, nullable=True)
    updated_by = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
