"""SEO settings, sitemap.xml / robots.txt generation and page meta data."""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional
from uuid import UUID
from xml.sax.saxutils import escape

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import NotFoundError, ValidationError
from app.models.blog import BlogPost
from app.models.category import Category
from app.models.perk import Perk, PerkStatus
from app.models.settings import SeoSetting
from app.repositories.blog import BlogPostRepository, published_conditions
from app.repositories.category import CategoryRepository, public_conditions as public_category_conditions
from app.repositories.perk import PerkRepository
from app.repositories.settings import SeoSettingRepository
from app.schemas.seo import MetaTagsRequest, SeoSettingsUpdate

logger = logging.getLogger(__name__)

SITEMAP_FILE = "sitemap.xml"
ROBOTS_FILE = "robots.txt"

STATIC_PAGES = (("/about", "0.8"), ("/contact", "0.8"), ("/privacy", "0.5"), ("/terms", "0.5"))


def public_path(filename: str) -> Path:
    return Path(settings.PUBLIC_DIR) / filename


async def _write_public_file(filename: str, content: str) -> Path:
    path = public_path(filename)
    path.parent.mkdir(parents=True, exist_ok=True)
    await asyncio.to_thread(path.write_text, content, "utf-8")
    return path


def render_sitemap(urls: list[dict]) -> str:
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
    ]
    for url in urls:
        lines.extend([
            "  <url>",
            f"    <loc>{escape(url['loc'])}</loc>",
            f"    <lastmod>{url['lastmod']}</lastmod>",
            f"    <changefreq>{url['changefreq']}</changefreq>",
            f"    <priority>{url['priority']}</priority>",
            "  </url>",
        ])
    lines.append("</urlset>")
    return "\n".join(lines)


def render_robots(seo: SeoSetting) -> str:
    robots = seo.robots_settings or {}
    sitemap = seo.sitemap_settings or {}
    content = ""

    if robots.get("allow_all"):
        content += "User-agent: *\nDisallow:\n\n"

    for rule in robots.get("custom_rules") or []:
        content += f"User-agent: {rule.get('user_agent', '*')}\n"
        for path in rule.get("allow") or []:
            content += f"Allow: {path}\n"
        for path in rule.get("disallow") or []:
            content += f"Disallow: {path}\n"
        content += "\n"

    if robots.get("crawl_delay"):
        content += f"Crawl-delay: {robots['crawl_delay']}\n\n"

    if sitemap.get("enabled"):
        content += f"Sitemap: {seo.site_url.rstrip('/')}/{SITEMAP_FILE}\n"
    for url in robots.get("sitemap_urls") or []:
        content += f"Sitemap: {url}\n"

    return content


def build_meta_tags(page: dict, seo: SeoSetting) -> list[dict]:
    """HTML meta tag descriptors for a page, falling back to the site defaults."""
    title = page.get("title") or seo.default_meta_title
    description = page.get("description") or seo.default_meta_description
    keywords = [*(page.get("keywords") or []), *(seo.default_meta_keywords or [])]
    og_image = page.get("og_image") or (seo.default_og_image or {}).get("url")

    tags: list[dict] = [
        {"name": "title", "content": title},
        {"name": "description", "content": description},
    ]
    if keywords:
        tags.append({"name": "keywords", "content": ", ".join(keywords)})

    robots = [flag for flag in ("noindex", "nofollow") if page.get(flag)] or ["index", "follow"]
    tags.append({"name": "robots", "content": ", ".join(robots)})

    if page.get("canonical"):
        tags.append({"rel": "canonical", "href": page["canonical"]})

    tags.extend([
        {"property": "og:title", "content": page.get("og_title") or page.get("title") or seo.default_og_title or title},
        {"property": "og:description",
         "content": page.get("og_description") or page.get("description") or seo.default_og_description or description},
        {"property": "og:type", "content": page.get("og_type") or seo.og_type},
        {"property": "og:site_name", "content": seo.site_name},
    ])
    if og_image:
        tags.append({"property": "og:image", "content": og_image})
    if page.get("canonical"):
        tags.append({"property": "og:url", "content": page["canonical"]})

    tags.append({"name": "twitter:card", "content": seo.twitter_card_type})
    if seo.twitter_site:
        tags.append({"name": "twitter:site", "content": seo.twitter_site})
    if seo.twitter_creator:
        tags.append({"name": "twitter:creator", "content": seo.twitter_creator})
    return tags


def organization_schema(seo: SeoSetting) -> dict:
    org = seo.organization or {}
    schema = {
        "@context": "https://schema.org",
        "@type": "Organization",
        "name": org.get("name") or seo.site_name,
        "url": org.get("url") or seo.site_url,
    }
    if org.get("logo"):
        schema["logo"] = org["logo"]
    if org.get("same_as"):
        schema["sameAs"] = org["same_as"]
    if org.get("email") or org.get("phone"):
        schema["contactPoint"] = {
            "@type": "ContactPoint",
            "email": org.get("email"),
            "telephone": org.get("phone"),
            "contactType": "customer service",
        }
    return schema


def website_schema(seo: SeoSetting) -> dict:
    site_url = seo.site_url.rstrip("/")
    return {
        "@context": "https://schema.org",
        "@type": "WebSite",
        "name": seo.site_name,
        "description": seo.site_description,
        "url": site_url,
        "potentialAction": {
            "@type": "SearchAction",
            "target": f"{site_url}/search?q={{search_term_string}}",
            "query-input": "required name=search_term_string",
        },
    }


def breadcrumb_schema(breadcrumbs: list[dict], site_url: str) -> dict:
    site_url = site_url.rstrip("/")
    return {
        "@context": "https://schema.org",
        "@type": "BreadcrumbList",
        "itemListElement": [
            {"@type": "ListItem", "position": index, "name": item.get("name"), "item": f"{site_url}{item.get('url', '')}"}
            for index, item in enumerate(breadcrumbs, start=1)
        ],
    }


class SeoService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.settings = SeoSettingRepository(db)

    async def get_active_settings(self) -> SeoSetting:
        seo = await self.settings.get_active()
        if not seo:
            raise NotFoundError("No active SEO settings found", "SEO_SETTINGS_NOT_FOUND")
        return seo

    async def update_settings(self, data: SeoSettingsUpdate, user_id: Optional[UUID]) -> SeoSetting:
        fields = data.model_dump(mode="json")
        seo = await self.settings.replace_active(**fields, created_by=user_id, updated_by=user_id)
        logger.info("SEO settings replaced by %s", user_id)

        if seo.sitemap_settings.get("enabled"):
            await self.generate_sitemap(seo)
        if seo.robots_settings.get("enabled"):
            await self.generate_robots(seo)
        return seo

    async def _sitemap_urls(self, seo: SeoSetting) -> list[dict]:
        site_url = seo.site_url.rstrip("/")
        options = seo.sitemap_settings or {}
        change_freq = options.get("change_freq", "daily")
        now = datetime.utcnow().isoformat()

        urls = [{"loc": site_url, "lastmod": now, "changefreq": "daily", "priority": "1.0"}]
        urls.extend(
            {"loc": f"{site_url}{path}", "lastmod": now, "changefreq": change_freq, "priority": priority}
            for path, priority in STATIC_PAGES
        )

        if options.get("include_categories"):
            categories = await CategoryRepository(self.db).find(
                *public_category_conditions(), order_by=(Category.level.asc(), Category.display_order.asc())
            )
            urls.extend(
                {
                    "loc": f"{site_url}/categories/{category.slug}",
                    "lastmod": category.updated_at.isoformat(),
                    "changefreq": change_freq,
                    "priority": "0.9" if category.level == 0 else "0.8",
                }
                for category in categories
            )

        if options.get("include_perks"):
            perks = await PerkRepository(self.db).find(
                Perk.status == PerkStatus.ACTIVE.value, Perk.is_visible.is_(True), order_by=(Perk.created_at.desc(),)
            )
            urls.extend(
                {
                    "loc": f"{site_url}/perks/{perk.slug}",
                    "lastmod": perk.updated_at.isoformat(),
                    "changefreq": change_freq,
                    "priority": "0.9" if perk.is_featured else "0.7",
                }
                for perk in perks
            )

        if options.get("include_blog_posts"):
            posts = await BlogPostRepository(self.db).find(
                *published_conditions(), order_by=(BlogPost.published_at.desc(),)
            )
            urls.extend(
                {
                    "loc": f"{site_url}/blog/{post.slug}",
                    "lastmod": post.updated_at.isoformat(),
                    "changefreq": change_freq,
                    "priority": "0.6",
                }
                for post in posts
            )
        return urls

    async def generate_sitemap(self, seo: SeoSetting) -> str:
        urls = await self._sitemap_urls(seo)
        xml = render_sitemap(urls)
        path = await _write_public_file(SITEMAP_FILE, xml)

        seo.sitemap_settings = {**(seo.sitemap_settings or {}), "last_generated": datetime.utcnow().isoformat()}
        await self.settings.save(seo)
        logger.info("Sitemap generated with %d urls at %s", len(urls), path)
        return xml

    async def generate_robots(self, seo: SeoSetting) -> str:
        content = render_robots(seo)
        path = await _write_public_file(ROBOTS_FILE, content)
        logger.info("robots.txt generated at %s", path)
        return content

    async def regenerate_sitemap(self) -> str:
        seo = await self.get_active_settings()
        if not (seo.sitemap_settings or {}).get("enabled"):
            raise ValidationError("Sitemap generation is disabled", code="SITEMAP_DISABLED")
        return await self.generate_sitemap(seo)

    async def regenerate_robots(self) -> str:
        seo = await self.get_active_settings()
        if not (seo.robots_settings or {}).get("enabled"):
            raise ValidationError("Robots.txt generation is disabled", code="ROBOTS_DISABLED")
        return await self.generate_robots(seo)

    async def meta_tags(self, data: MetaTagsRequest) -> list[dict]:
        seo = await self.get_active_settings()
        page = {
            "title": data.title,
            "description": data.description,
            "keywords": data.keywords,
            "og_image": data.image,
            "og_type": data.type,
            "canonical": data.url,
        }
        return build_meta_tags(page, seo)

    async def schema_markup(self, schema_type: str, breadcrumbs: Optional[list[dict]] = None) -> dict:
        seo = await self.get_active_settings()
        if schema_type == "organization":
            return organization_schema(seo)
        if schema_type == "website":
            return website_schema(seo)
        return breadcrumb_schema(breadcrumbs or [], seo.site_url)

    async def page_seo(self, page_type: str, identifier: Optional[str] = None) -> dict:
        """Meta tags and JSON-LD for a public page (home, perk, category, blog post)."""
        seo = await self.get_active_settings()
        site_url = seo.site_url.rstrip("/")
        page: dict = {"type": page_type}

        if page_type == "home":
            page.update(title=seo.default_meta_title, description=seo.default_meta_description, canonical=site_url)

        elif page_type == "perk" and identifier:
            perk = await PerkRepository(self.db).get_by_slug(identifier)
            if perk:
                perk_seo = perk.seo or {}
                category = await CategoryRepository(self.db).get_by_id(perk.category_id) if perk.category_id else None
                breadcrumbs = [{"name": "Home", "url": "/"}]
                if category:
                    breadcrumbs.append({"name": category.name, "url": f"/categories/{category.slug}"})
                breadcrumbs.append({"name": perk.title, "url": f"/perks/{perk.slug}"})
                page.update(
                    title=perk_seo.get("title") or f"{perk.title} - {seo.site_name}",
                    description=perk_seo.get("description") or perk.short_description or (perk.description or "")[:160],
                    keywords=perk_seo.get("keywords") or perk.tags or [],
                    og_title=perk_seo.get("og_title"),
                    og_description=perk_seo.get("og_description"),
                    og_image=(perk.main_image or {}).get("url"),
                    og_type="product",
                    canonical=f"{site_url}/perks/{perk.slug}",
                    breadcrumbs=breadcrumbs,
                )

        elif page_type == "category" and identifier:
            categories = CategoryRepository(self.db)
            category = await categories.get_by_slug(identifier)
            if category:
                chain = [*await categories.ancestors(category), category]
                page.update(
                    title=category.seo_title or f"{category.name} - {seo.site_name}",
                    description=category.seo_description or (category.description or "")[:160],
                    keywords=category.seo_keywords or [],
                    canonical=f"{site_url}/categories/{category.slug}",
                    breadcrumbs=[{"name": "Home", "url": "/"}]
                    + [{"name": c.name, "url": f"/categories/{c.slug}"} for c in chain],
                )

        elif page_type == "blog" and identifier:
            post = await BlogPostRepository(self.db).get_by_slug(identifier)
            if post:
                post_seo = post.seo or {}
                page.update(
                    title=post_seo.get("title") or f"{post.title} - {seo.site_name}",
                    description=post_seo.get("description") or (post.excerpt or "")[:160],
                    keywords=post_seo.get("keywords") or post.tags or [],
                    og_title=post_seo.get("og_title"),
                    og_description=post_seo.get("og_description"),
                    og_image=post_seo.get("og_image") or (post.featured_image or {}).get("url"),
                    og_type="article",
                    canonical=post_seo.get("canonical_url") or f"{site_url}/blog/{post.slug}",
                    breadcrumbs=[
                        {"name": "Home", "url": "/"},
                        {"name": "Blog", "url": "/blog"},
                        {"name": post.title, "url": f"/blog/{post.slug}"},
                    ],
                )

        else:
            page.update(title=seo.default_meta_title, description=seo.default_meta_description)

        schemas = [organization_schema(seo), website_schema(seo)]
        if page.get("breadcrumbs"):
            schemas.append(breadcrumb_schema(page["breadcrumbs"], site_url))

        return {"page": page, "meta_tags": build_meta_tags(page, seo), "schema_markup": schemas}
