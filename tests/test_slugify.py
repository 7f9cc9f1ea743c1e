"""Tests for slug generation and uniqueness probing."""

import pytest

from app.utils.slugify import create_unique_slug, ensure_unique, generate_slug


def test_generate_slug_basic():
    assert generate_slug("Hello World!") == "hello-world"
    assert generate_slug("  50% Off: Cloud (Hosting)  ") == "50-off-cloud-hosting"
    assert generate_slug("Email & SMS Tools") == "email-sms-tools"


def test_generate_slug_empty_for_unusable_text():
    assert generate_slug("") == ""
    assert generate_slug(None) == ""
    assert generate_slug("!!!") == ""


def test_generate_slug_truncates_at_word_boundary():
    text = "word " * 20
    slug = generate_slug(text)
    assert len(slug) <= 60
    assert not slug.endswith("-")
    assert slug.endswith("word")


def test_generate_slug_is_idempotent():
    slug = generate_slug("Best CRM for Startups 2024")
    assert generate_slug(slug) == slug


@pytest.mark.asyncio
async def test_ensure_unique_appends_counter():
    taken = {"crm", "crm-1"}

    async def exists(slug):
        return slug in taken

    assert await ensure_unique("crm", exists) == "crm-2"
    assert await ensure_unique("analytics", exists) == "analytics"


@pytest.mark.asyncio
async def test_create_unique_slug_random_fallback():
    async def exists(slug):
        return False

    slug = await create_unique_slug("???", exists)
    assert len(slug) == 8
    assert slug.isalnum()
