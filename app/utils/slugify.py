"""URL slug generation with probe-and-suffix uniqueness."""

import re
import secrets
import string
from typing import Awaitable, Callable

DEFAULT_MAX_LENGTH = 60

_STRIP_CHARS = re.compile(r"[*+~.()'\"!:@#$%^&]")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_RANDOM_ALPHABET = string.ascii_lowercase + string.digits


def generate_slug(text: str | None, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """Turn free text into a lowercase hyphen-separated slug.

    Returns an empty string when the text has no ASCII letters or digits.
    A slug longer than ``max_length`` is cut, and when the cut lands within
    the last 20% of the limit it is pulled back to the previous hyphen.
    """
    if not text:
        return ""

    slug = _STRIP_CHARS.sub("", text.lower())
    slug = _NON_ALNUM.sub("-", slug).strip("-")

    if len(slug) > max_length:
        slug = slug[:max_length]
        last_dash = slug.rfind("-")
        if last_dash > max_length * 0.8:
            slug = slug[:last_dash]
        slug = slug.rstrip("-")

    return slug


def random_slug(length: int = 8) -> str:
    return "".join(secrets.choice(_RANDOM_ALPHABET) for _ in range(length))


async def ensure_unique(
    base_slug: str,
    exists: Callable[[str], Awaitable[bool]],
    max_length: int = DEFAULT_MAX_LENGTH,
) -> str:
    """Return ``base_slug`` or the first free ``base_slug-N`` (N = 1, 2, ...).

    ``exists`` is awaited for every candidate; there is no attempt limit.
    The base is trimmed so the suffixed slug still fits ``max_length``.
    """
    slug = base_slug
    counter = 1

    while await exists(slug):
        suffix = f"-{counter}"
        max_base = max_length - len(suffix)
        base = base_slug[:max_base].rstrip("-") if len(base_slug) > max_base else base_slug
        slug = f"{base}{suffix}"
        counter += 1

    return slug


async def create_unique_slug(
    text: str,
    exists: Callable[[str], Awaitable[bool]],
    max_length: int = DEFAULT_MAX_LENGTH,
) -> str:
    """Slug for ``text`` made unique; punctuation-only text gets a random slug."""
    base = generate_slug(text, max_length) or random_slug()
    return await ensure_unique(base, exists, max_length)
