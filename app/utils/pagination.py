"""Page/limit/offset arithmetic and pagination metadata."""

import math
from dataclasses import dataclass
from typing import Optional

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass
class Pagination:
    """Result of a pagination calculation for one page of a result set."""
    current_page: int
    items_per_page: int
    total_items: int
    total_pages: int
    offset: int

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.current_page > 1

    @property
    def next_page(self) -> Optional[int]:
        return self.current_page + 1 if self.has_next else None

    @property
    def prev_page(self) -> Optional[int]:
        return self.current_page - 1 if self.has_prev else None

    @property
    def start_item(self) -> int:
        return min(self.offset + 1, self.total_items)

    @property
    def end_item(self) -> int:
        return min(self.offset + self.items_per_page, self.total_items)

    def to_response(self) -> dict:
        return {
            "current_page": self.current_page,
            "total_pages": self.total_pages,
            "total_items": self.total_items,
            "items_per_page": self.items_per_page,
            "has_next": self.has_next,
            "has_prev": self.has_prev,
            "next_page": self.next_page,
            "prev_page": self.prev_page,
        }

    def to_meta(self) -> dict:
        return {
            "showing": f"{self.start_item}-{self.end_item} of {self.total_items}",
            "first": 1,
            "last": self.total_pages,
        }


def normalize_page(page: Optional[int]) -> int:
    try:
        return max(1, int(page or 1))
    except (TypeError, ValueError):
        return 1


def normalize_limit(limit: Optional[int]) -> int:
    try:
        value = int(limit) if limit is not None else DEFAULT_LIMIT
    except (TypeError, ValueError):
        return DEFAULT_LIMIT
    if value < 1:
        return DEFAULT_LIMIT
    return min(value, MAX_LIMIT)


def calculate_pagination(page: Optional[int], limit: Optional[int], total_items: int) -> Pagination:
    """Compute pagination for ``total_items`` rows.

    ``page`` is floored at 1 and ``limit`` clamped to 1..100 (default 10).
    A page past the end is kept as requested so the caller gets an empty slice.
    """
    page = normalize_page(page)
    limit = normalize_limit(limit)
    total_items = max(0, total_items)
    total_pages = math.ceil(total_items / limit) if total_items else 0

    return Pagination(
        current_page=page,
        items_per_page=limit,
        total_items=total_items,
        total_pages=total_pages,
        offset=(page - 1) * limit,
    )
