"""
Pagination shared by item listing and audit listing.

Callers build a filtered SQLAlchemy query and pass the ordering that makes
it a total order; `paginate` counts the filtered set and slices one page.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar

from sqlalchemy.orm import Query

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

T = TypeVar("T")
U = TypeVar("U")


@dataclass
class Page(Generic[T]):
    items: List[T] = field(default_factory=list)
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE
    total_items: int = 0
    total_pages: int = 1

    def map(self, fn: Callable[[T], U]) -> "Page[U]":
        return Page(
            items=[fn(item) for item in self.items],
            page=self.page,
            page_size=self.page_size,
            total_items=self.total_items,
            total_pages=self.total_pages,
        )


def normalize_page(page: Optional[int]) -> int:
    if page is None or page < 1:
        return DEFAULT_PAGE
    return page


def normalize_page_size(page_size: Optional[int]) -> int:
    if page_size is None or page_size < 1 or page_size > MAX_PAGE_SIZE:
        return DEFAULT_PAGE_SIZE
    return page_size


def total_pages_for(total_items: int, page_size: int) -> int:
    """Never less than 1, so an empty result still has a first page."""
    return max(1, math.ceil(total_items / page_size))


def paginate(
    query: Query,
    *,
    order_by: Sequence[Any],
    page: Optional[int] = None,
    page_size: Optional[int] = None,
) -> Page[Any]:
    """
    Return one page of `query`.

    - `page` below 1 is clamped to 1.
    - `page` past the last page returns no items but echoes the request,
      so the caller can tell the request was out of range.
    - `total_items` counts the filtered query, not the whole table.
    """
    page = normalize_page(page)
    page_size = normalize_page_size(page_size)

    total_items = query.order_by(None).count()
    total_pages = total_pages_for(total_items, page_size)

    items: List[Any] = []
    if page <= total_pages and total_items:
        items = (
            query.order_by(*order_by)
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )

    return Page(
        items=items,
        page=page,
        page_size=page_size,
        total_items=total_items,
        total_pages=total_pages,
    )
