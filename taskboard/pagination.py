"""
Pagination helper.

Callers speak 1-based page numbers; the store speaks 0-based offsets.  The
ordering is fixed: newest first by ``created_at``, with ``id`` as the
tie-breaker so that pages never overlap or skip rows.
"""
import math
from dataclasses import dataclass
from typing import Any, Callable, Iterable, TypeVar

from pydantic import BaseModel

from taskboard.exceptions import InvalidArgumentError

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    page: int
    size: int

    def __post_init__(self) -> None:
        if self.page < 1:
            raise InvalidArgumentError("Page number must be at least 1")
        if self.size < 1:
            raise InvalidArgumentError("Page size must be at least 1")

    @property
    def offset(self) -> int:
        """0-based row offset for the store."""
        return (self.page - 1) * self.size


class Page(BaseModel):
    items: list[Any]
    page: int
    size: int
    total_elements: int
    total_pages: int
    is_first: bool
    is_last: bool


def order_newest_first(model) -> tuple:
    """ORDER BY clause shared by every paged query."""
    return (model.created_at.desc(), model.id.desc())


def build_page(
    rows: Iterable[T],
    total: int,
    request: PageRequest,
    mapper: Callable[[T], Any],
) -> Page:
    """Map *rows* to DTOs and wrap them with page metadata."""
    total_pages = math.ceil(total / request.size) if total > 0 else 0
    return Page(
        items=[mapper(row) for row in rows],
        page=request.page,
        size=request.size,
        total_elements=total,
        total_pages=total_pages,
        # An empty collection reports first and last on every page.
        is_first=request.page == 1 or total == 0,
        is_last=request.page >= total_pages,
    )
