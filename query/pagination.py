"""
Pagination for filtered views.

A slice never raises for an out-of-range page: pages below 1 are treated as
the first page and pages past the end yield an empty slice.
"""

import math
from dataclasses import dataclass
from typing import Sequence, Tuple, TypeVar

from core.exceptions import ValidationError

T = TypeVar('T')


def _check_page_size(page_size: int) -> None:
    if page_size < 1:
        raise ValidationError("page_size must be a positive integer", field='page_size', value=page_size)


def total_pages(count: int, page_size: int) -> int:
    """Number of pages needed for count items; 0 when there are no items."""
    _check_page_size(page_size)
    return math.ceil(max(0, count) / page_size)


def clamp_page(page: int, count: int, page_size: int) -> int:
    """Clamp a page number into [1, total_pages], or 1 when the view is empty."""
    last = max(1, total_pages(count, page_size))
    return min(max(1, page), last)


def slice_page(view: Sequence[T], page: int, page_size: int) -> Tuple[T, ...]:
    """
    Return the visible page of a view.

    Args:
        view: Filtered records in display order
        page: 1-based page number
        page_size: Rows per page

    Returns:
        view[(page - 1) * page_size : page * page_size] as a tuple

    Raises:
        ValidationError: If page_size is not positive
    """
    _check_page_size(page_size)
    page = max(1, page)
    start = (page - 1) * page_size
    return tuple(view[start:start + page_size])


@dataclass(frozen=True)
class PaginationState:
    """Current page and page size."""
    page: int = 1
    page_size: int = 15

    def __post_init__(self):
        _check_page_size(self.page_size)
        if self.page < 1:
            object.__setattr__(self, 'page', 1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def reset(self) -> 'PaginationState':
        return PaginationState(page=1, page_size=self.page_size)

    def goto(self, page: int) -> 'PaginationState':
        return PaginationState(page=page, page_size=self.page_size)

    def clamped(self, count: int) -> 'PaginationState':
        return PaginationState(page=clamp_page(self.page, count, self.page_size), page_size=self.page_size)
