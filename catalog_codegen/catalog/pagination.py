"""Offset pagination and free-text search over catalog listings.

Listings are filtered in memory: a search term matches an item when it is
contained in one of the item's searchable fields, regardless of case and
accents.
"""

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from catalog_codegen.domain.normalizer import normalize_for_comparison

T = TypeVar("T")

DEFAULT_LIMIT = 50
MAX_LIMIT = 500


@dataclass
class PageParams:
    """Pagination parameters.

    Attributes:
        offset: Number of matching items to skip.
        limit: Maximum number of items to return.
        search: Free-text filter, ignored when blank.
    """

    offset: int = 0
    limit: int = DEFAULT_LIMIT
    search: str | None = None

    @property
    def term(self) -> str:
        """Search term in comparison form, empty when there is none."""
        return normalize_for_comparison((self.search or "").strip())


@dataclass
class Page(Generic[T]):
    """Paginated result container.

    Attributes:
        items: Items of the requested window.
        total: Number of items matching the search.
        offset: Offset the window starts at.
        limit: Requested window size.
    """

    items: list[T]
    total: int
    offset: int
    limit: int

    @property
    def has_more(self) -> bool:
        """Check if items remain after this window."""
        return self.offset + self.limit < self.total


def paginate(
    items: Sequence[T],
    params: PageParams,
    fields: Callable[[T], Iterable[str | None]],
) -> Page[T]:
    """Filter items by the search term and cut the requested window.

    Args:
        items: Items in display order.
        params: Pagination parameters.
        fields: Searchable text fields of an item.

    Returns:
        Page of matching items.
    """
    term = params.term
    if term:
        items = [
            item
            for item in items
            if any(value and term in normalize_for_comparison(value) for value in fields(item))
        ]
    return Page(
        items=list(items[params.offset : params.offset + params.limit]),
        total=len(items),
        offset=params.offset,
        limit=params.limit,
    )
