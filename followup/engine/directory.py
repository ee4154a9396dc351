"""Customer directory search for the share picker."""

import math
from dataclasses import dataclass
from typing import Generic, Iterable, TypeVar

from rapidfuzz import fuzz

from followup.config.settings import get_settings
from followup.models import Customer

# Threshold for fuzzy name matching
NAME_MATCH_THRESHOLD = 85

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of a paginated listing."""
    items: list[T]
    page: int
    total_pages: int
    total_items: int


def search_customers(directory: Iterable[Customer], query: str) -> list[Customer]:
    """Filter the directory by id or name.

    Ids and names match case-insensitively by substring; names also match
    fuzzily so small typos still find the customer.
    """
    query = query.strip().lower()
    customers = list(directory)
    if not query:
        return customers

    matches = []
    for customer in customers:
        name = customer.name.lower()
        if query in customer.id.lower() or query in name:
            matches.append(customer)
        elif name and fuzz.partial_ratio(query, name) >= NAME_MATCH_THRESHOLD:
            matches.append(customer)
    return matches


def paginate(items: list[T], page: int = 1, per_page: int | None = None) -> Page[T]:
    """Slice a list into a 1-indexed page, clamping out-of-range pages."""
    per_page = per_page or get_settings().directory_page_size
    total_pages = max(1, math.ceil(len(items) / per_page))
    page = min(max(1, page), total_pages)
    start = (page - 1) * per_page
    return Page(
        items=items[start:start + per_page],
        page=page,
        total_pages=total_pages,
        total_items=len(items),
    )
