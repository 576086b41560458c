import math
from typing import Sequence, TypeVar

from matrimony.schemas.match import Pagination

T = TypeVar("T")

def clamp_limit(limit: int, maximum: int) -> int:
    return max(1, min(limit, maximum))

def paginate(items: Sequence[T], page: int, limit: int, max_limit: int = 50) -> tuple[list[T], Pagination]:
    """Slice an already-ranked sequence into one page.

    ``page`` is 1-based and floored at 1; ``limit`` is clamped to
    ``[1, max_limit]``.
    """
    page = max(1, page)
    limit = clamp_limit(limit, max_limit)
    total = len(items)
    start = (page - 1) * limit
    window = list(items[start:start + limit])
    total_pages = math.ceil(total / limit) if total else 0
    return window, Pagination(
        page=page,
        limit=limit,
        total=total,
        total_pages=total_pages,
        has_next=page < total_pages,
    )
