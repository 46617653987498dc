import math
from typing import List, Sequence, TypeVar

from callrecords.schemas import PaginationResponse

T = TypeVar("T")


def to_page_response(items: Sequence[T], page: int, page_size: int, total: int) -> PaginationResponse:
    """Describe one zero-based page of ``total`` matching items."""
    page_items: List[T] = list(items) if total else []
    next_page = page + 1 if (page + 1) * page_size < total else None
    return PaginationResponse(
        items=page_items,
        next_page=next_page,
        total_pages=math.ceil(total / page_size),
        total=total,
    )
