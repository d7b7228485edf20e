"""
Pagination Utilities.

Page-based pagination shared by repositories and list endpoints.
Repositories return a PagedResult; endpoints turn it into the
PaginatedResponse envelope with create_paginated_response().
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from notesphere.backend.schemas.base import PaginatedResponse, PaginationInfo, ResponseMetadata

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 20
MIN_PAGE_SIZE = 5
MAX_PAGE_SIZE = 100
# Largest page whose offset still fits a signed 64-bit integer
MAX_PAGE = (2**63 - 1) // MAX_PAGE_SIZE + 1


def normalize_page(page: int | None) -> int:
    """Default a missing page to 1 and clamp it to [1, MAX_PAGE]."""
    if page is None:
        return DEFAULT_PAGE
    return min(MAX_PAGE, max(DEFAULT_PAGE, page))


def normalize_page_size(page_size: int | None) -> int:
    """Default a missing page size to 20 and clamp it to [5, 100]."""
    if page_size is None:
        return DEFAULT_PAGE_SIZE
    return min(MAX_PAGE_SIZE, max(MIN_PAGE_SIZE, page_size))


@dataclass
class PagedResult(Generic[T]):
    """
    One page of a query result.

    total is counted with the same predicate that produced items.
    """

    items: list[T]
    total: int
    page: int
    page_size: int

    @property
    def has_more(self) -> bool:
        return self.page * self.page_size < self.total


def create_paginated_response(
    result: PagedResult[Any],
    item_schema: type[BaseModel],
    request_id: str | None = None,
) -> dict[str, Any]:
    """
    Create a standardized paginated response.

    Usage:
        return create_paginated_response(
            result=await service.search(owner_id, query),
            item_schema=NoteResponse,
            request_id=request_id,
        )
    """
    validated_items = [
        item_schema.model_validate(item).model_dump(mode="json")
        for item in result.items
    ]

    response = PaginatedResponse(
        data=validated_items,
        pagination=PaginationInfo(
            total=result.total,
            page=result.page,
            page_size=result.page_size,
            has_more=result.has_more,
        ),
        metadata=ResponseMetadata(request_id=request_id),
    )
    return response.model_dump(mode="json")
