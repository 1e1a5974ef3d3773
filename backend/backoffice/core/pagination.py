"""
Pagination helpers shared by list endpoints.
"""

import math
from dataclasses import dataclass, field
from typing import Generic, List, Tuple, TypeVar

from backoffice.core.config import settings

T = TypeVar("T")


def normalize_pagination(page: int = 1, limit: int = 0) -> Tuple[int, int]:
    """
    Clamp page and limit to usable values.

    page < 1 becomes 1, limit < 1 becomes the default page size and limit is
    capped at the maximum page size.

    Returns:
        (page, limit)
    """
    if page < 1:
        page = 1
    if limit < 1:
        limit = settings.ORGANIZATIONS_DEFAULT_PAGE_SIZE
    limit = min(limit, settings.ORGANIZATIONS_MAX_PAGE_SIZE)
    return page, limit


@dataclass
class PaginatedResult(Generic[T]):
    """One page of results plus the totals needed to render paging controls."""

    data: List[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit
