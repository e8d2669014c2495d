"""Listing Value Objects: filters, page requests and page results for sanction queries.

Invariants:
    - PageRequest.page >= 1 and 1 <= PageRequest.limit <= max page size after clamping
    - SanctionPage metadata (total_pages, has_next, has_prev) derived, never stored
    - All types are plain data: no IO, no ORM imports
"""

import math
from dataclasses import dataclass
from typing import Any

from forum_moderation.core.domain_types import (
    SanctionKind, SanctionSeverity, SanctionStatus, SortField, SortOrder,
)


@dataclass(frozen=True)
class SanctionFilters:
    """Optional equality filters; None means 'do not filter'."""
    user_id: int | None = None
    moderator_id: int | None = None
    sanction_type: SanctionKind | None = None
    severity: SanctionSeverity | None = None
    is_active: bool | None = None

    @classmethod
    def from_status(cls, status: SanctionStatus, **kwargs) -> "SanctionFilters":
        """Build filters from an active/inactive/all status selector."""
        is_active = {
            SanctionStatus.ACTIVE: True,
            SanctionStatus.INACTIVE: False,
            SanctionStatus.ALL: None,
        }[status]
        return cls(is_active=is_active, **kwargs)


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    limit: int = 20
    sort_by: SortField = SortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def clamp_page_request(
    page: int | None,
    limit: int | None,
    max_limit: int,
    default_limit: int = 20,
    sort_by: SortField = SortField.CREATED_AT,
    sort_order: SortOrder = SortOrder.DESC,
) -> PageRequest:
    """Normalize raw paging input: page floor 1, limit within [1, max_limit]."""
    page = max(page or 1, 1)
    limit = limit or default_limit
    limit = min(max(limit, 1), max_limit)
    return PageRequest(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)


@dataclass
class SanctionPage:
    """One page of rows (sanctions or banned users) plus the total count for the filters."""
    items: list[Any]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page * self.limit < self.total

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    def pagination(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "total_pages": self.total_pages,
            "has_next": self.has_next,
            "has_prev": self.has_prev,
        }
