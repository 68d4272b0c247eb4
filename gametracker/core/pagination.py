"""Pagination helpers shared by list endpoints."""

import math

from pydantic import BaseModel

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class PaginationParams(BaseModel):
    """Clamped page/limit pair."""

    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class PaginationMeta(BaseModel):
    """Pagination block echoed back in list responses."""

    page: int
    limit: int
    total_count: int
    total_pages: int
    has_next: bool
    has_prev: bool


def _to_int(value: int | str | None) -> int | None:
    if value is None or isinstance(value, int):
        return value
    try:
        return int(value)
    except ValueError:
        return None


def clamp_pagination(
    page: int | str | None,
    limit: int | str | None,
    max_limit: int = MAX_PAGE_SIZE,
) -> PaginationParams:
    """Clamp raw query values to page >= 1 and 1 <= limit <= max_limit; junk falls back to defaults."""
    page = max(1, _to_int(page) or 1)
    limit = max(1, min(max_limit, _to_int(limit) or DEFAULT_PAGE_SIZE))
    return PaginationParams(page=page, limit=limit)


def build_pagination(params: PaginationParams, total_count: int) -> PaginationMeta:
    """Compute total pages and navigation flags for a result set."""
    total_pages = math.ceil(total_count / params.limit)
    return PaginationMeta(
        page=params.page,
        limit=params.limit,
        total_count=total_count,
        total_pages=total_pages,
        has_next=params.page < total_pages,
        has_prev=params.page > 1,
    )
