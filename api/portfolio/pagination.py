from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Query


@dataclass(frozen=True)
class PageParams:
    """Clamped page/limit pair for offset pagination."""

    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def page_params(page: int | None, limit: int | None, default_limit: int, max_limit: int) -> PageParams:
    """
    Clamp raw query values to a usable page window.

    Args:
        page: Requested 1-based page (missing or < 1 becomes 1)
        limit: Requested page size (missing or < 1 becomes ``default_limit``)
        default_limit: Page size used when none is given
        max_limit: Upper bound for the page size

    Returns:
        PageParams with a valid page and limit
    """
    page = page if page and page > 0 else 1
    limit = limit if limit and limit > 0 else default_limit
    return PageParams(page=page, limit=min(limit, max_limit))


def paginate(query: Query, params: PageParams) -> tuple[list, int]:
    """Run ``query`` for one page. Returns (rows, total row count)."""
    total = query.order_by(None).count()
    rows = query.offset(params.offset).limit(params.limit).all()
    return rows, total
