# Overview: Shared query-building helpers: role scope, period, search, status, paging.

"""
Role-scoped query building.

Every domain reader composes the same steps:
1. base filter (entity specific, e.g. completed sales only)
2. role scope: admin unrestricted, everyone else `store_id IN ctx.store_ids`;
   seller-owned entities further restricted to the seller's own rows
3. user filters: period window, status, free-text search
4. ordering (caller) and paging

An empty store scope yields an empty result, never an unfiltered one.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from flask import current_app
from sqlalchemy import false, func, or_

from ..errors import ValidationError
from ..time_utils import PeriodRange, period_range


def scope_to_stores(query, ctx, column):
    """Restrict query to the caller's stores unless the caller is an admin."""
    if ctx.is_admin:
        return query
    if not ctx.store_ids:
        return query.filter(false())
    return query.filter(column.in_(ctx.store_ids))


def scope_to_owner(query, ctx, column):
    """Restrict seller-owned entities to rows owned by the calling seller."""
    if not ctx.is_seller:
        return query
    if ctx.user_id is None:
        return query.filter(false())
    return query.filter(column == ctx.user_id)


def resolve_period(period, now: datetime | None = None) -> PeriodRange:
    """Turn a period token (or an already resolved PeriodRange) into a PeriodRange."""
    if isinstance(period, PeriodRange):
        return period
    try:
        return period_range(period, now)
    except ValueError:
        raise ValidationError(f"Période inconnue: {period}")


def apply_window(query, column, start: datetime, end: datetime):
    """Half-open window [start, end)."""
    return query.filter(column >= start, column < end)


def apply_period(query, column, period, now: datetime | None = None):
    """
    Filter column to the current window of a period token.

    `None` or "all" leaves the query untouched. The window end is inclusive
    so rows stamped exactly at `now` are kept.
    """
    if period is None or period == "all":
        return query
    rng = resolve_period(period, now)
    return query.filter(column >= rng.start, column <= rng.end)


def apply_search(query, columns, term: str | None):
    """
    Case-insensitive substring OR-match over columns.

    Folding goes through SQL lower(), which the SQLite connect hook in
    extensions replaces with a Unicode-aware version.
    """
    if term is None:
        return query
    term = term.strip()
    if not term:
        return query
    pattern = f"%{term.lower()}%"
    return query.filter(or_(*[func.lower(column).like(pattern) for column in columns]))


def apply_status(query, column, status: str | None):
    if status is None or status == "all":
        return query
    return query.filter(column == status)


@dataclass
class Page:
    items: list
    page: int
    page_size: int
    total: int

    @property
    def pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return (self.total + self.page_size - 1) // self.page_size

    def to_dict(self, serialize=None) -> dict:
        serialize = serialize or (lambda item: item.to_dict())
        return {
            "items": [serialize(item) for item in self.items],
            "page": self.page,
            "page_size": self.page_size,
            "total": self.total,
            "pages": self.pages,
        }


def _clamp_page_size(page_size) -> int:
    default = current_app.config.get("DEFAULT_PAGE_SIZE", 20)
    maximum = current_app.config.get("MAX_PAGE_SIZE", 200)
    if page_size is None:
        return default
    try:
        page_size = int(page_size)
    except (TypeError, ValueError):
        raise ValidationError("page_size must be an integer")
    if page_size < 1:
        raise ValidationError("page_size must be at least 1")
    return min(page_size, maximum)


def paginate(query, page=1, page_size=None) -> Page:
    """
    Page an already ordered query.

    page is 1-based. page_size defaults to DEFAULT_PAGE_SIZE and is capped
    at MAX_PAGE_SIZE.
    """
    try:
        page = 1 if page is None else int(page)
    except (TypeError, ValueError):
        raise ValidationError("page must be an integer")
    if page < 1:
        raise ValidationError("page must be at least 1")

    page_size = _clamp_page_size(page_size)
    total = query.order_by(None).count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return Page(items=items, page=page, page_size=page_size, total=total)
