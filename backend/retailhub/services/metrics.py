# Overview: Pure aggregation and derivation helpers shared by reports, finance and inventory.

"""
Derived metrics.

Pure functions over already fetched rows; nothing here touches the
database. Growth in particular is implemented once and reused by every
report so the formula cannot drift between call sites.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Iterable

from ..time_utils import utcnow


@dataclass(frozen=True)
class Growth:
    current: float
    previous: float
    growth: float
    percentage: float

    def to_dict(self) -> dict:
        return {
            "current": self.current,
            "previous": self.previous,
            "growth": self.growth,
            "percentage": self.percentage,
        }


def growth_percentage(current: float, previous: float) -> float:
    """
    Relative change of current against previous, in percent.

    previous == 0: 100 when current > 0, otherwise 0.
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / previous * 100


def growth(current: float, previous: float) -> Growth:
    return Growth(
        current=current,
        previous=previous,
        growth=current - previous,
        percentage=growth_percentage(current, previous),
    )


def group_sum(
    rows: Iterable,
    key: Callable,
    *,
    quantity: Callable | None = None,
    revenue: Callable | None = None,
    limit: int | None = None,
) -> list[dict]:
    """
    Reduce rows into buckets keyed by key(row).

    Each bucket accumulates quantity, revenue and a row count. Buckets are
    sorted by revenue descending (ties keep first-seen order) and capped to
    `limit` when given.

    Returns:
        [{"key": ..., "quantity": int, "revenue": number, "count": int}, ...]
    """
    buckets: dict = {}
    for row in rows:
        k = key(row)
        bucket = buckets.get(k)
        if bucket is None:
            bucket = {"key": k, "quantity": 0, "revenue": 0, "count": 0}
            buckets[k] = bucket
        if quantity is not None:
            bucket["quantity"] += quantity(row) or 0
        if revenue is not None:
            bucket["revenue"] += revenue(row) or 0
        bucket["count"] += 1

    ranked = sorted(buckets.values(), key=lambda b: b["revenue"], reverse=True)
    if limit is not None:
        ranked = ranked[:limit]
    return ranked


def item_accuracy(item) -> float | None:
    """
    Accuracy of one counted inventory item as a fraction.

    None for uncounted items and for items with expected_quantity == 0,
    which have no meaningful ratio. The result can be negative when the
    count is off by more than the expected quantity.
    """
    if item.counted_quantity is None:
        return None
    if not item.expected_quantity:
        return None
    difference = item.counted_quantity - item.expected_quantity
    return 1 - abs(difference) / item.expected_quantity


def average_accuracy(items: Iterable) -> float:
    """Mean accuracy over qualifying items as a percentage; 0.0 when none qualify."""
    values = [a for a in (item_accuracy(item) for item in items) if a is not None]
    if not values:
        return 0.0
    return sum(values) / len(values) * 100


def average_order_value(revenue: float, count: int) -> float:
    if not count:
        return 0.0
    return revenue / count


def share_pct(part: float, total: float) -> float:
    if not total:
        return 0.0
    return part / total * 100


def margin_pct(profit: float, revenue: float) -> float:
    if not revenue:
        return 0.0
    return profit / revenue * 100


def inventory_metrics(sessions: Iterable, now: datetime | None = None) -> dict:
    """
    Summary over inventory sessions and their items.

    recent_activity counts sessions created during the last 7 days.
    """
    sessions = list(sessions)
    items = [item for session in sessions for item in session.items]
    recent_cutoff = (now or utcnow()) - timedelta(days=7)

    return {
        "total_sessions": len(sessions),
        "active_sessions": sum(1 for s in sessions if s.status == "active"),
        "completed_sessions": sum(1 for s in sessions if s.status == "completed"),
        "total_items": len(items),
        "counted_items": sum(1 for i in items if i.counted_quantity is not None),
        "adjusted_items": sum(1 for i in items if i.is_adjusted),
        "average_accuracy": round(average_accuracy(items), 2),
        "recent_activity": sum(
            1 for s in sessions if s.created_at is not None and s.created_at >= recent_cutoff
        ),
    }
