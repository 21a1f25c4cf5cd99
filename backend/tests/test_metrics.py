"""
Derived metric tests: growth, grouped sums, inventory accuracy.
"""

from dataclasses import dataclass
from datetime import timedelta

import pytest

from retailhub.services import metrics
from retailhub.time_utils import utcnow


@dataclass
class Item:
    expected_quantity: int
    counted_quantity: int | None
    is_adjusted: bool = False


@dataclass
class Session:
    status: str
    created_at: object
    items: list


class TestGrowth:

    @pytest.mark.parametrize(
        "current,previous,expected",
        [
            (50, 0, 100.0),
            (0, 0, 0.0),
            (150, 100, 50.0),
            (75, 100, -25.0),
            (0, 100, -100.0),
            (-10, 0, 0.0),
        ],
    )
    def test_growth_percentage(self, current, previous, expected):
        assert metrics.growth_percentage(current, previous) == pytest.approx(expected)

    def test_growth_carries_absolute_change(self):
        result = metrics.growth(80, 100)
        assert result.growth == -20
        assert result.to_dict() == {"current": 80, "previous": 100, "growth": -20, "percentage": -20.0}


class TestGroupSum:

    def test_sorted_by_revenue_and_capped(self):
        rows = [
            ("Riz", 2, 36000),
            ("Sucre", 10, 8000),
            ("Riz", 1, 18000),
            ("Huile", 3, 22500),
        ]
        ranked = metrics.group_sum(
            rows,
            key=lambda r: r[0],
            quantity=lambda r: r[1],
            revenue=lambda r: r[2],
            limit=2,
        )
        assert [b["key"] for b in ranked] == ["Riz", "Huile"]
        assert ranked[0] == {"key": "Riz", "quantity": 3, "revenue": 54000, "count": 2}

    def test_empty_rows(self):
        assert metrics.group_sum([], key=lambda r: r) == []


class TestInventoryAccuracy:

    def test_uncounted_and_zero_expected_are_excluded(self):
        assert metrics.item_accuracy(Item(10, None)) is None
        assert metrics.item_accuracy(Item(0, 4)) is None
        assert metrics.item_accuracy(Item(10, 8)) == pytest.approx(0.8)

    def test_average_is_a_percentage(self):
        items = [Item(10, 10), Item(10, 8), Item(0, 3), Item(5, None)]
        assert metrics.average_accuracy(items) == pytest.approx(90.0)

    def test_average_of_nothing_is_zero(self):
        assert metrics.average_accuracy([Item(0, 1)]) == 0.0

    def test_inventory_metrics_summary(self):
        now = utcnow()
        sessions = [
            Session("active", now - timedelta(days=1), [Item(10, 9), Item(4, None)]),
            Session("completed", now - timedelta(days=30), [Item(5, 5, True)]),
            Session("cancelled", now - timedelta(days=2), []),
        ]
        summary = metrics.inventory_metrics(sessions, now=now)
        assert summary["total_sessions"] == 3
        assert summary["active_sessions"] == 1
        assert summary["completed_sessions"] == 1
        assert summary["total_items"] == 3
        assert summary["counted_items"] == 2
        assert summary["adjusted_items"] == 1
        assert summary["average_accuracy"] == 95.0
        assert summary["recent_activity"] == 2


class TestRatios:

    def test_zero_denominators(self):
        assert metrics.average_order_value(1000, 0) == 0.0
        assert metrics.share_pct(5, 0) == 0.0
        assert metrics.margin_pct(100, 0) == 0.0
        assert metrics.average_order_value(1000, 4) == 250.0
