"""
Sales report tests: growth against the previous window, rankings and
role-specific sections.
"""

from datetime import timedelta

import pytest

from retailhub.errors import NotFoundError, ValidationError
from retailhub.services import report_service
from retailhub.time_utils import utcnow

from conftest import make_sale, make_user


@pytest.fixture
def history(db_session, store_a, store_b, seller_user, seller_b, products):
    riz, huile, sucre = products
    make_sale(db_session, store=store_a, seller=seller_user, total=36000, items=[(riz, 2, 18000)])
    make_sale(db_session, store=store_a, seller=seller_user, total=15800,
              items=[(huile, 2, 7500), (sucre, 1, 800)])
    make_sale(db_session, store=store_a, seller=seller_user, total=9000, status="cancelled",
              items=[(riz, 1, 9000)])
    make_sale(db_session, store=store_b, seller=seller_b, total=40000, items=[(riz, 2, 20000)])
    # Previous 30-day window
    make_sale(db_session, store=store_a, seller=seller_user, total=25900,
              created_at=utcnow() - timedelta(days=40))


class TestOverview:

    def test_admin_overview(self, db_session, history, admin_ctx):
        report = report_service.report_overview(admin_ctx, period="30days")

        assert report["revenue"]["current"] == 91800
        assert report["revenue"]["previous"] == 25900
        assert report["revenue"]["percentage"] == pytest.approx((91800 - 25900) / 25900 * 100)
        assert report["transactions"]["current"] == 4
        assert report["transactions"]["completed"] == 3
        assert report["transactions"]["cancelled"] == 1

        assert report["top_products"][0] == {"name": "Riz parfumé 25kg", "quantity": 4, "revenue": 76000}
        assert [s["store_name"] for s in report["store_performance"]] == ["Dakar Plateau", "Thiès Centre"]
        assert report["personal_metrics"] is None

    def test_manager_sees_only_own_stores(self, db_session, history, manager_ctx):
        report = report_service.report_overview(manager_ctx, period="30days")
        assert report["revenue"]["current"] == 51800
        assert len(report["store_performance"]) == 1

    def test_seller_gets_personal_metrics(self, db_session, history, seller_ctx):
        report = report_service.report_overview(seller_ctx, period="30days")
        assert report["store_performance"] == []
        personal = report["personal_metrics"]
        assert personal["personal_sales"] == 2
        assert personal["personal_revenue"] == 51800
        assert personal["target"] == 100000
        assert personal["performance"] == pytest.approx(51.8)
        assert {t["id"] for t in report["report_types"]} == {"overview", "personal", "goals"}

    def test_top_n_caps_rankings(self, db_session, history, admin_ctx):
        report = report_service.report_overview(admin_ctx, period="30days", top_n=1)
        assert len(report["top_products"]) == 1
        assert len(report["top_sellers"]) == 1

    def test_empty_period(self, db_session, store_a, manager_ctx):
        report = report_service.report_overview(manager_ctx, period="7days")
        assert report["revenue"]["percentage"] == 0.0
        assert report["average_order_value"]["current"] == 0.0

    def test_invalid_inputs(self, db_session, history, manager_ctx, store_b):
        with pytest.raises(ValidationError):
            report_service.report_overview(manager_ctx, period="forever")
        with pytest.raises(NotFoundError):
            report_service.report_overview(manager_ctx, store_id=store_b.id)

    def test_overview_is_cached_per_context(self, db_session, history, admin_ctx, store_a, seller_user):
        first = report_service.report_overview(admin_ctx, period="30days")
        make_sale(db_session, store=store_a, seller=seller_user, total=1000)
        assert report_service.report_overview(admin_ctx, period="30days") == first

        other = make_user(db_session, email="admin2@retailhub.test", role="admin")
        from retailhub.services.context_service import load_context
        fresh = report_service.report_overview(load_context(other.id), period="30days")
        assert fresh["revenue"]["current"] == first["revenue"]["current"] + 1000
