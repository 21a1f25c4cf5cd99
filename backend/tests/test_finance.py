"""
Finance tests: summary figures, expense bookkeeping and cache invalidation.
"""

from datetime import timedelta

import pytest

from retailhub.errors import PermissionDeniedError, ValidationError, NotFoundError
from retailhub.models import Expense
from retailhub.services import finance_service
from retailhub.time_utils import utcnow

from conftest import make_sale


@pytest.fixture
def activity(db_session, store_a, store_b, seller_user, seller_b):
    make_sale(db_session, store=store_a, seller=seller_user, total=100000, tax_amount=18000, discount_amount=2000)
    make_sale(db_session, store=store_a, seller=seller_user, total=50000, status="cancelled")
    make_sale(db_session, store=store_b, seller=seller_b, total=80000, tax_amount=14400)
    make_sale(db_session, store=store_a, seller=seller_user, total=60000,
              created_at=utcnow() - timedelta(days=45))
    today = utcnow().date()
    db_session.add_all([
        Expense(store_id=store_a.id, user_id=seller_user.id, category="Loyer", amount=30000, date=today),
        Expense(store_id=store_a.id, user_id=seller_user.id, category="Électricité", amount=10000, date=today),
        Expense(store_id=store_b.id, user_id=seller_b.id, category="Loyer", amount=25000, date=today),
    ])
    db_session.commit()


class TestSummary:

    def test_manager_summary(self, db_session, activity, manager_ctx):
        summary = finance_service.finance_summary(manager_ctx, period="30days")

        assert summary["revenue"]["current"] == 100000
        assert summary["revenue"]["previous"] == 60000
        assert summary["revenue"]["tax_amount"] == 18000
        assert summary["revenue"]["discounts"] == 2000
        assert summary["expenses"]["current"] == 40000
        assert summary["expenses"]["by_category"][0] == {
            "category": "Loyer", "amount": 30000, "count": 1, "percentage": 75.0,
        }
        assert summary["profit"]["gross"] == 60000
        assert summary["profit"]["net"] == 42000
        assert summary["profit"]["margin"] == pytest.approx(42.0)
        assert summary["store_metrics"] == []
        assert summary["user_metrics"][0]["revenue"] == 100000

    def test_admin_gets_store_metrics(self, db_session, activity, admin_ctx):
        summary = finance_service.finance_summary(admin_ctx, period="30days")
        assert summary["revenue"]["current"] == 180000
        by_store = {row["store_name"]: row for row in summary["store_metrics"]}
        assert by_store["Thiès Centre"]["profit"] == 55000
        assert by_store["Dakar Plateau"]["expenses"] == 40000

    def test_unknown_period(self, db_session, manager_ctx):
        with pytest.raises(ValidationError):
            finance_service.finance_summary(manager_ctx, period="decade")


class TestExpenses:

    def test_add_expense_invalidates_summary(self, db_session, activity, manager_ctx, store_a):
        before = finance_service.finance_summary(manager_ctx, period="30days")
        assert before["expenses"]["current"] == 40000

        finance_service.add_expense(manager_ctx, {
            "store_id": store_a.id,
            "category": "Transport",
            "amount": 5000,
            "description": "Livraison fournisseur",
        })

        after = finance_service.finance_summary(manager_ctx, period="30days")
        assert after["expenses"]["current"] == 45000

    def test_expense_validation(self, db_session, manager_ctx, store_a):
        with pytest.raises(ValidationError):
            finance_service.add_expense(manager_ctx, {"store_id": store_a.id, "category": "", "amount": 100})
        with pytest.raises(ValidationError):
            finance_service.add_expense(manager_ctx, {"store_id": store_a.id, "category": "Eau", "amount": 0})
        with pytest.raises(ValidationError):
            finance_service.add_expense(manager_ctx, {"store_id": store_a.id, "category": "Eau", "amount": 10.5})
        with pytest.raises(ValidationError):
            finance_service.add_expense(manager_ctx, {
                "store_id": store_a.id, "category": "Eau", "amount": 10, "date": "31/12/2026",
            })
        with pytest.raises(NotFoundError):
            finance_service.add_expense(manager_ctx, {"store_id": 4242, "category": "Eau", "amount": 10})

    def test_scope_and_permissions(self, db_session, manager_ctx, seller_ctx, store_b):
        with pytest.raises(PermissionDeniedError):
            finance_service.add_expense(manager_ctx, {"store_id": store_b.id, "category": "Eau", "amount": 10})
        with pytest.raises(PermissionDeniedError):
            finance_service.add_expense(seller_ctx, {"store_id": store_b.id, "category": "Eau", "amount": 10})

    def test_only_admin_deletes(self, db_session, activity, manager_ctx, admin_ctx):
        expense = db_session.query(Expense).first()
        with pytest.raises(PermissionDeniedError):
            finance_service.delete_expense(manager_ctx, expense.id)
        finance_service.delete_expense(admin_ctx, expense.id)
        assert db_session.get(Expense, expense.id) is None

    def test_list_is_scoped(self, db_session, activity, manager_ctx, admin_ctx):
        assert finance_service.list_expenses(manager_ctx).total == 2
        assert finance_service.list_expenses(admin_ctx, period="month").total == 3
