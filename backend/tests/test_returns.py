"""
Customer return tests.

Verifies:
- Role caps: seller 50 000, manager 200 000 (pending), admin uncapped
- approved and rejected are terminal
- Store scope on creation and owner scope on seller reads
"""

import pytest

from retailhub.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from retailhub.models import AuditLog, Return
from retailhub.services import return_service
from retailhub.services.context_service import load_context
from retailhub.time_utils import utcnow

from conftest import make_sale


@pytest.fixture
def sale(db_session, store_a, seller_user, products):
    return make_sale(
        db_session,
        store=store_a,
        seller=seller_user,
        total=900000,
        customer_name="Mme Ndiaye",
        items=[(products[0], 50, 18000)],
    )


def _payload(sale, amount, **extra):
    return {"sale_id": sale.id, "store_id": sale.store_id, "total_amount": amount, **extra}


class TestRoleCaps:

    def test_seller_over_cap_is_rejected(self, db_session, sale, seller_ctx):
        with pytest.raises(ValidationError) as exc:
            return_service.create_return(seller_ctx, _payload(sale, 60000))
        assert exc.value.message == "Le montant maximum autorisé est de 50 000 XOF"
        assert db_session.query(Return).count() == 0

    def test_seller_under_cap_is_approved_directly(self, db_session, sale, seller_ctx):
        return_doc = return_service.create_return(seller_ctx, _payload(sale, 50000))
        assert return_doc.status == "approved"
        assert return_doc.decided_by == seller_ctx.user_id

    def test_manager_return_waits_for_validation(self, db_session, sale, manager_ctx):
        return_doc = return_service.create_return(manager_ctx, _payload(sale, 150000))
        assert return_doc.status == "pending"
        assert return_doc.decided_at is None

    def test_manager_over_cap_is_rejected(self, db_session, sale, manager_ctx):
        with pytest.raises(ValidationError):
            return_service.create_return(manager_ctx, _payload(sale, 250000))

    def test_admin_is_uncapped(self, db_session, sale, admin_ctx):
        return_doc = return_service.create_return(admin_ctx, _payload(sale, 500000))
        assert return_doc.status == "approved"


class TestCreateReturn:

    def test_number_and_audit(self, db_session, sale, seller_ctx):
        first = return_service.create_return(seller_ctx, _payload(sale, 1000))
        second = return_service.create_return(seller_ctx, _payload(sale, 2000))
        prefix = f"RET-{utcnow():%Y%m%d}-"
        assert first.return_number == f"{prefix}0001"
        assert second.return_number == f"{prefix}0002"
        assert first.customer_name == "Mme Ndiaye"
        assert db_session.query(AuditLog).filter_by(action="RETURN_CREATED").count() == 2

    def test_total_defaults_to_item_sum(self, db_session, sale, seller_ctx, products):
        return_doc = return_service.create_return(seller_ctx, {
            "sale_id": sale.id,
            "store_id": sale.store_id,
            "reason": "Sac percé",
            "items": [{"product_id": products[0].id, "quantity": 2, "unit_price": 18000}],
        })
        assert return_doc.total_amount == 36000
        assert len(return_doc.items) == 1

    def test_total_must_match_items(self, db_session, sale, seller_ctx, products):
        with pytest.raises(ValidationError):
            return_service.create_return(seller_ctx, _payload(
                sale, 1000,
                items=[{"product_id": products[0].id, "quantity": 1, "unit_price": 18000}],
            ))

    @pytest.mark.parametrize("amount", [0, -500, "abc", None])
    def test_invalid_amounts(self, db_session, sale, seller_ctx, amount):
        with pytest.raises(ValidationError):
            return_service.create_return(seller_ctx, _payload(sale, amount))

    def test_amount_cannot_exceed_sale_total(self, db_session, store_a, seller_user, admin_ctx):
        small_sale = make_sale(db_session, store=store_a, seller=seller_user, total=20000)
        with pytest.raises(ValidationError) as exc:
            return_service.create_return(admin_ctx, _payload(small_sale, 30000))
        assert "20 000 XOF" in exc.value.message
        assert db_session.query(Return).count() == 0

        return_doc = return_service.create_return(admin_ctx, _payload(small_sale, 20000))
        assert return_doc.total_amount == 20000

    def test_sale_must_exist_and_match_store(self, db_session, sale, admin_ctx, store_b):
        with pytest.raises(NotFoundError):
            return_service.create_return(admin_ctx, {"sale_id": 9999, "store_id": sale.store_id, "total_amount": 10})
        with pytest.raises(ValidationError):
            return_service.create_return(admin_ctx, {"sale_id": sale.id, "store_id": store_b.id, "total_amount": 10})

    def test_seller_outside_store_is_denied(self, db_session, sale, seller_b):
        outsider = load_context(seller_b.id)
        with pytest.raises(PermissionDeniedError) as exc:
            return_service.create_return(outsider, _payload(sale, 1000))
        assert "magasin" in exc.value.message


class TestTransitions:

    @pytest.fixture
    def pending(self, db_session, sale, manager_ctx):
        return return_service.create_return(manager_ctx, _payload(sale, 150000))

    def test_approve_then_terminal(self, db_session, pending, manager_ctx):
        approved = return_service.approve_return(manager_ctx, pending.id, notes="Produit vérifié")
        assert approved.status == "approved"
        assert "Produit vérifié" in approved.notes
        with pytest.raises(ConflictError):
            return_service.reject_return(manager_ctx, pending.id)
        with pytest.raises(ConflictError):
            return_service.approve_return(manager_ctx, pending.id)

    def test_reject_then_terminal(self, db_session, pending, admin_ctx):
        rejected = return_service.reject_return(admin_ctx, pending.id, notes="Hors délai")
        assert rejected.status == "rejected"
        assert rejected.decided_by == admin_ctx.user_id
        with pytest.raises(ConflictError):
            return_service.approve_return(admin_ctx, pending.id)

    def test_seller_cannot_decide(self, db_session, pending, seller_ctx):
        with pytest.raises(PermissionDeniedError):
            return_service.approve_return(seller_ctx, pending.id)
        assert db_session.get(Return, pending.id).status == "pending"


class TestReads:

    def test_seller_sees_only_own_returns(self, db_session, sale, seller_ctx, manager_ctx):
        return_service.create_return(seller_ctx, _payload(sale, 1000))
        return_service.create_return(manager_ctx, _payload(sale, 2000))

        seller_page = return_service.list_returns(seller_ctx)
        assert seller_page.total == 1
        assert all(r.processed_by == seller_ctx.user_id for r in seller_page.items)
        assert return_service.list_returns(manager_ctx).total == 2

    def test_search_covers_sale_number(self, db_session, sale, seller_ctx):
        return_service.create_return(seller_ctx, _payload(sale, 1000))
        assert return_service.list_returns(seller_ctx, search=sale.sale_number).total == 1
        assert return_service.list_returns(seller_ctx, search="introuvable").total == 0

    def test_stats_per_role(self, db_session, sale, seller_ctx, manager_ctx):
        return_service.create_return(seller_ctx, _payload(sale, 1000))
        return_service.create_return(manager_ctx, _payload(sale, 2000))

        seller_stats = return_service.return_stats(seller_ctx)
        assert seller_stats["total"] == 1
        assert seller_stats["today"] == 1

        manager_stats = return_service.return_stats(manager_ctx)
        assert manager_stats["total_amount"] == 3000
        assert manager_stats["awaiting_validation"] == 1
        assert manager_stats["policy"] == {"max_amount": 200000, "requires_approval": True}
