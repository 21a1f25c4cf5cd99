"""
Store management tests.

Verifies:
- Sellers only see active stores in their scope
- Admin-only create/delete; managers edit their own stores only
- Stores with history cannot be deleted
"""

import pytest

from retailhub.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from retailhub.models import AuditLog, Store, UserStore
from retailhub.services import report_service, store_service

from conftest import make_sale


class TestReads:

    def test_seller_sees_only_active_assigned_stores(self, db_session, store_a, store_b, seller_ctx, admin_ctx):
        page = store_service.list_stores(seller_ctx)
        assert [s.id for s in page.items] == [store_a.id]

        store_service.toggle_store_status(admin_ctx, store_a.id)
        assert store_service.list_stores(seller_ctx).total == 0
        with pytest.raises(NotFoundError):
            store_service.get_store(seller_ctx, store_a.id)

    def test_admin_filters(self, db_session, store_a, store_b, admin_ctx):
        store_service.toggle_store_status(admin_ctx, store_b.id)
        assert store_service.list_stores(admin_ctx).total == 2
        assert [s.id for s in store_service.list_stores(admin_ctx, status="inactive").items] == [store_b.id]
        assert store_service.list_stores(admin_ctx, search="plateau").total == 1
        with pytest.raises(ValidationError):
            store_service.list_stores(admin_ctx, status="closed")

    def test_stats(self, db_session, store_a, store_b, admin_ctx):
        store_service.toggle_store_status(admin_ctx, store_b.id)
        assert store_service.store_stats(admin_ctx) == {
            "total": 2,
            "active": 1,
            "inactive": 1,
            "activity_percentage": 50.0,
        }


class TestMutations:

    def test_admin_creates_store(self, db_session, admin_ctx, manager_user):
        store = store_service.create_store(admin_ctx, {
            "name": "  Saint-Louis  ",
            "email": "stlouis@retailhub.test",
            "manager_id": manager_user.id,
        })
        assert store.name == "Saint-Louis"
        assert store.manager_id == manager_user.id
        assert db_session.query(AuditLog).filter_by(action="STORE_CREATED").count() == 1

    def test_create_validation(self, db_session, admin_ctx, seller_user):
        with pytest.raises(ValidationError):
            store_service.create_store(admin_ctx, {"name": ""})
        with pytest.raises(ValidationError):
            store_service.create_store(admin_ctx, {"name": "Kaolack", "email": "pas-un-email"})
        with pytest.raises(ValidationError):
            store_service.create_store(admin_ctx, {"name": "Kaolack", "manager_id": seller_user.id})

    def test_manager_cannot_create(self, db_session, manager_ctx):
        with pytest.raises(PermissionDeniedError):
            store_service.create_store(manager_ctx, {"name": "Ziguinchor"})
        assert db_session.query(Store).count() == 1

    def test_manager_edits_own_store_only(self, db_session, manager_ctx, store_a, store_b):
        updated = store_service.update_store(manager_ctx, store_a.id, {"phone": "+221 33 800 00 00"})
        assert updated.phone == "+221 33 800 00 00"
        with pytest.raises(PermissionDeniedError):
            store_service.update_store(manager_ctx, store_b.id, {"phone": "0"})

    def test_manager_cannot_reassign_manager(self, db_session, manager_ctx, manager_user, store_a):
        with pytest.raises(PermissionDeniedError):
            store_service.update_store(manager_ctx, store_a.id, {"manager_id": manager_user.id})

    def test_update_needs_changes(self, db_session, admin_ctx, store_a):
        with pytest.raises(ValidationError):
            store_service.update_store(admin_ctx, store_a.id, {})

    def test_delete_removes_assignments(self, db_session, admin_ctx, store_b, seller_b):
        store_service.delete_store(admin_ctx, store_b.id)
        assert db_session.get(Store, store_b.id) is None
        assert db_session.query(UserStore).filter_by(user_id=seller_b.id).count() == 0

    def test_store_with_sales_cannot_be_deleted(self, db_session, admin_ctx, store_a, seller_user):
        make_sale(db_session, store=store_a, seller=seller_user, total=1000)
        with pytest.raises(ConflictError):
            store_service.delete_store(admin_ctx, store_a.id)

    def test_seller_cannot_toggle(self, db_session, seller_ctx, store_a):
        with pytest.raises(PermissionDeniedError):
            store_service.toggle_store_status(seller_ctx, store_a.id)

    def test_update_rejects_non_boolean_is_active(self, db_session, admin_ctx, store_a):
        for value in ("false", 0, None):
            with pytest.raises(ValidationError):
                store_service.update_store(admin_ctx, store_a.id, {"is_active": value})
        with pytest.raises(ValidationError):
            store_service.create_store(admin_ctx, {"name": "Kaolack", "is_active": "true"})
        assert db_session.get(Store, store_a.id).is_active is True

        updated = store_service.update_store(admin_ctx, store_a.id, {"is_active": False})
        assert updated.is_active is False


class TestSearch:

    def test_search_folds_accented_capitals(self, db_session, admin_ctx):
        store_service.create_store(admin_ctx, {"name": "Épicerie Centrale"})
        store_service.create_store(admin_ctx, {"name": "Marché Sandaga"})
        assert [s.name for s in store_service.list_stores(admin_ctx, search="épicerie").items] == ["Épicerie Centrale"]
        assert store_service.list_stores(admin_ctx, search="MARCHÉ").total == 1


class TestCacheInvalidation:

    def test_rename_reaches_cached_reports(self, db_session, admin_ctx, store_a, seller_user):
        make_sale(db_session, store=store_a, seller=seller_user, total=5000)
        before = report_service.report_overview(admin_ctx)
        assert [s["store_name"] for s in before["store_performance"]] == ["Dakar Plateau"]

        store_service.update_store(admin_ctx, store_a.id, {"name": "Dakar Renamed"})

        after = report_service.report_overview(admin_ctx)
        assert [s["store_name"] for s in after["store_performance"]] == ["Dakar Renamed"]
