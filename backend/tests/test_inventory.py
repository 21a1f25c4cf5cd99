"""
Inventory session tests.

Verifies:
- Sessions are seeded from store stock in the same transaction
- difference == counted - expected once counted
- Only one active session per store, including under a racing insert
- completed and cancelled are terminal
- Stock adjustment writes stock, a movement and an audit row together
- CSV export has one header line plus one line per item
"""

import csv
import io
import json

import pytest
from sqlalchemy.exc import IntegrityError

from retailhub.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from retailhub.models import AuditLog, InventorySession, Stock, StockMovement
from retailhub.services import inventory_service


@pytest.fixture
def session(db_session, manager_ctx, store_a, products):
    return inventory_service.create_session(manager_ctx, "Inventaire mensuel", store_a.id)


class TestCreateSession:

    def test_items_seeded_from_stock(self, db_session, session, products):
        assert session.status == "active"
        assert [item.product_id for item in session.items] == [p.id for p in products]
        assert [item.expected_quantity for item in session.items] == [10, 0, 5]
        assert all(item.counted_quantity is None for item in session.items)

    def test_creation_is_audited(self, db_session, session):
        entry = db_session.query(AuditLog).filter_by(action="INVENTORY_SESSION_CREATED").one()
        assert entry.record_id == str(session.id)
        assert entry.new_values["item_count"] == 3

    def test_second_active_session_is_rejected(self, db_session, session, manager_ctx, store_a):
        with pytest.raises(ConflictError):
            inventory_service.create_session(manager_ctx, "Doublon", store_a.id)

    def test_racing_insert_is_rejected_by_the_database(self, db_session, session, manager_ctx, store_a, monkeypatch):
        # Both callers pass the pre-check; the partial unique index decides
        monkeypatch.setattr(inventory_service, "_find_active_session", lambda store_id: None)
        with pytest.raises(ConflictError):
            inventory_service.create_session(manager_ctx, "Concurrent", store_a.id)
        assert db_session.query(InventorySession).filter_by(store_id=store_a.id).count() == 1

    def test_direct_insert_violates_active_index(self, db_session, session, manager_user, store_a):
        db_session.add(InventorySession(
            name="Hors service",
            store_id=store_a.id,
            created_by=manager_user.id,
            status="active",
        ))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_new_session_allowed_after_completion(self, db_session, session, manager_ctx, store_a):
        inventory_service.complete_session(manager_ctx, session.id)
        again = inventory_service.create_session(manager_ctx, "Recomptage", store_a.id)
        assert again.status == "active"

    def test_other_store_sessions_are_independent(self, db_session, session, admin_ctx, store_b):
        other = inventory_service.create_session(admin_ctx, "Thiès", store_b.id)
        assert other.items == []

    def test_seller_is_denied_and_denial_audited(self, db_session, seller_ctx, store_a):
        with pytest.raises(PermissionDeniedError):
            inventory_service.create_session(seller_ctx, "Interdit", store_a.id)
        denial = db_session.query(AuditLog).filter_by(action="PERMISSION_DENIED").one()
        assert denial.user_id == seller_ctx.user_id
        assert denial.new_values["permission"] == "CREATE_INVENTORY"
        assert db_session.query(InventorySession).count() == 0

    def test_manager_outside_scope_is_denied(self, db_session, manager_ctx, store_b):
        with pytest.raises(PermissionDeniedError) as exc:
            inventory_service.create_session(manager_ctx, "Ailleurs", store_b.id)
        assert exc.value.message == "Vous n'avez pas accès à ce magasin"

    def test_validation(self, db_session, manager_ctx, store_a, admin_ctx):
        with pytest.raises(ValidationError):
            inventory_service.create_session(manager_ctx, "   ", store_a.id)
        with pytest.raises(NotFoundError):
            inventory_service.create_session(admin_ctx, "Fantôme", 4242)


class TestCounting:

    def test_difference_tracks_count(self, db_session, session, manager_ctx):
        item = session.items[0]
        inventory_service.update_count(manager_ctx, item.id, 7, notes="Deux sacs abîmés")
        assert item.counted_quantity == 7
        assert item.difference == -3

        inventory_service.update_count(manager_ctx, item.id, 12)
        assert item.difference == 2
        assert item.notes == "Deux sacs abîmés"

    @pytest.mark.parametrize("value", [-1, 2.5, "4", None, True])
    def test_invalid_counts(self, db_session, session, manager_ctx, value):
        with pytest.raises(ValidationError):
            inventory_service.update_count(manager_ctx, session.items[0].id, value)

    def test_seller_cannot_count(self, db_session, session, seller_ctx):
        with pytest.raises(PermissionDeniedError):
            inventory_service.update_count(seller_ctx, session.items[0].id, 3)


class TestTerminalStates:

    def test_completed_session_is_frozen(self, db_session, session, manager_ctx):
        inventory_service.complete_session(manager_ctx, session.id)
        assert session.completed_at is not None
        with pytest.raises(ConflictError):
            inventory_service.update_count(manager_ctx, session.items[0].id, 1)
        with pytest.raises(ConflictError):
            inventory_service.complete_session(manager_ctx, session.id)
        with pytest.raises(ConflictError):
            inventory_service.cancel_session(manager_ctx, session.id)

    def test_cancel_is_persisted(self, db_session, session, manager_ctx):
        inventory_service.cancel_session(manager_ctx, session.id, reason="  Coupure de courant ")
        db_session.expire_all()
        stored = db_session.get(InventorySession, session.id)
        assert stored.status == "cancelled"
        assert stored.cancellation_reason == "Coupure de courant"
        assert stored.cancelled_at is not None
        with pytest.raises(ConflictError):
            inventory_service.complete_session(manager_ctx, session.id)


class TestAdjustStock:

    def test_adjust_writes_stock_and_movement(self, db_session, session, manager_ctx, store_a, products):
        item = session.items[0]
        inventory_service.update_count(manager_ctx, item.id, 8)
        inventory_service.adjust_stock(manager_ctx, item.id)

        stock = db_session.query(Stock).filter_by(store_id=store_a.id, product_id=products[0].id).one()
        assert stock.quantity == 8
        movement = db_session.query(StockMovement).one()
        assert movement.quantity_change == -2
        assert movement.movement_type == "inventory_adjustment"
        assert movement.reference_id == session.id
        assert item.is_adjusted is True

        with pytest.raises(ConflictError):
            inventory_service.adjust_stock(manager_ctx, item.id)
        with pytest.raises(ConflictError):
            inventory_service.update_count(manager_ctx, item.id, 9)

    def test_uncounted_item_cannot_be_adjusted(self, db_session, session, manager_ctx):
        with pytest.raises(ValidationError):
            inventory_service.adjust_stock(manager_ctx, session.items[1].id)

    def test_completed_session_can_still_be_adjusted(self, db_session, session, manager_ctx):
        item = session.items[2]
        inventory_service.update_count(manager_ctx, item.id, 5)
        inventory_service.complete_session(manager_ctx, session.id)
        inventory_service.adjust_stock(manager_ctx, item.id)
        assert item.is_adjusted is True

    def test_cancelled_session_cannot_be_adjusted(self, db_session, session, manager_ctx):
        item = session.items[0]
        inventory_service.update_count(manager_ctx, item.id, 4)
        inventory_service.cancel_session(manager_ctx, session.id)
        with pytest.raises(ConflictError):
            inventory_service.adjust_stock(manager_ctx, item.id)


class TestReads:

    def test_metrics(self, db_session, session, manager_ctx):
        inventory_service.update_count(manager_ctx, session.items[0].id, 9)
        inventory_service.update_count(manager_ctx, session.items[1].id, 2)
        summary = inventory_service.session_metrics(manager_ctx)
        assert summary["total_sessions"] == 1
        assert summary["active_sessions"] == 1
        assert summary["counted_items"] == 2
        # expected_quantity == 0 is excluded from accuracy
        assert summary["average_accuracy"] == 90.0

    def test_list_and_scope(self, db_session, session, manager_ctx, seller_b):
        from retailhub.services.context_service import load_context

        assert inventory_service.list_sessions(manager_ctx).total == 1
        outsider = load_context(seller_b.id)
        assert inventory_service.list_sessions(outsider).total == 0
        with pytest.raises(NotFoundError):
            inventory_service.get_session(outsider, session.id)

    def test_active_session_lookup(self, db_session, session, manager_ctx, store_a):
        assert inventory_service.get_active_session(manager_ctx, store_a.id).id == session.id


class TestExport:

    def test_csv_has_header_plus_one_line_per_item(self, db_session, session, manager_ctx):
        inventory_service.update_count(manager_ctx, session.items[0].id, 9)
        output = inventory_service.export_session_csv(manager_ctx, session.id)

        lines = output.splitlines()
        assert len(lines) == len(session.items) + 1
        assert lines[0] == "Produit,SKU,Quantité attendue,Quantité comptée,Différence,Ajusté"

        rows = list(csv.reader(io.StringIO(output)))
        assert rows[1] == ["Riz parfumé 25kg", "RIZ-25KG", "10", "9", "-1", "Non"]
        # Embedded comma survives as a single quoted field
        assert rows[2][0] == "Huile, arachide 5L"
        assert rows[2][3] == ""

    def test_json_export(self, db_session, session, seller_ctx):
        payload = json.loads(inventory_service.export_session_json(seller_ctx, session.id))
        assert len(payload) == 3
        assert payload[0]["sku"] == "RIZ-25KG"
