# Overview: Inventory count sessions: lifecycle, counting, stock adjustment, export.

"""
Inventory Session Service

LIFECYCLE:
1. create_session: session + one item per stocked product, expected
   quantities captured from Stock, all in one transaction
2. update_count: record counted quantities while the session is active
3. adjust_stock: write a counted quantity back into Stock (with a movement)
4. complete_session / cancel_session: terminal

ONE ACTIVE SESSION PER STORE:
The service pre-checks for an active session to give a clear message, but
the guarantee comes from the partial unique index on
inventory_sessions(store_id) WHERE status = 'active'. A concurrent insert
that slips past the pre-check fails on the index and is reported as the
same ConflictError.
"""

from __future__ import annotations

import csv
import io
import json
import logging

from flask import current_app
from sqlalchemy.orm import selectinload

from ..extensions import db
from ..errors import ValidationError, NotFoundError, ConflictError
from ..models import InventorySession, InventoryItem, Store, Stock, StockMovement
from ..models.inventory import (
    SESSION_STATUS_ACTIVE,
    SESSION_STATUS_COMPLETED,
    SESSION_STATUS_CANCELLED,
)
from ..time_utils import utcnow
from . import audit_service, cache_service, metrics
from .concurrency import conflict_on_integrity_error, lock_for_update
from .permission_service import require_permission, require_store_access
from .presentation import Domain
from .query_scope import scope_to_stores, apply_search, apply_status, paginate


logger = logging.getLogger(__name__)

ACTIVE_SESSION_CONFLICT = "Une session d'inventaire est déjà active pour ce magasin"

CSV_HEADER = ["Produit", "SKU", "Quantité attendue", "Quantité comptée", "Différence", "Ajusté"]

_VALID_STATUSES = {SESSION_STATUS_ACTIVE, SESSION_STATUS_COMPLETED, SESSION_STATUS_CANCELLED}


def _find_active_session(store_id: int) -> InventorySession | None:
    return db.session.query(InventorySession).filter_by(
        store_id=store_id,
        status=SESSION_STATUS_ACTIVE,
    ).first()


def _get_scoped_session(ctx, session_id: int, *, lock: bool = False) -> InventorySession:
    query = db.session.query(InventorySession).filter_by(id=session_id)
    if lock:
        query = lock_for_update(query)
    session = query.first()
    if not session or not ctx.can_access_store(session.store_id):
        raise NotFoundError("Session d'inventaire introuvable")
    return session


def _get_scoped_item(ctx, item_id: int) -> InventoryItem:
    item = lock_for_update(db.session.query(InventoryItem).filter_by(id=item_id)).first()
    if not item or not ctx.can_access_store(item.session.store_id):
        raise NotFoundError("Article d'inventaire introuvable")
    return item


def _require_active(session: InventorySession) -> None:
    if session.status != SESSION_STATUS_ACTIVE:
        raise ConflictError(f"La session d'inventaire est {session.status}; aucune modification possible")


# =============================================================================
# MUTATIONS
# =============================================================================

def create_session(ctx, name: str, store_id: int) -> InventorySession:
    """
    Start a count for a store.

    Raises:
        PermissionDeniedError: caller cannot create sessions for this store
        NotFoundError: store does not exist
        ValidationError: empty name or inactive store
        ConflictError: the store already has an active session
    """
    require_permission(ctx, "CREATE_INVENTORY", domain=Domain.INVENTORY)

    store = db.session.get(Store, store_id)
    if not store:
        raise NotFoundError("Magasin introuvable")
    require_store_access(ctx, store.id, "CREATE_INVENTORY", domain=Domain.INVENTORY)

    name = (name or "").strip()
    if not name:
        raise ValidationError("Le nom de la session est requis")
    if not store.is_active:
        raise ValidationError("Impossible d'inventorier un magasin inactif")

    if _find_active_session(store.id):
        logger.warning("Active session already open for store %s", store.id)
        raise ConflictError(ACTIVE_SESSION_CONFLICT)

    with conflict_on_integrity_error(ACTIVE_SESSION_CONFLICT):
        session = InventorySession(
            name=name,
            store_id=store.id,
            created_by=ctx.user_id,
            status=SESSION_STATUS_ACTIVE,
            created_at=utcnow(),
        )
        db.session.add(session)
        db.session.flush()

        stock_rows = db.session.query(Stock).filter_by(store_id=store.id).order_by(Stock.product_id).all()
        for stock in stock_rows:
            db.session.add(InventoryItem(
                session_id=session.id,
                product_id=stock.product_id,
                expected_quantity=stock.quantity or 0,
            ))

        audit_service.record(
            user_id=ctx.user_id,
            action="INVENTORY_SESSION_CREATED",
            table_name="inventory_sessions",
            record_id=session.id,
            new_values={"store_id": store.id, "name": name, "item_count": len(stock_rows)},
        )
        db.session.commit()

    cache_service.invalidate(cache_service.SCOPE_INVENTORY)
    logger.info("Inventory session %s started for store %s by user %s", session.id, store.id, ctx.user_id)
    return session


def update_count(ctx, item_id: int, counted_quantity, notes: str | None = None) -> InventoryItem:
    """Record a counted quantity; difference = counted - expected."""
    require_permission(ctx, "COUNT_INVENTORY", domain=Domain.INVENTORY)

    if isinstance(counted_quantity, bool) or not isinstance(counted_quantity, int):
        raise ValidationError("La quantité comptée doit être un entier")
    if counted_quantity < 0:
        raise ValidationError("La quantité comptée ne peut pas être négative")

    item = _get_scoped_item(ctx, item_id)
    _require_active(item.session)
    if item.is_adjusted:
        raise ConflictError("Cet article a déjà été ajusté")

    item.counted_quantity = counted_quantity
    item.difference = counted_quantity - item.expected_quantity
    if notes is not None:
        item.notes = notes.strip() or None

    audit_service.record(
        user_id=ctx.user_id,
        action="INVENTORY_COUNT_UPDATED",
        table_name="inventory_items",
        record_id=item.id,
        new_values={"counted_quantity": counted_quantity, "difference": item.difference},
    )
    db.session.commit()
    cache_service.invalidate(cache_service.SCOPE_INVENTORY)
    logger.info("Inventory item %s counted=%s by user %s", item.id, counted_quantity, ctx.user_id)
    return item


def adjust_stock(ctx, item_id: int) -> InventoryItem:
    """
    Write the counted quantity back into Stock.

    Sets Stock.quantity to the count, appends an inventory_adjustment
    movement of (counted - expected) and flags the item, in one commit.
    Cancelled sessions cannot be adjusted.
    """
    require_permission(ctx, "ADJUST_STOCK", domain=Domain.INVENTORY)

    item = _get_scoped_item(ctx, item_id)
    session = item.session
    if session.status == SESSION_STATUS_CANCELLED:
        raise ConflictError("Impossible d'ajuster une session annulée")
    if item.counted_quantity is None:
        raise ValidationError("L'article doit être compté avant l'ajustement")
    if item.is_adjusted:
        raise ConflictError("Cet article a déjà été ajusté")

    stock = lock_for_update(db.session.query(Stock).filter_by(
        store_id=session.store_id,
        product_id=item.product_id,
    )).first()
    if stock is None:
        stock = Stock(store_id=session.store_id, product_id=item.product_id, quantity=0)
        db.session.add(stock)

    change = item.counted_quantity - item.expected_quantity
    stock.quantity = item.counted_quantity

    db.session.add(StockMovement(
        store_id=session.store_id,
        product_id=item.product_id,
        movement_type="inventory_adjustment",
        quantity_change=change,
        reference_type="inventory_session",
        reference_id=session.id,
        user_id=ctx.user_id,
        notes=f"Ajustement d'inventaire: {item.expected_quantity} → {item.counted_quantity}",
    ))
    item.is_adjusted = True

    audit_service.record(
        user_id=ctx.user_id,
        action="INVENTORY_STOCK_ADJUSTED",
        table_name="inventory_items",
        record_id=item.id,
        new_values={
            "product_id": item.product_id,
            "store_id": session.store_id,
            "quantity": item.counted_quantity,
            "quantity_change": change,
        },
    )
    db.session.commit()
    cache_service.invalidate(cache_service.SCOPE_INVENTORY)
    logger.info("Stock adjusted from inventory item %s (%+d) by user %s", item.id, change, ctx.user_id)
    return item


def complete_session(ctx, session_id: int) -> InventorySession:
    """active -> completed."""
    require_permission(ctx, "COMPLETE_INVENTORY", domain=Domain.INVENTORY)
    session = _get_scoped_session(ctx, session_id, lock=True)
    _require_active(session)

    session.status = SESSION_STATUS_COMPLETED
    session.completed_at = utcnow()

    audit_service.record(
        user_id=ctx.user_id,
        action="INVENTORY_SESSION_COMPLETED",
        table_name="inventory_sessions",
        record_id=session.id,
        new_values={"status": session.status},
    )
    db.session.commit()
    cache_service.invalidate(cache_service.SCOPE_INVENTORY)
    logger.info("Inventory session %s completed by user %s", session.id, ctx.user_id)
    return session


def cancel_session(ctx, session_id: int, reason: str | None = None) -> InventorySession:
    """active -> cancelled. The cancellation is persisted, reason included."""
    require_permission(ctx, "COMPLETE_INVENTORY", domain=Domain.INVENTORY)
    session = _get_scoped_session(ctx, session_id, lock=True)
    _require_active(session)

    session.status = SESSION_STATUS_CANCELLED
    session.cancelled_at = utcnow()
    session.cancellation_reason = (reason or "").strip() or None

    audit_service.record(
        user_id=ctx.user_id,
        action="INVENTORY_SESSION_CANCELLED",
        table_name="inventory_sessions",
        record_id=session.id,
        new_values={"status": session.status, "reason": session.cancellation_reason},
    )
    db.session.commit()
    cache_service.invalidate(cache_service.SCOPE_INVENTORY)
    logger.info("Inventory session %s cancelled by user %s", session.id, ctx.user_id)
    return session


# =============================================================================
# READS
# =============================================================================

def _scoped_sessions(ctx):
    return scope_to_stores(db.session.query(InventorySession), ctx, InventorySession.store_id)


def list_sessions(ctx, *, status: str | None = None, store_id: int | None = None,
                  search: str | None = None, page=1, page_size=None):
    """Sessions in the caller's stores, most recent first."""
    require_permission(ctx, "VIEW_INVENTORY", domain=Domain.INVENTORY)
    if status not in (None, "all") and status not in _VALID_STATUSES:
        raise ValidationError(f"Invalid status filter: {status}")

    query = _scoped_sessions(ctx)
    if store_id is not None:
        query = query.filter(InventorySession.store_id == store_id)
    query = apply_status(query, InventorySession.status, status)
    query = apply_search(query, [InventorySession.name], search)
    query = query.order_by(InventorySession.created_at.desc(), InventorySession.id.desc())
    return paginate(query, page, page_size)


def get_session(ctx, session_id: int) -> InventorySession:
    require_permission(ctx, "VIEW_INVENTORY", domain=Domain.INVENTORY)
    return _get_scoped_session(ctx, session_id)


def get_active_session(ctx, store_id: int) -> InventorySession | None:
    require_permission(ctx, "VIEW_INVENTORY", domain=Domain.INVENTORY)
    if not ctx.can_access_store(store_id):
        raise NotFoundError("Magasin introuvable")
    return _find_active_session(store_id)


def session_metrics(ctx, store_id: int | None = None) -> dict:
    """Accuracy/progress summary over the caller's sessions (cached)."""
    require_permission(ctx, "VIEW_INVENTORY_METRICS", domain=Domain.INVENTORY)

    def _produce():
        query = _scoped_sessions(ctx).options(selectinload(InventorySession.items))
        if store_id is not None:
            query = query.filter(InventorySession.store_id == store_id)
        return metrics.inventory_metrics(query.all())

    return cache_service.cached_query(
        cache_service.SCOPE_INVENTORY,
        ["metrics", ctx.role.value, ctx.user_id, list(ctx.store_ids), store_id],
        _produce,
        timeout=current_app.config.get("SESSIONS_CACHE_TIMEOUT"),
    )


# =============================================================================
# EXPORT
# =============================================================================

def _export_rows(session: InventorySession) -> list[list]:
    rows = []
    for item in session.items:
        rows.append([
            item.product.name if item.product else "",
            item.product.sku if item.product else "",
            item.expected_quantity,
            "" if item.counted_quantity is None else item.counted_quantity,
            "" if item.difference is None else item.difference,
            "Oui" if item.is_adjusted else "Non",
        ])
    return rows


def export_session_csv(ctx, session_id: int) -> str:
    """
    One header line plus one line per item, in CSV_HEADER order.

    Fields containing commas, quotes or newlines are quoted.
    """
    require_permission(ctx, "EXPORT_INVENTORY", domain=Domain.INVENTORY)
    session = _get_scoped_session(ctx, session_id)

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    writer.writerows(_export_rows(session))
    return buffer.getvalue()


def export_session_json(ctx, session_id: int) -> str:
    require_permission(ctx, "EXPORT_INVENTORY", domain=Domain.INVENTORY)
    session = _get_scoped_session(ctx, session_id)
    payload = [item.to_dict() for item in session.items]
    return json.dumps(payload, indent=2, ensure_ascii=False)
