# Overview: Supplier directory reads, metrics, mutations and export.

"""
Suppliers

The directory is shared by every store, so there is no store scope here:
everyone with VIEW_SUPPLIERS reads it, sellers only the active entries.
Admins and managers create and edit; only admins delete, and only suppliers
with no linked products.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from datetime import timedelta

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..errors import ValidationError, NotFoundError, ConflictError
from ..models import Supplier, Product
from ..validation import require_bool
from ..time_utils import utcnow
from . import audit_service, cache_service, metrics
from .concurrency import lock_for_update
from .permission_service import require_permission
from .presentation import Domain
from .query_scope import apply_search, paginate


logger = logging.getLogger(__name__)

CSV_HEADER = ("Nom", "Contact", "Email", "Téléphone", "Adresse", "Statut")

_TEXT_FIELDS = {
    "name": 255,
    "contact_person": 255,
    "email": 255,
    "phone": 32,
    "address": 1000,
}


def _clean(data: dict, field: str, *, required: bool = False):
    value = data.get(field)
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    value = (value or "").strip() or None
    if value is None and required:
        raise ValidationError(f"{field} is required")
    if value is not None and len(value) > _TEXT_FIELDS[field]:
        raise ValidationError(f"{field} must be at most {_TEXT_FIELDS[field]} characters")
    if field == "email" and value is not None and ("@" not in value or value.startswith("@") or value.endswith("@")):
        raise ValidationError("email is invalid")
    return value


def _product_counts(supplier_ids) -> dict[int, int]:
    if not supplier_ids:
        return {}
    rows = (
        db.session.query(Product.supplier_id, func.count(Product.id))
        .filter(Product.supplier_id.in_(supplier_ids))
        .group_by(Product.supplier_id)
        .all()
    )
    return dict(rows)


def _visible(ctx):
    query = db.session.query(Supplier)
    if not ctx.has_permission("VIEW_SUPPLIER_METRICS"):
        # Read-only roles only see suppliers currently in use
        query = query.filter(Supplier.is_active.is_(True))
    return query


def list_suppliers(ctx, *, status: str | None = None, search: str | None = None, page=1, page_size=None):
    """
    Suppliers ordered by name.

    status: "active" | "inactive" | "all" | None
    search: substring over name, email and contact person

    Callers holding VIEW_SUPPLIER_METRICS get a products_count per row.
    """
    require_permission(ctx, "VIEW_SUPPLIERS", domain=Domain.SUPPLIERS)

    query = _visible(ctx)
    if status == "active":
        query = query.filter(Supplier.is_active.is_(True))
    elif status == "inactive":
        query = query.filter(Supplier.is_active.is_(False))
    elif status not in (None, "all"):
        raise ValidationError(f"Invalid status filter: {status}")

    query = apply_search(query, [Supplier.name, Supplier.email, Supplier.contact_person], search)
    query = query.order_by(Supplier.name.asc(), Supplier.id.asc())
    return paginate(query, page, page_size)


def serialize_page(ctx, page) -> dict:
    """Page payload, with product counts for metric viewers."""
    if not ctx.has_permission("VIEW_SUPPLIER_METRICS"):
        return page.to_dict()
    counts = _product_counts([s.id for s in page.items])
    return page.to_dict(lambda s: {**s.to_dict(), "products_count": counts.get(s.id, 0)})


def get_supplier(ctx, supplier_id: int) -> Supplier:
    require_permission(ctx, "VIEW_SUPPLIERS", domain=Domain.SUPPLIERS)
    supplier = _visible(ctx).filter(Supplier.id == supplier_id).first()
    if not supplier:
        raise NotFoundError("Fournisseur introuvable")
    return supplier


def supplier_metrics(ctx) -> dict:
    """
    Totals over the whole directory.

    Returns:
        {"total", "active", "with_products", "average_products",
         "recent_activity"}; recent_activity counts suppliers updated in
        the last 7 days.
    """
    require_permission(ctx, "VIEW_SUPPLIER_METRICS", domain=Domain.SUPPLIERS)

    def _produce():
        suppliers = db.session.query(Supplier).all()
        counts = _product_counts([s.id for s in suppliers])
        week_ago = utcnow() - timedelta(days=7)
        total = len(suppliers)
        total_products = sum(counts.get(s.id, 0) for s in suppliers)
        return {
            "total": total,
            "active": sum(1 for s in suppliers if s.is_active),
            "with_products": sum(1 for s in suppliers if counts.get(s.id, 0) > 0),
            "average_products": round(metrics.average_order_value(total_products, total), 1),
            "recent_activity": sum(1 for s in suppliers if s.updated_at and s.updated_at > week_ago),
        }

    return cache_service.cached_query(
        cache_service.SCOPE_SUPPLIERS,
        ["metrics"],
        _produce,
        timeout=current_app.config.get("SUPPLIERS_CACHE_TIMEOUT"),
    )


def create_supplier(ctx, data: dict) -> Supplier:
    require_permission(ctx, "MANAGE_SUPPLIERS", domain=Domain.SUPPLIERS)

    supplier = Supplier(
        name=_clean(data, "name", required=True),
        contact_person=_clean(data, "contact_person"),
        email=_clean(data, "email"),
        phone=_clean(data, "phone"),
        address=_clean(data, "address"),
        is_active=True,
    )
    db.session.add(supplier)
    db.session.flush()

    audit_service.record(
        user_id=ctx.user_id,
        action="SUPPLIER_CREATED",
        table_name="suppliers",
        record_id=supplier.id,
        new_values={"name": supplier.name},
    )
    db.session.commit()
    cache_service.invalidate(cache_service.SCOPE_SUPPLIERS)
    logger.info("Supplier %s created by user %s", supplier.id, ctx.user_id)
    return supplier


def update_supplier(ctx, supplier_id: int, data: dict) -> Supplier:
    """
    Partial update. The audit row keeps both the previous and the new
    value of every changed field.
    """
    require_permission(ctx, "MANAGE_SUPPLIERS", domain=Domain.SUPPLIERS)
    supplier = lock_for_update(db.session.query(Supplier).filter_by(id=supplier_id)).first()
    if not supplier:
        raise NotFoundError("Fournisseur introuvable")

    changes = {}
    for field in _TEXT_FIELDS:
        if field not in data:
            continue
        value = _clean(data, field, required=(field == "name"))
        if getattr(supplier, field) != value:
            changes[field] = {"old": getattr(supplier, field), "new": value}
            setattr(supplier, field, value)

    if "is_active" in data:
        is_active = require_bool(data, "is_active")
        if supplier.is_active != is_active:
            changes["is_active"] = {"old": supplier.is_active, "new": is_active}
            supplier.is_active = is_active

    if not changes:
        raise ValidationError("No changes provided")

    supplier.updated_at = utcnow()
    audit_service.record(
        user_id=ctx.user_id,
        action="SUPPLIER_UPDATED",
        table_name="suppliers",
        record_id=supplier.id,
        new_values=changes,
    )
    db.session.commit()
    cache_service.invalidate(cache_service.SCOPE_SUPPLIERS)
    logger.info("Supplier %s updated by user %s: %s", supplier.id, ctx.user_id, sorted(changes))
    return supplier


def delete_supplier(ctx, supplier_id: int) -> None:
    """Admin only; refused while products still reference the supplier."""
    require_permission(ctx, "DELETE_SUPPLIER", domain=Domain.SUPPLIERS)

    supplier = db.session.get(Supplier, supplier_id)
    if not supplier:
        raise NotFoundError("Fournisseur introuvable")
    if db.session.query(Product.id).filter(Product.supplier_id == supplier.id).first():
        raise ConflictError("Impossible de supprimer un fournisseur avec des produits associés.")

    name = supplier.name
    db.session.delete(supplier)
    audit_service.record(
        user_id=ctx.user_id,
        action="SUPPLIER_DELETED",
        table_name="suppliers",
        record_id=supplier_id,
        new_values={"name": name},
    )
    db.session.commit()
    cache_service.invalidate(cache_service.SCOPE_SUPPLIERS)
    logger.info("Supplier %s deleted by user %s", supplier_id, ctx.user_id)


# =============================================================================
# EXPORT
# =============================================================================

def _active_suppliers():
    return db.session.query(Supplier).filter(Supplier.is_active.is_(True)).order_by(Supplier.name.asc()).all()


def export_suppliers_csv(ctx) -> str:
    require_permission(ctx, "EXPORT_SUPPLIERS", domain=Domain.SUPPLIERS)

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for s in _active_suppliers():
        writer.writerow([
            s.name,
            s.contact_person or "",
            s.email or "",
            s.phone or "",
            s.address or "",
            "Actif" if s.is_active else "Inactif",
        ])
    return buffer.getvalue()


def export_suppliers_json(ctx) -> str:
    require_permission(ctx, "EXPORT_SUPPLIERS", domain=Domain.SUPPLIERS)
    return json.dumps([s.to_dict() for s in _active_suppliers()], indent=2, ensure_ascii=False)
