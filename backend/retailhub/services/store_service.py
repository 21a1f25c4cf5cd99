# Overview: Store reads and mutations scoped by role.

from __future__ import annotations

import logging

from ..extensions import db
from ..errors import ValidationError, NotFoundError, ConflictError
from ..models import Store, User, UserStore, Sale, InventorySession, Expense
from ..validation import require_bool
from . import audit_service, cache_service, metrics
from .concurrency import lock_for_update
from .permission_service import deny, require_permission, require_store_access
from .presentation import Domain
from .query_scope import scope_to_stores, apply_search, paginate


logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = ("name", "address", "phone", "email", "is_active")

# Reads that embed store names or per-store figures
_STORE_DEPENDENT_SCOPES = (
    cache_service.SCOPE_STORES,
    cache_service.SCOPE_INVENTORY,
    cache_service.SCOPE_REPORTS,
    cache_service.SCOPE_FINANCE,
)


def _clean_text(value, *, field: str, required: bool = False, max_length: int = 255) -> str | None:
    if value is None:
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    value = value.strip()
    if not value:
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if len(value) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return value


def _clean_email(value) -> str | None:
    email = _clean_text(value, field="email")
    if email is not None and ("@" not in email or email.startswith("@") or email.endswith("@")):
        raise ValidationError("email is invalid")
    return email


def _validate_manager(manager_id) -> int | None:
    if manager_id is None:
        return None
    manager = db.session.get(User, manager_id)
    if not manager:
        raise ValidationError("Manager not found")
    if manager.role not in ("manager", "admin"):
        raise ValidationError("Assigned manager must have the manager or admin role")
    return manager.id


def _scoped_query(ctx):
    query = scope_to_stores(db.session.query(Store), ctx, Store.id)
    if ctx.is_seller:
        # Sellers only see the stores they can currently sell in
        query = query.filter(Store.is_active.is_(True))
    return query


def list_stores(ctx, *, status: str | None = None, search: str | None = None, page=1, page_size=None):
    """
    Stores visible to the caller, ordered by name.

    status: "active" | "inactive" | "all" | None
    search: substring over name, address and email
    """
    require_permission(ctx, "VIEW_STORES", domain=Domain.STORES)

    query = _scoped_query(ctx)
    if status == "active":
        query = query.filter(Store.is_active.is_(True))
    elif status == "inactive":
        query = query.filter(Store.is_active.is_(False))
    elif status not in (None, "all"):
        raise ValidationError(f"Invalid status filter: {status}")

    query = apply_search(query, [Store.name, Store.address, Store.email], search)
    query = query.order_by(Store.name.asc(), Store.id.asc())
    return paginate(query, page, page_size)


def get_store(ctx, store_id: int) -> Store:
    """Out-of-scope stores are reported as missing."""
    require_permission(ctx, "VIEW_STORES", domain=Domain.STORES)
    store = _scoped_query(ctx).filter(Store.id == store_id).first()
    if not store:
        raise NotFoundError("Magasin introuvable")
    return store


def create_store(ctx, data: dict) -> Store:
    """Admin only. Name is required and trimmed."""
    require_permission(ctx, "CREATE_STORE", domain=Domain.STORES)

    store = Store(
        name=_clean_text(data.get("name"), field="name", required=True, max_length=120),
        address=_clean_text(data.get("address"), field="address"),
        phone=_clean_text(data.get("phone"), field="phone", max_length=32),
        email=_clean_email(data.get("email")),
        is_active=require_bool(data, "is_active") if "is_active" in data else True,
        manager_id=_validate_manager(data.get("manager_id")),
    )
    db.session.add(store)
    db.session.flush()

    audit_service.record(
        user_id=ctx.user_id,
        action="STORE_CREATED",
        table_name="stores",
        record_id=store.id,
        new_values={"name": store.name, "is_active": store.is_active},
    )
    db.session.commit()
    cache_service.invalidate(*_STORE_DEPENDENT_SCOPES)
    logger.info("Store %s created by user %s", store.id, ctx.user_id)
    return store


def _load_for_edit(ctx, store_id: int) -> Store:
    store = lock_for_update(db.session.query(Store).filter_by(id=store_id)).first()
    if not store:
        raise NotFoundError("Magasin introuvable")
    require_store_access(ctx, store.id, "EDIT_STORE", domain=Domain.STORES)
    return store


def update_store(ctx, store_id: int, data: dict) -> Store:
    """
    Admin, or a manager on one of their assigned stores.

    Only admins may reassign the store manager.
    """
    require_permission(ctx, "EDIT_STORE", domain=Domain.STORES)
    store = _load_for_edit(ctx, store_id)

    changes = {}
    for field in _EDITABLE_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if field == "name":
            value = _clean_text(value, field="name", required=True, max_length=120)
        elif field == "email":
            value = _clean_email(value)
        elif field == "phone":
            value = _clean_text(value, field="phone", max_length=32)
        elif field == "address":
            value = _clean_text(value, field="address")
        elif field == "is_active":
            value = require_bool(data, "is_active")
        setattr(store, field, value)
        changes[field] = value

    if "manager_id" in data:
        if not ctx.is_admin:
            deny(ctx, "EDIT_STORE", domain=Domain.STORES, resource=f"store:{store.id}:manager")
        store.manager_id = _validate_manager(data["manager_id"])
        changes["manager_id"] = store.manager_id

    if not changes:
        raise ValidationError("No changes provided")

    audit_service.record(
        user_id=ctx.user_id,
        action="STORE_UPDATED",
        table_name="stores",
        record_id=store.id,
        new_values=changes,
    )
    db.session.commit()
    cache_service.invalidate(*_STORE_DEPENDENT_SCOPES)
    logger.info("Store %s updated by user %s: %s", store.id, ctx.user_id, sorted(changes))
    return store


def toggle_store_status(ctx, store_id: int) -> Store:
    """Flip is_active. Same access rule as update_store."""
    require_permission(ctx, "EDIT_STORE", domain=Domain.STORES)
    store = _load_for_edit(ctx, store_id)
    store.is_active = not store.is_active

    audit_service.record(
        user_id=ctx.user_id,
        action="STORE_ACTIVATED" if store.is_active else "STORE_DEACTIVATED",
        table_name="stores",
        record_id=store.id,
        new_values={"is_active": store.is_active},
    )
    db.session.commit()
    cache_service.invalidate(*_STORE_DEPENDENT_SCOPES)
    logger.info("Store %s is_active=%s by user %s", store.id, store.is_active, ctx.user_id)
    return store


def delete_store(ctx, store_id: int) -> None:
    """
    Admin only.

    Stores referenced by sales, inventory sessions or expenses cannot be
    deleted; deactivate them instead.
    """
    require_permission(ctx, "DELETE_STORE", domain=Domain.STORES)

    store = db.session.get(Store, store_id)
    if not store:
        raise NotFoundError("Magasin introuvable")

    for model in (Sale, InventorySession, Expense):
        if db.session.query(model.id).filter(model.store_id == store.id).first():
            raise ConflictError("Ce magasin a un historique; désactivez-le plutôt que de le supprimer")

    db.session.query(UserStore).filter_by(store_id=store.id).delete()
    name = store.name
    db.session.delete(store)

    audit_service.record(
        user_id=ctx.user_id,
        action="STORE_DELETED",
        table_name="stores",
        record_id=store_id,
        new_values={"name": name},
    )
    db.session.commit()
    cache_service.invalidate(*_STORE_DEPENDENT_SCOPES)
    logger.info("Store %s deleted by user %s", store_id, ctx.user_id)


def store_stats(ctx, stores: list[Store] | None = None) -> dict:
    """Counts over the caller's visible stores (or the given list)."""
    if stores is None:
        require_permission(ctx, "VIEW_STORES", domain=Domain.STORES)
        stores = _scoped_query(ctx).all()

    total = len(stores)
    active = sum(1 for s in stores if s.is_active)
    return {
        "total": total,
        "active": active,
        "inactive": total - active,
        "activity_percentage": round(metrics.share_pct(active, total), 1),
    }
