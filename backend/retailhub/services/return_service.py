# Overview: Customer returns: role-capped creation, approval workflow, scoped reads.

"""
Return Processing Service

STATUS MACHINE:
- pending -> approved (approve_return)
- pending -> rejected (reject_return)
approved and rejected are terminal.

ROLE POLICY (presentation.return_policy):
- seller: up to 50 000 XOF, recorded directly as approved
- manager: up to 200 000 XOF, recorded as pending until validated
- admin: uncapped, recorded as approved

Only roles holding APPROVE_RETURN decide returns, and managers only for
their assigned stores.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import aliased

from ..extensions import db
from ..errors import ValidationError, NotFoundError, ConflictError
from ..models import Return, ReturnItem, Sale, Product
from ..models.returns import RETURN_STATUS_PENDING, RETURN_STATUS_APPROVED, RETURN_STATUS_REJECTED
from ..time_utils import utcnow
from . import audit_service, cache_service
from .concurrency import conflict_on_integrity_error, lock_for_update
from .permission_service import deny, require_permission
from .presentation import Domain, format_currency, return_policy
from .query_scope import (
    scope_to_stores,
    scope_to_owner,
    apply_period,
    apply_search,
    apply_status,
    paginate,
)


logger = logging.getLogger(__name__)

_VALID_STATUSES = {RETURN_STATUS_PENDING, RETURN_STATUS_APPROVED, RETURN_STATUS_REJECTED}


def _as_int(value, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")


def _validate_items(raw_items) -> list[dict]:
    """Each item needs product_id, quantity > 0 and prices >= 0."""
    if raw_items is None:
        return []
    if not isinstance(raw_items, list):
        raise ValidationError("items must be a list")

    items = []
    for index, raw in enumerate(raw_items, start=1):
        if not isinstance(raw, dict):
            raise ValidationError(f"Item {index} is invalid")
        product_id = _as_int(raw.get("product_id"), f"Item {index} product_id")
        if db.session.get(Product, product_id) is None:
            raise ValidationError(f"Item {index}: product not found")

        quantity = _as_int(raw.get("quantity"), f"Item {index} quantity")
        if quantity <= 0:
            raise ValidationError(f"Item {index}: quantity must be greater than zero")

        unit_price = _as_int(raw.get("unit_price"), f"Item {index} unit_price")
        if unit_price < 0:
            raise ValidationError(f"Item {index}: unit_price cannot be negative")

        total_price = raw.get("total_price")
        total_price = quantity * unit_price if total_price is None else _as_int(total_price, f"Item {index} total_price")
        if total_price < 0:
            raise ValidationError(f"Item {index}: total_price cannot be negative")

        items.append({
            "product_id": product_id,
            "quantity": quantity,
            "unit_price": unit_price,
            "total_price": total_price,
        })
    return items


def _next_return_number(now) -> str:
    """RET-YYYYMMDD-NNNN, NNNN being the day's running sequence."""
    prefix = f"RET-{now:%Y%m%d}-"
    count = db.session.query(Return.id).filter(Return.return_number.like(f"{prefix}%")).count()
    return f"{prefix}{count + 1:04d}"


def _append_note(existing: str | None, note: str | None, now) -> str | None:
    note = (note or "").strip()
    if not note:
        return existing
    line = f"{now:%Y-%m-%d %H:%M:%S}: {note}"
    return f"{existing or ''}\n{line}".strip()


# =============================================================================
# MUTATIONS
# =============================================================================

def create_return(ctx, data: dict) -> Return:
    """
    Record a customer return.

    Args:
        data: sale_id, store_id, total_amount (optional when items are
            given), customer_name, reason, notes, items

    Raises:
        PermissionDeniedError: no CREATE_RETURN or store outside scope
        ValidationError: bad input or amount above the role's cap
        NotFoundError: sale not found
    """
    require_permission(ctx, "CREATE_RETURN", domain=Domain.RETURNS)

    store_id = _as_int(data.get("store_id"), "store_id")
    if not ctx.can_access_store(store_id):
        deny(
            ctx,
            "CREATE_RETURN",
            resource=f"store:{store_id}",
            message="Vous n'avez pas la permission de créer un retour dans ce magasin",
        )

    sale = db.session.get(Sale, _as_int(data.get("sale_id"), "sale_id"))
    if not sale:
        raise NotFoundError("Vente introuvable")
    if sale.store_id != store_id:
        raise ValidationError("La vente n'appartient pas à ce magasin")

    items = _validate_items(data.get("items"))
    items_total = sum(item["total_price"] for item in items)

    total_amount = data.get("total_amount")
    if total_amount is None:
        if not items:
            raise ValidationError("total_amount is required")
        total_amount = items_total
    total_amount = _as_int(total_amount, "total_amount")
    if total_amount <= 0:
        raise ValidationError("Le montant du retour doit être positif")
    if total_amount > (sale.total or 0):
        raise ValidationError(
            f"Le montant du retour dépasse le total de la vente ({format_currency(sale.total or 0)})"
        )
    if items and total_amount != items_total:
        raise ValidationError("total_amount does not match the sum of item totals")

    policy = return_policy(ctx.role)
    if not policy.allows(total_amount):
        logger.warning("Return of %s rejected for user %s: cap %s", total_amount, ctx.user_id, policy.max_amount)
        raise ValidationError(f"Le montant maximum autorisé est de {format_currency(policy.max_amount)}")

    now = utcnow()
    status = RETURN_STATUS_PENDING if policy.requires_approval else RETURN_STATUS_APPROVED

    with conflict_on_integrity_error("Numéro de retour déjà utilisé, veuillez réessayer"):
        return_doc = Return(
            return_number=_next_return_number(now),
            sale_id=sale.id,
            store_id=store_id,
            processed_by=ctx.user_id,
            customer_name=(data.get("customer_name") or sale.customer_name or None),
            reason=(data.get("reason") or None),
            total_amount=total_amount,
            status=status,
            notes=(data.get("notes") or None),
            created_at=now,
        )
        if status == RETURN_STATUS_APPROVED:
            return_doc.decided_by = ctx.user_id
            return_doc.decided_at = now
        db.session.add(return_doc)
        db.session.flush()

        for item in items:
            db.session.add(ReturnItem(return_id=return_doc.id, **item))

        audit_service.record(
            user_id=ctx.user_id,
            action="RETURN_CREATED",
            table_name="returns",
            record_id=return_doc.id,
            new_values={
                "return_number": return_doc.return_number,
                "store_id": store_id,
                "total_amount": total_amount,
                "status": status,
            },
        )
        db.session.commit()

    cache_service.invalidate(cache_service.SCOPE_RETURNS, cache_service.SCOPE_FINANCE)
    logger.info("Return %s (%s) created as %s by user %s", return_doc.id, return_doc.return_number, status, ctx.user_id)
    return return_doc


def _decide(ctx, return_id: int, new_status: str, notes: str | None) -> Return:
    require_permission(ctx, "APPROVE_RETURN", domain=Domain.RETURNS)

    return_doc = lock_for_update(db.session.query(Return).filter_by(id=return_id)).first()
    if not return_doc or not ctx.can_access_store(return_doc.store_id):
        raise NotFoundError("Retour introuvable")
    if return_doc.status != RETURN_STATUS_PENDING:
        raise ConflictError(f"Ce retour est déjà {return_doc.status}")

    now = utcnow()
    return_doc.status = new_status
    return_doc.decided_by = ctx.user_id
    return_doc.decided_at = now
    return_doc.notes = _append_note(return_doc.notes, notes, now)

    audit_service.record(
        user_id=ctx.user_id,
        action="RETURN_APPROVED" if new_status == RETURN_STATUS_APPROVED else "RETURN_REJECTED",
        table_name="returns",
        record_id=return_doc.id,
        new_values={"status": new_status, "notes": notes},
    )
    db.session.commit()
    cache_service.invalidate(cache_service.SCOPE_RETURNS, cache_service.SCOPE_FINANCE)
    logger.info("Return %s %s by user %s", return_doc.id, new_status, ctx.user_id)
    return return_doc


def approve_return(ctx, return_id: int, notes: str | None = None) -> Return:
    return _decide(ctx, return_id, RETURN_STATUS_APPROVED, notes)


def reject_return(ctx, return_id: int, notes: str | None = None) -> Return:
    return _decide(ctx, return_id, RETURN_STATUS_REJECTED, notes)


# =============================================================================
# READS
# =============================================================================

def _scoped_returns(ctx, *, status=None, store_id=None, period=None, search=None):
    if status not in (None, "all") and status not in _VALID_STATUSES:
        raise ValidationError(f"Invalid status filter: {status}")

    query = db.session.query(Return)
    query = scope_to_stores(query, ctx, Return.store_id)
    query = scope_to_owner(query, ctx, Return.processed_by)
    if store_id is not None:
        query = query.filter(Return.store_id == store_id)
    query = apply_status(query, Return.status, status)
    query = apply_period(query, Return.created_at, period)

    if search:
        sale = aliased(Sale)
        query = query.outerjoin(sale, Return.sale_id == sale.id)
        query = apply_search(query, [Return.return_number, Return.customer_name, sale.sale_number], search)
    return query


def list_returns(ctx, *, status=None, store_id=None, period=None, search=None, page=1, page_size=None):
    """
    Returns visible to the caller, most recent first.

    Sellers see only the returns they processed, in their stores.
    """
    require_permission(ctx, "VIEW_RETURNS", domain=Domain.RETURNS)
    query = _scoped_returns(ctx, status=status, store_id=store_id, period=period, search=search)
    query = query.order_by(Return.created_at.desc(), Return.id.desc())
    return paginate(query, page, page_size)


def get_return(ctx, return_id: int) -> Return:
    require_permission(ctx, "VIEW_RETURNS", domain=Domain.RETURNS)
    return_doc = _scoped_returns(ctx).filter(Return.id == return_id).first()
    if not return_doc:
        raise NotFoundError("Retour introuvable")
    return return_doc


def return_stats(ctx, returns: list[Return] | None = None, *, period=None, store_id=None) -> dict:
    """
    Role-specific summary of the caller's returns.

    seller: today's count; manager: team size and returns awaiting
    validation; admin: stores and sellers involved.
    """
    if returns is None:
        require_permission(ctx, "VIEW_RETURNS", domain=Domain.RETURNS)
        returns = _scoped_returns(ctx, period=period, store_id=store_id).all()

    total_amount = sum(r.total_amount for r in returns)
    stats = {
        "total": len(returns),
        "total_amount": total_amount,
        "total_amount_display": format_currency(total_amount),
        "pending": sum(1 for r in returns if r.status == RETURN_STATUS_PENDING),
        "approved": sum(1 for r in returns if r.status == RETURN_STATUS_APPROVED),
        "rejected": sum(1 for r in returns if r.status == RETURN_STATUS_REJECTED),
        "policy": return_policy(ctx.role).to_dict(),
    }

    if ctx.is_seller:
        today = utcnow().date()
        stats["today"] = sum(1 for r in returns if r.created_at and r.created_at.date() == today)
    elif ctx.is_manager:
        stats["active_sellers"] = len({r.processed_by for r in returns})
        stats["awaiting_validation"] = stats["pending"]
    else:
        stats["store_count"] = len({r.store_id for r in returns})
        stats["seller_count"] = len({r.processed_by for r in returns})
    return stats
