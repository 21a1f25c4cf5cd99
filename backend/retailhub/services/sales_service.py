# Overview: Role-scoped sale reads shared by reports and finance.

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import selectinload

from ..extensions import db
from ..errors import ValidationError, NotFoundError
from ..models import Sale, SaleItem
from ..models.sales import SALE_STATUS_COMPLETED, SALE_STATUS_PENDING, SALE_STATUS_CANCELLED
from .permission_service import require_permission
from .presentation import Domain
from .query_scope import (
    scope_to_stores,
    scope_to_owner,
    apply_period,
    apply_search,
    apply_status,
    apply_window,
    paginate,
)


_VALID_STATUSES = {SALE_STATUS_COMPLETED, SALE_STATUS_PENDING, SALE_STATUS_CANCELLED}


def scoped_sales(ctx, *, store_id: int | None = None, status: str | None = None, with_items: bool = False):
    """
    Base sale query for the caller.

    Non-admins are limited to their stores; sellers to their own sales.
    """
    if status not in (None, "all") and status not in _VALID_STATUSES:
        raise ValidationError(f"Invalid status filter: {status}")

    query = db.session.query(Sale)
    query = scope_to_stores(query, ctx, Sale.store_id)
    query = scope_to_owner(query, ctx, Sale.seller_id)
    if store_id is not None:
        query = query.filter(Sale.store_id == store_id)
    query = apply_status(query, Sale.status, status)
    if with_items:
        query = query.options(
            selectinload(Sale.items).selectinload(SaleItem.product),
            selectinload(Sale.seller),
            selectinload(Sale.store),
        )
    return query


def sales_between(ctx, start: datetime, end: datetime, *, store_id=None, status=None, with_items=False, inclusive_end=False) -> list[Sale]:
    query = scoped_sales(ctx, store_id=store_id, status=status, with_items=with_items)
    if inclusive_end:
        query = query.filter(Sale.created_at >= start, Sale.created_at <= end)
    else:
        query = apply_window(query, Sale.created_at, start, end)
    return query.all()


def list_sales(ctx, *, status=None, store_id=None, period=None, search=None, page=1, page_size=None):
    """Sales visible to the caller, most recent first. Search covers sale number and customer."""
    require_permission(ctx, "VIEW_REPORTS", domain=Domain.REPORTS)
    query = scoped_sales(ctx, store_id=store_id, status=status)
    query = apply_period(query, Sale.created_at, period)
    query = apply_search(query, [Sale.sale_number, Sale.customer_name], search)
    query = query.order_by(Sale.created_at.desc(), Sale.id.desc())
    return paginate(query, page, page_size)


def get_sale(ctx, sale_id: int) -> Sale:
    require_permission(ctx, "VIEW_REPORTS", domain=Domain.REPORTS)
    sale = scoped_sales(ctx).filter(Sale.id == sale_id).first()
    if not sale:
        raise NotFoundError("Vente introuvable")
    return sale
