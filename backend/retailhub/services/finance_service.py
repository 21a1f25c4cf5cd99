# Overview: Finance summary (revenue, expenses, profit) and expense bookkeeping.

from __future__ import annotations

import logging
from datetime import date

from flask import current_app

from ..extensions import db
from ..errors import ValidationError, NotFoundError
from ..models import Expense, Store
from ..models.sales import SALE_STATUS_COMPLETED
from ..time_utils import utcnow
from . import audit_service, cache_service, metrics
from .permission_service import require_permission, require_store_access
from .presentation import Domain
from .query_scope import scope_to_stores, resolve_period, paginate
from .sales_service import sales_between


logger = logging.getLogger(__name__)

DEFAULT_PERIOD = "month"

def _scoped_expenses(ctx, store_id: int | None = None):
    query = scope_to_stores(db.session.query(Expense), ctx, Expense.store_id)
    if store_id is not None:
        query = query.filter(Expense.store_id == store_id)
    return query


def _expenses_between(ctx, start: date, end: date, *, store_id=None, inclusive_end: bool) -> list[Expense]:
    query = _scoped_expenses(ctx, store_id).filter(Expense.date >= start)
    if inclusive_end:
        query = query.filter(Expense.date <= end)
    else:
        query = query.filter(Expense.date < end)
    return query.all()


def _expenses_by_category(expenses, total) -> list[dict]:
    ranked = metrics.group_sum(expenses, key=lambda e: e.category, revenue=lambda e: e.amount)
    return [
        {
            "category": b["key"],
            "amount": b["revenue"],
            "count": b["count"],
            "percentage": metrics.share_pct(b["revenue"], total),
        }
        for b in ranked
    ]


def _store_metrics(sales, expenses) -> list[dict]:
    by_store = {}
    for sale in sales:
        entry = by_store.setdefault(sale.store_id, {
            "store_id": sale.store_id,
            "store_name": sale.store.name if sale.store else "Magasin inconnu",
            "revenue": 0,
            "expenses": 0,
        })
        entry["revenue"] += sale.total or 0
    for expense in expenses:
        entry = by_store.get(expense.store_id)
        if entry is not None:
            entry["expenses"] += expense.amount

    rows = []
    for entry in by_store.values():
        profit = entry["revenue"] - entry["expenses"]
        rows.append({**entry, "profit": profit, "margin": metrics.margin_pct(profit, entry["revenue"])})
    return sorted(rows, key=lambda r: r["revenue"], reverse=True)


def _user_metrics(sales) -> list[dict]:
    ranked = metrics.group_sum(
        sales,
        key=lambda sale: (sale.seller_id, sale.seller.name if sale.seller else "Utilisateur inconnu"),
        revenue=lambda sale: sale.total,
    )
    return [
        {"user_id": b["key"][0], "user_name": b["key"][1], "revenue": b["revenue"], "sales": b["count"]}
        for b in ranked
    ]


def build_summary(ctx, sales, previous_sales, expenses, previous_expenses, rng) -> dict:
    """
    Pure derivation of the finance summary.

    gross profit = revenue - expenses; net profit = gross profit - tax.
    """
    revenue = sum(s.total or 0 for s in sales)
    tax = sum(s.tax_amount or 0 for s in sales)
    discounts = sum(s.discount_amount or 0 for s in sales)
    total_expenses = sum(e.amount for e in expenses)

    previous_revenue = sum(s.total or 0 for s in previous_sales)
    previous_tax = sum(s.tax_amount or 0 for s in previous_sales)
    previous_total_expenses = sum(e.amount for e in previous_expenses)

    gross = revenue - total_expenses
    net = gross - tax
    previous_gross = previous_revenue - previous_total_expenses
    previous_net = previous_gross - previous_tax

    return {
        "period": rng.to_dict(),
        "revenue": {
            **metrics.growth(revenue, previous_revenue).to_dict(),
            "tax_amount": tax,
            "discounts": discounts,
        },
        "expenses": {
            **metrics.growth(total_expenses, previous_total_expenses).to_dict(),
            "by_category": _expenses_by_category(expenses, total_expenses),
        },
        "profit": {
            **metrics.growth(net, previous_net).to_dict(),
            "gross": gross,
            "net": net,
            "previous_gross": previous_gross,
            "previous_net": previous_net,
            "margin": metrics.margin_pct(net, revenue),
        },
        "sales_count": len(sales),
        "store_metrics": _store_metrics(sales, expenses) if ctx.is_admin else [],
        "user_metrics": _user_metrics(sales) if (ctx.is_admin or ctx.is_manager) else [],
    }


def finance_summary(ctx, period: str | None = None, store_id: int | None = None) -> dict:
    """
    Revenue, expenses and profit for the period, with growth vs. the
    previous period of equal length.

    Sellers see their own completed sales against their stores' expenses.
    """
    require_permission(ctx, "VIEW_FINANCE", domain=Domain.FINANCE)
    if store_id is not None and not ctx.can_access_store(store_id):
        raise NotFoundError("Magasin introuvable")

    rng = resolve_period(period or DEFAULT_PERIOD)

    def _produce():
        sales = sales_between(
            ctx, rng.start, rng.end,
            store_id=store_id, status=SALE_STATUS_COMPLETED, with_items=True, inclusive_end=True,
        )
        previous_sales = sales_between(
            ctx, rng.previous_start, rng.previous_end,
            store_id=store_id, status=SALE_STATUS_COMPLETED,
        )
        expenses = _expenses_between(ctx, rng.start.date(), rng.end.date(), store_id=store_id, inclusive_end=True)
        previous_expenses = _expenses_between(
            ctx, rng.previous_start.date(), rng.start.date(), store_id=store_id, inclusive_end=False,
        )
        return build_summary(ctx, sales, previous_sales, expenses, previous_expenses, rng)

    return cache_service.cached_query(
        cache_service.SCOPE_FINANCE,
        ["summary", ctx.role.value, ctx.user_id, list(ctx.store_ids), rng.token, store_id],
        _produce,
        timeout=current_app.config.get("FINANCE_CACHE_TIMEOUT"),
    )


def list_expenses(ctx, *, period: str | None = None, store_id: int | None = None, page=1, page_size=None):
    """Expenses in the caller's stores, newest date first."""
    require_permission(ctx, "VIEW_FINANCE", domain=Domain.FINANCE)
    query = _scoped_expenses(ctx, store_id)
    if period not in (None, "all"):
        rng = resolve_period(period)
        query = query.filter(Expense.date >= rng.start.date(), Expense.date <= rng.end.date())
    query = query.order_by(Expense.date.desc(), Expense.id.desc())
    return paginate(query, page, page_size)


def _parse_date(value) -> date:
    if value is None or value == "":
        return utcnow().date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError("date must be YYYY-MM-DD")


def add_expense(ctx, data: dict) -> Expense:
    """
    Record an expense for a store in scope (admin/manager).

    amount must be a positive integer and category non-empty.
    """
    require_permission(ctx, "MANAGE_EXPENSES", domain=Domain.FINANCE)

    store_id = data.get("store_id")
    if store_id is None:
        raise ValidationError("store_id is required")
    store = db.session.get(Store, store_id)
    if not store:
        raise NotFoundError("Magasin introuvable")
    require_store_access(ctx, store.id, "MANAGE_EXPENSES", domain=Domain.FINANCE)

    category = (data.get("category") or "").strip()
    if not category:
        raise ValidationError("category is required")

    amount = data.get("amount")
    if isinstance(amount, bool) or not isinstance(amount, (int, float)) or amount <= 0:
        raise ValidationError("amount must be a positive number")
    if isinstance(amount, float) and not amount.is_integer():
        raise ValidationError("amount must be a whole number of XOF")

    expense = Expense(
        store_id=store.id,
        user_id=ctx.user_id,
        category=category,
        amount=int(amount),
        description=(data.get("description") or None),
        date=_parse_date(data.get("date")),
    )
    db.session.add(expense)
    db.session.flush()

    audit_service.record(
        user_id=ctx.user_id,
        action="EXPENSE_CREATED",
        table_name="expenses",
        record_id=expense.id,
        new_values={"store_id": store.id, "category": category, "amount": expense.amount},
    )
    db.session.commit()
    cache_service.invalidate(cache_service.SCOPE_FINANCE)
    logger.info("Expense %s (%s XOF) added to store %s by user %s", expense.id, expense.amount, store.id, ctx.user_id)
    return expense


def delete_expense(ctx, expense_id: int) -> None:
    """Admin only."""
    require_permission(ctx, "DELETE_EXPENSE", domain=Domain.FINANCE)

    expense = db.session.get(Expense, expense_id)
    if not expense:
        raise NotFoundError("Dépense introuvable")

    snapshot = {"store_id": expense.store_id, "category": expense.category, "amount": expense.amount}
    db.session.delete(expense)
    audit_service.record(
        user_id=ctx.user_id,
        action="EXPENSE_DELETED",
        table_name="expenses",
        record_id=expense_id,
        new_values=snapshot,
    )
    db.session.commit()
    cache_service.invalidate(cache_service.SCOPE_FINANCE)
    logger.info("Expense %s deleted by user %s", expense_id, ctx.user_id)
