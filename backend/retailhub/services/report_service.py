# Overview: Sales reporting: period overview with growth, rankings and role-specific sections.

"""
Sales Reports

All figures are computed from role-scoped sales (see sales_service) for
the selected period and the equally long period right before it. Revenue
counts completed sales only; transaction counts include every status so
cancellations stay visible.
"""

from __future__ import annotations

import logging

from flask import current_app

from ..errors import NotFoundError
from ..models.sales import SALE_STATUS_COMPLETED
from . import cache_service, metrics
from .permission_service import require_permission
from .presentation import Domain, report_types
from .query_scope import resolve_period
from .sales_service import sales_between


logger = logging.getLogger(__name__)

DEFAULT_PERIOD = "6months"


def _revenue(sales) -> int:
    return sum(s.total or 0 for s in sales if s.status == SALE_STATUS_COMPLETED)


def _completed(sales) -> list:
    return [s for s in sales if s.status == SALE_STATUS_COMPLETED]


def _top_products(sales, limit):
    lines = [item for sale in _completed(sales) for item in sale.items]
    ranked = metrics.group_sum(
        lines,
        key=lambda item: item.product.name if item.product else "Produit inconnu",
        quantity=lambda item: item.quantity,
        revenue=lambda item: item.total_price,
        limit=limit,
    )
    return [{"name": b["key"], "quantity": b["quantity"], "revenue": b["revenue"]} for b in ranked]


def _top_sellers(sales, limit):
    ranked = metrics.group_sum(
        _completed(sales),
        key=lambda sale: sale.seller.name if sale.seller else "Vendeur inconnu",
        revenue=lambda sale: sale.total,
        limit=limit,
    )
    return [
        {
            "name": b["key"],
            "sales": b["count"],
            "revenue": b["revenue"],
            "average_order_value": metrics.average_order_value(b["revenue"], b["count"]),
        }
        for b in ranked
    ]


def _store_performance(sales):
    ranked = metrics.group_sum(
        _completed(sales),
        key=lambda sale: (sale.store_id, sale.store.name if sale.store else "Magasin inconnu"),
        revenue=lambda sale: sale.total,
    )
    return [
        {
            "store_id": b["key"][0],
            "store_name": b["key"][1],
            "sales": b["count"],
            "revenue": b["revenue"],
            "average_order_value": metrics.average_order_value(b["revenue"], b["count"]),
        }
        for b in ranked
    ]


def _personal_metrics(sales):
    revenue = _revenue(sales)
    target = current_app.config.get("SELLER_REVENUE_TARGET", 100_000)
    return {
        "personal_sales": len(_completed(sales)),
        "personal_revenue": revenue,
        "target": target,
        "performance": metrics.share_pct(revenue, target),
    }


def build_overview(ctx, current, previous, rng, *, top_n: int | None = None) -> dict:
    """Pure derivation of the overview from already fetched current/previous sales."""
    top_products_n = top_n or current_app.config.get("TOP_N_PRODUCTS", 10)
    top_sellers_n = top_n or current_app.config.get("TOP_N_SELLERS", 10)

    current_revenue = _revenue(current)
    previous_revenue = _revenue(previous)
    current_completed = len(_completed(current))
    previous_completed = len(_completed(previous))
    current_aov = metrics.average_order_value(current_revenue, current_completed)
    previous_aov = metrics.average_order_value(previous_revenue, previous_completed)

    report = {
        "period": rng.to_dict(),
        "revenue": metrics.growth(current_revenue, previous_revenue).to_dict(),
        "transactions": {
            **metrics.growth(len(current), len(previous)).to_dict(),
            "completed": current_completed,
            "cancelled": len(current) - current_completed,
        },
        "average_order_value": metrics.growth(current_aov, previous_aov).to_dict(),
        "top_products": _top_products(current, top_products_n),
        "top_sellers": _top_sellers(current, top_sellers_n),
        "store_performance": [],
        "personal_metrics": None,
        "report_types": report_types(ctx.role),
    }

    if ctx.is_admin or ctx.is_manager:
        report["store_performance"] = _store_performance(current)
    if ctx.is_seller:
        report["personal_metrics"] = _personal_metrics(current)
    return report


def report_overview(ctx, period: str | None = None, store_id: int | None = None, top_n: int | None = None) -> dict:
    """
    Sales overview for the caller.

    Args:
        period: period token (default "6months")
        store_id: optional single store; must be within scope
        top_n: override the product/seller ranking caps

    Raises:
        PermissionDeniedError, ValidationError (unknown period), NotFoundError
    """
    require_permission(ctx, "VIEW_REPORTS", domain=Domain.REPORTS)
    if store_id is not None and not ctx.can_access_store(store_id):
        raise NotFoundError("Magasin introuvable")

    rng = resolve_period(period or DEFAULT_PERIOD)

    def _produce():
        current = sales_between(ctx, rng.start, rng.end, store_id=store_id, with_items=True, inclusive_end=True)
        previous = sales_between(ctx, rng.previous_start, rng.previous_end, store_id=store_id)
        return build_overview(ctx, current, previous, rng, top_n=top_n)

    return cache_service.cached_query(
        cache_service.SCOPE_REPORTS,
        ["overview", ctx.role.value, ctx.user_id, list(ctx.store_ids), rng.token, store_id, top_n],
        _produce,
        timeout=current_app.config.get("REPORTS_CACHE_TIMEOUT"),
    )
