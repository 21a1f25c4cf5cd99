# Overview: Flask API routes for sales reports.

from flask import Blueprint, jsonify, g

from ..decorators import require_auth, require_permission
from ..services import report_service, sales_service
from ..services.presentation import Domain, role_content
from ..validation import str_arg, int_arg


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/overview")
@require_auth
@require_permission("VIEW_REPORTS")
def overview():
    report = report_service.report_overview(
        g.ctx,
        period=str_arg("period"),
        store_id=int_arg("store_id"),
        top_n=int_arg("top_n"),
    )
    return jsonify({**report, "content": role_content(g.ctx, Domain.REPORTS)}), 200


@reports_bp.get("/sales")
@require_auth
@require_permission("VIEW_REPORTS")
def list_sales():
    page = sales_service.list_sales(
        g.ctx,
        status=str_arg("status"),
        store_id=int_arg("store_id"),
        period=str_arg("period"),
        search=str_arg("search"),
        page=int_arg("page", 1),
        page_size=int_arg("page_size"),
    )
    return jsonify(page.to_dict()), 200
