# Overview: Flask API routes for finance summary and expenses.

from flask import Blueprint, jsonify, g

from ..decorators import require_auth, require_permission
from ..services import finance_service
from ..services.presentation import Domain, message, role_content
from ..validation import json_body, str_arg, int_arg


finance_bp = Blueprint("finance", __name__, url_prefix="/api/finance")


@finance_bp.get("/summary")
@require_auth
@require_permission("VIEW_FINANCE")
def summary():
    data = finance_service.finance_summary(g.ctx, period=str_arg("period"), store_id=int_arg("store_id"))
    return jsonify({**data, "content": role_content(g.ctx, Domain.FINANCE)}), 200


@finance_bp.get("/expenses")
@require_auth
@require_permission("VIEW_FINANCE")
def list_expenses():
    page = finance_service.list_expenses(
        g.ctx,
        period=str_arg("period"),
        store_id=int_arg("store_id"),
        page=int_arg("page", 1),
        page_size=int_arg("page_size"),
    )
    return jsonify(page.to_dict()), 200


@finance_bp.post("/expenses")
@require_auth
@require_permission("MANAGE_EXPENSES")
def add_expense():
    expense = finance_service.add_expense(g.ctx, json_body())
    return jsonify({
        "message": message(g.ctx.role, Domain.FINANCE, "add_expense_success"),
        "expense": expense.to_dict(),
    }), 201


@finance_bp.delete("/expenses/<int:expense_id>")
@require_auth
@require_permission("DELETE_EXPENSE")
def delete_expense(expense_id: int):
    finance_service.delete_expense(g.ctx, expense_id)
    return jsonify({"message": message(g.ctx.role, Domain.FINANCE, "delete_expense_success")}), 200
