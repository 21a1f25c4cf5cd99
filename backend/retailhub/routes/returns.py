# Overview: Flask API routes for customer returns.

from flask import Blueprint, jsonify, g

from ..decorators import require_auth, require_permission
from ..models.returns import RETURN_STATUS_PENDING
from ..services import return_service
from ..services.presentation import Domain, message, role_content
from ..validation import json_body, str_arg, int_arg


returns_bp = Blueprint("returns", __name__, url_prefix="/api/returns")


def _filters():
    return {
        "status": str_arg("status"),
        "store_id": int_arg("store_id"),
        "period": str_arg("period"),
    }


@returns_bp.get("")
@require_auth
@require_permission("VIEW_RETURNS")
def list_returns():
    filters = _filters()
    page = return_service.list_returns(
        g.ctx,
        search=str_arg("search"),
        page=int_arg("page", 1),
        page_size=int_arg("page_size"),
        **filters,
    )
    return jsonify({
        **page.to_dict(),
        "content": role_content(g.ctx, Domain.RETURNS),
    }), 200


@returns_bp.get("/stats")
@require_auth
@require_permission("VIEW_RETURNS")
def return_stats():
    filters = _filters()
    return jsonify(return_service.return_stats(g.ctx, period=filters["period"], store_id=filters["store_id"])), 200


@returns_bp.post("")
@require_auth
@require_permission("CREATE_RETURN")
def create_return():
    return_doc = return_service.create_return(g.ctx, json_body())
    key = "create_pending" if return_doc.status == RETURN_STATUS_PENDING else "create_success"
    return jsonify({
        "message": message(g.ctx.role, Domain.RETURNS, key),
        "return": return_doc.to_dict(),
        "items": [item.to_dict() for item in return_doc.items],
    }), 201


@returns_bp.get("/<int:return_id>")
@require_auth
@require_permission("VIEW_RETURNS")
def get_return(return_id: int):
    return_doc = return_service.get_return(g.ctx, return_id)
    return jsonify({
        "return": return_doc.to_dict(),
        "items": [item.to_dict() for item in return_doc.items],
    }), 200


@returns_bp.post("/<int:return_id>/approve")
@require_auth
@require_permission("APPROVE_RETURN")
def approve_return(return_id: int):
    return_doc = return_service.approve_return(g.ctx, return_id, json_body().get("notes"))
    return jsonify({
        "message": message(g.ctx.role, Domain.RETURNS, "approve_success"),
        "return": return_doc.to_dict(),
    }), 200


@returns_bp.post("/<int:return_id>/reject")
@require_auth
@require_permission("APPROVE_RETURN")
def reject_return(return_id: int):
    return_doc = return_service.reject_return(g.ctx, return_id, json_body().get("notes"))
    return jsonify({
        "message": message(g.ctx.role, Domain.RETURNS, "reject_success"),
        "return": return_doc.to_dict(),
    }), 200
