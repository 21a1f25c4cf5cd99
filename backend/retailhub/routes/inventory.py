# Overview: Flask API routes for inventory sessions, counts, adjustments and export.

from flask import Blueprint, Response, jsonify, g

from ..decorators import require_auth, require_permission
from ..errors import ValidationError
from ..services import inventory_service
from ..services.presentation import Domain, message, role_content
from ..validation import json_body, str_arg, int_arg, require_int


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("/sessions")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_sessions():
    page = inventory_service.list_sessions(
        g.ctx,
        status=str_arg("status"),
        store_id=int_arg("store_id"),
        search=str_arg("search"),
        page=int_arg("page", 1),
        page_size=int_arg("page_size"),
    )
    data = page.to_dict()
    if not page.total:
        data["empty_message"] = message(g.ctx.role, Domain.INVENTORY, "empty_state")
    data["content"] = role_content(g.ctx, Domain.INVENTORY)
    return jsonify(data), 200


@inventory_bp.post("/sessions")
@require_auth
@require_permission("CREATE_INVENTORY")
def create_session():
    data = json_body()
    session = inventory_service.create_session(g.ctx, data.get("name"), require_int(data, "store_id"))
    return jsonify({
        "message": message(g.ctx.role, Domain.INVENTORY, "start_success"),
        "session": session.to_dict(include_items=True),
    }), 201


@inventory_bp.get("/sessions/<int:session_id>")
@require_auth
@require_permission("VIEW_INVENTORY")
def get_session(session_id: int):
    session = inventory_service.get_session(g.ctx, session_id)
    return jsonify(session.to_dict(include_items=True)), 200


@inventory_bp.get("/stores/<int:store_id>/active")
@require_auth
@require_permission("VIEW_INVENTORY")
def get_active_session(store_id: int):
    session = inventory_service.get_active_session(g.ctx, store_id)
    return jsonify({"session": session.to_dict() if session else None}), 200


@inventory_bp.post("/sessions/<int:session_id>/complete")
@require_auth
@require_permission("COMPLETE_INVENTORY")
def complete_session(session_id: int):
    session = inventory_service.complete_session(g.ctx, session_id)
    return jsonify({
        "message": message(g.ctx.role, Domain.INVENTORY, "complete_success"),
        "session": session.to_dict(),
    }), 200


@inventory_bp.post("/sessions/<int:session_id>/cancel")
@require_auth
@require_permission("COMPLETE_INVENTORY")
def cancel_session(session_id: int):
    session = inventory_service.cancel_session(g.ctx, session_id, json_body().get("reason"))
    return jsonify({
        "message": message(g.ctx.role, Domain.INVENTORY, "cancel_success"),
        "session": session.to_dict(),
    }), 200


@inventory_bp.put("/items/<int:item_id>/count")
@require_auth
@require_permission("COUNT_INVENTORY")
def update_count(item_id: int):
    data = json_body()
    item = inventory_service.update_count(g.ctx, item_id, data.get("counted_quantity"), data.get("notes"))
    return jsonify({
        "message": message(g.ctx.role, Domain.INVENTORY, "update_success"),
        "item": item.to_dict(),
    }), 200


@inventory_bp.post("/items/<int:item_id>/adjust")
@require_auth
@require_permission("ADJUST_STOCK")
def adjust_stock(item_id: int):
    item = inventory_service.adjust_stock(g.ctx, item_id)
    return jsonify({
        "message": message(g.ctx.role, Domain.INVENTORY, "adjust_success"),
        "item": item.to_dict(),
    }), 200


@inventory_bp.get("/metrics")
@require_auth
@require_permission("VIEW_INVENTORY_METRICS")
def session_metrics():
    return jsonify(inventory_service.session_metrics(g.ctx, store_id=int_arg("store_id"))), 200


@inventory_bp.get("/sessions/<int:session_id>/export")
@require_auth
@require_permission("EXPORT_INVENTORY")
def export_session(session_id: int):
    fmt = (str_arg("format") or "csv").lower()
    if fmt == "csv":
        body = inventory_service.export_session_csv(g.ctx, session_id)
        mimetype = "text/csv; charset=utf-8"
    elif fmt == "json":
        body = inventory_service.export_session_json(g.ctx, session_id)
        mimetype = "application/json"
    else:
        raise ValidationError("format must be csv or json")

    filename = f"inventaire-{session_id}.{fmt}"
    return Response(
        body,
        mimetype=mimetype,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
