# Overview: Flask API routes for stores; parses input and returns JSON responses.

from flask import Blueprint, jsonify, g

from ..decorators import require_auth, require_permission
from ..services import store_service
from ..services.presentation import Domain, message, role_content
from ..validation import json_body, str_arg, int_arg


stores_bp = Blueprint("stores", __name__, url_prefix="/api/stores")


@stores_bp.get("")
@require_auth
@require_permission("VIEW_STORES")
def list_stores():
    page = store_service.list_stores(
        g.ctx,
        status=str_arg("status"),
        search=str_arg("search"),
        page=int_arg("page", 1),
        page_size=int_arg("page_size"),
    )
    return jsonify({
        **page.to_dict(),
        "stats": store_service.store_stats(g.ctx),
        "content": role_content(g.ctx, Domain.STORES),
    }), 200


@stores_bp.get("/stats")
@require_auth
@require_permission("VIEW_STORES")
def stores_stats():
    return jsonify(store_service.store_stats(g.ctx)), 200


@stores_bp.post("")
@require_auth
@require_permission("CREATE_STORE")
def create_store():
    store = store_service.create_store(g.ctx, json_body())
    return jsonify({
        "message": message(g.ctx.role, Domain.STORES, "create_success", name=store.name),
        "store": store.to_dict(),
    }), 201


@stores_bp.get("/<int:store_id>")
@require_auth
@require_permission("VIEW_STORES")
def get_store(store_id: int):
    store = store_service.get_store(g.ctx, store_id)
    return jsonify(store.to_dict()), 200


@stores_bp.put("/<int:store_id>")
@require_auth
@require_permission("EDIT_STORE")
def update_store(store_id: int):
    store = store_service.update_store(g.ctx, store_id, json_body())
    return jsonify({
        "message": message(g.ctx.role, Domain.STORES, "update_success", name=store.name),
        "store": store.to_dict(),
    }), 200


@stores_bp.post("/<int:store_id>/toggle")
@require_auth
@require_permission("EDIT_STORE")
def toggle_store(store_id: int):
    store = store_service.toggle_store_status(g.ctx, store_id)
    key = "activate_success" if store.is_active else "deactivate_success"
    return jsonify({
        "message": message(g.ctx.role, Domain.STORES, key, name=store.name),
        "store": store.to_dict(),
    }), 200


@stores_bp.delete("/<int:store_id>")
@require_auth
@require_permission("DELETE_STORE")
def delete_store(store_id: int):
    store_service.delete_store(g.ctx, store_id)
    return jsonify({"message": message(g.ctx.role, Domain.STORES, "delete_success")}), 200
