# Overview: Flask API routes for the supplier directory, metrics and export.

from flask import Blueprint, Response, jsonify, g

from ..decorators import require_auth, require_permission
from ..errors import ValidationError
from ..services import supplier_service
from ..services.presentation import Domain, message, role_content
from ..time_utils import utcnow
from ..validation import json_body, str_arg, int_arg


suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.get("")
@require_auth
@require_permission("VIEW_SUPPLIERS")
def list_suppliers():
    page = supplier_service.list_suppliers(
        g.ctx,
        status=str_arg("status"),
        search=str_arg("search"),
        page=int_arg("page", 1),
        page_size=int_arg("page_size"),
    )
    data = supplier_service.serialize_page(g.ctx, page)
    if not page.total:
        data["empty_message"] = message(g.ctx.role, Domain.SUPPLIERS, "empty_state")
    data["content"] = role_content(g.ctx, Domain.SUPPLIERS)
    return jsonify(data), 200


@suppliers_bp.get("/metrics")
@require_auth
@require_permission("VIEW_SUPPLIER_METRICS")
def suppliers_metrics():
    return jsonify(supplier_service.supplier_metrics(g.ctx)), 200


@suppliers_bp.post("")
@require_auth
@require_permission("MANAGE_SUPPLIERS")
def create_supplier():
    supplier = supplier_service.create_supplier(g.ctx, json_body())
    return jsonify({
        "message": message(g.ctx.role, Domain.SUPPLIERS, "create_success"),
        "supplier": supplier.to_dict(),
    }), 201


@suppliers_bp.get("/<int:supplier_id>")
@require_auth
@require_permission("VIEW_SUPPLIERS")
def get_supplier(supplier_id: int):
    return jsonify(supplier_service.get_supplier(g.ctx, supplier_id).to_dict()), 200


@suppliers_bp.put("/<int:supplier_id>")
@require_auth
@require_permission("MANAGE_SUPPLIERS")
def update_supplier(supplier_id: int):
    supplier = supplier_service.update_supplier(g.ctx, supplier_id, json_body())
    return jsonify({
        "message": message(g.ctx.role, Domain.SUPPLIERS, "update_success"),
        "supplier": supplier.to_dict(),
    }), 200


@suppliers_bp.delete("/<int:supplier_id>")
@require_auth
@require_permission("DELETE_SUPPLIER")
def delete_supplier(supplier_id: int):
    supplier_service.delete_supplier(g.ctx, supplier_id)
    return jsonify({"message": message(g.ctx.role, Domain.SUPPLIERS, "delete_success")}), 200


@suppliers_bp.get("/export")
@require_auth
@require_permission("EXPORT_SUPPLIERS")
def export_suppliers():
    fmt = (str_arg("format") or "csv").lower()
    if fmt == "csv":
        body = supplier_service.export_suppliers_csv(g.ctx)
        mimetype = "text/csv; charset=utf-8"
    elif fmt == "json":
        body = supplier_service.export_suppliers_json(g.ctx)
        mimetype = "application/json"
    else:
        raise ValidationError("format must be csv or json")

    filename = f"fournisseurs_{utcnow().date().isoformat()}.{fmt}"
    return Response(
        body,
        mimetype=mimetype,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
