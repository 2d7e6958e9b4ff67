# Overview: Flask API routes for suppliers; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import ShopLedgerError
from ..services import supplier_service
from ..validation import get_str
from ..decorators import require_auth


suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


def _supplier_fields(data: dict) -> dict:
    return {
        "name": get_str(data, "name", max_length=255),
        "address": get_str(data, "address", max_length=255),
        "phone": get_str(data, "phone", max_length=32),
        "email": get_str(data, "email", max_length=255),
    }


@suppliers_bp.get("/")
@suppliers_bp.get("")
@require_auth
def list_suppliers_route():
    return jsonify({"suppliers": supplier_service.list_suppliers(g.scope)}), 200


@suppliers_bp.get("/<int:supplier_id>")
@require_auth
def get_supplier_route(supplier_id: int):
    try:
        supplier = supplier_service.get_supplier(g.scope, supplier_id)
        return jsonify({"supplier": supplier.to_dict()}), 200

    except ShopLedgerError as e:
        return jsonify(e.to_dict()), e.status_code


@suppliers_bp.post("/")
@suppliers_bp.post("")
@require_auth
def create_supplier_route():
    try:
        data = request.get_json(silent=True) or {}
        supplier = supplier_service.create_supplier(g.scope, **_supplier_fields(data))
        current_app.logger.info("Supplier %s created (shop=%s)", supplier.id, g.scope.shop_id)
        return jsonify({"supplier": supplier.to_dict()}), 201

    except ShopLedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create supplier")
        return jsonify({"error": "Internal server error"}), 500


@suppliers_bp.put("/<int:supplier_id>")
@require_auth
def update_supplier_route(supplier_id: int):
    try:
        data = request.get_json(silent=True) or {}
        supplier = supplier_service.update_supplier(g.scope, supplier_id, _supplier_fields(data))
        return jsonify({"supplier": supplier.to_dict()}), 200

    except ShopLedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update supplier")
        return jsonify({"error": "Internal server error"}), 500


@suppliers_bp.get("/<int:supplier_id>/purchases")
@require_auth
def supplier_purchases_route(supplier_id: int):
    try:
        purchases = supplier_service.supplier_purchases(g.scope, supplier_id)
        return jsonify({"purchases": [p.to_dict() for p in purchases]}), 200

    except ShopLedgerError as e:
        return jsonify(e.to_dict()), e.status_code
