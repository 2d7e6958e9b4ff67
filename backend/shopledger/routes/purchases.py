# Overview: Flask API routes for purchase intake; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import ShopLedgerError
from ..services import purchase_service
from ..validation import get_datetime, get_int, get_str
from ..decorators import require_auth


purchases_bp = Blueprint("purchases", __name__, url_prefix="/api/purchases")


@purchases_bp.post("/")
@purchases_bp.post("")
@require_auth
def record_purchase_route():
    """
    Record stock intake.

    Request body:
    {
        "supplier_id": 1,                 (or supplier_name)
        "supplier_name": "Acme Ltd",
        "supplier_address": "...", "supplier_phone": "...", "supplier_email": "...",
        "items": [{
            "item_id": 3 | "item_name": "Oil Filter",
            "quantity": 10,
            "buying_price_cents": 1000,
            "selling_price_cents": 1300,  (optional)
            "category": "Filters",        (optional, new items)
            "min_stock_level": 5,         (optional)
            "date_purchased": "2024-05-01" (optional)
        }]
    }
    """
    try:
        data = request.get_json(silent=True) or {}

        purchases = purchase_service.record_purchase(
            g.scope,
            items=data.get("items"),
            supplier_id=get_int(data, "supplier_id", minimum=1),
            supplier_name=get_str(data, "supplier_name", max_length=255),
            supplier_address=get_str(data, "supplier_address", max_length=255),
            supplier_phone=get_str(data, "supplier_phone", max_length=32),
            supplier_email=get_str(data, "supplier_email", max_length=255),
        )

        current_app.logger.info(
            "Stock intake recorded (shop=%s, lines=%s, purchase_ids=%s)",
            g.scope.shop_id, len(purchases), [p["purchase_id"] for p in purchases],
        )
        return jsonify({
            "message": "Stock intake recorded successfully.",
            "purchases": purchases,
        }), 201

    except ShopLedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to record purchase")
        return jsonify({"error": "Internal server error"}), 500


@purchases_bp.get("/")
@purchases_bp.get("")
@require_auth
def list_purchases_route():
    """Query params: from, to (ISO dates), supplier_id."""
    try:
        purchases = purchase_service.list_purchases(
            g.scope,
            from_dt=get_datetime(request.args, "from"),
            to_dt=get_datetime(request.args, "to"),
            supplier_id=get_int(request.args, "supplier_id", minimum=1),
        )
        return jsonify({"purchases": [p.to_dict() for p in purchases]}), 200

    except ShopLedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list purchases")
        return jsonify({"error": "Internal server error"}), 500
