# Overview: Flask API routes for sales; parses input and returns JSON responses.

"""Sales API routes: create, list, fetch and void sales."""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import ShopLedgerError
from ..services import sales_service
from ..validation import get_datetime, get_str
from ..decorators import require_auth


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("/")
@sales_bp.post("")
@require_auth
def create_sale_route():
    """
    Record a completed sale.

    Request body:
    {
        "items": [{"item_id": 1, "quantity": 2, "unit_price_cents": 1500}],
        "customer_name": "Jane",      (required for credit)
        "customer_phone": "0700...",  (optional)
        "payment_type": "cash" | "mpesa" | "sacco" | "credit",
        "notes": "..."                (optional)
    }
    """
    try:
        data = request.get_json(silent=True) or {}

        sale = sales_service.create_sale(
            g.scope,
            items=data.get("items"),
            payment_type=data.get("payment_type"),
            customer_name=get_str(data, "customer_name", max_length=255),
            customer_phone=get_str(data, "customer_phone", max_length=32),
            notes=get_str(data, "notes", max_length=255),
        )

        current_app.logger.info(
            "Sale %s recorded (shop=%s, total_cents=%s, payment=%s)",
            sale.receipt_number, g.scope.shop_id, sale.total_amount_cents, sale.payment_type,
        )
        return jsonify(sales_service.sale_payload(sale)), 201

    except ShopLedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/")
@sales_bp.get("")
@require_auth
def list_sales_route():
    """Query params: from, to (ISO dates), payment_type, status."""
    try:
        sales = sales_service.list_sales(
            g.scope,
            from_dt=get_datetime(request.args, "from"),
            to_dt=get_datetime(request.args, "to"),
            payment_type=request.args.get("payment_type"),
            status=request.args.get("status"),
        )
        return jsonify({"sales": sales}), 200

    except ShopLedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(g.scope, sale_id)
        return jsonify(sales_service.sale_payload(sale)), 200

    except ShopLedgerError as e:
        return jsonify(e.to_dict()), e.status_code


@sales_bp.delete("/<int:sale_id>")
@sales_bp.post("/<int:sale_id>/void")
@require_auth
def void_sale_route(sale_id: int):
    """
    Void a completed sale.

    Restores stock and posts reversing journal entries; the sale row is
    kept with status 'voided'.
    """
    try:
        sale = sales_service.void_sale(g.scope, sale_id)

        current_app.logger.info(
            "Sale %s voided (shop=%s, user=%s)",
            sale.receipt_number, g.scope.shop_id, g.scope.user_id,
        )
        return jsonify({
            "message": "Sale voided successfully. Audit trail and reversing entries recorded.",
            "sale": sale.to_dict(),
        }), 200

    except ShopLedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to void sale")
        return jsonify({"error": "Internal server error"}), 500
