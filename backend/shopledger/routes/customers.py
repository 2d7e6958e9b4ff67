# Overview: Flask API routes for customers and credit payments; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import ShopLedgerError
from ..services import customer_service
from ..validation import get_datetime, get_int, get_str
from ..decorators import require_auth


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("/")
@customers_bp.get("")
@require_auth
def list_customers_route():
    customers = customer_service.list_customers(g.scope, q=request.args.get("q"))
    return jsonify({"customers": [c.to_dict() for c in customers]}), 200


@customers_bp.get("/<int:customer_id>")
@require_auth
def get_customer_route(customer_id: int):
    try:
        customer = customer_service.get_customer(g.scope, customer_id)
        return jsonify({"customer": customer.to_dict()}), 200

    except ShopLedgerError as e:
        return jsonify(e.to_dict()), e.status_code


@customers_bp.get("/<int:customer_id>/ledger")
@require_auth
def customer_ledger_route(customer_id: int):
    """Credit entries of one customer, newest first, with receipt numbers."""
    try:
        entries = customer_service.get_credit_ledger(g.scope, customer_id)
        return jsonify({"ledger": [e.to_dict() for e in entries]}), 200

    except ShopLedgerError as e:
        return jsonify(e.to_dict()), e.status_code


@customers_bp.post("/<int:customer_id>/pay")
@require_auth
def pay_credit_route(customer_id: int):
    """
    Record a credit payment.

    Request body:
    {
        "amount_cents": 50000,
        "ledger_id": 7,                 (optional; general payment if absent)
        "payment_date": "2024-05-01",   (optional, defaults to now)
        "notes": "..."                  (optional)
    }
    """
    try:
        data = request.get_json(silent=True) or {}

        customer = customer_service.pay_credit(
            g.scope,
            customer_id,
            amount_cents=get_int(data, "amount_cents"),
            ledger_id=get_int(data, "ledger_id", minimum=1),
            payment_date=get_datetime(data, "payment_date"),
            notes=get_str(data, "notes", max_length=255),
        )

        current_app.logger.info(
            "Credit payment recorded (shop=%s, customer=%s, amount_cents=%s)",
            g.scope.shop_id, customer.id, data.get("amount_cents"),
        )
        return jsonify({"customer": customer.to_dict()}), 200

    except ShopLedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to record credit payment")
        return jsonify({"error": "Internal server error"}), 500
