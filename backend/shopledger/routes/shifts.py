# Overview: Flask API routes for shift open/close; parses input and returns JSON responses.

"""
Shift API Routes

Shift lifecycle: open -> close (immutable once closed). Closing computes
expected cash from cash sales and the variance against the counted drawer.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import ShopLedgerError
from ..services import shift_service
from ..validation import get_cents, get_int, get_str
from ..decorators import require_auth


shifts_bp = Blueprint("shifts", __name__, url_prefix="/api/shifts")


@shifts_bp.get("/status")
@require_auth
def shift_status_route():
    shift = shift_service.get_shift_status(g.scope)
    return jsonify({
        "is_open": shift is not None,
        "shift": shift.to_dict() if shift else None,
    }), 200


@shifts_bp.post("/open")
@require_auth
def open_shift_route():
    """
    Request body:
    {
        "starting_cash_cents": 10000,
        "notes": "..."  (optional)
    }
    """
    try:
        data = request.get_json(silent=True) or {}

        shift = shift_service.open_shift(
            g.scope,
            starting_cash_cents=get_cents(data, "starting_cash_cents", default=0),
            notes=get_str(data, "notes"),
        )

        current_app.logger.info(
            "Shift %s opened (shop=%s, user=%s, start_cash_cents=%s)",
            shift.id, g.scope.shop_id, g.scope.user_id, shift.start_cash_cents,
        )
        return jsonify({"shift": shift.to_dict()}), 201

    except ShopLedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to open shift")
        return jsonify({"error": "Internal server error"}), 500


@shifts_bp.post("/close")
@require_auth
def close_shift_route():
    """
    Request body:
    {
        "actual_cash_cents": 15000,
        "notes": "..."  (optional)
    }
    """
    try:
        data = request.get_json(silent=True) or {}

        shift = shift_service.close_shift(
            g.scope,
            actual_cash_cents=get_cents(data, "actual_cash_cents", required=True),
            notes=get_str(data, "notes"),
        )

        current_app.logger.info(
            "Shift %s closed (shop=%s, expected_cents=%s, actual_cents=%s, variance_cents=%s)",
            shift.id, g.scope.shop_id, shift.expected_cash_cents,
            shift.actual_cash_cents, shift.variance_cents,
        )
        return jsonify({"shift": shift.to_dict()}), 200

    except ShopLedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to close shift")
        return jsonify({"error": "Internal server error"}), 500


@shifts_bp.get("/history")
@require_auth
def shift_history_route():
    try:
        limit = get_int(request.args, "limit", default=100, minimum=1)
        shifts = shift_service.shift_history(g.scope, limit=limit)
        return jsonify({"shifts": [s.to_dict() for s in shifts]}), 200

    except ShopLedgerError as e:
        return jsonify(e.to_dict()), e.status_code
