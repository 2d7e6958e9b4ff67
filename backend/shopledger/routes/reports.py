# Overview: Flask API routes for daily, inventory, financial and credit reports and the journal.

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import ShopLedgerError
from ..services import reporting_service
from ..validation import get_datetime, get_int
from ..decorators import require_auth


reports_bp = Blueprint("reports", __name__, url_prefix="/api")


@reports_bp.get("/reports/financial")
@require_auth
def financial_report_route():
    """Trial balance with a P&L / balance sheet summary."""
    try:
        return jsonify(reporting_service.trial_balance(g.scope)), 200
    except Exception:
        current_app.logger.exception("Failed to generate financial report")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/reports/credit")
@require_auth
def credit_report_route():
    try:
        return jsonify(reporting_service.credit_report(g.scope)), 200
    except Exception:
        current_app.logger.exception("Failed to generate credit report")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/reports/daily")
@require_auth
def daily_report_route():
    """
    Takings for one day.

    Query: date=YYYY-MM-DD (UTC, defaults to today).
    """
    try:
        on_date = get_datetime(request.args, "date")
        report = reporting_service.daily_report(g.scope, on_date.date() if on_date else None)
        return jsonify(report), 200

    except ShopLedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to generate daily report")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/reports/inventory")
@require_auth
def inventory_report_route():
    try:
        return jsonify(reporting_service.inventory_report(g.scope)), 200
    except Exception:
        current_app.logger.exception("Failed to generate inventory report")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/ledger")
@require_auth
def journal_route():
    """
    Journal rows, newest first.

    With reference_type and reference_id both given, the response also
    carries the debit/credit totals for that reference.
    """
    try:
        reference_type = request.args.get("reference_type")
        reference_id = get_int(request.args, "reference_id", minimum=1)

        payload = {
            "entries": reporting_service.journal(
                g.scope,
                reference_type=reference_type,
                reference_id=reference_id,
            ),
        }
        if reference_type and reference_id is not None:
            payload["totals"] = reporting_service.ledger_balance_check(g.scope, reference_type, reference_id)
        return jsonify(payload), 200

    except ShopLedgerError as e:
        return jsonify(e.to_dict()), e.status_code
