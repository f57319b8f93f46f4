# Overview: Flask API routes for customer and supplier debts; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_permission
from ..errors import LedgerError
from ..services import balance_ledger


debts_bp = Blueprint("debts", __name__, url_prefix="/api/debts")


@debts_bp.get("")
@require_auth
@require_permission("VIEW_DEBTS")
def outstanding_debts_route():
    """Parties with a positive balance. ?party_type=customer (default) | supplier."""
    party_type = request.args.get("party_type", balance_ledger.PARTY_CUSTOMER)
    try:
        return jsonify(balance_ledger.outstanding_balances(party_type))
    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code


def _record(party_type: str, party_id: int):
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400

    try:
        receipt = balance_ledger.record_payment(
            party_type,
            party_id,
            data.get("amount_cents"),
            user_id=g.current_user.id,
            notes=data.get("notes"),
        )
    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to record %s payment", party_type)
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(receipt), 201


@debts_bp.post("/customers/<int:customer_id>/payments")
@require_auth
@require_permission("RECORD_PAYMENT")
def customer_payment_route(customer_id: int):
    """
    Record a customer debt payment.

    Request body: {"amount_cents": 500, "notes": "..."}
    Returns the payment receipt (201).
    """
    return _record(balance_ledger.PARTY_CUSTOMER, customer_id)


@debts_bp.post("/suppliers/<int:supplier_id>/payments")
@require_auth
@require_permission("RECORD_PAYMENT")
def supplier_payment_route(supplier_id: int):
    return _record(balance_ledger.PARTY_SUPPLIER, supplier_id)


@debts_bp.get("/payments")
@require_auth
@require_permission("VIEW_DEBTS")
def list_payments_route():
    limit = request.args.get("limit", 100, type=int)
    limit = max(1, min(limit, 500))
    try:
        payments = balance_ledger.list_payments(
            party_type=request.args.get("party_type"),
            party_id=request.args.get("party_id", type=int),
            limit=limit,
        )
    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    return jsonify({
        "items": [p.to_dict() for p in payments],
        "count": len(payments),
    })
