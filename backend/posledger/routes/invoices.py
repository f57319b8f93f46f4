# Overview: Flask API routes for invoice operations; parses input and returns JSON responses.

"""
Invoice Routes

SECURITY: All routes require authentication.
- Listing and reading invoices requires VIEW_INVOICES
- Creating a sale or return requires CREATE_SALE
- Creating a purchase requires CREATE_PURCHASE
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_permission
from ..errors import LedgerError
from ..services import invoice_service, permission_service


invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


@invoices_bp.get("")
@require_auth
@require_permission("VIEW_INVOICES")
def list_invoices_route():
    """
    List invoices, newest first.

    Query parameters:
    - type: sale | purchase | return
    - status: completed | pending | cancelled
    - customer_id, supplier_id
    - start, end: ISO-8601 bounds on created_at
    - search: invoice number substring
    - limit: default 100, max 500
    """
    limit = request.args.get("limit", 100, type=int)
    limit = max(1, min(limit, 500))

    try:
        invoices = invoice_service.list_invoices(
            invoice_type=request.args.get("type"),
            status=request.args.get("status"),
            customer_id=request.args.get("customer_id", type=int),
            supplier_id=request.args.get("supplier_id", type=int),
            start=request.args.get("start"),
            end=request.args.get("end"),
            search=request.args.get("search"),
            limit=limit,
        )
    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code

    return jsonify({
        "items": [inv.to_dict() for inv in invoices],
        "count": len(invoices),
    })


@invoices_bp.post("")
@require_auth
def create_invoice_route():
    """
    Create a sale, purchase or return and apply its stock and balance effects.

    Request body:
    {
        "type": "sale",                 // sale | purchase | return
        "payment_method": "cash",       // cash | card | transfer | credit
        "customer_id": 1,               // required for credit sales
        "supplier_id": null,            // required for credit purchases
        "discount_cents": 0,
        "tax_cents": null,              // overrides the store tax rate
        "paid_cents": 0,                // credit only
        "notes": "...",
        "items": [{"product_id": 1, "quantity": 2, "price_cents": 100}]
    }

    Returns:
        Created invoice with items (201)
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400

    required = "CREATE_PURCHASE" if data.get("type") == "purchase" else "CREATE_SALE"
    if not permission_service.can_access(g.current_user, required):
        return jsonify({
            "error": "Permission denied",
            "required_permission": required,
        }), 403

    try:
        invoice = invoice_service.process_invoice(data, user_id=g.current_user.id)
    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to process invoice")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(invoice.to_dict(include_items=True)), 201


@invoices_bp.get("/<int:invoice_id>")
@require_auth
@require_permission("VIEW_INVOICES")
def get_invoice_route(invoice_id: int):
    invoice = invoice_service.get_invoice(invoice_id)
    if not invoice:
        return jsonify({"error": "Invoice not found"}), 404
    return jsonify(invoice.to_dict(include_items=True))


@invoices_bp.get("/<int:invoice_id>/receipt")
@require_auth
@require_permission("VIEW_INVOICES")
def invoice_receipt_route(invoice_id: int):
    """Printable receipt: {invoice, items, customer, supplier, store_settings}."""
    invoice = invoice_service.get_invoice(invoice_id)
    if not invoice:
        return jsonify({"error": "Invoice not found"}), 404
    return jsonify(invoice_service.build_receipt(invoice))
