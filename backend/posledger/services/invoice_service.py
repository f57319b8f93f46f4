# Overview: Invoice processor; persists an invoice and applies its stock and balance effects.

"""
Invoice Processor

One call realizes one sale, purchase or return:

1. validate the header (credit invoices need a party to carry the balance)
2. price the cart with invoice_builder
3. allocate the invoice number, insert header and items
4. move stock for every item (sale: -qty, purchase/return: +qty)
5. credit invoices with a remainder move the party balance

Steps 3-5 share one database transaction: either every effect is
committed or none is. Store failures surface as PersistenceError.
"""

from __future__ import annotations

from flask import current_app

from ..errors import EmptyCartError, InvalidLineError, InvoiceValidationError, MissingPartyError
from ..extensions import db
from ..models import Customer, Invoice, InvoiceItem, Product, Supplier
from posledger.time_utils import parse_iso_datetime, utcnow
from posledger.validation import ValidationError, coerce_int
from .balance_ledger import apply_credit_purchase, apply_credit_sale
from .concurrency import run_in_transaction
from .invoice_builder import CartLine, InvoiceDraft, build_invoice
from .sequence_service import next_invoice_number
from .settings_service import get_store_settings
from .stock_ledger import adjust_stock, stock_delta_for


def _as_int(value, key: str, *, error_cls=InvoiceValidationError, details: dict | None = None) -> int | None:
    """Strict integer coercion for payload fields; digit strings are accepted."""
    if value is None:
        return None
    try:
        return coerce_int(key, value)
    except ValidationError as e:
        raise error_cls(str(e), details=details) from e


def _optional_int(payload: dict, key: str) -> int | None:
    return _as_int(payload.get(key), key)


def _validate_parties(invoice_type: str, payment_method: str, customer_id, supplier_id) -> None:
    if invoice_type in ("sale", "return") and supplier_id is not None:
        raise InvoiceValidationError(f"A {invoice_type} invoice cannot reference a supplier")
    if invoice_type == "purchase" and customer_id is not None:
        raise InvoiceValidationError("A purchase invoice cannot reference a customer")

    if payment_method != "credit":
        return

    if invoice_type == "sale" and customer_id is None:
        raise MissingPartyError("Credit sales require a customer")
    if invoice_type == "purchase" and supplier_id is None:
        raise MissingPartyError("Credit purchases require a supplier")
    if invoice_type == "return":
        raise InvoiceValidationError("Returns cannot be made on credit")


def _resolve_lines(invoice_type: str, items: list) -> list[CartLine]:
    """Attach product snapshots; missing prices default to price (sale/return) or cost (purchase)."""
    lines: list[CartLine] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise InvoiceValidationError("Each item must be an object", details={"line": index})

        where = {"line": index}
        product_id = item.get("product_id")
        if product_id is None:
            raise InvoiceValidationError("product_id must be an integer", details=where)
        product_id = _as_int(product_id, "product_id", details=where)

        product = db.session.query(Product).filter_by(id=product_id).first()
        if not product:
            raise InvoiceValidationError(
                "Product not found",
                details={"line": index, "product_id": product_id},
            )

        where["product_id"] = product.id
        price = _as_int(item.get("price_cents"), "price_cents", error_cls=InvalidLineError, details=where)
        if price is None:
            price = product.cost_cents if invoice_type == "purchase" else product.price_cents

        lines.append(
            CartLine(
                product_id=product.id,
                product_name=product.name,
                quantity=_as_int(item.get("quantity"), "quantity", error_cls=InvalidLineError, details=where),
                unit_price_cents=price,
                line_discount_cents=_as_int(
                    item.get("discount_cents"), "discount_cents", error_cls=InvalidLineError, details=where
                ) or 0,
            )
        )
    return lines


def _ensure_party_exists(model, party_id: int | None) -> None:
    if party_id is None:
        return
    if not db.session.query(model.id).filter_by(id=party_id).first():
        raise InvoiceValidationError(f"{model.__name__} not found", details={"id": party_id})


def prepare_invoice(payload: dict) -> InvoiceDraft:
    """
    Validate and price an invoice payload without writing anything.

    Payload: {type, payment_method?, customer_id?, supplier_id?,
    discount_cents?, tax_cents?, paid_cents?, notes?,
    items: [{product_id, quantity, price_cents?, discount_cents?}]}
    """
    if not isinstance(payload, dict):
        raise InvoiceValidationError("Invalid JSON payload")

    invoice_type = payload.get("type")
    payment_method = payload.get("payment_method") or "cash"
    items = payload.get("items")

    if items is None or items == []:
        raise EmptyCartError("Cart is empty")
    if not isinstance(items, list):
        raise InvoiceValidationError("items must be a list")

    customer_id = _optional_int(payload, "customer_id")
    supplier_id = _optional_int(payload, "supplier_id")

    _validate_parties(invoice_type, payment_method, customer_id, supplier_id)
    _ensure_party_exists(Customer, customer_id)
    _ensure_party_exists(Supplier, supplier_id)

    settings = get_store_settings()
    # Purchases are recorded at supplier cost, untaxed unless tax_cents is given
    tax_rate_bps = 0 if invoice_type == "purchase" else settings.tax_rate_bps

    return build_invoice(
        _resolve_lines(invoice_type, items),
        invoice_type=invoice_type,
        payment_method=payment_method,
        discount_cents=_optional_int(payload, "discount_cents") or 0,
        tax_rate_bps=tax_rate_bps,
        tax_cents=_optional_int(payload, "tax_cents"),
        paid_cents=_optional_int(payload, "paid_cents"),
        customer_id=customer_id,
        supplier_id=supplier_id,
        notes=payload.get("notes"),
    )


def _persist(draft: InvoiceDraft, user_id: int | None) -> Invoice:
    settings = get_store_settings()

    invoice = Invoice(
        invoice_number=next_invoice_number(settings.invoice_prefix),
        type=draft.invoice_type,
        customer_id=draft.customer_id,
        supplier_id=draft.supplier_id,
        subtotal_cents=draft.subtotal_cents,
        discount_cents=draft.discount_cents,
        tax_cents=draft.tax_cents,
        total_cents=draft.total_cents,
        paid_cents=draft.paid_cents,
        remaining_cents=draft.remaining_cents,
        status=draft.status,
        payment_method=draft.payment_method,
        notes=draft.notes,
        created_by=user_id,
        created_at=utcnow(),
    )
    db.session.add(invoice)
    db.session.flush()

    for line in draft.lines:
        db.session.add(
            InvoiceItem(
                invoice_id=invoice.id,
                product_id=line.product_id,
                product_name=line.product_name,
                quantity=line.quantity,
                price_cents=line.unit_price_cents,
                discount_cents=line.line_discount_cents,
                total_cents=line.total_cents,
            )
        )
    db.session.flush()

    for line in draft.lines:
        adjust_stock(line.product_id, stock_delta_for(draft.invoice_type, line.quantity))

    if draft.is_credit and draft.remaining_cents > 0:
        if draft.invoice_type == "sale":
            apply_credit_sale(draft.customer_id, draft.remaining_cents, draft.total_cents)
        elif draft.invoice_type == "purchase":
            apply_credit_purchase(draft.supplier_id, draft.remaining_cents, draft.total_cents)

    return invoice


def process_invoice(payload: dict, *, user_id: int | None = None) -> Invoice:
    """
    Create an invoice and apply all of its effects atomically.

    Returns the committed Invoice (with items) for receipt rendering.

    Raises:
        EmptyCartError, InvalidLineError, InvoiceValidationError,
        MissingPartyError, InsufficientStockError: nothing written
        PersistenceError: store failure; nothing written
    """
    def _op() -> Invoice:
        draft = prepare_invoice(payload)
        return _persist(draft, user_id)

    invoice = run_in_transaction(_op)
    current_app.logger.info(
        "Processed %s invoice %s total=%d remaining=%d",
        invoice.type,
        invoice.invoice_number,
        invoice.total_cents,
        invoice.remaining_cents,
    )
    return invoice


def get_invoice(invoice_id: int) -> Invoice | None:
    return db.session.query(Invoice).filter_by(id=invoice_id).first()


def list_invoices(
    *,
    invoice_type: str | None = None,
    status: str | None = None,
    customer_id: int | None = None,
    supplier_id: int | None = None,
    start: str | None = None,
    end: str | None = None,
    search: str | None = None,
    limit: int = 100,
) -> list[Invoice]:
    query = db.session.query(Invoice)

    if invoice_type:
        query = query.filter(Invoice.type == invoice_type)
    if status:
        query = query.filter(Invoice.status == status)
    if customer_id is not None:
        query = query.filter(Invoice.customer_id == customer_id)
    if supplier_id is not None:
        query = query.filter(Invoice.supplier_id == supplier_id)

    try:
        start_dt = parse_iso_datetime(start) if start else None
        end_dt = parse_iso_datetime(end) if end else None
    except ValueError:
        raise InvoiceValidationError("start/end must be ISO-8601 datetimes")
    if start_dt:
        query = query.filter(Invoice.created_at >= start_dt)
    if end_dt:
        query = query.filter(Invoice.created_at <= end_dt)

    if search:
        query = query.filter(Invoice.invoice_number.ilike(f"%{search}%"))

    return query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).limit(limit).all()


def build_receipt(invoice: Invoice) -> dict:
    """{invoice, items, customer?, supplier?, store_settings} for the print layout."""
    settings = get_store_settings()
    return {
        "invoice": invoice.to_dict(),
        "items": [item.to_dict() for item in invoice.items],
        "customer": invoice.customer.to_dict() if invoice.customer else None,
        "supplier": invoice.supplier.to_dict() if invoice.supplier else None,
        "store_settings": settings.to_dict(),
    }
