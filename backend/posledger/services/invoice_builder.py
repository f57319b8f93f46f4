# Overview: Pure pricing of a cart into an invoice draft; no database access.

"""
Invoice Builder

Turns cart lines plus header fields into a priced, immutable draft:

    subtotal  = sum(quantity * unit_price)        (line discounts not applied)
    tax       = (subtotal - discount) * rate_bps / 10000, rounded half-up
    total     = subtotal - discount + tax
    paid      = total for cash/card/transfer, caller amount for credit
    remaining = max(0, total - paid)
    status    = "completed" if remaining == 0 else "pending"

Persistence and numbering belong to invoice_service.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..errors import EmptyCartError, InvalidLineError, InvoiceValidationError
from ..models.invoices import INVOICE_TYPES, PAYMENT_METHODS

SETTLED_METHODS = ("cash", "card", "transfer")
CREDIT_METHOD = "credit"


@dataclass(frozen=True)
class CartLine:
    product_id: int
    product_name: str
    quantity: int
    unit_price_cents: int
    line_discount_cents: int = 0

    @property
    def total_cents(self) -> int:
        return self.quantity * self.unit_price_cents - self.line_discount_cents


@dataclass(frozen=True)
class InvoiceDraft:
    invoice_type: str
    payment_method: str
    lines: tuple[CartLine, ...]
    subtotal_cents: int
    discount_cents: int
    tax_cents: int
    total_cents: int
    paid_cents: int
    remaining_cents: int
    status: str
    customer_id: int | None = None
    supplier_id: int | None = None
    notes: str | None = None

    @property
    def is_credit(self) -> bool:
        return self.payment_method == CREDIT_METHOD


def _round_half_up_div(numerator: int, denominator: int) -> int:
    """Integer division rounded half away from zero."""
    sign = -1 if (numerator < 0) != (denominator < 0) else 1
    q, r = divmod(abs(numerator), abs(denominator))
    if r * 2 >= abs(denominator):
        q += 1
    return sign * q


def compute_tax_cents(taxable_cents: int, tax_rate_bps: int) -> int:
    return _round_half_up_div(taxable_cents * tax_rate_bps, 10000)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _validate_line(index: int, line: CartLine) -> None:
    if not _is_int(line.quantity) or line.quantity <= 0:
        raise InvalidLineError(
            "Line quantity must be a positive integer",
            details={"line": index, "product_id": line.product_id, "quantity": line.quantity},
        )
    if not _is_int(line.unit_price_cents) or line.unit_price_cents < 0:
        raise InvalidLineError(
            "Line price must be a non-negative integer amount",
            details={"line": index, "product_id": line.product_id},
        )
    if not _is_int(line.line_discount_cents) or line.line_discount_cents < 0:
        raise InvalidLineError(
            "Line discount must be a non-negative integer amount",
            details={"line": index, "product_id": line.product_id},
        )
    if line.total_cents < 0:
        raise InvalidLineError(
            "Line discount cannot exceed the line amount",
            details={"line": index, "product_id": line.product_id},
        )


def build_invoice(
    lines: Iterable[CartLine],
    *,
    invoice_type: str,
    payment_method: str,
    discount_cents: int = 0,
    tax_rate_bps: int = 0,
    tax_cents: int | None = None,
    paid_cents: int | None = None,
    customer_id: int | None = None,
    supplier_id: int | None = None,
    notes: str | None = None,
) -> InvoiceDraft:
    """
    Price a cart.

    tax_cents, when given, overrides the rate-based computation. paid_cents
    is only honoured for credit invoices and is clamped to 0..total.

    Raises:
        EmptyCartError: no lines
        InvalidLineError: a line has quantity <= 0 or a negative amount
        InvoiceValidationError: unknown type/payment method or bad header amounts
    """
    lines = tuple(lines)
    if not lines:
        raise EmptyCartError("Cart is empty")

    if invoice_type not in INVOICE_TYPES:
        raise InvoiceValidationError(
            f"Invalid invoice type: {invoice_type}. Must be one of {list(INVOICE_TYPES)}"
        )
    if payment_method not in PAYMENT_METHODS:
        raise InvoiceValidationError(
            f"Invalid payment method: {payment_method}. Must be one of {list(PAYMENT_METHODS)}"
        )

    for index, line in enumerate(lines):
        _validate_line(index, line)

    if not _is_int(discount_cents) or discount_cents < 0:
        raise InvoiceValidationError("discount_cents must be a non-negative integer")

    subtotal = sum(line.quantity * line.unit_price_cents for line in lines)
    if discount_cents > subtotal:
        raise InvoiceValidationError(
            "Discount cannot exceed subtotal",
            details={"subtotal_cents": subtotal, "discount_cents": discount_cents},
        )

    if tax_cents is None:
        tax = compute_tax_cents(subtotal - discount_cents, tax_rate_bps)
    elif not _is_int(tax_cents) or tax_cents < 0:
        raise InvoiceValidationError("tax_cents must be a non-negative integer")
    else:
        tax = tax_cents

    total = subtotal - discount_cents + tax

    if payment_method in SETTLED_METHODS:
        paid = total
    else:
        if paid_cents is not None and not _is_int(paid_cents):
            raise InvoiceValidationError("paid_cents must be an integer")
        paid = min(max(paid_cents or 0, 0), total)

    remaining = max(0, total - paid)

    return InvoiceDraft(
        invoice_type=invoice_type,
        payment_method=payment_method,
        lines=lines,
        subtotal_cents=subtotal,
        discount_cents=discount_cents,
        tax_cents=tax,
        total_cents=total,
        paid_cents=paid,
        remaining_cents=remaining,
        status="completed" if remaining == 0 else "pending",
        customer_id=customer_id,
        supplier_id=supplier_id,
        notes=notes,
    )
