# Overview: Stock ledger; applies signed quantity deltas to products.

from __future__ import annotations

from flask import current_app
from sqlalchemy import update

from ..errors import InsufficientStockError, InvoiceValidationError
from ..extensions import db
from ..models import Product


def adjust_stock(product_id: int, delta: int, *, allow_negative: bool | None = None) -> int:
    """
    Apply a signed delta to a product's on-hand quantity; return the new quantity.

    The change is a single UPDATE ... SET quantity = quantity + :delta, so
    concurrent adjustments never lose each other. When negative stock is
    disallowed the floor is part of the same statement's WHERE clause.

    Does not commit; runs inside the caller's transaction.
    """
    if allow_negative is None:
        allow_negative = current_app.config.get("ALLOW_NEGATIVE_STOCK", True)

    stmt = update(Product).where(Product.id == product_id)
    if delta < 0 and not allow_negative:
        stmt = stmt.where(Product.quantity + delta >= 0)
    stmt = stmt.values(
        quantity=Product.quantity + delta,
        version_id=Product.version_id + 1,
    )

    result = db.session.execute(stmt)
    if not result.rowcount:
        on_hand = db.session.query(Product.quantity).filter_by(id=product_id).scalar()
        if on_hand is None:
            raise InvoiceValidationError("Product not found", details={"product_id": product_id})
        raise InsufficientStockError(
            "Insufficient stock",
            details={"product_id": product_id, "requested_quantity": -delta, "on_hand": on_hand},
        )

    return db.session.query(Product.quantity).filter_by(id=product_id).scalar()


def stock_delta_for(invoice_type: str, quantity: int) -> int:
    """Sales remove stock; purchases and returns put it back."""
    return -quantity if invoice_type == "sale" else quantity
