# Overview: Balance ledger; customer and supplier running balances and debt payments.

"""
Balance Ledger

WHY: A party's balance is the one number the shop trusts to answer "how
much do they owe". It is only ever moved here:

- credit invoices add the unpaid remainder (and the invoice total to
  lifetime purchases)
- debt payments subtract the amount paid, never below zero

Every change is a single UPDATE with an arithmetic SET clause so two tills
recording against the same customer cannot overwrite each other.
"""

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy import update

from ..errors import InvalidPaymentError, InvoiceValidationError
from ..extensions import db
from ..models import Customer, Supplier, DebtPayment
from posledger.time_utils import utcnow, to_utc_z
from .concurrency import lock_for_update, run_in_transaction

PARTY_CUSTOMER = "customer"
PARTY_SUPPLIER = "supplier"

PARTY_MODELS = {
    PARTY_CUSTOMER: Customer,
    PARTY_SUPPLIER: Supplier,
}


def party_model(party_type: str):
    try:
        return PARTY_MODELS[party_type]
    except KeyError:
        raise InvoiceValidationError(f"Unknown party type: {party_type}")


def _apply_credit(model, party_id: int, remaining_cents: int, invoice_total_cents: int) -> None:
    stmt = (
        update(model)
        .where(model.id == party_id)
        .values(
            balance_cents=model.balance_cents + remaining_cents,
            total_purchases_cents=model.total_purchases_cents + invoice_total_cents,
            version_id=model.version_id + 1,
        )
    )
    result = db.session.execute(stmt)
    if not result.rowcount:
        raise InvoiceValidationError(
            f"{model.__name__} not found",
            details={"id": party_id},
        )


def apply_credit_sale(customer_id: int, remaining_cents: int, invoice_total_cents: int) -> None:
    """balance += remaining; total_purchases += total. Does not commit."""
    _apply_credit(Customer, customer_id, remaining_cents, invoice_total_cents)


def apply_credit_purchase(supplier_id: int, remaining_cents: int, invoice_total_cents: int) -> None:
    """Supplier mirror of apply_credit_sale. Does not commit."""
    _apply_credit(Supplier, supplier_id, remaining_cents, invoice_total_cents)


def generate_receipt_number() -> str:
    """
    REC + last 8 digits of the epoch-millisecond clock.

    Not a sequence: two payments in the same millisecond share a number.
    """
    return f"REC{str(int(time.time() * 1000))[-8:]}"


def record_payment(
    party_type: str,
    party_id: int,
    amount_cents: int,
    *,
    user_id: int | None = None,
    notes: str | None = None,
) -> dict:
    """
    Record a payment against a customer's (or supplier's) balance.

    Requires 0 < amount <= current balance; the balance is unchanged on
    failure. Returns the receipt descriptor:

        {receipt_number, previous_balance_cents, amount_cents,
         new_balance_cents, timestamp, ...}

    Raises:
        InvalidPaymentError: amount <= 0, not an integer, or > balance
        InvoiceValidationError: party not found
    """
    model = party_model(party_type)

    if not isinstance(amount_cents, int) or isinstance(amount_cents, bool):
        raise InvalidPaymentError("Payment amount must be an integer amount in cents")
    if amount_cents <= 0:
        raise InvalidPaymentError(
            "Payment amount must be positive",
            details={"amount_cents": amount_cents},
        )

    def _op() -> dict:
        party = lock_for_update(db.session.query(model).filter_by(id=party_id)).first()
        if not party:
            raise InvoiceValidationError(f"{model.__name__} not found", details={"id": party_id})

        previous_balance = party.balance_cents
        if amount_cents > previous_balance:
            raise InvalidPaymentError(
                "Payment exceeds outstanding balance",
                details={"amount_cents": amount_cents, "balance_cents": previous_balance},
            )

        # Guarded decrement: a concurrent payment that already lowered the
        # balance makes this match zero rows instead of going negative.
        result = db.session.execute(
            update(model)
            .where(model.id == party_id, model.balance_cents >= amount_cents)
            .values(
                balance_cents=model.balance_cents - amount_cents,
                version_id=model.version_id + 1,
            )
        )
        if not result.rowcount:
            raise InvalidPaymentError(
                "Balance changed while recording payment",
                details={"amount_cents": amount_cents},
            )

        new_balance = db.session.query(model.balance_cents).filter_by(id=party_id).scalar()
        previous_balance = new_balance + amount_cents

        payment = DebtPayment(
            party_type=party_type,
            party_id=party_id,
            amount_cents=amount_cents,
            previous_balance_cents=previous_balance,
            new_balance_cents=new_balance,
            receipt_number=generate_receipt_number(),
            notes=notes,
            created_by=user_id,
            created_at=utcnow(),
        )
        db.session.add(payment)
        db.session.flush()

        return {
            "payment_id": payment.id,
            "receipt_number": payment.receipt_number,
            "party_type": party_type,
            "party_id": party_id,
            "party_name": party.name,
            "previous_balance_cents": previous_balance,
            "amount_cents": amount_cents,
            "new_balance_cents": new_balance,
            "notes": notes,
            "timestamp": to_utc_z(payment.created_at),
        }

    receipt = run_in_transaction(_op)
    current_app.logger.info(
        "Recorded %s payment %s: %s %d -> %d",
        party_type,
        receipt["receipt_number"],
        party_id,
        receipt["previous_balance_cents"],
        receipt["new_balance_cents"],
    )
    return receipt


def apply_payment(customer_id: int, amount_cents: int, *, user_id: int | None = None, notes: str | None = None) -> dict:
    """Customer debt payment; see record_payment."""
    return record_payment(PARTY_CUSTOMER, customer_id, amount_cents, user_id=user_id, notes=notes)


def apply_supplier_payment(supplier_id: int, amount_cents: int, *, user_id: int | None = None, notes: str | None = None) -> dict:
    """Payment made to a supplier against what the shop owes; see record_payment."""
    return record_payment(PARTY_SUPPLIER, supplier_id, amount_cents, user_id=user_id, notes=notes)


def list_payments(
    *,
    party_type: str | None = None,
    party_id: int | None = None,
    limit: int = 100,
) -> list[DebtPayment]:
    query = db.session.query(DebtPayment)
    if party_type:
        party_model(party_type)
        query = query.filter(DebtPayment.party_type == party_type)
    if party_id is not None:
        query = query.filter(DebtPayment.party_id == party_id)
    return query.order_by(DebtPayment.created_at.desc(), DebtPayment.id.desc()).limit(limit).all()


def outstanding_balances(party_type: str = PARTY_CUSTOMER) -> dict:
    """Parties with a positive balance, largest first, plus the total."""
    model = party_model(party_type)
    parties = (
        db.session.query(model)
        .filter(model.balance_cents > 0)
        .order_by(model.balance_cents.desc(), model.id.asc())
        .all()
    )
    return {
        "party_type": party_type,
        "total_cents": sum(p.balance_cents for p in parties),
        "count": len(parties),
        "rows": [p.to_dict() for p in parties],
    }
