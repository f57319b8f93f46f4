# Overview: Atomic invoice number allocation.

from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..errors import InvoiceValidationError
from ..extensions import db
from ..models import InvoiceSequence

INVOICE_NUMBER_PAD = 6


class InvoiceSequenceError(InvoiceValidationError):
    """Raised when an invoice number cannot be allocated for a prefix."""


def _advance(prefix: str) -> int | None:
    stmt = (
        update(InvoiceSequence)
        .where(InvoiceSequence.prefix == prefix)
        .values(next_number=InvoiceSequence.next_number + 1)
    )
    result = db.session.execute(stmt)
    if not result.rowcount:
        return None
    db.session.flush()
    current = (
        db.session.query(InvoiceSequence.next_number)
        .filter_by(prefix=prefix)
        .scalar()
    )
    return current - 1


def next_invoice_number(prefix: str, *, pad: int = INVOICE_NUMBER_PAD) -> str:
    """
    Allocate the next invoice number for a prefix, e.g. "INV000042".

    The counter row is advanced with a single UPDATE inside the caller's
    transaction, so the number is released again if that transaction rolls
    back. Does not commit.
    """
    if not prefix:
        raise InvoiceSequenceError("prefix is required")

    next_num = _advance(prefix)
    if next_num is None:
        seq = InvoiceSequence(prefix=prefix, next_number=2)
        try:
            with db.session.begin_nested():
                db.session.add(seq)
            next_num = 1
        except IntegrityError:
            # Another writer created the row first
            next_num = _advance(prefix)
            if next_num is None:
                raise

    return f"{prefix}{next_num:0{pad}d}"
