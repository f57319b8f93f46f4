# Overview: Service-layer operations for customers and suppliers.

"""
Party Service

CRUD for customers and suppliers. balance_cents may be seeded on create
(an opening balance); afterwards only the balance ledger moves it.
"""

from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import Invoice
from ..validation import ConflictError
from .balance_ledger import party_model


def list_parties(party_type: str, *, search: str | None = None, with_balance: bool = False) -> list:
    model = party_model(party_type)
    query = db.session.query(model)

    if search:
        term = f"%{search.strip()}%"
        query = query.filter(
            or_(model.name.ilike(term), model.phone.ilike(term), model.email.ilike(term))
        )
    if with_balance:
        query = query.filter(model.balance_cents > 0)

    return query.order_by(model.name.asc(), model.id.asc()).all()


def get_party(party_type: str, party_id: int):
    model = party_model(party_type)
    return db.session.query(model).filter_by(id=party_id).first()


def create_party(party_type: str, *, patch: dict):
    model = party_model(party_type)
    party = model()
    for key, value in patch.items():
        setattr(party, key, value)
    db.session.add(party)
    db.session.commit()
    return party


def update_party(party_type: str, party_id: int, *, patch: dict):
    party = get_party(party_type, party_id)
    if not party:
        return None
    for key, value in patch.items():
        setattr(party, key, value)
    db.session.commit()
    return party


def delete_party(party_type: str, party_id: int) -> bool:
    """
    Delete a party with no open balance and no invoices.

    Raises ConflictError otherwise; the invoice history keeps its references.
    """
    party = get_party(party_type, party_id)
    if not party:
        return False

    if party.balance_cents != 0:
        raise ConflictError("Cannot delete a party with an outstanding balance.")

    fk = Invoice.customer_id if party_type == "customer" else Invoice.supplier_id
    if db.session.query(Invoice.id).filter(fk == party.id).first():
        raise ConflictError("Cannot delete a party referenced by invoices.")

    db.session.delete(party)
    db.session.commit()
    return True
