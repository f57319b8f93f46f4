from __future__ import annotations

from sqlalchemy.orm import declared_attr

from ..extensions import db
from posledger.time_utils import to_utc_z


class _PartyMixin:
    """
    Columns shared by customers and suppliers.

    balance_cents is the signed running amount owed (by a customer, or to a
    supplier). It and total_purchases_cents are written only by the balance
    ledger; CRUD routes never accept them after creation.
    """
    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    address = db.Column(db.String(512), nullable=True)

    # Denormalized aggregates (updated by the balance ledger)
    balance_cents = db.Column(db.Integer, nullable=False, default=0)
    total_purchases_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    @declared_attr
    def __mapper_args__(cls):
        return {"version_id_col": cls.version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "balance_cents": self.balance_cents,
            "total_purchases_cents": self.total_purchases_cents,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }


class Customer(_PartyMixin, db.Model):
    """Customer with a running debt balance from credit sales."""
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_name", "name"),
        {"sqlite_autoincrement": True},
    )


class Supplier(_PartyMixin, db.Model):
    """Supplier with a running balance from credit purchases."""
    __tablename__ = "suppliers"
    __table_args__ = (
        db.Index("ix_suppliers_name", "name"),
        {"sqlite_autoincrement": True},
    )


class DebtPayment(db.Model):
    """
    Append-only record of a payment against a customer or supplier balance.

    IMMUTABLE: Rows are never updated or deleted. receipt_number is derived
    from the wall clock, not from a sequence.
    """
    __tablename__ = "debt_payments"
    __table_args__ = (
        db.Index("ix_debt_payments_party", "party_type", "party_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    party_type = db.Column(db.String(16), nullable=False)  # customer, supplier
    party_id = db.Column(db.Integer, nullable=False)

    amount_cents = db.Column(db.Integer, nullable=False)
    previous_balance_cents = db.Column(db.Integer, nullable=False)
    new_balance_cents = db.Column(db.Integer, nullable=False)

    receipt_number = db.Column(db.String(32), nullable=False, index=True)
    notes = db.Column(db.String(255), nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "party_type": self.party_type,
            "party_id": self.party_id,
            "amount_cents": self.amount_cents,
            "previous_balance_cents": self.previous_balance_cents,
            "new_balance_cents": self.new_balance_cents,
            "receipt_number": self.receipt_number,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }
