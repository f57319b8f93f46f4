from __future__ import annotations

from ..extensions import db
from posledger.time_utils import to_utc_z


INVOICE_TYPES = ("sale", "purchase", "return")
INVOICE_STATUSES = ("pending", "completed", "cancelled")
PAYMENT_METHODS = ("cash", "card", "credit", "transfer")


class Invoice(db.Model):
    """
    Sale, purchase or return invoice header.

    Totals are computed once by the invoice builder and stored; they are never
    recomputed on read. Rows are immutable after creation.

    customer_id and supplier_id are mutually exclusive: sales and returns
    reference a customer, purchases reference a supplier.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.UniqueConstraint("invoice_number", name="uq_invoices_number"),
        db.Index("ix_invoices_type_status_created", "type", "status", "created_at"),
        db.CheckConstraint("type IN ('sale', 'purchase', 'return')", name="ck_invoices_type"),
        db.CheckConstraint("status IN ('pending', 'completed', 'cancelled')", name="ck_invoices_status"),
        db.CheckConstraint(
            "payment_method IN ('cash', 'card', 'credit', 'transfer')",
            name="ck_invoices_payment_method",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable number (e.g., "INV000042")
    invoice_number = db.Column(db.String(32), nullable=False)
    type = db.Column(db.String(16), nullable=False)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=True, index=True)

    # All amounts in cents
    subtotal_cents = db.Column(db.Integer, nullable=False)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False)
    paid_cents = db.Column(db.Integer, nullable=False, default=0)
    remaining_cents = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default="completed", index=True)
    payment_method = db.Column(db.String(16), nullable=False, default="cash")
    notes = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    customer = db.relationship("Customer", backref=db.backref("invoices", lazy=True))
    supplier = db.relationship("Supplier", backref=db.backref("invoices", lazy=True))
    items = db.relationship(
        "InvoiceItem",
        back_populates="invoice",
        order_by="InvoiceItem.id",
        lazy=True,
    )

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "type": self.type,
            "customer_id": self.customer_id,
            "supplier_id": self.supplier_id,
            "customer_name": self.customer.name if self.customer else None,
            "supplier_name": self.supplier.name if self.supplier else None,
            "subtotal_cents": self.subtotal_cents,
            "discount_cents": self.discount_cents,
            "tax_cents": self.tax_cents,
            "total_cents": self.total_cents,
            "paid_cents": self.paid_cents,
            "remaining_cents": self.remaining_cents,
            "status": self.status,
            "payment_method": self.payment_method,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class InvoiceItem(db.Model):
    """
    Write-once invoice line.

    product_name and price_cents are snapshots taken when the invoice was
    created. Product cost is NOT snapshotted; profit reports read the live
    product cost.
    """
    __tablename__ = "invoice_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_invoice_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.Integer, nullable=False)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False)

    invoice = db.relationship("Invoice", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "discount_cents": self.discount_cents,
            "total_cents": self.total_cents,
        }


class InvoiceSequence(db.Model):
    """
    Per-prefix invoice counter.

    next_number is advanced with a single UPDATE ... SET next_number =
    next_number + 1 so concurrent invoices never share a number.
    """
    __tablename__ = "invoice_sequences"
    __table_args__ = (
        db.UniqueConstraint("prefix", name="uq_invoice_sequences_prefix"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    prefix = db.Column(db.String(16), nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
