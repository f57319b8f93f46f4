from __future__ import annotations

from ..extensions import db
from posledger.time_utils import to_utc_z


class StoreSettings(db.Model):
    """
    Single-row store configuration.

    tax_rate_bps is the sales tax rate in basis points (1500 = 15%).
    invoice_prefix is prepended to every new invoice number.
    """
    __tablename__ = "store_settings"
    __table_args__ = (
        db.CheckConstraint("tax_rate_bps >= 0 AND tax_rate_bps <= 10000", name="ck_store_settings_tax_rate"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_name = db.Column(db.String(255), nullable=False, default="My Store")
    store_phone = db.Column(db.String(32), nullable=True)
    store_email = db.Column(db.String(255), nullable=True)
    store_address = db.Column(db.String(512), nullable=True)
    logo_url = db.Column(db.String(512), nullable=True)

    currency = db.Column(db.String(8), nullable=False, default="IQD")
    tax_rate_bps = db.Column(db.Integer, nullable=False, default=0)
    invoice_prefix = db.Column(db.String(16), nullable=False, default="INV")
    language = db.Column(db.String(8), nullable=False, default="ar")
    timezone = db.Column(db.String(64), nullable=False, default="UTC")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_name": self.store_name,
            "store_phone": self.store_phone,
            "store_email": self.store_email,
            "store_address": self.store_address,
            "logo_url": self.logo_url,
            "currency": self.currency,
            "tax_rate_bps": self.tax_rate_bps,
            "invoice_prefix": self.invoice_prefix,
            "language": self.language,
            "timezone": self.timezone,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
