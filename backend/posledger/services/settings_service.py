# Overview: Service-layer operations for store settings.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import StoreSettings


def get_store_settings(*, create: bool = True) -> StoreSettings | None:
    """
    Return the single settings row, creating it from config defaults on
    first use. With create=False, returns None when nothing is stored yet.
    """
    settings = db.session.query(StoreSettings).order_by(StoreSettings.id.asc()).first()
    if settings or not create:
        return settings

    settings = StoreSettings(
        invoice_prefix=current_app.config.get("DEFAULT_INVOICE_PREFIX", "INV"),
        timezone=current_app.config.get("DEFAULT_STORE_TIMEZONE", "UTC"),
    )
    db.session.add(settings)
    db.session.flush()
    return settings


def update_store_settings(patch: dict) -> StoreSettings:
    """Upsert the settings row with an already-validated patch."""
    settings = get_store_settings()
    for key, value in patch.items():
        setattr(settings, key, value)
    db.session.commit()
    return settings
