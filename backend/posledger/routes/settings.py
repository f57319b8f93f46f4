# Overview: Flask API routes for store settings.

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_permission
from ..extensions import db
from ..models import StoreSettings
from ..services import settings_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_settings,
    ValidationError,
)

SETTINGS_POLICY = ModelValidationPolicy(
    writable_fields={
        "store_name", "store_phone", "store_email", "store_address", "logo_url",
        "currency", "tax_rate_bps", "invoice_prefix", "language", "timezone",
    },
)

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
@require_auth
def get_settings_route():
    """Any signed-in user may read the store profile (receipts need it)."""
    settings = settings_service.get_store_settings()
    db.session.commit()
    return jsonify(settings.to_dict())


@settings_bp.put("")
@require_auth
@require_permission("MANAGE_SETTINGS")
def update_settings_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=StoreSettings, payload=payload, policy=SETTINGS_POLICY, partial=True)
        enforce_rules_settings(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    settings = settings_service.update_store_settings(patch)
    return jsonify(settings.to_dict())
