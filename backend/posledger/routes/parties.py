# Overview: Flask API routes for customers and suppliers; parses input and returns JSON responses.

"""
Party Routes

Customers and suppliers share one shape, so one factory builds both
blueprints.

SECURITY: All routes require authentication.
- Read operations require VIEW_PARTIES
- Create/update/delete require MANAGE_PARTIES

balance_cents is an opening balance on create; after that only invoices
and debt payments move it. total_purchases_cents is never client-writable.
"""

from flask import Blueprint, request

from ..decorators import require_auth, require_permission
from ..models import Customer, Supplier
from ..services import party_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_party,
    ValidationError,
    ConflictError,
)

PARTY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "phone", "email", "address", "balance_cents"},
    required_on_create={"name"},
    create_only_fields={"balance_cents"},
)


def make_party_blueprint(party_type: str, model, url_prefix: str) -> Blueprint:
    bp = Blueprint(f"{party_type}s", __name__, url_prefix=url_prefix)
    label = party_type.capitalize()

    @bp.get("")
    @require_auth
    @require_permission("VIEW_PARTIES")
    def list_route():
        """?search= (name/phone/email), ?with_balance=true for debtors only."""
        parties = party_service.list_parties(
            party_type,
            search=request.args.get("search"),
            with_balance=request.args.get("with_balance", "false").lower() == "true",
        )
        return {"items": [p.to_dict() for p in parties], "count": len(parties)}

    @bp.get("/<int:party_id>")
    @require_auth
    @require_permission("VIEW_PARTIES")
    def get_route(party_id: int):
        party = party_service.get_party(party_type, party_id)
        if not party:
            return {"error": f"{label} not found"}, 404
        return party.to_dict()

    @bp.post("")
    @require_auth
    @require_permission("MANAGE_PARTIES")
    def create_route():
        payload = request.get_json(silent=True) or {}
        try:
            patch = validate_payload(model=model, payload=payload, policy=PARTY_POLICY, partial=False)
            enforce_rules_party(patch)
            if patch.get("balance_cents") is not None and patch["balance_cents"] < 0:
                raise ValidationError("balance_cents must be >= 0")
            created = party_service.create_party(party_type, patch=patch)
        except ValidationError as e:
            return {"error": str(e)}, 400
        return created.to_dict(), 201

    @bp.put("/<int:party_id>")
    @require_auth
    @require_permission("MANAGE_PARTIES")
    def update_route(party_id: int):
        payload = request.get_json(silent=True) or {}
        try:
            patch = validate_payload(model=model, payload=payload, policy=PARTY_POLICY, partial=True)
            enforce_rules_party(patch)
        except ValidationError as e:
            return {"error": str(e)}, 400
        updated = party_service.update_party(party_type, party_id, patch=patch)
        if updated is None:
            return {"error": f"{label} not found"}, 404
        return updated.to_dict()

    @bp.delete("/<int:party_id>")
    @require_auth
    @require_permission("MANAGE_PARTIES")
    def delete_route(party_id: int):
        try:
            deleted = party_service.delete_party(party_type, party_id)
        except ConflictError as e:
            return {"error": str(e)}, 409
        if not deleted:
            return {"error": f"{label} not found"}, 404
        return {"deleted": True, "id": party_id}

    return bp


customers_bp = make_party_blueprint("customer", Customer, "/api/customers")
suppliers_bp = make_party_blueprint("supplier", Supplier, "/api/suppliers")
