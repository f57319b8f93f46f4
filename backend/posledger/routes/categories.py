# Overview: Flask API routes for product categories.

from flask import Blueprint, request

from ..services import catalog_service
from ..models import Category
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_category,
    ValidationError,
    ConflictError,
)
from ..decorators import require_auth, require_permission

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "color", "icon", "parent_id", "is_active"},
    required_on_create={"name"},
)

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_categories():
    active_only = request.args.get("active", "false").lower() == "true"
    categories = catalog_service.list_categories(active_only=active_only)
    return {"items": [c.to_dict() for c in categories], "count": len(categories)}


@categories_bp.get("/<int:category_id>")
@require_auth
@require_permission("VIEW_INVENTORY")
def get_category(category_id: int):
    c = catalog_service.get_category(category_id)
    if not c:
        return {"error": "Category not found"}, 404
    return c.to_dict()


@categories_bp.post("")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def create_category_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
        enforce_rules_category(patch)
        created = catalog_service.create_category(patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    return created.to_dict(), 201


@categories_bp.put("/<int:category_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def update_category_route(category_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
        enforce_rules_category(patch)
        updated = catalog_service.update_category(category_id=category_id, patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    if updated is None:
        return {"error": "Category not found"}, 404
    return updated.to_dict()


@categories_bp.delete("/<int:category_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def delete_category_route(category_id: int):
    try:
        deleted = catalog_service.delete_category(category_id=category_id)
    except ConflictError as e:
        return {"error": str(e)}, 409
    if not deleted:
        return {"error": "Category not found"}, 404
    return {"deleted": True, "id": category_id}
