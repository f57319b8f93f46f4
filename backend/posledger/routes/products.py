# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/posledger/routes/products.py
"""
Product management routes.

SECURITY: All routes require authentication.
- Read operations require VIEW_INVENTORY permission
- Write operations require MANAGE_PRODUCTS permission

quantity is accepted on create only (opening stock). Afterwards stock
moves through invoices.
"""
from flask import Blueprint, request

from ..services import catalog_service
from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
)
from ..decorators import require_auth, require_permission

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "sku", "barcode", "name", "description", "category_id",
        "price_cents", "cost_cents", "quantity", "min_quantity",
        "unit", "image_url", "is_active",
    },
    required_on_create={"sku", "name"},
    create_only_fields={"quantity"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _flag(name: str) -> bool:
    return request.args.get(name, "false").lower() == "true"


@products_bp.get("")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_products():
    """
    List products.

    Query params:
    - search: name, SKU or barcode substring
    - category_id: int
    - low_stock: true to keep quantity <= min_quantity
    - active: true to hide deactivated products
    """
    products = catalog_service.list_products(
        search=request.args.get("search"),
        category_id=request.args.get("category_id", type=int),
        low_stock=_flag("low_stock"),
        active_only=_flag("active"),
    )
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.get("/barcode/<string:barcode>")
@require_auth
@require_permission("VIEW_INVENTORY")
def get_product_by_barcode(barcode: str):
    """Scanner lookup."""
    p = catalog_service.find_by_barcode(barcode)
    if not p:
        return {"error": "Product not found"}, 404
    return p.to_dict()


@products_bp.get("/<int:product_id>")
@require_auth
@require_permission("VIEW_INVENTORY")
def get_product(product_id: int):
    p = catalog_service.get_product(product_id)
    if not p:
        return {"error": "Product not found"}, 404
    return p.to_dict()


@products_bp.post("")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        created = catalog_service.create_product(patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409

    return created.to_dict(), 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        updated = catalog_service.update_product(product_id=product_id, patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409

    if updated is None:
        return {"error": "Product not found"}, 404
    return updated.to_dict()


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def delete_product_route(product_id: int):
    """Deactivate a product (soft delete)."""
    if not catalog_service.delete_product(product_id=product_id):
        return {"error": "Product not found"}, 404
    return {"deleted": True, "id": product_id}
