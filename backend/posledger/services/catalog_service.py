# backend/posledger/services/catalog_service.py
"""
Catalog Service

Products and categories. Payloads arrive already validated against the
route's ModelValidationPolicy; this layer owns uniqueness checks and
the queries behind the catalog filters.

Product quantity is writable only on create (opening stock). After that
it moves through the stock ledger.
"""
from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import Category, Product
from ..validation import ConflictError, ValidationError


def _check_product_unique(sku: str | None, barcode: str | None, exclude_id: int | None = None) -> None:
    if sku:
        q = db.session.query(Product.id).filter(Product.sku == sku)
        if exclude_id is not None:
            q = q.filter(Product.id != exclude_id)
        if q.first():
            raise ConflictError("SKU already exists.")
    if barcode:
        q = db.session.query(Product.id).filter(Product.barcode == barcode)
        if exclude_id is not None:
            q = q.filter(Product.id != exclude_id)
        if q.first():
            raise ConflictError("Barcode already exists.")


def _check_category(category_id: int | None) -> None:
    if category_id is None:
        return
    if not db.session.query(Category.id).filter_by(id=category_id).first():
        raise ValidationError("Category not found")


def list_products(
    *,
    search: str | None = None,
    category_id: int | None = None,
    low_stock: bool = False,
    active_only: bool = False,
) -> list[Product]:
    """
    Catalog listing.

    search matches name, SKU or barcode (case-insensitive substring).
    low_stock keeps products with quantity <= min_quantity.
    """
    query = db.session.query(Product)

    if search:
        term = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Product.name.ilike(term),
                Product.sku.ilike(term),
                Product.barcode.ilike(term),
            )
        )
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if low_stock:
        query = query.filter(Product.quantity <= Product.min_quantity)
    if active_only:
        query = query.filter(Product.is_active.is_(True))

    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def get_product(product_id: int) -> Product | None:
    return db.session.query(Product).filter_by(id=product_id).first()


def find_by_barcode(barcode: str) -> Product | None:
    return db.session.query(Product).filter_by(barcode=barcode).first()


def create_product(*, patch: dict) -> Product:
    """Create a product from a validated patch. Raises ConflictError on duplicate SKU/barcode."""
    _check_product_unique(patch.get("sku"), patch.get("barcode"))
    _check_category(patch.get("category_id"))

    product = Product()
    for key, value in patch.items():
        setattr(product, key, value)

    db.session.add(product)
    db.session.commit()
    return product


def update_product(*, product_id: int, patch: dict) -> Product | None:
    product = get_product(product_id)
    if not product:
        return None

    _check_product_unique(patch.get("sku"), patch.get("barcode"), exclude_id=product.id)
    if "category_id" in patch:
        _check_category(patch["category_id"])

    for key, value in patch.items():
        setattr(product, key, value)

    db.session.commit()
    return product


def delete_product(*, product_id: int) -> bool:
    """
    Soft-delete: the product keeps its ID so invoice items still resolve.

    Returns False if not found.
    """
    product = get_product(product_id)
    if not product:
        return False
    if product.is_active:
        product.is_active = False
    db.session.commit()
    return True


def list_categories(*, active_only: bool = False) -> list[Category]:
    query = db.session.query(Category)
    if active_only:
        query = query.filter(Category.is_active.is_(True))
    return query.order_by(Category.name.asc(), Category.id.asc()).all()


def get_category(category_id: int) -> Category | None:
    return db.session.query(Category).filter_by(id=category_id).first()


def create_category(*, patch: dict) -> Category:
    _check_category(patch.get("parent_id"))

    category = Category()
    for key, value in patch.items():
        setattr(category, key, value)

    db.session.add(category)
    db.session.commit()
    return category


def update_category(*, category_id: int, patch: dict) -> Category | None:
    category = get_category(category_id)
    if not category:
        return None

    if patch.get("parent_id") is not None:
        if patch["parent_id"] == category.id:
            raise ValidationError("A category cannot be its own parent")
        _check_category(patch["parent_id"])

    for key, value in patch.items():
        setattr(category, key, value)

    db.session.commit()
    return category


def delete_category(*, category_id: int) -> bool:
    """
    Hard-delete an unused category.

    Raises ConflictError while products or child categories still point at it.
    """
    category = get_category(category_id)
    if not category:
        return False

    if db.session.query(Product.id).filter_by(category_id=category.id).first():
        raise ConflictError("Category still has products.")
    if db.session.query(Category.id).filter_by(parent_id=category.id).first():
        raise ConflictError("Category still has subcategories.")

    db.session.delete(category)
    db.session.commit()
    return True
