# backend/warehouse/services/products_service.py
"""
Products Service

CRUD over the products table plus the read-side helpers the inventory
screens need (search, low-stock listing, stock summary).

Deletion is guarded in application code: a product referenced by any
sale or return is never removed, and the guard reports the reason as a
structured {"success": False, "error": ...} result instead of raising.
"""
from __future__ import annotations
from sqlalchemy import or_
from ..extensions import db
from ..models import Product, Sale, Return
from ..validation import ModelValidationPolicy, NotFoundError
from . import measurement_service

PRODUCT_MUTABLE_FIELDS = {
    "name", "description", "category", "subcategory", "measurement_type",
    "wholesale_cost_price", "wholesale_price", "sale_price", "discount",
    "quantity", "min_quantity", "weight", "min_weight", "weight_unit",
    "barcode", "image_url", "currency",
}

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=PRODUCT_MUTABLE_FIELDS,
    required_on_create={"name", "measurement_type"},
    aliases={
        "measurementType": "measurement_type",
        "wholesaleCostPrice": "wholesale_cost_price",
        "wholesalePrice": "wholesale_price",
        "salePrice": "sale_price",
        "minQuantity": "min_quantity",
        "minWeight": "min_weight",
        "weightUnit": "weight_unit",
        "imageUrl": "image_url",
    },
)


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def list_products(search: str | None = None, category: str | None = None) -> list[Product]:
    """
    List products ordered by name.

    search matches name, description or barcode (case-insensitive substring);
    category narrows to an exact category name.
    """
    query = db.session.query(Product)

    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Product.name.ilike(pattern),
            Product.description.ilike(pattern),
            Product.barcode.ilike(pattern),
        ))

    if category:
        query = query.filter(Product.category == category)

    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def get_product_by_id(product_id: int) -> Product | None:
    return db.session.get(Product, product_id)


def find_by_barcode(barcode: str) -> Product | None:
    return db.session.query(Product).filter(Product.barcode == barcode.strip()).first()


def create_product(*, patch: dict) -> Product:
    """Create product from a validated patch dict."""
    product = Product()
    apply_product_patch(product, patch)

    db.session.add(product)
    db.session.commit()
    return product


def update_product(*, product_id: int, patch: dict) -> Product:
    product = get_product_by_id(product_id)
    if product is None:
        raise NotFoundError("Product not found")

    apply_product_patch(product, patch)
    db.session.commit()
    return product


def delete_product(product_id: int) -> dict:
    """
    Delete a product unless sales or returns reference it.

    Returns {"success": bool, "error": str | None}.
    """
    product = get_product_by_id(product_id)
    if product is None:
        return {"success": False, "error": "Product not found"}

    sales_count = db.session.query(Sale).filter(Sale.product_id == product_id).count()
    if sales_count:
        return {
            "success": False,
            "error": f"Cannot delete product: it is referenced by {sales_count} sale(s)",
        }

    returns_count = db.session.query(Return).filter(Return.product_id == product_id).count()
    if returns_count:
        return {
            "success": False,
            "error": f"Cannot delete product: it is referenced by {returns_count} return(s)",
        }

    db.session.delete(product)
    db.session.commit()
    return {"success": True, "error": None}


def list_low_stock_products() -> list[Product]:
    """Products at or below their minimum on the live stock axis (out-of-stock included)."""
    return [p for p in list_products() if measurement_service.is_low_stock(p)]


def get_product_stats() -> dict:
    products = list_products()
    statuses = [measurement_service.get_stock_status(p) for p in products]
    return {
        "totalProducts": len(products),
        "lowStockProducts": sum(1 for p in products if measurement_service.is_low_stock(p)),
        "outOfStockProducts": statuses.count(measurement_service.STOCK_OUT),
        "availableProducts": statuses.count(measurement_service.STOCK_AVAILABLE),
        "quantityProducts": sum(1 for p in products if not measurement_service.is_weight_based(p)),
        "weightProducts": sum(1 for p in products if measurement_service.is_weight_based(p)),
    }
