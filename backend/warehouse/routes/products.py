# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/warehouse/routes/products.py
"""
Product management routes.

SECURITY: All routes require authentication.
- Read operations require VIEW_PRODUCTS permission (every role)
- Write operations require MANAGE_PRODUCTS permission (admin)
"""
from flask import Blueprint, request, jsonify, current_app
from ..services import products_service, measurement_service
from ..services.products_service import PRODUCT_POLICY
from ..models import Product
from ..validation import (
    validate_payload,
    enforce_rules_product,
    ValidationError,
    NotFoundError,
)
from ..decorators import require_auth, require_permission

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _product_json(product: Product) -> dict:
    data = product.to_dict()
    data["stockStatus"] = measurement_service.get_stock_status(product)
    return data


def _clean_payload(payload: dict) -> dict:
    # Clients echo back read-only fields they received
    return {k: v for k, v in payload.items() if k != "stockStatus"}


@products_bp.get("")
@require_auth
@require_permission("VIEW_PRODUCTS")
def list_products_route():
    """
    List products ordered by name.

    Query params:
    - search: str (optional) - matches name, description or barcode
    - category: str (optional) - exact category name
    - barcode: str (optional) - exact barcode lookup, returns at most one product
    """
    barcode = request.args.get("barcode")
    if barcode:
        product = products_service.find_by_barcode(barcode)
        return jsonify([_product_json(product)] if product else [])

    products = products_service.list_products(
        search=request.args.get("search"),
        category=request.args.get("category"),
    )
    return jsonify([_product_json(p) for p in products])


@products_bp.get("/low-stock")
@require_auth
@require_permission("VIEW_PRODUCTS")
def low_stock_route():
    return jsonify([_product_json(p) for p in products_service.list_low_stock_products()])


@products_bp.get("/stats")
@require_auth
@require_permission("VIEW_PRODUCTS")
def product_stats_route():
    return jsonify(products_service.get_product_stats())


@products_bp.get("/<int:product_id>")
@require_auth
@require_permission("VIEW_PRODUCTS")
def get_product_route(product_id: int):
    product = products_service.get_product_by_id(product_id)
    if product is None:
        return jsonify({"error": "Product not found"}), 404
    return jsonify(_product_json(product))


@products_bp.post("")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def create_product_route():
    """Create a new product. Requires MANAGE_PRODUCTS permission."""
    payload = _clean_payload(request.get_json(silent=True) or {})

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        created = products_service.create_product(patch=patch)
    except Exception as e:
        current_app.logger.exception("Failed to add product")
        return jsonify({"error": "Failed to add product", "details": str(e)}), 500

    return jsonify(_product_json(created)), 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def update_product_route(product_id: int):
    """Partially update a product; only provided fields change."""
    payload = _clean_payload(request.get_json(silent=True) or {})

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        updated = products_service.update_product(product_id=product_id, patch=patch)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        current_app.logger.exception("Failed to update product %s", product_id)
        return jsonify({"error": "Failed to update product", "details": str(e)}), 500

    return jsonify(_product_json(updated))


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def delete_product_route(product_id: int):
    """
    Delete a product.

    Refused with 400 while any sale or return references the product.
    """
    try:
        result = products_service.delete_product(product_id)
    except Exception as e:
        current_app.logger.exception("Failed to delete product %s", product_id)
        return jsonify({"error": "Failed to delete product", "details": str(e)}), 500

    if not result["success"]:
        status = 404 if result["error"] == "Product not found" else 400
        return jsonify({"error": result["error"]}), status

    return jsonify({"success": True})
