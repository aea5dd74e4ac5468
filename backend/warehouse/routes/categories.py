# Overview: Flask API routes for categories and their subcategories.

from flask import Blueprint, request, jsonify, current_app

from ..services import categories_service
from ..validation import ValidationError, ConflictError, NotFoundError
from ..decorators import require_auth, require_permission


categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
@require_permission("VIEW_PRODUCTS")
def list_categories_route():
    return jsonify([c.to_dict() for c in categories_service.list_categories()])


@categories_bp.get("/<int:category_id>")
@require_auth
@require_permission("VIEW_PRODUCTS")
def get_category_route(category_id: int):
    category = categories_service.get_category_by_id(category_id)
    if category is None:
        return jsonify({"error": "Category not found"}), 404
    return jsonify(category.to_dict())


@categories_bp.post("")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def create_category_route():
    """
    Create a category.

    Request body: {name, description?, subcategories?: [name | {name, description?}]}
    """
    data = request.get_json(silent=True) or {}
    try:
        category = categories_service.create_category(
            name=data.get("name"),
            description=data.get("description"),
            subcategories=data.get("subcategories"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception as e:
        current_app.logger.exception("Failed to add category")
        return jsonify({"error": "Failed to add category", "details": str(e)}), 500

    return jsonify(category.to_dict()), 201


@categories_bp.put("/<int:category_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def update_category_route(category_id: int):
    """Update a category; a subcategories list replaces the existing ones."""
    data = request.get_json(silent=True) or {}
    try:
        category = categories_service.update_category(
            category_id,
            name=data.get("name"),
            description=data.get("description"),
            subcategories=data.get("subcategories"),
        )
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception as e:
        current_app.logger.exception("Failed to update category %s", category_id)
        return jsonify({"error": "Failed to update category", "details": str(e)}), 500

    return jsonify(category.to_dict())


@categories_bp.delete("/<int:category_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def delete_category_route(category_id: int):
    try:
        deleted = categories_service.delete_category(category_id)
    except Exception as e:
        current_app.logger.exception("Failed to delete category %s", category_id)
        return jsonify({"error": "Failed to delete category", "details": str(e)}), 500

    if not deleted:
        return jsonify({"error": "Category not found"}), 404
    return jsonify({"success": True})
