# Overview: Flask API routes for returns operations; parses input and returns JSON responses.

"""
Return Processing API Routes

A return references the original sale and product; the returned amount
goes back into stock in the same transaction as the return record.

SECURITY:
- PROCESS_RETURN permission required (every role)
- processedBy defaults to the authenticated user's username
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import return_service
from ..services.return_service import ReturnError
from ..validation import ValidationError, optional_int, require_amount
from ..decorators import require_auth, require_permission
from warehouse.time_utils import parse_iso_datetime


returns_bp = Blueprint("returns", __name__, url_prefix="/api/returns")


def _number(data: dict, key: str, *, allow_zero: bool = True):
    value = data.get(key)
    if value is None or value == "":
        return None
    return require_amount(value, key, allow_zero=allow_zero)


@returns_bp.get("")
@require_auth
@require_permission("PROCESS_RETURN")
def list_returns_route():
    """
    List returns newest first.

    Query params: startDate / endDate (ISO-8601), saleId, productId
    """
    try:
        sale_id = optional_int(request.args.get("saleId"), "saleId")
        product_id = optional_int(request.args.get("productId"), "productId")
        try:
            start = parse_iso_datetime(request.args.get("startDate"))
            end = parse_iso_datetime(request.args.get("endDate"))
        except ValueError:
            raise ValidationError("startDate/endDate must be ISO-8601 dates")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    if sale_id is not None:
        returns = return_service.list_returns_by_sale(sale_id)
    elif product_id is not None:
        returns = return_service.list_returns_by_product(product_id)
    else:
        returns = return_service.list_returns(start=start, end=end)
    return jsonify([r.to_dict() for r in returns])


@returns_bp.get("/<int:return_id>")
@require_auth
@require_permission("PROCESS_RETURN")
def get_return_route(return_id: int):
    record = return_service.get_return_by_id(return_id)
    if record is None:
        return jsonify({"error": "Return not found"}), 404
    return jsonify(record.to_dict())


@returns_bp.get("/returnable")
@require_auth
@require_permission("PROCESS_RETURN")
def returnable_sales_route():
    """Sales of ?productId= with something left to return, with the remaining amount."""
    try:
        product_id = optional_int(request.args.get("productId"), "productId")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    if product_id is None:
        return jsonify({"error": "productId is required"}), 400

    sales = return_service.list_returnable_sales(product_id)
    return jsonify([
        {**s.to_dict(), "remainingReturnable": return_service.get_remaining_returnable(s)}
        for s in sales
    ])


@returns_bp.post("")
@require_auth
@require_permission("PROCESS_RETURN")
def create_return_route():
    """
    Record a return.

    Request body:
    {
        "saleId": 12,
        "productId": 3,
        "returnedQuantity": 1,     (quantity products)
        "returnedWeight": 0.5,     (weight products)
        "unitPrice": 500,          (optional, defaults to the sale's unit price)
        "reason": "...",
        "processedBy": "..."
    }

    Returns:
        201: the return record
        400: invalid amount, product mismatch, more than remaining
        404: sale or product not found
    """
    data = request.get_json(silent=True) or {}

    try:
        record = return_service.create_return(
            sale_id=optional_int(data.get("saleId"), "saleId"),
            product_id=optional_int(data.get("productId"), "productId"),
            returned_quantity=_number(data, "returnedQuantity", allow_zero=False),
            returned_weight=_number(data, "returnedWeight", allow_zero=False),
            unit_price=_number(data, "unitPrice"),
            reason=data.get("reason"),
            processed_by=data.get("processedBy") or g.current_user.username,
            weight_unit=data.get("weightUnit"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ReturnError as e:
        return jsonify({"error": str(e), "details": e.details}), 404 if e.not_found else 400
    except Exception as e:
        current_app.logger.exception("Failed to process return")
        return jsonify({"error": "Failed to process return", "details": str(e)}), 500

    current_app.logger.info(
        "Return %s on sale %s: refund %.2f by %s",
        record.id, record.sale_id, record.total_refund, record.processed_by,
    )
    return jsonify(record.to_dict()), 201
