# Overview: Flask API routes for sales; listings, single-line sales and guarded deletion.

from flask import Blueprint, request, jsonify, current_app

from ..services import sales_service
from ..services.checkout_service import CheckoutError, create_single_sale
from ..validation import ValidationError, ConflictError, NotFoundError, optional_int
from ..decorators import require_auth, require_permission, require_any_permission
from warehouse.time_utils import parse_iso_datetime


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")

SALE_PATCH_KEYS = {"customerName", "debtId", "debtCustomerId"}


def _date_arg(name: str):
    try:
        return parse_iso_datetime(request.args.get(name))
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 date")


@sales_bp.get("")
@require_auth
@require_permission("CREATE_SALE")
def list_sales_route():
    """
    List sales newest first.

    Query params:
    - period: "today" | "month" (optional) - local calendar window
    - startDate / endDate: ISO-8601 (optional) - explicit UTC window
    - debtId: int (optional) - sales linked to one debt
    """
    try:
        debt_id = optional_int(request.args.get("debtId"), "debtId")
        period = request.args.get("period")
        if debt_id is not None:
            sales = sales_service.list_sales_by_debt(debt_id)
        elif period == "today":
            sales = sales_service.list_today_sales()
        elif period == "month":
            sales = sales_service.list_month_sales()
        else:
            sales = sales_service.list_sales(start=_date_arg("startDate"), end=_date_arg("endDate"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify([s.to_dict() for s in sales])


@sales_bp.get("/<int:sale_id>")
@require_auth
@require_permission("CREATE_SALE")
def get_sale_route(sale_id: int):
    sale = sales_service.get_sale_by_id(sale_id)
    if sale is None:
        return jsonify({"error": "Sale not found"}), 404
    return jsonify(sale.to_dict())


@sales_bp.post("")
@require_auth
@require_permission("CREATE_SALE")
def create_sale_route():
    """
    Record a single sale line.

    Same body as one cart line plus paymentMethod / debtCustomerId /
    customerName; stock checks and the debt record follow checkout rules.
    """
    payload = request.get_json(silent=True) or {}
    try:
        sale = create_single_sale(payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except CheckoutError as e:
        return jsonify({"error": str(e), "details": e.details}), 404 if e.not_found else 400
    except Exception as e:
        current_app.logger.exception("Failed to add sale")
        return jsonify({"error": "Failed to add sale", "details": str(e)}), 500

    return jsonify(sale.to_dict()), 201


@sales_bp.put("/<int:sale_id>")
@require_auth
@require_any_permission("DELETE_SALE", "MANAGE_DEBTS")
def update_sale_route(sale_id: int):
    """
    Edit the bookkeeping fields of a sale.

    Request body (all optional): customerName, debtId, debtCustomerId.
    Prices and amounts cannot be changed.
    """
    data = request.get_json(silent=True) or {}
    patch = {}
    try:
        for key in data:
            if key not in SALE_PATCH_KEYS:
                raise ValidationError(f"Field not allowed: {key}")
        if "customerName" in data:
            patch["customer_name"] = data["customerName"]
        if "debtId" in data:
            patch["debt_id"] = optional_int(data["debtId"], "debtId")
        if "debtCustomerId" in data:
            patch["debt_customer_id"] = optional_int(data["debtCustomerId"], "debtCustomerId")
        sale = sales_service.update_sale(sale_id, patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        current_app.logger.exception("Failed to update sale %s", sale_id)
        return jsonify({"error": "Failed to update sale", "details": str(e)}), 500

    return jsonify(sale.to_dict())

@sales_bp.delete("/<int:sale_id>")
@require_auth
@require_permission("DELETE_SALE")
def delete_sale_route(sale_id: int):
    try:
        deleted = sales_service.delete_sale(sale_id)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        current_app.logger.exception("Failed to delete sale %s", sale_id)
        return jsonify({"error": "Failed to delete sale", "details": str(e)}), 500

    if not deleted:
        return jsonify({"error": "Sale not found"}), 404
    return jsonify({"success": True})
