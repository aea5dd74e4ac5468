# Overview: Flask API route for cart checkout; the multi-line sale workflow.

"""
Cart checkout route.

Request body:
{
    "items": [
        {"productId": 1, "quantity": 2, "unitPrice": 500, "discount": 50, "saleType": "retail"},
        {"productId": 7, "weight": 1.5, "unitPrice": 8000, "saleType": "wholesale"}
    ],
    "paymentMethod": "cash" | "debt",
    "debtCustomerId": 3,            (required for debt)
    "customerName": "...",          (optional)
    "transactionId": "...",         (optional, generated when absent)
    "dueDate": "2026-11-01",        (optional, debt only)
    "notes": "..."                  (optional, debt only)
}

Returns:
    201: {success, transactionId, salesCount, totalAmount, debtId, saleIds}
    400: empty cart, bad line, insufficient stock (nothing written)
    404: unknown product or debt customer (nothing written)
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import checkout_service
from ..services.checkout_service import CheckoutError
from ..validation import ValidationError, optional_int
from ..decorators import require_auth, require_permission
from warehouse.time_utils import parse_iso_datetime


cart_bp = Blueprint("cart", __name__, url_prefix="/api/cart")


@cart_bp.post("/checkout")
@require_auth
@require_permission("CREATE_SALE")
def checkout_route():
    data = request.get_json(silent=True) or {}

    try:
        try:
            due_date = parse_iso_datetime(data.get("dueDate"))
        except ValueError:
            raise ValidationError("dueDate must be an ISO-8601 date")

        result = checkout_service.checkout(
            items=data.get("items") or [],
            payment_method=data.get("paymentMethod") or "cash",
            debt_customer_id=optional_int(data.get("debtCustomerId"), "debtCustomerId"),
            customer_name=data.get("customerName"),
            transaction_id=data.get("transactionId"),
            due_date=due_date,
            notes=data.get("notes"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except CheckoutError as e:
        return jsonify({"error": str(e), "details": e.details}), 404 if e.not_found else 400
    except Exception as e:
        current_app.logger.exception("Checkout failed")
        return jsonify({"error": "فشل في إتمام عملية البيع", "details": str(e)}), 500

    current_app.logger.info(
        "Checkout %s by %s: %d sale(s), total %.2f, payment %s, debt %s",
        result.transaction_id, g.current_user.username, len(result.sales),
        result.total_amount, data.get("paymentMethod") or "cash",
        result.debt.id if result.debt else None,
    )
    return jsonify(result.to_dict()), 201
