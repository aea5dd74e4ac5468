# Overview: Flask API routes for the debt book: customers, debts and debt payments.

"""
Debt book routes.

- /api/debt-customers  customers allowed to buy on credit
- /api/debts           balances (one per debt checkout, or opened manually)
- /api/debt-payments   money received against a debt

Balances only move through POST /api/debt-payments; PUT /api/debts/<id>
edits due date and notes.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..models import DebtCustomer, Debt
from ..models.debts import DEBT_STATUSES
from ..services import debt_service, payment_service, sales_service
from ..services.debt_service import (
    DebtError,
    DEBT_CUSTOMER_POLICY,
    DEBT_POLICY,
    DEBT_UPDATE_POLICY,
)
from ..services.payment_service import PaymentError
from ..validation import validate_payload, optional_int, require_amount, ValidationError, NotFoundError
from ..decorators import require_auth, require_permission
from warehouse.time_utils import parse_iso_datetime


debt_customers_bp = Blueprint("debt_customers", __name__, url_prefix="/api/debt-customers")
debts_bp = Blueprint("debts", __name__, url_prefix="/api/debts")
debt_payments_bp = Blueprint("debt_payments", __name__, url_prefix="/api/debt-payments")


# =============================================================================
# DEBT CUSTOMERS
# =============================================================================

@debt_customers_bp.get("")
@require_auth
@require_permission("MANAGE_DEBTS")
def list_debt_customers_route():
    return jsonify([c.to_dict() for c in debt_service.list_debt_customers()])


@debt_customers_bp.get("/<int:customer_id>")
@require_auth
@require_permission("MANAGE_DEBTS")
def get_debt_customer_route(customer_id: int):
    """Customer with totals across all their debts."""
    try:
        return jsonify(debt_service.get_customer_summary(customer_id))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@debt_customers_bp.post("")
@require_auth
@require_permission("MANAGE_DEBTS")
def create_debt_customer_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=DebtCustomer, payload=payload, policy=DEBT_CUSTOMER_POLICY, partial=False)
        customer = debt_service.create_debt_customer(patch=patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        current_app.logger.exception("Failed to create debt customer")
        return jsonify({"error": "Failed to create debt customer", "details": str(e)}), 500
    return jsonify(customer.to_dict()), 201


@debt_customers_bp.put("/<int:customer_id>")
@require_auth
@require_permission("MANAGE_DEBTS")
def update_debt_customer_route(customer_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=DebtCustomer, payload=payload, policy=DEBT_CUSTOMER_POLICY, partial=True)
        customer = debt_service.update_debt_customer(customer_id, patch=patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        current_app.logger.exception("Failed to update debt customer %s", customer_id)
        return jsonify({"error": "Failed to update debt customer", "details": str(e)}), 500
    return jsonify(customer.to_dict())


@debt_customers_bp.delete("/<int:customer_id>")
@require_auth
@require_permission("MANAGE_DEBTS")
def delete_debt_customer_route(customer_id: int):
    try:
        deleted = debt_service.delete_debt_customer(customer_id)
    except DebtError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception as e:
        current_app.logger.exception("Failed to delete debt customer %s", customer_id)
        return jsonify({"error": "Failed to delete debt customer", "details": str(e)}), 500

    if not deleted:
        return jsonify({"error": "Customer not found"}), 404
    return jsonify({"success": True})


# =============================================================================
# DEBTS
# =============================================================================

@debts_bp.get("")
@require_auth
@require_permission("MANAGE_DEBTS")
def list_debts_route():
    """
    List debts newest first.

    Query params:
    - stats=true: return debt book statistics instead of a list
    - customerId: int (optional)
    - status: unpaid | partial | paid (optional)
    """
    if request.args.get("stats", "").lower() == "true":
        return jsonify(debt_service.get_debt_statistics())

    status = request.args.get("status")
    if status is not None and status not in DEBT_STATUSES:
        return jsonify({"error": f"status must be one of: {', '.join(DEBT_STATUSES)}"}), 400

    try:
        customer_id = optional_int(request.args.get("customerId"), "customerId")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    debts = debt_service.list_debts(customer_id=customer_id, status=status)
    return jsonify([d.to_dict() for d in debts])


@debts_bp.get("/<int:debt_id>")
@require_auth
@require_permission("MANAGE_DEBTS")
def get_debt_route(debt_id: int):
    """Debt with its payments and the sale lines it covers."""
    debt = debt_service.get_debt_by_id(debt_id)
    if debt is None:
        return jsonify({"error": "Debt not found"}), 404
    return jsonify({
        **debt.to_dict(),
        "payments": [p.to_dict() for p in debt.payments],
        "sales": [s.to_dict() for s in sales_service.list_sales_by_debt(debt.id)],
    })


@debts_bp.post("")
@require_auth
@require_permission("MANAGE_DEBTS")
def create_debt_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Debt, payload=payload, policy=DEBT_POLICY, partial=False)
        debt = debt_service.create_debt(patch=patch)
    except (ValidationError, DebtError) as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        current_app.logger.exception("Failed to create debt")
        return jsonify({"error": "Failed to create debt", "details": str(e)}), 500

    current_app.logger.info(
        "Debt %s opened for customer %s: %.2f by %s",
        debt.id, debt.customer_id, debt.total_amount, g.current_user.username,
    )
    return jsonify(debt.to_dict()), 201


@debts_bp.put("/<int:debt_id>")
@require_auth
@require_permission("MANAGE_DEBTS")
def update_debt_route(debt_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Debt, payload=payload, policy=DEBT_UPDATE_POLICY, partial=True)
        debt = debt_service.update_debt(debt_id, patch=patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        current_app.logger.exception("Failed to update debt %s", debt_id)
        return jsonify({"error": "Failed to update debt", "details": str(e)}), 500
    return jsonify(debt.to_dict())


@debts_bp.delete("/<int:debt_id>")
@require_auth
@require_permission("MANAGE_DEBTS")
def delete_debt_route(debt_id: int):
    try:
        deleted = debt_service.delete_debt(debt_id)
    except Exception as e:
        current_app.logger.exception("Failed to delete debt %s", debt_id)
        return jsonify({"error": "Failed to delete debt", "details": str(e)}), 500

    if not deleted:
        return jsonify({"error": "Debt not found"}), 404
    current_app.logger.info("Debt %s deleted by %s", debt_id, g.current_user.username)
    return jsonify({"success": True})


# =============================================================================
# DEBT PAYMENTS
# =============================================================================

@debt_payments_bp.get("")
@require_auth
@require_permission("MANAGE_DEBTS")
def list_debt_payments_route():
    """Payments newest first; ?debtId= narrows to one debt."""
    try:
        debt_id = optional_int(request.args.get("debtId"), "debtId")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify([p.to_dict() for p in payment_service.list_payments(debt_id)])


@debt_payments_bp.post("")
@require_auth
@require_permission("MANAGE_DEBTS")
def create_debt_payment_route():
    """
    Apply a payment to a debt.

    Request body: {debtId, amount, paymentMethod?, notes?, paymentDate?}

    Returns:
        201: {payment, debt}
        400: amount <= 0, amount above the remaining balance, debt already paid
        404: debt not found
    """
    data = request.get_json(silent=True) or {}
    try:
        debt_id = optional_int(data.get("debtId"), "debtId")
        if debt_id is None:
            raise ValidationError("debtId is required")
        amount = require_amount(data.get("amount"), "amount", allow_zero=False)
        try:
            payment_date = parse_iso_datetime(data.get("paymentDate"))
        except ValueError:
            raise ValidationError("paymentDate must be an ISO-8601 date")

        payment, debt = payment_service.apply_payment(
            debt_id=debt_id,
            amount=amount,
            payment_method=data.get("paymentMethod") or "cash",
            notes=data.get("notes"),
            created_by=data.get("createdBy") or g.current_user.username,
            payment_date=payment_date,
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except PaymentError as e:
        return jsonify({"error": str(e), "details": e.details}), 404 if e.not_found else 400
    except Exception as e:
        current_app.logger.exception("Failed to create debt payment")
        return jsonify({"error": "Failed to create debt payment", "details": str(e)}), 500

    current_app.logger.info(
        "Payment %.2f on debt %s by %s; remaining %.2f (%s)",
        payment.amount, debt.id, payment.created_by, debt.amount_remaining, debt.status,
    )
    return jsonify({"payment": payment.to_dict(), "debt": debt.to_dict()}), 201
