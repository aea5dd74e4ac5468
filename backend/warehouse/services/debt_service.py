# Overview: Service-layer operations for the debt book: customers, debts and statistics.

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import DebtCustomer, Debt, DebtPayment, Sale
from ..models.debts import DEBT_PAID, DEBT_PARTIAL, DEBT_UNPAID
from ..validation import ModelValidationPolicy, NotFoundError
from warehouse.time_utils import utcnow


DEBT_CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "phone", "address"},
    required_on_create={"name"},
)

DEBT_POLICY = ModelValidationPolicy(
    writable_fields={"customer_id", "sale_id", "total_amount", "due_date", "notes"},
    required_on_create={"customer_id", "total_amount"},
    aliases={
        "customerId": "customer_id",
        "saleId": "sale_id",
        "totalAmount": "total_amount",
        "dueDate": "due_date",
    },
)

DEBT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"due_date", "notes"},
    aliases={"dueDate": "due_date"},
    # Clients echo the whole debt back on edit; balances are payment-driven
    ignored_fields={
        "id", "createdAt", "updatedAt", "customer", "customerId", "saleId",
        "totalAmount", "amountPaid", "amountRemaining", "status",
    },
)


class DebtError(Exception):
    """Raised for debt-book business rule violations."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


# =============================================================================
# CUSTOMERS
# =============================================================================


def list_debt_customers() -> list[DebtCustomer]:
    return db.session.query(DebtCustomer).order_by(DebtCustomer.name.asc(), DebtCustomer.id.asc()).all()


def get_debt_customer_by_id(customer_id: int) -> DebtCustomer | None:
    return db.session.get(DebtCustomer, customer_id)


def create_debt_customer(*, patch: dict) -> DebtCustomer:
    customer = DebtCustomer(**patch)
    db.session.add(customer)
    db.session.commit()
    return customer


def update_debt_customer(customer_id: int, *, patch: dict) -> DebtCustomer:
    customer = get_debt_customer_by_id(customer_id)
    if customer is None:
        raise NotFoundError("Debt customer not found")
    for key, value in patch.items():
        setattr(customer, key, value)
    db.session.commit()
    return customer


def delete_debt_customer(customer_id: int) -> bool:
    """Delete a customer; refused while any debt (paid or not) references them."""
    customer = get_debt_customer_by_id(customer_id)
    if customer is None:
        return False

    debt_count = db.session.query(Debt).filter(Debt.customer_id == customer_id).count()
    if debt_count:
        raise DebtError(
            "Cannot delete customer with existing debts",
            details={"customerId": customer_id, "debts": debt_count},
        )

    db.session.delete(customer)
    db.session.commit()
    return True


def get_customer_summary(customer_id: int) -> dict:
    customer = get_debt_customer_by_id(customer_id)
    if customer is None:
        raise NotFoundError("Debt customer not found")
    debts = list_debts(customer_id=customer_id)
    return {
        "customer": customer.to_dict(),
        "debtsCount": len(debts),
        "totalAmount": sum(d.total_amount for d in debts),
        "totalPaid": sum(d.amount_paid for d in debts),
        "totalRemaining": sum(d.amount_remaining for d in debts),
    }


# =============================================================================
# DEBTS
# =============================================================================


def list_debts(customer_id: int | None = None, status: str | None = None) -> list[Debt]:
    query = db.session.query(Debt)
    if customer_id is not None:
        query = query.filter(Debt.customer_id == customer_id)
    if status is not None:
        query = query.filter(Debt.status == status)
    return query.order_by(Debt.created_at.desc(), Debt.id.desc()).all()


def get_debt_by_id(debt_id: int) -> Debt | None:
    return db.session.get(Debt, debt_id)


def create_debt(*, patch: dict) -> Debt:
    """
    Open a debt manually (e.g. a balance carried over from paper records).

    Checkout-created debts go through checkout_service instead.
    """
    if get_debt_customer_by_id(patch["customer_id"]) is None:
        raise NotFoundError("Debt customer not found")
    if patch.get("sale_id") is not None and db.session.get(Sale, patch["sale_id"]) is None:
        raise NotFoundError("Sale not found")
    if patch["total_amount"] is None or patch["total_amount"] <= 0:
        raise DebtError("totalAmount must be > 0")

    debt = Debt(
        customer_id=patch["customer_id"],
        sale_id=patch.get("sale_id"),
        total_amount=patch["total_amount"],
        amount_paid=0.0,
        amount_remaining=patch["total_amount"],
        status=DEBT_UNPAID,
        due_date=patch.get("due_date"),
        notes=patch.get("notes"),
    )
    db.session.add(debt)
    db.session.commit()
    return debt


def update_debt(debt_id: int, *, patch: dict) -> Debt:
    """Edit due date / notes. Balances only move through payment_service."""
    debt = get_debt_by_id(debt_id)
    if debt is None:
        raise NotFoundError("Debt not found")
    for key, value in patch.items():
        setattr(debt, key, value)
    db.session.commit()
    return debt


def delete_debt(debt_id: int) -> bool:
    """Delete a debt with its payments and unlink the sales that pointed at it."""
    debt = get_debt_by_id(debt_id)
    if debt is None:
        return False

    db.session.query(Sale).filter(Sale.debt_id == debt_id).update(
        {Sale.debt_id: None}, synchronize_session=False
    )
    db.session.delete(debt)
    db.session.commit()
    return True


def get_debt_statistics(now: datetime | None = None) -> dict:
    """
    Debt book totals.

    Overdue: has a due date in the past and is not fully paid.
    """
    now = now or utcnow()
    debts = db.session.query(Debt).all()

    by_status = {DEBT_UNPAID: 0, DEBT_PARTIAL: 0, DEBT_PAID: 0}
    for debt in debts:
        by_status[debt.status] = by_status.get(debt.status, 0) + 1

    overdue = [d for d in debts if d.due_date is not None and d.due_date < now and d.status != DEBT_PAID]
    debtor_ids = {d.customer_id for d in debts if d.status != DEBT_PAID}

    return {
        "totalDebts": len(debts),
        "totalAmount": sum(d.total_amount for d in debts),
        "totalPaid": sum(d.amount_paid for d in debts),
        "totalRemaining": sum(d.amount_remaining for d in debts),
        "totalCustomers": db.session.query(DebtCustomer).count(),
        "activeDebtors": len(debtor_ids),
        "unpaidDebts": by_status[DEBT_UNPAID],
        "partialDebts": by_status[DEBT_PARTIAL],
        "paidDebts": by_status[DEBT_PAID],
        "overdueDebts": len(overdue),
        "overdueAmount": sum(d.amount_remaining for d in overdue),
        "totalPayments": db.session.query(DebtPayment).count(),
    }
