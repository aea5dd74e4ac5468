# Overview: Service-layer operations for debt payments; applies money to a debt balance atomically.

"""
Debt Payment Service

WHY: A payment and the balance change it causes are one fact. The
DebtPayment insert and the Debt update are committed together or not at
all, so there is never a payment row without its balance effect.

Status is always derived, never set by callers:
    remaining <= 0      -> paid
    amount_paid > 0     -> partial
    otherwise           -> unpaid
There is no transition out of "paid".
"""

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import Debt, DebtPayment
from ..models.debts import DEBT_PAID, DEBT_PARTIAL, DEBT_UNPAID, DEBT_PAYMENT_METHODS
from .concurrency import begin_write_transaction, lock_for_update


# Float tolerance for "amount equals remaining"
EPSILON = 1e-9


class PaymentError(Exception):
    """Raised for payment operation errors."""
    def __init__(self, message: str, details: dict | None = None, not_found: bool = False):
        super().__init__(message)
        self.details = details or {}
        self.not_found = not_found


def derive_debt_status(amount_paid: float, amount_remaining: float) -> str:
    if amount_remaining <= EPSILON:
        return DEBT_PAID
    if amount_paid > 0:
        return DEBT_PARTIAL
    return DEBT_UNPAID


def apply_payment(
    debt_id: int,
    amount: float,
    payment_method: str = "cash",
    notes: str | None = None,
    created_by: str | None = None,
    payment_date: datetime | None = None,
) -> tuple[DebtPayment, Debt]:
    """
    Apply a payment to a debt.

    Requires 0 < amount <= amount_remaining. Returns (payment, debt).
    """
    if payment_method not in DEBT_PAYMENT_METHODS:
        raise PaymentError(
            f"Invalid payment method: {payment_method}",
            details={"allowed": list(DEBT_PAYMENT_METHODS)},
        )
    if amount is None or amount <= 0:
        raise PaymentError("Payment amount must be greater than zero")

    try:
        begin_write_transaction()

        debt = lock_for_update(db.session.query(Debt).filter_by(id=debt_id)).first()
        if debt is None:
            raise PaymentError("Debt not found", details={"debtId": debt_id}, not_found=True)

        if debt.status == DEBT_PAID:
            raise PaymentError("Debt is already fully paid", details={"debtId": debt.id})

        if amount > debt.amount_remaining + EPSILON:
            raise PaymentError(
                f"Payment amount exceeds remaining balance ({debt.amount_remaining:g})",
                details={"debtId": debt.id, "amountRemaining": debt.amount_remaining, "amount": amount},
            )

        payment = DebtPayment(
            debt_id=debt.id,
            amount=amount,
            payment_method=payment_method,
            notes=notes,
            created_by=created_by,
        )
        if payment_date is not None:
            payment.payment_date = payment_date
        db.session.add(payment)

        debt.amount_paid = debt.amount_paid + amount
        remaining = debt.total_amount - debt.amount_paid
        # Snap float drift so a full payment lands exactly on zero
        debt.amount_remaining = 0.0 if abs(remaining) <= EPSILON else remaining
        debt.status = derive_debt_status(debt.amount_paid, debt.amount_remaining)

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return payment, debt


def list_payments(debt_id: int | None = None) -> list[DebtPayment]:
    """Payments newest first, optionally for one debt."""
    query = db.session.query(DebtPayment)
    if debt_id is not None:
        query = query.filter(DebtPayment.debt_id == debt_id)
    return query.order_by(DebtPayment.payment_date.desc(), DebtPayment.id.desc()).all()
