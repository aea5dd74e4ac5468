from __future__ import annotations

from ..extensions import db
from warehouse.time_utils import to_utc_z, utcnow


DEBT_UNPAID = "unpaid"
DEBT_PARTIAL = "partial"
DEBT_PAID = "paid"
DEBT_STATUSES = (DEBT_UNPAID, DEBT_PARTIAL, DEBT_PAID)

DEBT_PAYMENT_METHODS = ("cash", "card", "transfer")


class DebtCustomer(db.Model):
    """Customer allowed to buy on credit (the "debt book")."""
    __tablename__ = "debt_customers"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class Debt(db.Model):
    """
    Outstanding balance created by a debt checkout.

    One debt covers the whole checkout; sale_id points at the first sale
    row and every sale of the checkout carries this debt's id.
    Invariant: amount_paid + amount_remaining == total_amount.
    """
    __tablename__ = "debts"
    __table_args__ = (
        db.CheckConstraint("status IN ('unpaid', 'partial', 'paid')", name="status"),
        db.Index("ix_debts_customer_status", "customer_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("debt_customers.id"), nullable=False, index=True)

    total_amount = db.Column(db.Float, nullable=False)
    amount_paid = db.Column(db.Float, nullable=False, default=0.0)
    amount_remaining = db.Column(db.Float, nullable=False)
    status = db.Column(db.String(16), nullable=False, default=DEBT_UNPAID)

    due_date = db.Column(db.DateTime(timezone=True), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    customer = db.relationship("DebtCustomer", backref=db.backref("debts", lazy=True))
    payments = db.relationship(
        "DebtPayment",
        backref="debt",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="DebtPayment.payment_date.desc()",
    )

    def to_dict(self, include_customer: bool = True) -> dict:
        data = {
            "id": self.id,
            "saleId": self.sale_id,
            "customerId": self.customer_id,
            "totalAmount": self.total_amount,
            "amountPaid": self.amount_paid,
            "amountRemaining": self.amount_remaining,
            "status": self.status,
            "dueDate": to_utc_z(self.due_date) if self.due_date else None,
            "notes": self.notes,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
        if include_customer:
            data["customer"] = self.customer.to_dict() if self.customer else None
        return data


class DebtPayment(db.Model):
    """Append-only record of money received against a debt."""
    __tablename__ = "debt_payments"
    __table_args__ = (
        db.CheckConstraint("payment_method IN ('cash', 'card', 'transfer')", name="payment_method"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    debt_id = db.Column(db.Integer, db.ForeignKey("debts.id"), nullable=False, index=True)

    amount = db.Column(db.Float, nullable=False)
    payment_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    payment_method = db.Column(db.String(16), nullable=False, default="cash")
    notes = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.String(128), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "debtId": self.debt_id,
            "amount": self.amount,
            "paymentDate": to_utc_z(self.payment_date),
            "paymentMethod": self.payment_method,
            "notes": self.notes,
            "createdBy": self.created_by,
        }
