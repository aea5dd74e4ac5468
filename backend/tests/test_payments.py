"""
Debt payment tests.

Verifies:
- amount_paid + amount_remaining == total_amount after every payment
- Status moves unpaid -> partial -> paid
- Overpayment and payments on settled debts are rejected
- Debt statistics and customer summaries
"""

import pytest

from warehouse.models import DebtPayment
from warehouse.services import debt_service, payment_service
from warehouse.services.payment_service import PaymentError


@pytest.fixture
def debt(db_session, make_customer):
    customer = make_customer()
    return debt_service.create_debt(patch={"customer_id": customer.id, "total_amount": 1000})


# =============================================================================
# STATUS DERIVATION
# =============================================================================


class TestDeriveStatus:

    @pytest.mark.parametrize("paid,remaining,expected", [
        (0, 1000, "unpaid"),
        (400, 600, "partial"),
        (1000, 0, "paid"),
        (1000, 1e-12, "paid"),
    ])
    def test_status(self, paid, remaining, expected):
        assert payment_service.derive_debt_status(paid, remaining) == expected


# =============================================================================
# APPLY PAYMENT
# =============================================================================


class TestApplyPayment:

    def test_new_debt_is_unpaid(self, debt):
        assert debt.status == "unpaid"
        assert debt.amount_paid == 0
        assert debt.amount_remaining == 1000

    def test_partial_then_paid(self, db_session, debt):
        _, updated = payment_service.apply_payment(debt.id, 400, created_by="cashier")
        assert updated.status == "partial"
        assert updated.amount_paid + updated.amount_remaining == updated.total_amount

        _, updated = payment_service.apply_payment(debt.id, 600, payment_method="card")
        assert updated.status == "paid"
        assert updated.amount_remaining == 0
        assert updated.amount_paid == 1000
        assert DebtPayment.query.filter_by(debt_id=debt.id).count() == 2

    def test_float_drift_lands_on_zero(self, db_session, debt):
        for _ in range(3):
            payment_service.apply_payment(debt.id, 1000 / 3)
        db_session.refresh(debt)
        assert debt.amount_remaining == 0
        assert debt.status == "paid"

    def test_overpayment_rejected(self, db_session, debt):
        with pytest.raises(PaymentError):
            payment_service.apply_payment(debt.id, 1000.01)
        db_session.refresh(debt)
        assert debt.amount_paid == 0
        assert DebtPayment.query.count() == 0

    def test_paid_debt_rejects_payment(self, db_session, debt):
        payment_service.apply_payment(debt.id, 1000)
        with pytest.raises(PaymentError):
            payment_service.apply_payment(debt.id, 1)

    @pytest.mark.parametrize("amount", [0, -5])
    def test_non_positive_amount(self, debt, amount):
        with pytest.raises(PaymentError):
            payment_service.apply_payment(debt.id, amount)

    def test_invalid_method(self, debt):
        with pytest.raises(PaymentError):
            payment_service.apply_payment(debt.id, 10, payment_method="cheque")

    def test_missing_debt_is_not_found(self, db_session):
        with pytest.raises(PaymentError) as exc:
            payment_service.apply_payment(999, 10)
        assert exc.value.not_found


# =============================================================================
# ROUTES AND SUMMARIES
# =============================================================================


class TestDebtRoutes:

    def test_payment_route(self, client, debt, cashier_headers):
        resp = client.post(
            "/api/debt-payments",
            json={"debtId": debt.id, "amount": 250, "paymentMethod": "cash"},
            headers=cashier_headers,
        )
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["debt"]["status"] == "partial"
        assert body["debt"]["amountRemaining"] == 750
        assert body["payment"]["amount"] == 250

    def test_overpayment_route_is_400(self, client, debt, cashier_headers):
        resp = client.post(
            "/api/debt-payments",
            json={"debtId": debt.id, "amount": 5000},
            headers=cashier_headers,
        )
        assert resp.status_code == 400

    def test_statistics(self, db_session, debt):
        payment_service.apply_payment(debt.id, 300)
        stats = debt_service.get_debt_statistics()
        assert stats["totalDebts"] == 1
        assert stats["totalRemaining"] == 700

    def test_customer_with_debts_cannot_be_deleted(self, db_session, debt):
        with pytest.raises(debt_service.DebtError):
            debt_service.delete_debt_customer(debt.customer_id)

    def test_customer_summary(self, db_session, debt):
        payment_service.apply_payment(debt.id, 100)
        summary = debt_service.get_customer_summary(debt.customer_id)
        assert summary["totalRemaining"] == 900
