"""
Checkout tests.

Verifies:
- Cash checkout writes one sale per line and reduces stock
- Debt checkout writes a single debt and links every sale to it
- A failing line leaves stock, sales and debts untouched
- Route status codes for empty carts and unknown products
- Stock is never double-counted, sequentially or under the write lock
"""

import threading

import pytest

from warehouse.extensions import db
from warehouse.models import Product, Sale, Debt
from warehouse.services import checkout_service
from warehouse.services.checkout_service import CheckoutError


# =============================================================================
# CASH CHECKOUT
# =============================================================================


class TestCashCheckout:

    def test_single_line_prices_and_stock(self, db_session, make_product):
        product = make_product(quantity=10)

        result = checkout_service.checkout(
            items=[{"productId": product.id, "quantity": 2, "unitPrice": 500, "discount": 50}],
            payment_method="cash",
        )

        sale = result.sales[0]
        assert sale.total_price == 1000
        assert sale.final_price == 950
        assert sale.payment_method == "cash"
        assert sale.sale_type == "retail"
        assert result.total_amount == 950
        assert result.debt is None

        db_session.refresh(product)
        assert product.quantity == 8

    def test_weight_line_reduces_weight(self, db_session, make_product):
        product = make_product(name="Cheese", measurement_type="weight", weight=5.0, min_weight=1.0)

        result = checkout_service.checkout(
            items=[{"productId": product.id, "weight": 1.5, "unitPrice": 8000, "saleType": "wholesale"}],
            payment_method="cash",
        )

        sale = result.sales[0]
        assert sale.weight == 1.5
        assert sale.quantity is None
        assert sale.weight_unit == "kg"
        assert sale.final_price == 12000
        db_session.refresh(product)
        assert product.weight == pytest.approx(3.5)

    def test_discount_larger_than_total_is_not_clamped(self, db_session, make_product):
        product = make_product()
        result = checkout_service.checkout(
            items=[{"productId": product.id, "quantity": 1, "unitPrice": 100, "discount": 150}],
            payment_method="cash",
        )
        assert result.sales[0].final_price == -50

    def test_transaction_id_is_kept(self, db_session, make_product):
        product = make_product()
        result = checkout_service.checkout(
            items=[{"productId": product.id, "quantity": 1, "unitPrice": 150}],
            payment_method="cash",
            transaction_id="tx-42",
        )
        assert result.to_dict()["transactionId"] == "tx-42"


# =============================================================================
# DEBT CHECKOUT
# =============================================================================


class TestDebtCheckout:

    def test_one_debt_for_whole_cart(self, db_session, make_product, make_customer):
        rice = make_product(name="Rice", quantity=10)
        oil = make_product(name="Oil", quantity=10)
        customer = make_customer()

        result = checkout_service.checkout(
            items=[
                {"productId": rice.id, "quantity": 2, "unitPrice": 150},
                {"productId": oil.id, "quantity": 1, "unitPrice": 300, "discount": 20},
            ],
            payment_method="debt",
            debt_customer_id=customer.id,
        )

        debts = Debt.query.all()
        assert len(debts) == 1
        debt = debts[0]
        assert debt.total_amount == 580
        assert debt.amount_paid == 0
        assert debt.amount_remaining == 580
        assert debt.status == "unpaid"
        assert debt.sale_id == result.sales[0].id
        assert {s.debt_id for s in Sale.query.all()} == {debt.id}
        assert {s.debt_customer_id for s in Sale.query.all()} == {customer.id}

    def test_customer_name_defaults_to_debt_customer(self, db_session, make_product, make_customer):
        product = make_product()
        customer = make_customer(name="Umm Hassan")
        result = checkout_service.checkout(
            items=[{"productId": product.id, "quantity": 1, "unitPrice": 150}],
            payment_method="debt",
            debt_customer_id=customer.id,
        )
        assert result.sales[0].customer_name == "Umm Hassan"

    def test_debt_requires_customer(self, db_session, make_product):
        product = make_product()
        with pytest.raises(CheckoutError):
            checkout_service.checkout(
                items=[{"productId": product.id, "quantity": 1, "unitPrice": 150}],
                payment_method="debt",
            )

    def test_unknown_customer_is_not_found(self, db_session, make_product):
        product = make_product()
        with pytest.raises(CheckoutError) as exc:
            checkout_service.checkout(
                items=[{"productId": product.id, "quantity": 1, "unitPrice": 150}],
                payment_method="debt",
                debt_customer_id=999,
            )
        assert exc.value.not_found


# =============================================================================
# ATOMICITY
# =============================================================================


class TestAtomicity:

    def test_failing_line_rolls_back_whole_cart(self, db_session, make_product, make_customer):
        first = make_product(name="First", quantity=10)
        scarce = make_product(name="Scarce", quantity=1)
        third = make_product(name="Third", quantity=10)
        customer = make_customer()

        with pytest.raises(CheckoutError) as exc:
            checkout_service.checkout(
                items=[
                    {"productId": first.id, "quantity": 2, "unitPrice": 150},
                    {"productId": scarce.id, "quantity": 5, "unitPrice": 150},
                    {"productId": third.id, "quantity": 1, "unitPrice": 150},
                ],
                payment_method="debt",
                debt_customer_id=customer.id,
            )

        assert exc.value.details["line"] == 2
        db_session.expire_all()
        assert first.quantity == 10
        assert scarce.quantity == 1
        assert third.quantity == 10
        assert Sale.query.count() == 0
        assert Debt.query.count() == 0

    def test_malformed_line_writes_nothing(self, db_session, make_product):
        product = make_product(quantity=10)
        with pytest.raises(ValueError):
            checkout_service.checkout(
                items=[
                    {"productId": product.id, "quantity": 1, "unitPrice": 150},
                    {"productId": product.id, "quantity": 1},
                ],
                payment_method="cash",
            )
        db_session.expire_all()
        assert product.quantity == 10
        assert Sale.query.count() == 0


# =============================================================================
# ROUTE
# =============================================================================


class TestCheckoutRoute:

    def test_checkout_returns_201(self, client, db_session, make_product, cashier_headers):
        product = make_product(quantity=10)
        resp = client.post(
            "/api/cart/checkout",
            json={
                "items": [{"productId": product.id, "quantity": 2, "unitPrice": 500, "discount": 50}],
                "paymentMethod": "cash",
            },
            headers=cashier_headers,
        )
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["success"] is True
        assert body["salesCount"] == 1
        assert body["totalAmount"] == 950
        assert body["debtId"] is None

    def test_empty_cart_is_400(self, client, db_session, cashier_headers):
        resp = client.post("/api/cart/checkout", json={"items": []}, headers=cashier_headers)
        assert resp.status_code == 400

    def test_unknown_product_is_404(self, client, db_session, cashier_headers):
        resp = client.post(
            "/api/cart/checkout",
            json={"items": [{"productId": 999, "quantity": 1, "unitPrice": 100}]},
            headers=cashier_headers,
        )
        assert resp.status_code == 404

    def test_insufficient_stock_is_400(self, client, db_session, make_product, cashier_headers):
        product = make_product(quantity=1)
        resp = client.post(
            "/api/cart/checkout",
            json={"items": [{"productId": product.id, "quantity": 3, "unitPrice": 100}]},
            headers=cashier_headers,
        )
        assert resp.status_code == 400
        assert resp.get_json()["details"]["available"] == 1

    def test_requires_auth(self, client, db_session):
        resp = client.post("/api/cart/checkout", json={"items": []})
        assert resp.status_code == 401


# =============================================================================
# STOCK ACCOUNTING ACROSS CHECKOUTS
# =============================================================================


class TestStockAccounting:

    def test_sequential_checkouts_never_double_count(self, db_session, make_product):
        product = make_product(quantity=10)
        for qty in (3, 4, 2):
            checkout_service.checkout(
                items=[{"productId": product.id, "quantity": qty, "unitPrice": 150}],
                payment_method="cash",
            )

        with pytest.raises(CheckoutError) as exc:
            checkout_service.checkout(
                items=[{"productId": product.id, "quantity": 2, "unitPrice": 150}],
                payment_method="cash",
            )

        assert exc.value.details["available"] == 1
        db_session.expire_all()
        assert product.quantity == 1
        assert Sale.query.count() == 3

    def test_missing_amount_for_product_axis(self, db_session, make_product):
        product = make_product(quantity=10)
        with pytest.raises(CheckoutError) as exc:
            checkout_service.checkout(
                items=[{"productId": product.id, "weight": 3, "unitPrice": 500}],
                payment_method="cash",
            )
        assert product.name in str(exc.value)
        assert exc.value.details["measurementType"] == "quantity"
        db_session.expire_all()
        assert product.quantity == 10
        assert Sale.query.count() == 0

    def test_missing_amount_for_product_axis_route(self, client, db_session, make_product, cashier_headers):
        product = make_product(quantity=10)
        resp = client.post(
            "/api/cart/checkout",
            json={
                "items": [{"productId": product.id, "weight": 3, "unitPrice": 500}],
                "paymentMethod": "cash",
            },
            headers=cashier_headers,
        )
        assert resp.status_code == 400
        assert resp.get_json()["details"]["productId"] == product.id

    def test_concurrent_checkouts_take_the_write_lock(self, file_app):
        db.create_all()
        product = Product(name="Oil", measurement_type="quantity", quantity=10, min_quantity=1)
        db.session.add(product)
        db.session.commit()
        product_id = product.id

        barrier = threading.Barrier(2)
        outcomes = []

        def sell_six():
            with file_app.app_context():
                barrier.wait()
                try:
                    checkout_service.checkout(
                        items=[{"productId": product_id, "quantity": 6, "unitPrice": 150}],
                        payment_method="cash",
                    )
                    outcomes.append("ok")
                except CheckoutError:
                    outcomes.append("rejected")
                finally:
                    db.session.remove()

        threads = [threading.Thread(target=sell_six) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        assert sorted(outcomes) == ["ok", "rejected"]
        db.session.expire_all()
        assert db.session.get(Product, product_id).quantity == 4
        assert Sale.query.count() == 1
