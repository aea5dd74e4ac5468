"""
Sales history and debt book API tests.
"""

from warehouse.extensions import db
from warehouse.models import Sale
from warehouse.services import checkout_service, return_service


def sell(product, quantity=1, **kwargs):
    return checkout_service.checkout(
        items=[{"productId": product.id, "quantity": quantity, "unitPrice": 150}],
        payment_method=kwargs.pop("payment_method", "cash"),
        **kwargs,
    )


# =============================================================================
# SALES
# =============================================================================


class TestSales:

    def test_single_sale_route(self, client, db_session, make_product, cashier_headers):
        product = make_product(quantity=4)
        resp = client.post(
            "/api/sales",
            json={"productId": product.id, "quantity": 2, "unitPrice": 150, "customerName": "Walk-in"},
            headers=cashier_headers,
        )
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["finalPrice"] == 300
        assert body["customerName"] == "Walk-in"
        db_session.expire_all()
        assert product.quantity == 2

    def test_today_filter(self, client, db_session, make_product, cashier_headers):
        sell(make_product())
        resp = client.get("/api/sales?period=today", headers=cashier_headers)
        assert resp.status_code == 200
        assert len(resp.get_json()) == 1

    def test_delete_plain_sale_keeps_stock(self, client, db_session, make_product, admin_headers):
        product = make_product(quantity=10)
        sale_id = sell(product, quantity=2).sales[0].id
        resp = client.delete(f"/api/sales/{sale_id}", headers=admin_headers)
        assert resp.status_code == 200
        db_session.expire_all()
        assert db.session.get(Sale, sale_id) is None
        assert product.quantity == 8

    def test_delete_sale_with_return_refused(self, client, db_session, make_product, admin_headers):
        product = make_product()
        sale = sell(product, quantity=2).sales[0]
        return_service.create_return(sale.id, product.id, returned_quantity=1)
        resp = client.delete(f"/api/sales/{sale.id}", headers=admin_headers)
        assert resp.status_code == 400

    def test_delete_debt_sale_refused(self, client, db_session, make_product, make_customer, admin_headers):
        product = make_product()
        customer = make_customer()
        sale = sell(product, payment_method="debt", debt_customer_id=customer.id).sales[0]
        resp = client.delete(f"/api/sales/{sale.id}", headers=admin_headers)
        assert resp.status_code == 400

    def test_update_customer_name(self, client, db_session, make_product, admin_headers):
        sale = sell(make_product()).sales[0]
        resp = client.put(f"/api/sales/{sale.id}", json={"customerName": "Hajji"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["customerName"] == "Hajji"
        assert resp.get_json()["finalPrice"] == 150

    def test_update_rejects_price_fields(self, client, db_session, make_product, cashier_headers):
        sale = sell(make_product()).sales[0]
        resp = client.put(f"/api/sales/{sale.id}", json={"finalPrice": 1}, headers=cashier_headers)
        assert resp.status_code == 400

    def test_delete_missing_sale(self, client, db_session, admin_headers):
        assert client.delete("/api/sales/999", headers=admin_headers).status_code == 404


# =============================================================================
# DEBT BOOK
# =============================================================================


class TestDebtBook:

    def test_customer_crud(self, client, db_session, cashier_headers):
        resp = client.post("/api/debt-customers", json={"name": "Abu Ali", "phone": "0770"}, headers=cashier_headers)
        assert resp.status_code == 201
        customer_id = resp.get_json()["id"]

        resp = client.put(f"/api/debt-customers/{customer_id}", json={"address": "Karrada"}, headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.get_json()["address"] == "Karrada"

        assert client.delete(f"/api/debt-customers/{customer_id}", headers=cashier_headers).status_code == 200
        assert client.get(f"/api/debt-customers/{customer_id}", headers=cashier_headers).status_code == 404

    def test_customer_name_required(self, client, db_session, cashier_headers):
        resp = client.post("/api/debt-customers", json={"phone": "0770"}, headers=cashier_headers)
        assert resp.status_code == 400

    def test_debt_detail_includes_sales_and_payments(self, client, db_session, make_product, make_customer,
                                                     cashier_headers):
        customer = make_customer()
        debt_id = sell(make_product(), quantity=2, payment_method="debt", debt_customer_id=customer.id).debt.id
        client.post("/api/debt-payments", json={"debtId": debt_id, "amount": 100}, headers=cashier_headers)

        resp = client.get(f"/api/debts/{debt_id}", headers=cashier_headers)
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["amountPaid"] == 100
        assert len(body["payments"]) == 1
        assert len(body["sales"]) == 1

    def test_status_filter(self, client, db_session, make_product, make_customer, cashier_headers):
        customer = make_customer()
        sell(make_product(), payment_method="debt", debt_customer_id=customer.id)
        assert len(client.get("/api/debts?status=unpaid", headers=cashier_headers).get_json()) == 1
        assert client.get("/api/debts?status=paid", headers=cashier_headers).get_json() == []
        assert client.get("/api/debts?status=bogus", headers=cashier_headers).status_code == 400

    def test_manual_debt_rejects_nan_total(self, client, db_session, make_customer, cashier_headers):
        customer = make_customer()
        resp = client.post(
            "/api/debts",
            json={"customerId": customer.id, "totalAmount": "nan"},
            headers=cashier_headers,
        )
        assert resp.status_code == 400
        assert "total_amount" in resp.get_json()["error"]

    def test_update_ignores_balance_fields(self, client, db_session, make_product, make_customer, cashier_headers):
        customer = make_customer()
        debt_id = sell(make_product(), payment_method="debt", debt_customer_id=customer.id).debt.id
        resp = client.put(
            f"/api/debts/{debt_id}",
            json={"notes": "Pays Fridays", "amountPaid": 150, "status": "paid"},
            headers=cashier_headers,
        )
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["notes"] == "Pays Fridays"
        assert body["amountPaid"] == 0
        assert body["status"] == "unpaid"

    def test_delete_debt_unlinks_sales(self, client, db_session, make_product, make_customer, cashier_headers):
        customer = make_customer()
        result = sell(make_product(), payment_method="debt", debt_customer_id=customer.id)
        resp = client.delete(f"/api/debts/{result.debt.id}", headers=cashier_headers)
        assert resp.status_code == 200
        db_session.expire_all()
        assert db.session.get(Sale, result.sales[0].id).debt_id is None
