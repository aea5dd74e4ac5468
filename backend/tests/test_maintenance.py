"""
Maintenance tests: export, clear, backup and the admin-only endpoints.
"""

import json
import os
import sqlite3

import pytest

from warehouse.extensions import db
from warehouse.models import Product, Sale, User, DebtCustomer
from warehouse.services import checkout_service, maintenance_service
from warehouse.services.maintenance_service import MaintenanceError


class TestExport:

    def test_export_writes_json(self, db_session, make_product):
        product = make_product()
        checkout_service.checkout(
            items=[{"productId": product.id, "quantity": 1, "unitPrice": 150}],
            payment_method="cash",
        )

        result = maintenance_service.export_data()

        assert result["counts"] == {"products": 1, "categories": 0, "sales": 1}
        with open(result["path"], encoding="utf-8") as fh:
            payload = json.load(fh)
        assert payload["products"][0]["name"] == "Rice 1kg"
        assert payload["sales"][0]["productId"] == product.id
        assert payload["exportDate"].endswith("Z")


class TestClearData:

    def test_keeps_users_and_debt_customers(self, db_session, make_product, make_user, make_customer):
        make_user("cashier")
        customer = make_customer()
        product = make_product()
        checkout_service.checkout(
            items=[{"productId": product.id, "quantity": 1, "unitPrice": 150}],
            payment_method="debt",
            debt_customer_id=customer.id,
        )

        result = maintenance_service.clear_data()

        assert result["deleted"]["sales"] == 1
        assert result["deleted"]["debts"] == 1
        assert Product.query.count() == 0
        assert Sale.query.count() == 0
        assert User.query.count() == 1
        assert DebtCustomer.query.count() == 1

    def test_clear_route_is_admin_only(self, client, db_session, assistant_headers):
        resp = client.post("/api/database/clear", headers=assistant_headers)
        assert resp.status_code == 403


class TestBackup:

    def test_in_memory_database_cannot_be_backed_up(self, db_session):
        with pytest.raises(MaintenanceError):
            maintenance_service.create_backup()

    def test_backup_route_reports_in_memory_as_400(self, client, db_session, admin_headers):
        resp = client.post("/api/database/backup", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["success"] is False

    def test_file_backup(self, file_app):
        db.create_all()
        db.session.add(Product(name="Flour", measurement_type="quantity", quantity=3))
        db.session.commit()

        result = maintenance_service.create_backup()

        assert os.path.exists(result["path"])
        assert result["size"] > 0
        with sqlite3.connect(result["path"]) as connection:
            assert connection.execute("SELECT name FROM products").fetchall() == [("Flour",)]

    def test_database_info(self, file_app):
        db.create_all()
        info = maintenance_service.get_database_info()
        assert info["dialect"] == "sqlite"
        assert info["path"].endswith("warehouse.db")
        assert info["tables"]["products"] == 0


class TestHealth:

    def test_health(self, client, db_session):
        resp = client.get("/api/health")
        assert resp.status_code == 200
