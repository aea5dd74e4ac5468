"""
Schema migration tests.

Each test runs against its own file-backed SQLite database so Alembic
sees a real, persistent schema.

Verifies:
- A database from the first release is upgraded in one call
- Legacy data is converted (card/transfer -> cash, percentage discounts)
- A second run is a no-op
- A database created from the models is stamped instead of replayed
"""

import flask_migrate
import pytest
import sqlalchemy as sa

from warehouse.extensions import db
from warehouse.services import migration_service


def seed_first_release(connection):
    connection.execute(sa.text(
        "INSERT INTO users (id, username, password_hash, role, is_active) "
        "VALUES (1, 'owner', 'x', 'admin', 1)"
    ))
    connection.execute(sa.text(
        "INSERT INTO products (id, name, measurement_type, wholesale_price, sale_price, discount, quantity) "
        "VALUES (1, 'Rice', 'quantity', 1500, 2000, 10, 50), "
        "       (2, 'Gum', 'quantity', 40, 50, 10, 100)"
    ))
    # Sale 1: 10% of 1000 stored as a percentage; sale 2: a genuine fixed 50 off
    connection.execute(sa.text(
        "INSERT INTO sales (id, product_id, quantity, unit_price, total_price, discount, final_price, "
        "                   customer_phone, payment_method) "
        "VALUES (1, 1, 1, 1000, 1000, 10, 900, '0770', 'card'), "
        "       (2, 1, 1, 1000, 1000, 50, 950, NULL, 'transfer'), "
        "       (3, 2, 2, 50, 100, 0, 100, NULL, 'cash')"
    ))


# =============================================================================
# LEGACY UPGRADE
# =============================================================================


class TestLegacyUpgrade:

    def test_upgrade_from_first_release(self, file_app):
        flask_migrate.upgrade(revision="0001_baseline")
        with db.engine.begin() as connection:
            seed_first_release(connection)

        result = migration_service.apply_migrations()

        assert result["success"] is True
        assert result["alreadyMigrated"] is False
        assert [c.split(":")[0] for c in result["changes"]] == [
            "0002_assistant_admin",
            "0003_wholesale_pricing",
            "0004_debt_book",
            "0005_fixed_discounts",
            "0006_session_tokens",
        ]
        assert migration_service.get_current_revision() == "0006_session_tokens"

        inspector = sa.inspect(db.engine)
        sales_columns = {c["name"] for c in inspector.get_columns("sales")}
        assert "customer_phone" not in sales_columns
        assert {"debt_id", "debt_customer_id", "sale_type"} <= sales_columns
        for table in ("debt_customers", "debts", "debt_payments", "session_tokens"):
            assert inspector.has_table(table)

        with db.engine.connect() as connection:
            sales = {
                row.id: row for row in connection.execute(
                    sa.text("SELECT id, payment_method, discount, sale_type FROM sales")
                )
            }
            products = dict(connection.execute(sa.text("SELECT id, discount FROM products")).fetchall())

        assert {s.payment_method for s in sales.values()} == {"cash"}
        assert {s.sale_type for s in sales.values()} == {"retail"}
        assert sales[1].discount == 100
        assert sales[2].discount == 50
        assert products[1] == 200
        assert products[2] == 10

    def test_new_constraints_apply(self, file_app):
        flask_migrate.upgrade(revision="0001_baseline")
        with db.engine.begin() as connection:
            seed_first_release(connection)
        migration_service.apply_migrations()

        with db.engine.begin() as connection:
            connection.execute(sa.text(
                "INSERT INTO users (username, password_hash, role, is_active) "
                "VALUES ('helper', 'x', 'assistant-admin', 1)"
            ))

        with pytest.raises(sa.exc.IntegrityError):
            with db.engine.begin() as connection:
                connection.execute(sa.text(
                    "INSERT INTO sales (product_id, quantity, unit_price, total_price, final_price, payment_method) "
                    "VALUES (1, 1, 10, 10, 10, 'card')"
                ))

    def test_second_run_is_noop(self, file_app):
        flask_migrate.upgrade(revision="0001_baseline")
        first = migration_service.apply_migrations()
        second = migration_service.apply_migrations()
        assert first["alreadyMigrated"] is False
        assert second["alreadyMigrated"] is True
        assert second["changes"] == []


# =============================================================================
# FRESH DATABASES
# =============================================================================


class TestFreshDatabase:

    def test_empty_database_runs_every_revision(self, file_app):
        result = migration_service.apply_migrations()
        assert len(result["changes"]) == 6
        inspector = sa.inspect(db.engine)
        assert set(db.metadata.tables) <= set(inspector.get_table_names())

    def test_model_created_database_is_stamped(self, file_app):
        db.create_all()
        result = migration_service.apply_migrations()
        assert result["alreadyMigrated"] is True
        assert result["changes"] == []
        assert migration_service.get_current_revision() == "0006_session_tokens"

    def test_migrate_cli(self, file_app):
        runner = file_app.test_cli_runner()
        result = runner.invoke(args=["system", "migrate"])
        assert result.exit_code == 0
        assert "PASS" in result.output
        assert migration_service.get_current_revision() == "0006_session_tokens"
