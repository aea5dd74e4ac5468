"""
Reporting tests.

The aggregation functions are pure, so these feed plain to_dict()-shaped
dicts and check the numbers directly.
"""

from datetime import datetime, timezone

import pytest

from warehouse.services import reporting_service


NOW = datetime(2026, 10, 19, 15, 0, 0)


def iso_local(dt: datetime) -> str:
    """Serialize a naive local datetime the way to_dict() would (UTC, trailing Z)."""
    return dt.astimezone(timezone.utc).replace(tzinfo=None).isoformat() + "Z"


def product(pid=1, **overrides):
    data = {
        "id": pid,
        "name": f"Product {pid}",
        "measurementType": "quantity",
        "wholesalePrice": 100.0,
        "wholesaleCostPrice": 80.0,
        "salePrice": 150.0,
        "quantity": 20,
        "minQuantity": 5,
        "weight": 0.0,
        "minWeight": 0.0,
    }
    data.update(overrides)
    return data


def sale(sid, unit_price, quantity=1, product_id=1, sale_type="retail", when=NOW, **overrides):
    data = {
        "id": sid,
        "productId": product_id,
        "saleType": sale_type,
        "quantity": quantity,
        "weight": None,
        "unitPrice": unit_price,
        "paymentMethod": "cash",
        "saleDate": iso_local(when),
    }
    data.update(overrides)
    amount = data["weight"] if data["quantity"] is None else data["quantity"]
    data.setdefault("finalPrice", unit_price * (amount or 0))
    return data


# =============================================================================
# PROFIT BASIS
# =============================================================================


class TestProfit:

    def test_retail_profit_uses_wholesale_price(self):
        stats = reporting_service.compute_dashboard_stats([product()], [sale(1, 150)], [], now=NOW)
        assert stats["totalProfit"] == 50
        assert stats["retailProfit"] == 50

    def test_wholesale_profit_uses_cost_price(self):
        stats = reporting_service.compute_dashboard_stats(
            [product()], [sale(1, 110, sale_type="wholesale")], [], now=NOW
        )
        assert stats["totalProfit"] == 30
        assert stats["wholesaleProfit"] == 30
        assert stats["wholesaleSales"] == 1

    def test_wholesale_without_cost_price_falls_back(self):
        stats = reporting_service.compute_dashboard_stats(
            [product(wholesaleCostPrice=0)], [sale(1, 110, sale_type="wholesale")], [], now=NOW
        )
        assert stats["totalProfit"] == 10

    def test_missing_sale_type_counts_as_retail(self):
        legacy = sale(1, 150)
        del legacy["saleType"]
        stats = reporting_service.compute_dashboard_stats([product()], [legacy], [], now=NOW)
        assert stats["retailSales"] == 1
        assert stats["totalProfit"] == 50

    def test_weight_sale_profit(self):
        cheese = product(measurementType="weight", weight=10.0, minWeight=1.0)
        weighed = sale(1, 150, quantity=None, weight=2.0, finalPrice=300)
        stats = reporting_service.compute_dashboard_stats([cheese], [weighed], [], now=NOW)
        assert stats["totalProfit"] == 100


# =============================================================================
# RETURNS AND WINDOWS
# =============================================================================


class TestReturnsAndWindows:

    def test_returns_reduce_revenue_and_profit(self):
        sales = [sale(1, 150, quantity=2)]
        returns = [{
            "id": 1, "saleId": 1, "productId": 1, "returnedQuantity": 1, "returnedWeight": None,
            "unitPrice": 150, "totalRefund": 150, "returnDate": iso_local(NOW),
        }]
        stats = reporting_service.compute_dashboard_stats([product()], sales, returns, now=NOW)
        assert stats["totalRevenue"] == 150
        assert stats["totalProfit"] == 50
        assert stats["totalReturns"] == 1
        assert stats["totalRefunds"] == 150
        assert stats["todayRevenue"] == 150

    def test_today_and_month_windows(self):
        sales = [
            sale(1, 150, when=NOW),
            sale(2, 150, when=datetime(2026, 10, 2, 9, 0)),
            sale(3, 150, when=datetime(2026, 9, 30, 9, 0)),
        ]
        stats = reporting_service.compute_dashboard_stats([product()], sales, [], now=NOW)
        assert stats["totalSales"] == 3
        assert stats["todaySales"] == 1
        assert stats["monthlyRevenue"] == 300

    def test_stock_counts(self):
        products = [product(1, quantity=20), product(2, quantity=5), product(3, quantity=0)]
        stats = reporting_service.compute_dashboard_stats(products, [], [], now=NOW)
        assert stats["totalProducts"] == 3
        assert stats["lowStockProducts"] == 2
        assert stats["outOfStockProducts"] == 1


# =============================================================================
# TOP SELLERS AND SALES REPORT
# =============================================================================


class TestTopSellersAndReport:

    def test_top_sellers_ranked_by_amount(self):
        products = [product(1), product(2)]
        sales = [sale(1, 150, quantity=1, product_id=1), sale(2, 150, quantity=4, product_id=2)]
        top = reporting_service.top_selling_products(products, sales)
        assert [t["product"]["id"] for t in top] == [2, 1]
        assert top[0]["totalSold"] == 4
        assert top[0]["revenue"] == 600

    def test_sales_report_window(self):
        sales = [
            sale(1, 150, when=datetime(2026, 10, 18, 10, 0)),
            sale(2, 150, when=datetime(2026, 10, 19, 10, 0), paymentMethod="debt"),
            sale(3, 150, when=datetime(2026, 10, 1, 10, 0)),
        ]
        report = reporting_service.sales_report(
            [product()], sales, [],
            start=datetime(2026, 10, 18), end=datetime(2026, 10, 19, 23, 59, 59),
        )
        assert [row["date"] for row in sorted(report["daily"], key=lambda r: r["date"])] == [
            "2026-10-18", "2026-10-19",
        ]
        assert report["paymentMethods"]["debt"]["count"] == 1


# =============================================================================
# ROUTE PERMISSIONS
# =============================================================================


class TestReportRoutes:

    def test_cashier_denied(self, client, db_session, cashier_headers):
        resp = client.get("/api/reports/dashboard", headers=cashier_headers)
        assert resp.status_code == 403
        assert resp.get_json()["required_permission"] == "VIEW_REPORTS"

    def test_assistant_admin_allowed(self, client, db_session, assistant_headers):
        resp = client.get("/api/reports/dashboard", headers=assistant_headers)
        assert resp.status_code == 200
        assert resp.get_json()["totalSales"] == 0
