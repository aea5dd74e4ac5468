# Overview: Dashboard and sales-report aggregation over in-memory products, sales and returns.

"""
Reporting Service

WHY: Dashboard numbers are derived, never stored. Every call recomputes
from the full lists it is given, so the figures can't drift from the rows.

Inputs are the JSON shapes produced by the models' to_dict() (camelCase
keys). The functions are pure: the route loads the rows, these only count.

Profit uses an asymmetric cost basis:
- retail sale:     (unitPrice - wholesalePrice) * amount
- wholesale sale:  (unitPrice - wholesaleCostPrice) * amount,
                   falling back to wholesalePrice when no cost price is set
A sale without saleType is treated as retail. Returns subtract their
refund from revenue and the same per-unit margin from profit, using the
sale type of the sale they were returned against.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime

from warehouse.time_utils import local_day_start, local_month_start, to_local


TOP_SELLERS_LIMIT = 5

RETAIL = "retail"
WHOLESALE = "wholesale"


def _num(value) -> float:
    return float(value) if value is not None else 0.0


def sale_type_of(sale: dict) -> str:
    return WHOLESALE if sale.get("saleType") == WHOLESALE else RETAIL


def _is_weight(product: dict | None, record: dict, weight_key: str) -> bool:
    if product is not None:
        return product.get("measurementType") == "weight"
    return record.get(weight_key) is not None


def sold_amount(sale: dict, product: dict | None) -> float:
    if _is_weight(product, sale, "weight"):
        return _num(sale.get("weight"))
    return _num(sale.get("quantity"))


def returned_amount(ret: dict, product: dict | None) -> float:
    if _is_weight(product, ret, "returnedWeight"):
        return _num(ret.get("returnedWeight"))
    return _num(ret.get("returnedQuantity"))


def applicable_cost(product: dict | None, sale_type: str) -> float:
    if product is None:
        return 0.0
    if sale_type == WHOLESALE:
        cost = _num(product.get("wholesaleCostPrice"))
        return cost if cost > 0 else _num(product.get("wholesalePrice"))
    return _num(product.get("wholesalePrice"))


def sale_profit(sale: dict, product: dict | None) -> float:
    cost = applicable_cost(product, sale_type_of(sale))
    return (_num(sale.get("unitPrice")) - cost) * sold_amount(sale, product)


def return_lost_profit(ret: dict, product: dict | None, sale_type: str) -> float:
    cost = applicable_cost(product, sale_type)
    return (_num(ret.get("unitPrice")) - cost) * returned_amount(ret, product)


class _Bucket:
    """Running totals for one slice (all / today / month, retail / wholesale)."""
    __slots__ = ("count", "revenue", "profit")

    def __init__(self):
        self.count = 0
        self.revenue = 0.0
        self.profit = 0.0


def compute_dashboard_stats(products: list[dict], sales: list[dict], returns: list[dict],
                            now: datetime | None = None) -> dict:
    now = now or datetime.now()
    today_start = local_day_start(now)
    month_start = local_month_start(now)

    products_by_id = {p["id"]: p for p in products}
    sales_by_id = {s["id"]: s for s in sales}

    totals = defaultdict(_Bucket)

    for sale in sales:
        product = products_by_id.get(sale.get("productId"))
        kind = sale_type_of(sale)
        final_price = _num(sale.get("finalPrice"))
        profit = sale_profit(sale, product)
        when = to_local(sale.get("saleDate"))

        scopes = ["all", kind]
        if when is not None and when >= today_start:
            scopes += ["today", f"today_{kind}"]
        if when is not None and when >= month_start:
            scopes.append("month")
        for scope in scopes:
            bucket = totals[scope]
            bucket.count += 1
            bucket.revenue += final_price
            bucket.profit += profit

    refunds = _Bucket()
    for ret in returns:
        product = products_by_id.get(ret.get("productId"))
        origin = sales_by_id.get(ret.get("saleId"))
        kind = sale_type_of(origin) if origin else RETAIL
        refund = _num(ret.get("totalRefund"))
        lost = return_lost_profit(ret, product, kind)
        when = to_local(ret.get("returnDate"))

        refunds.count += 1
        refunds.revenue += refund

        scopes = ["all", kind]
        if when is not None and when >= today_start:
            scopes += ["today", f"today_{kind}"]
        if when is not None and when >= month_start:
            scopes.append("month")
        for scope in scopes:
            bucket = totals[scope]
            bucket.revenue -= refund
            bucket.profit -= lost

    low_stock = 0
    out_of_stock = 0
    for product in products:
        weight_based = product.get("measurementType") == "weight"
        current = _num(product.get("weight") if weight_based else product.get("quantity"))
        minimum = _num(product.get("minWeight") if weight_based else product.get("minQuantity"))
        if current <= minimum:
            low_stock += 1
        if current == 0:
            out_of_stock += 1

    return {
        "totalProducts": len(products),
        "lowStockProducts": low_stock,
        "outOfStockProducts": out_of_stock,
        "totalSales": totals["all"].count,
        "totalRevenue": totals["all"].revenue,
        "totalProfit": totals["all"].profit,
        "todaySales": totals["today"].count,
        "todayRevenue": totals["today"].revenue,
        "todayProfit": totals["today"].profit,
        "monthlyRevenue": totals["month"].revenue,
        "monthlyProfit": totals["month"].profit,
        "totalReturns": refunds.count,
        "totalRefunds": refunds.revenue,
        "retailSales": totals[RETAIL].count,
        "wholesaleSales": totals[WHOLESALE].count,
        "retailRevenue": totals[RETAIL].revenue,
        "wholesaleRevenue": totals[WHOLESALE].revenue,
        "retailProfit": totals[RETAIL].profit,
        "wholesaleProfit": totals[WHOLESALE].profit,
        "todayRetailSales": totals[f"today_{RETAIL}"].count,
        "todayWholesaleSales": totals[f"today_{WHOLESALE}"].count,
        "todayRetailRevenue": totals[f"today_{RETAIL}"].revenue,
        "todayWholesaleRevenue": totals[f"today_{WHOLESALE}"].revenue,
        "topSellingProducts": top_selling_products(products, sales),
    }


def top_selling_products(products: list[dict], sales: list[dict], limit: int = TOP_SELLERS_LIMIT) -> list[dict]:
    """Group by product, sum sold amount and final price, highest amount first."""
    products_by_id = {p["id"]: p for p in products}
    grouped: dict = {}
    for sale in sales:
        product = products_by_id.get(sale.get("productId"))
        if product is None:
            continue
        entry = grouped.setdefault(product["id"], {"product": product, "totalSold": 0.0, "revenue": 0.0})
        entry["totalSold"] += sold_amount(sale, product)
        entry["revenue"] += _num(sale.get("finalPrice"))

    ranked = sorted(grouped.values(), key=lambda e: e["totalSold"], reverse=True)
    return ranked[:limit]


def sales_report(products: list[dict], sales: list[dict], returns: list[dict],
                 start: datetime | None = None, end: datetime | None = None) -> dict:
    """
    Sales report for a local-time window [start, end].

    Daily rows carry count, revenue, profit and the retail/wholesale split;
    paymentMethods breaks revenue down by cash vs debt.
    """
    products_by_id = {p["id"]: p for p in products}

    def _in_window(value) -> bool:
        when = to_local(value)
        if when is None:
            return False
        if start is not None and when < start:
            return False
        if end is not None and when > end:
            return False
        return True

    window_sales = [s for s in sales if _in_window(s.get("saleDate"))]
    window_returns = [r for r in returns if _in_window(r.get("returnDate"))]

    daily: dict = {}
    payment_methods: dict = {}
    for sale in window_sales:
        product = products_by_id.get(sale.get("productId"))
        day = to_local(sale.get("saleDate")).date().isoformat()
        kind = sale_type_of(sale)
        final_price = _num(sale.get("finalPrice"))

        row = daily.setdefault(day, {
            "date": day, "sales": 0, "revenue": 0.0, "profit": 0.0,
            "retailSales": 0, "wholesaleSales": 0, "retailRevenue": 0.0, "wholesaleRevenue": 0.0,
        })
        row["sales"] += 1
        row["revenue"] += final_price
        row["profit"] += sale_profit(sale, product)
        row[f"{kind}Sales"] += 1
        row[f"{kind}Revenue"] += final_price

        method = sale.get("paymentMethod") or "cash"
        entry = payment_methods.setdefault(method, {"count": 0, "revenue": 0.0})
        entry["count"] += 1
        entry["revenue"] += final_price

    total_revenue = sum(_num(s.get("finalPrice")) for s in window_sales)
    total_refunds = sum(_num(r.get("totalRefund")) for r in window_returns)

    return {
        "startDate": start.isoformat() if start else None,
        "endDate": end.isoformat() if end else None,
        "totalSales": len(window_sales),
        "grossRevenue": total_revenue,
        "totalRefunds": total_refunds,
        "netRevenue": total_revenue - total_refunds,
        "totalProfit": sum(sale_profit(s, products_by_id.get(s.get("productId"))) for s in window_sales),
        "daily": [daily[key] for key in sorted(daily)],
        "paymentMethods": payment_methods,
        "topSellingProducts": top_selling_products(products, window_sales),
    }
