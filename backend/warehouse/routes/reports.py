# Overview: Flask API routes for reporting; dashboard statistics and sales reports.

"""
Reporting routes.

Statistics are recomputed from the full product, sale and return lists on
every request; nothing is cached or stored.

SECURITY: VIEW_REPORTS permission (admin, assistant-admin).
"""

from datetime import datetime, timedelta

from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..models import Product, Sale, Return
from ..services import reporting_service
from ..validation import ValidationError
from ..decorators import require_auth, require_permission


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _load_snapshot() -> tuple[list[dict], list[dict], list[dict]]:
    products = [p.to_dict() for p in db.session.query(Product).all()]
    sales = [s.to_dict(include_product=False) for s in db.session.query(Sale).all()]
    returns = [r.to_dict(include_product=False) for r in db.session.query(Return).all()]
    return products, sales, returns


def _local_date_arg(name: str, end_of_day: bool = False) -> datetime | None:
    """Parse a local date or datetime; a bare date as end bound covers the whole day."""
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        value = datetime.fromisoformat(raw.strip())
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 date")
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    if end_of_day and len(raw.strip()) == 10:
        value = value + timedelta(days=1) - timedelta(microseconds=1)
    return value


@reports_bp.get("/dashboard")
@require_auth
@require_permission("VIEW_REPORTS")
def dashboard_route():
    try:
        products, sales, returns = _load_snapshot()
        stats = reporting_service.compute_dashboard_stats(products, sales, returns)
    except Exception as e:
        current_app.logger.exception("Failed to compute dashboard stats")
        return jsonify({"error": "Failed to compute dashboard stats", "details": str(e)}), 500
    return jsonify(stats)


@reports_bp.get("/sales")
@require_auth
@require_permission("VIEW_REPORTS")
def sales_report_route():
    """
    Sales report for a local date window.

    Query params: startDate, endDate (YYYY-MM-DD or full ISO datetime, optional)
    """
    try:
        start = _local_date_arg("startDate")
        end = _local_date_arg("endDate", end_of_day=True)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    if start and end and start > end:
        return jsonify({"error": "startDate must not be after endDate"}), 400

    try:
        products, sales, returns = _load_snapshot()
        report = reporting_service.sales_report(products, sales, returns, start=start, end=end)
    except Exception as e:
        current_app.logger.exception("Failed to build sales report")
        return jsonify({"error": "Failed to build sales report", "details": str(e)}), 500
    return jsonify(report)
