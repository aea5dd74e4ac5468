"""
Sales Service - read and maintenance operations on sale rows

WHY: Sale rows are written by checkout_service (one row per cart line).
This module owns everything else: listings with date windows, lookups,
the debt back-fill update and guarded deletion.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from ..extensions import db
from ..models import Sale, Return
from ..validation import ConflictError, NotFoundError, ValidationError
from warehouse.time_utils import local_day_start, local_month_start


SALE_MUTABLE_FIELDS = {"customer_name", "debt_id", "debt_customer_id"}


def _local_to_utc(dt: datetime) -> datetime:
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def list_sales(start: datetime | None = None, end: datetime | None = None) -> list[Sale]:
    """Sales newest first; start/end are UTC-naive bounds (inclusive start, exclusive end)."""
    query = db.session.query(Sale)
    if start is not None:
        query = query.filter(Sale.sale_date >= start)
    if end is not None:
        query = query.filter(Sale.sale_date < end)
    return query.order_by(Sale.sale_date.desc(), Sale.id.desc()).all()


def list_today_sales(now: datetime | None = None) -> list[Sale]:
    start = local_day_start(now)
    return list_sales(start=_local_to_utc(start), end=_local_to_utc(start + timedelta(days=1)))


def list_month_sales(now: datetime | None = None) -> list[Sale]:
    start = local_month_start(now)
    next_month = (start.replace(day=28) + timedelta(days=4)).replace(day=1)
    return list_sales(start=_local_to_utc(start), end=_local_to_utc(next_month))


def get_sale_by_id(sale_id: int) -> Sale | None:
    return db.session.get(Sale, sale_id)


def list_sales_by_debt(debt_id: int) -> list[Sale]:
    return db.session.query(Sale).filter(Sale.debt_id == debt_id).order_by(Sale.id.asc()).all()


def update_sale(sale_id: int, patch: dict, commit: bool = True) -> Sale:
    """
    Update the mutable bookkeeping fields of a sale.

    Amounts and prices are fixed once written; only the customer label and
    debt linkage may change.
    """
    sale = get_sale_by_id(sale_id)
    if sale is None:
        raise NotFoundError("Sale not found")

    for key, value in patch.items():
        if key not in SALE_MUTABLE_FIELDS:
            raise ValidationError(f"Field not allowed: {key}")
        setattr(sale, key, value)

    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return sale


def delete_sale(sale_id: int) -> bool:
    """
    Delete a sale row.

    Refused while returns reference the sale. Stock is not restored:
    deletion corrects bookkeeping, a return is the way to put goods back.
    """
    sale = get_sale_by_id(sale_id)
    if sale is None:
        return False

    if db.session.query(Return).filter(Return.sale_id == sale_id).count():
        raise ConflictError("Cannot delete a sale that has returns")
    if sale.debt_id is not None:
        raise ConflictError("Cannot delete a sale linked to a debt")

    db.session.delete(sale)
    db.session.commit()
    return True
