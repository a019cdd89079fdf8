# Overview: Service-layer operations for reporting; dashboard summary, sales history and product velocity.

from __future__ import annotations

import math
from datetime import date, datetime, timedelta

from sqlalchemy import case, func, or_
from sqlalchemy.orm import joinedload

from scanpos.extensions import db
from scanpos.models import Product, Sale, SaleItem, StaffProfile
from scanpos.models.sales import (
    PAYMENT_CASH,
    PAYMENT_METHODS,
    PAYMENT_MOMO,
    SALE_STATUSES,
    SOURCE_CUSTOMER_SCAN,
    SOURCE_STAFF_MANUAL,
    STATUS_PAID,
    STATUS_PENDING,
)
from scanpos.services import settings_service
from scanpos.time_utils import start_of_utc_day, to_utc_z, utcnow


VELOCITY_WINDOW_DAYS = 30
RECENT_WINDOW_DAYS = 7
RESTOCK_COVER_DAYS = 14

# Units per day (30-day average)
CRITICAL_DAILY_RATE = 3
WARNING_DAILY_RATE = 0.5


class ReportError(Exception):
    """Raised when report parameters are invalid."""
    pass


def daily_summary(since: datetime | None = None, until: datetime | None = None) -> dict:
    """
    Totals for PAID sales created in [since, until) (default: the current UTC day).

    Split by payment method and by source; pending_count is scan sales still
    awaiting confirmation in the same window.
    """
    since = since or start_of_utc_day()

    window = [Sale.created_at >= since]
    if until is not None:
        window.append(Sale.created_at < until)

    rows = db.session.query(
        Sale.payment_method,
        Sale.source,
        func.count(Sale.id).label("sales_count"),
        func.coalesce(func.sum(Sale.total_cents), 0).label("total_cents"),
    ).filter(
        Sale.status == STATUS_PAID,
        *window,
    ).group_by(Sale.payment_method, Sale.source).all()

    summary = {
        "since": to_utc_z(since),
        "until": to_utc_z(until) if until else None,
        "total_cents": 0,
        "count": 0,
        "cash_cents": 0,
        "momo_cents": 0,
        "manual_cents": 0,
        "scan_cents": 0,
    }

    for row in rows:
        amount = int(row.total_cents or 0)
        summary["total_cents"] += amount
        summary["count"] += int(row.sales_count or 0)

        if row.payment_method == PAYMENT_CASH:
            summary["cash_cents"] += amount
        elif row.payment_method == PAYMENT_MOMO:
            summary["momo_cents"] += amount

        if row.source == SOURCE_STAFF_MANUAL:
            summary["manual_cents"] += amount
        elif row.source == SOURCE_CUSTOMER_SCAN:
            summary["scan_cents"] += amount

    summary["pending_count"] = db.session.query(func.count(Sale.id)).filter(
        Sale.status == STATUS_PENDING,
        *window,
    ).scalar() or 0
    summary["enable_customer_scan"] = settings_service.is_scan_enabled()
    return summary


def parse_day(value: str | None) -> date:
    """YYYY-MM-DD, or today (UTC) when empty."""
    if not value or not value.strip():
        return utcnow().date()
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ReportError("date must be YYYY-MM-DD")


def sales_for_day(
    day: date,
    *,
    status: str | None = None,
    payment_method: str | None = None,
    search: str | None = None,
) -> dict:
    """
    Sales created on a UTC calendar day, newest first, with items and staff.

    `search` matches the public code or the staff username/display name.
    The summary block always covers the whole day, ignoring the filters.
    """
    if status:
        status = status.strip().upper()
        if status not in SALE_STATUSES:
            raise ReportError(f"status must be one of: {', '.join(SALE_STATUSES)}")
    if payment_method:
        payment_method = payment_method.strip().upper()
        if payment_method not in PAYMENT_METHODS:
            raise ReportError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")

    start = datetime.combine(day, datetime.min.time())
    end = start + timedelta(days=1)

    query = db.session.query(Sale).outerjoin(StaffProfile, Sale.staff_id == StaffProfile.id).options(
        joinedload(Sale.items).joinedload(SaleItem.product),
        joinedload(Sale.staff),
    ).filter(
        Sale.created_at >= start,
        Sale.created_at < end,
    )

    if status:
        query = query.filter(Sale.status == status)
    if payment_method:
        query = query.filter(Sale.payment_method == payment_method)
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(or_(
            func.lower(Sale.public_code).like(pattern),
            func.lower(StaffProfile.username).like(pattern),
            func.lower(StaffProfile.display_name).like(pattern),
        ))

    sales = query.order_by(Sale.created_at.desc(), Sale.id.desc()).all()

    rows = []
    for sale in sales:
        data = sale.to_dict(include_items=True)
        data["staff"] = (
            {"id": sale.staff.id, "username": sale.staff.username, "display_name": sale.staff.display_name}
            if sale.staff else None
        )
        rows.append(data)

    return {
        "date": day.isoformat(),
        "summary": daily_summary(start, end),
        "sales": rows,
    }


def sale_dates() -> list[str]:
    """Distinct UTC days that have at least one sale, newest first."""
    day_expr = func.date(Sale.created_at)
    rows = db.session.query(day_expr.label("day")).distinct().order_by(day_expr.desc()).all()
    return [str(row.day) for row in rows if row.day is not None]


def _urgency(daily_rate: float) -> str:
    if daily_rate >= CRITICAL_DAILY_RATE:
        return "critical"
    if daily_rate >= WARNING_DAILY_RATE:
        return "warning"
    return "low"


def _trend(sold_recent: int, daily_rate: float) -> str:
    # last 7 days against what the 30-day average predicts
    expected = daily_rate * RECENT_WINDOW_DAYS
    if sold_recent > expected * 1.25:
        return "rising"
    if sold_recent < expected * 0.75:
        return "falling"
    return "stable"


def product_velocity(now: datetime | None = None) -> dict:
    """
    Units sold per active product over the last 30 and 7 days (PAID sales).

    Each row carries the 30-day daily rate, a demand urgency bucket, a trend
    from the last week against that rate, and a restock suggestion covering
    two weeks at the current rate. Highest daily rate first.
    """
    now = now or utcnow()
    since_30 = now - timedelta(days=VELOCITY_WINDOW_DAYS)
    since_7 = now - timedelta(days=RECENT_WINDOW_DAYS)

    sold = db.session.query(
        SaleItem.product_id,
        func.coalesce(func.sum(SaleItem.quantity), 0).label("sold_30d"),
        func.coalesce(
            func.sum(case((Sale.created_at >= since_7, SaleItem.quantity), else_=0)), 0
        ).label("sold_7d"),
    ).join(Sale, Sale.id == SaleItem.sale_id).filter(
        Sale.status == STATUS_PAID,
        Sale.created_at >= since_30,
        Sale.created_at <= now,
    ).group_by(SaleItem.product_id).all()
    sold_by_product = {row.product_id: row for row in sold}

    products = db.session.query(Product).filter(
        Product.is_active.is_(True),
    ).order_by(Product.name.asc(), Product.id.asc()).all()

    rows = []
    for product in products:
        row = sold_by_product.get(product.id)
        sold_30d = int(row.sold_30d) if row else 0
        sold_7d = int(row.sold_7d) if row else 0
        daily_rate = sold_30d / VELOCITY_WINDOW_DAYS

        rows.append({
            "product_id": product.id,
            "sku": product.sku,
            "name": product.name,
            "price_cents": product.price_cents,
            "sold_7d": sold_7d,
            "sold_30d": sold_30d,
            "daily_rate": round(daily_rate, 2),
            "weekly_rate": sold_7d,
            "urgency": _urgency(daily_rate),
            "trend": _trend(sold_7d, daily_rate),
            "restock_qty": max(1, math.ceil(daily_rate * RESTOCK_COVER_DAYS)),
        })

    rows.sort(key=lambda r: -r["daily_rate"])
    return {
        "as_of": to_utc_z(now),
        "window_days": VELOCITY_WINDOW_DAYS,
        "rows": rows,
    }
