"""
Admin analytics: sales history by day and product velocity.
"""

from datetime import date, datetime, timedelta

import pytest

from scanpos.extensions import db
from scanpos.models import SaleItem
from scanpos.models.sales import (
    PAYMENT_MOMO,
    SOURCE_STAFF_MANUAL,
    STATUS_CANCELLED,
    STATUS_PAID,
)
from scanpos.services import reporting_service
from scanpos.services.reporting_service import ReportError
from tests.conftest import add_pending_scan_sale


DAY = date(2026, 3, 14)
NOON = datetime(2026, 3, 14, 12, 0, 0)


def _sale_with_items(code, lines, **overrides):
    """Sale plus items; `lines` is [(product, qty)]."""
    total = sum(product.price_cents * qty for product, qty in lines)
    sale = add_pending_scan_sale(code, total_cents=total, **overrides)
    for product, qty in lines:
        db.session.add(SaleItem(
            sale_id=sale.id,
            product_id=product.id,
            quantity=qty,
            unit_price_cents=product.price_cents,
            line_total_cents=product.price_cents * qty,
        ))
    db.session.commit()
    return sale


# =============================================================================
# SALES HISTORY
# =============================================================================


class TestSalesForDay:

    def test_day_boundaries_and_order(self, db_session, product_a):
        early = _sale_with_items("700001", [(product_a, 1)], created_at=NOON.replace(hour=0, second=1))
        late = _sale_with_items("700002", [(product_a, 2)], created_at=NOON.replace(hour=23, minute=59))
        _sale_with_items("700003", [(product_a, 1)], created_at=NOON - timedelta(days=1))
        _sale_with_items("700004", [(product_a, 1)], created_at=NOON + timedelta(days=1))

        report = reporting_service.sales_for_day(DAY)

        assert report["date"] == "2026-03-14"
        assert [s["id"] for s in report["sales"]] == [late.id, early.id]
        assert report["sales"][0]["items"][0]["product_name"] == "Product A"
        assert report["sales"][0]["items"][0]["quantity"] == 2

    def test_summary_covers_paid_sales_of_the_day(self, db_session, cashier, product_a, product_b):
        _sale_with_items("710001", [(product_a, 2)], status=STATUS_PAID, staff_id=cashier.id,
                         source=SOURCE_STAFF_MANUAL, created_at=NOON)
        _sale_with_items("710002", [(product_b, 4)], status=STATUS_PAID, payment_method=PAYMENT_MOMO,
                         staff_id=cashier.id, created_at=NOON)
        _sale_with_items("710003", [(product_a, 9)], created_at=NOON)
        _sale_with_items("710004", [(product_a, 9)], status=STATUS_CANCELLED, created_at=NOON)

        summary = reporting_service.sales_for_day(DAY, status="PAID")["summary"]

        assert summary["total_cents"] == 3000
        assert summary["count"] == 2
        assert summary["cash_cents"] == 2000
        assert summary["momo_cents"] == 1000
        assert summary["pending_count"] == 1
        assert summary["since"] == "2026-03-14T00:00:00Z"
        assert summary["until"] == "2026-03-15T00:00:00Z"

    def test_filters(self, db_session, cashier, product_a):
        paid = _sale_with_items("720001", [(product_a, 1)], status=STATUS_PAID, staff_id=cashier.id,
                                payment_method=PAYMENT_MOMO, created_at=NOON)
        pending = _sale_with_items("720002", [(product_a, 1)], created_at=NOON)

        def ids(**kwargs):
            return [s["id"] for s in reporting_service.sales_for_day(DAY, **kwargs)["sales"]]

        assert ids(status="paid") == [paid.id]
        assert ids(status="PENDING") == [pending.id]
        assert ids(payment_method="CASH") == [pending.id]
        assert ids(search="720002") == [pending.id]
        assert ids(search="AMA") == [paid.id]

    def test_staff_is_included(self, db_session, cashier, product_a):
        _sale_with_items("730001", [(product_a, 1)], status=STATUS_PAID, staff_id=cashier.id, created_at=NOON)

        sale = reporting_service.sales_for_day(DAY)["sales"][0]
        assert sale["staff"] == {"id": cashier.id, "username": "amak", "display_name": "Ama"}

    @pytest.mark.parametrize("kwargs", [{"status": "REFUNDED"}, {"payment_method": "CARD"}])
    def test_bad_filters(self, db_session, kwargs):
        with pytest.raises(ReportError):
            reporting_service.sales_for_day(DAY, **kwargs)

    def test_parse_day(self):
        assert reporting_service.parse_day("2026-03-14") == DAY
        with pytest.raises(ReportError):
            reporting_service.parse_day("14/03/2026")


class TestSaleDates:

    def test_distinct_days_newest_first(self, db_session):
        add_pending_scan_sale("740001", created_at=NOON)
        add_pending_scan_sale("740002", created_at=NOON.replace(hour=18))
        add_pending_scan_sale("740003", created_at=NOON - timedelta(days=3))

        assert reporting_service.sale_dates() == ["2026-03-14", "2026-03-11"]

    def test_no_sales(self, db_session):
        assert reporting_service.sale_dates() == []


class TestSalesHistoryRoutes:

    def test_history_route(self, client, admin_headers, product_a):
        _sale_with_items("750001", [(product_a, 1)], created_at=NOON)

        resp = client.get("/api/admin/sales?date=2026-03-14", headers=admin_headers)

        assert resp.status_code == 200
        body = resp.get_json()
        assert [s["public_code"] for s in body["sales"]] == ["750001"]
        assert body["summary"]["pending_count"] == 1

    def test_history_rejects_bad_date(self, client, admin_headers):
        resp = client.get("/api/admin/sales?date=yesterday", headers=admin_headers)
        assert resp.status_code == 400

    def test_dates_route(self, client, admin_headers):
        add_pending_scan_sale("760001", created_at=NOON)
        resp = client.get("/api/admin/sales/dates", headers=admin_headers)
        assert resp.get_json()["dates"] == ["2026-03-14"]

    def test_admin_only(self, client, cashier_headers):
        for path in ("/api/admin/sales", "/api/admin/sales/dates", "/api/admin/inventory/velocity"):
            assert client.get(path, headers=cashier_headers).status_code == 403


# =============================================================================
# PRODUCT VELOCITY
# =============================================================================


AS_OF = datetime(2026, 3, 31, 12, 0, 0)


def _velocity_row(product):
    rows = reporting_service.product_velocity(now=AS_OF)["rows"]
    return next(r for r in rows if r["product_id"] == product.id)


class TestProductVelocity:

    def test_counts_paid_units_in_windows(self, db_session, product_a):
        _sale_with_items("800001", [(product_a, 3)], status=STATUS_PAID, created_at=AS_OF - timedelta(days=2))
        _sale_with_items("800002", [(product_a, 12)], status=STATUS_PAID, created_at=AS_OF - timedelta(days=20))
        _sale_with_items("800003", [(product_a, 50)], status=STATUS_PAID, created_at=AS_OF - timedelta(days=40))
        _sale_with_items("800004", [(product_a, 50)], created_at=AS_OF - timedelta(days=1))
        _sale_with_items("800005", [(product_a, 50)], status=STATUS_CANCELLED, created_at=AS_OF - timedelta(days=1))

        row = _velocity_row(product_a)

        assert row["sold_7d"] == 3
        assert row["sold_30d"] == 15
        assert row["weekly_rate"] == 3
        assert row["daily_rate"] == 0.5
        assert row["urgency"] == "warning"
        # expected 3.5 over the last week; 3 is within 25%
        assert row["trend"] == "stable"
        assert row["restock_qty"] == 7

    def test_critical_and_rising(self, db_session, product_a):
        _sale_with_items("810001", [(product_a, 90)], status=STATUS_PAID, created_at=AS_OF - timedelta(days=1))

        row = _velocity_row(product_a)

        assert row["daily_rate"] == 3.0
        assert row["urgency"] == "critical"
        assert row["trend"] == "rising"
        assert row["restock_qty"] == 42

    def test_falling(self, db_session, product_a):
        _sale_with_items("820001", [(product_a, 30)], status=STATUS_PAID, created_at=AS_OF - timedelta(days=15))

        row = _velocity_row(product_a)

        assert row["sold_7d"] == 0
        assert row["trend"] == "falling"
        assert row["urgency"] == "warning"

    def test_unsold_product(self, db_session, product_b):
        row = _velocity_row(product_b)

        assert row["sold_30d"] == 0
        assert row["urgency"] == "low"
        assert row["trend"] == "stable"
        assert row["restock_qty"] == 1

    def test_active_products_only_fastest_first(self, db_session, product_a, product_b, retired_product):
        _sale_with_items("830001", [(product_b, 40)], status=STATUS_PAID, created_at=AS_OF - timedelta(days=3))

        rows = reporting_service.product_velocity(now=AS_OF)["rows"]

        assert [r["product_id"] for r in rows] == [product_b.id, product_a.id]

    def test_velocity_route(self, client, admin_headers, product_a):
        resp = client.get("/api/admin/inventory/velocity", headers=admin_headers)

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["window_days"] == 30
        assert body["rows"][0]["name"] == "Product A"
