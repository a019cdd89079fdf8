"""
Admin settings and dashboard summary tests.
"""

from datetime import timedelta

from scanpos.models.sales import PAYMENT_MOMO, SOURCE_STAFF_MANUAL, STATUS_PAID
from scanpos.services import reporting_service, settings_service
from scanpos.services.settings_service import SettingsError
from scanpos.time_utils import utcnow
from tests.conftest import add_pending_scan_sale

import pytest


class TestScanSetting:

    def test_admin_can_toggle(self, client, scan_disabled, admin, admin_headers):
        resp = client.post("/api/admin/settings/scan", json={"enable": True}, headers=admin_headers)

        assert resp.status_code == 200
        assert resp.get_json()["enable_customer_scan"] is True
        assert settings_service.is_scan_enabled() is True
        assert settings_service.get_shop_settings().updated_by_staff_id == admin.id

        resp = client.get("/api/admin/settings/scan", headers=admin_headers)
        assert resp.get_json()["enable_customer_scan"] is True

    def test_toggle_creates_missing_row(self, client, admin_headers):
        assert settings_service.get_shop_settings() is None
        resp = client.post("/api/admin/settings/scan", json={"enable": True}, headers=admin_headers)
        assert resp.status_code == 200
        assert settings_service.is_scan_enabled() is True

    def test_cashier_is_forbidden(self, client, scan_disabled, cashier_headers):
        resp = client.post("/api/admin/settings/scan", json={"enable": True}, headers=cashier_headers)

        assert resp.status_code == 403
        assert resp.get_json()["required_roles"] == ["ADMIN"]
        assert settings_service.is_scan_enabled() is False

    def test_anonymous_is_unauthorized(self, client, scan_disabled):
        assert client.post("/api/admin/settings/scan", json={"enable": True}).status_code == 401
        assert client.get("/api/admin/settings/scan").status_code == 401

    def test_enable_must_be_boolean(self, client, scan_disabled, admin_headers):
        for body in ({"enable": "yes"}, {"enable": 1}, {}):
            resp = client.post("/api/admin/settings/scan", json=body, headers=admin_headers)
            assert resp.status_code == 400
        assert settings_service.is_scan_enabled() is False

    def test_service_rejects_non_boolean(self, db_session):
        with pytest.raises(SettingsError):
            settings_service.set_scan_enabled("true")

    def test_toggle_gates_create_immediately(self, client, scan_enabled, admin_headers, product_a):
        body = {"items": [{"product_id": product_a.id, "qty": 1}]}
        assert client.post("/api/scan/create", json=body).status_code == 201

        client.post("/api/admin/settings/scan", json={"enable": False}, headers=admin_headers)
        assert client.post("/api/scan/create", json=body).status_code == 403

        client.post("/api/admin/settings/scan", json={"enable": True}, headers=admin_headers)
        assert client.post("/api/scan/create", json=body).status_code == 201


class TestDashboardSummary:

    def test_summary_counts_paid_sales_only(self, client, scan_enabled, cashier_headers, admin_headers, product_a):
        client.post(
            "/api/pos/create",
            json={"items": [{"product_id": product_a.id, "qty": 2}], "payment_method": "CASH"},
            headers=cashier_headers,
        )
        code = client.post(
            "/api/scan/create",
            json={"items": [{"product_id": product_a.id, "qty": 1}], "payment_method": "MOMO"},
        ).get_json()["code"]
        client.post("/api/pos/confirm-scan", json={"code": code}, headers=cashier_headers)
        client.post("/api/scan/create", json={"items": [{"product_id": product_a.id, "qty": 5}]})

        resp = client.get("/api/admin/dashboard/summary", headers=admin_headers)

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["total_cents"] == 3000
        assert body["count"] == 2
        assert body["cash_cents"] == 2000
        assert body["momo_cents"] == 1000
        assert body["manual_cents"] == 2000
        assert body["scan_cents"] == 1000
        assert body["pending_count"] == 1
        assert body["enable_customer_scan"] is True
        assert body["since"].endswith("Z")

    def test_summary_is_admin_only(self, client, cashier_headers):
        assert client.get("/api/admin/dashboard/summary", headers=cashier_headers).status_code == 403

    def test_summary_window(self, db_session):
        yesterday = utcnow() - timedelta(days=1, hours=1)
        add_pending_scan_sale(
            "101010",
            source=SOURCE_STAFF_MANUAL,
            status=STATUS_PAID,
            payment_method=PAYMENT_MOMO,
            total_cents=700,
            created_at=yesterday,
        )

        assert reporting_service.daily_summary()["total_cents"] == 0

        summary = reporting_service.daily_summary(since=yesterday - timedelta(minutes=1))
        assert summary["total_cents"] == 700
        assert summary["momo_cents"] == 700
        assert summary["manual_cents"] == 700
        assert summary["enable_customer_scan"] is False

    def test_summary_since_parameter(self, client, admin_headers):
        resp = client.get("/api/admin/dashboard/summary?since=2026-01-01T00:00:00Z", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["since"] == "2026-01-01T00:00:00Z"

        resp = client.get("/api/admin/dashboard/summary?since=yesterday", headers=admin_headers)
        assert resp.status_code == 400
