# Overview: Flask API routes for admin-only settings, dashboard summary, sales history and product velocity.

from flask import Blueprint, request, jsonify, g, current_app

from ..services import settings_service, reporting_service
from ..services.settings_service import SettingsError
from ..models.auth import ROLE_ADMIN
from ..decorators import require_auth, require_role
from ..time_utils import parse_iso_datetime
from .responses import internal_error


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("/settings/scan")
@require_auth
@require_role(ROLE_ADMIN)
def get_scan_setting_route():
    settings = settings_service.get_shop_settings()
    if settings is None:
        return jsonify({"ok": True, "enable_customer_scan": False, "updated_by_staff_id": None,
                        "updated_at": None}), 200
    return jsonify({"ok": True, **settings.to_dict()}), 200


@admin_bp.post("/settings/scan")
@require_auth
@require_role(ROLE_ADMIN)
def set_scan_setting_route():
    """
    Turn customer self-checkout on or off. Manual POS sales are unaffected.

    Body: {"enable": true|false}
    """
    try:
        data = request.get_json(silent=True) or {}
        settings = settings_service.set_scan_enabled(data.get("enable"), g.current_staff.id)
        current_app.logger.info(
            "Customer scan %s by staff %s",
            "enabled" if settings.enable_customer_scan else "disabled",
            g.current_staff.id,
        )
        return jsonify({"ok": True, **settings.to_dict()}), 200

    except SettingsError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update scan setting")
        return internal_error()


@admin_bp.get("/dashboard/summary")
@require_auth
@require_role(ROLE_ADMIN)
def dashboard_summary_route():
    """
    PAID sales split by payment method and source.

    Query: since (ISO-8601, optional; defaults to the start of the UTC day)
    """
    try:
        since = parse_iso_datetime(request.args.get("since"))
    except ValueError:
        return jsonify({"error": "since must be an ISO-8601 datetime"}), 400

    try:
        summary = reporting_service.daily_summary(since)
        return jsonify({"ok": True, **summary}), 200
    except Exception:
        current_app.logger.exception("Failed to build dashboard summary")
        return internal_error()


@admin_bp.get("/sales")
@require_auth
@require_role(ROLE_ADMIN)
def sales_history_route():
    """
    Sales for one UTC day with items and staff, plus that day's totals.

    Query: date (YYYY-MM-DD, default today), status, payment_method, q
    """
    try:
        day = reporting_service.parse_day(request.args.get("date"))
        report = reporting_service.sales_for_day(
            day,
            status=request.args.get("status"),
            payment_method=request.args.get("payment_method"),
            search=request.args.get("q"),
        )
        return jsonify({"ok": True, **report}), 200
    except reporting_service.ReportError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to load sales history")
        return internal_error()


@admin_bp.get("/sales/dates")
@require_auth
@require_role(ROLE_ADMIN)
def sale_dates_route():
    return jsonify({"ok": True, "dates": reporting_service.sale_dates()}), 200


@admin_bp.get("/inventory/velocity")
@require_auth
@require_role(ROLE_ADMIN)
def product_velocity_route():
    """Per-product sales velocity and restock suggestions (last 30 days)."""
    try:
        return jsonify({"ok": True, **reporting_service.product_velocity()}), 200
    except Exception:
        current_app.logger.exception("Failed to build product velocity")
        return internal_error()
