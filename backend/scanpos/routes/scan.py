# Overview: Flask API routes for customer self-checkout; public create/lookup plus staff confirmation.

# backend/scanpos/routes/scan.py
"""Scan checkout API routes"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import sales_service, catalog_service, settings_service
from ..services.sales_service import SaleError
from ..models.sales import SOURCE_CUSTOMER_SCAN
from ..decorators import require_auth
from .responses import sale_error_response, internal_error


scan_bp = Blueprint("scan", __name__, url_prefix="/api/scan")


def lookup_payload(sale) -> dict:
    """Lookup/poll response body; `paid` is the field clients should watch."""
    return {
        "ok": True,
        "code": sale.public_code,
        "status": sale.status,
        "payment_status": sale.payment_status,
        "paid": sale.is_paid,
        "poll_interval_ms": current_app.config.get("SCAN_POLL_INTERVAL_MS", 2500),
        "sale": sale.to_dict(include_items=True),
    }


@scan_bp.get("/bootstrap")
def bootstrap_route():
    """
    Scan page bootstrap: whether self-checkout is on, and the active catalog.

    Public.
    """
    try:
        products = catalog_service.list_active_products()
        return jsonify({
            "enabled": settings_service.is_scan_enabled(),
            "products": [p.to_dict() for p in products],
        }), 200
    except Exception:
        current_app.logger.exception("Failed to load scan bootstrap")
        return internal_error()


@scan_bp.post("/create")
def create_route():
    """
    Create a PENDING self-checkout sale and return its public code.

    Public. Prices come from the catalog; any client price is ignored.
    """
    try:
        data = request.get_json(silent=True) or {}

        sale = sales_service.create_sale(
            source=SOURCE_CUSTOMER_SCAN,
            items=data.get("items"),
            payment_method=data.get("payment_method"),
            momo_reference=data.get("momo_reference"),
        )

        return jsonify({"ok": True, "code": sale.public_code, "sale": sale.to_dict(include_items=True)}), 201

    except SaleError as e:
        return sale_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create scan sale")
        return internal_error()


@scan_bp.get("/lookup")
def lookup_route():
    """
    Current state of a scan sale by code. Safe to poll.

    Public.
    """
    try:
        sale = sales_service.lookup_sale(request.args.get("code"), scan_only=True)
        return jsonify(lookup_payload(sale)), 200

    except SaleError as e:
        return sale_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to look up scan sale")
        return internal_error()


@scan_bp.post("/confirm")
@require_auth
def confirm_route():
    """
    Confirm payment for a scan sale (PENDING -> PAID), at most once.

    Requires: staff or admin token
    """
    try:
        data = request.get_json(silent=True) or {}
        sale = sales_service.confirm_sale(data.get("code"), g.current_staff.id)
        return jsonify({"ok": True, "sale": sale.to_dict()}), 200

    except SaleError as e:
        return sale_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to confirm scan sale")
        return internal_error()
