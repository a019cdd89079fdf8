# Overview: Flask API routes for the staff POS screen; manual sales and scan-code redemption.

# backend/scanpos/routes/pos.py
"""Staff POS API routes (all require a staff token)"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import sales_service
from ..services.sales_service import SaleError
from ..models.sales import SOURCE_STAFF_MANUAL
from ..decorators import require_auth
from .responses import sale_error_response, internal_error
from .scan import lookup_payload


pos_bp = Blueprint("pos", __name__, url_prefix="/api/pos")


@pos_bp.post("/create")
@require_auth
def create_manual_sale_route():
    """
    Record a manual POS sale. Staff-entered sales are created already PAID.

    Requires: staff or admin token
    """
    try:
        data = request.get_json(silent=True) or {}

        sale = sales_service.create_sale(
            source=SOURCE_STAFF_MANUAL,
            items=data.get("items"),
            payment_method=data.get("payment_method"),
            momo_reference=data.get("momo_reference"),
            staff_id=g.current_staff.id,
        )

        return jsonify({"ok": True, "code": sale.public_code, "sale": sale.to_dict(include_items=True)}), 201

    except SaleError as e:
        return sale_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create manual sale")
        return internal_error()


@pos_bp.get("/lookup")
@require_auth
def lookup_route():
    """
    Look up any sale by code (manual or scan), e.g. to reprint a receipt.

    Requires: staff or admin token
    """
    try:
        sale = sales_service.lookup_sale(request.args.get("code"), scan_only=False)
        return jsonify(lookup_payload(sale)), 200

    except SaleError as e:
        return sale_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to look up sale")
        return internal_error()


@pos_bp.post("/confirm-scan")
@require_auth
def confirm_scan_route():
    """
    Redeem a customer's scan code from the POS screen.

    Same transition as /api/scan/confirm. Requires: staff or admin token
    """
    try:
        data = request.get_json(silent=True) or {}
        sale = sales_service.confirm_sale(data.get("code"), g.current_staff.id)
        return jsonify({"ok": True, "sale_id": sale.id, "code": sale.public_code, "sale": sale.to_dict()}), 200

    except SaleError as e:
        return sale_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to confirm scan code")
        return internal_error()
