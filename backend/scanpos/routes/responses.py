# Overview: Shared JSON error responses for sale workflow routes.

from flask import jsonify

from ..services import sales_service
from ..services.sales_service import SaleError


ERROR_STATUS = {
    sales_service.INVALID_ITEMS: 400,
    sales_service.INVALID_PAYMENT_METHOD: 400,
    sales_service.INVALID_CODE: 400,
    sales_service.NOT_SCAN_SOURCE: 400,
    sales_service.SCAN_DISABLED: 403,
    sales_service.MISSING_PRODUCT: 404,
    sales_service.CODE_NOT_FOUND: 404,
    sales_service.ALREADY_CONFIRMED: 409,
    sales_service.SALE_CANCELLED: 409,
    sales_service.ITEMS_INSERT_FAILED: 500,
    sales_service.RETRY_EXHAUSTED: 503,
}


def sale_error_response(e: SaleError):
    status = ERROR_STATUS.get(e.code, 400)
    response = jsonify({"error": str(e), "code": e.code, "details": e.details})
    if e.code == sales_service.RETRY_EXHAUSTED:
        response.headers["Retry-After"] = "1"
    return response, status


def internal_error():
    return jsonify({"error": "Internal server error"}), 500
