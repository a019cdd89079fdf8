# Overview: Service-layer operations for sales; creation, lookup and payment confirmation by public code.

"""
Sales Service - public-code checkout and redemption

A sale is created with its items in one transaction and gets a 6-digit
public code. Scan sales start PENDING and wait for a staff member to confirm
payment; manual POS sales are entered by staff and start PAID.

STATE MACHINE:
- PENDING -> PAID       confirm_sale (staff, exactly once)
- PENDING -> CANCELLED  maintenance_service.cancel_stale_pending_sales
- PAID, CANCELLED       terminal

CODE ISSUANCE: codes collide only with other PENDING sales (partial unique
index). A collision rolls back the insert and a new code is drawn, at most
max_code_attempts times.

PRICING: unit prices always come from the catalog at creation time and are
copied onto each item; client-supplied prices are never read.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from flask import current_app
from sqlalchemy import case
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..models import Sale, SaleItem
from ..models.sales import (
    PAYMENT_CASH,
    PAYMENT_METHODS,
    PAYMENT_MOMO,
    SALE_SOURCES,
    SOURCE_CUSTOMER_SCAN,
    SOURCE_STAFF_MANUAL,
    STATUS_CANCELLED,
    STATUS_PAID,
    STATUS_PENDING,
)
from . import catalog_service, code_service, settings_service
from .concurrency import lock_for_update, run_with_retry
from scanpos.time_utils import utcnow


# Error codes carried on SaleError.code
INVALID_ITEMS = "INVALID_ITEMS"
INVALID_PAYMENT_METHOD = "INVALID_PAYMENT_METHOD"
SCAN_DISABLED = "SCAN_DISABLED"
MISSING_PRODUCT = "MISSING_PRODUCT"
RETRY_EXHAUSTED = "RETRY_EXHAUSTED"
ITEMS_INSERT_FAILED = "ITEMS_INSERT_FAILED"
INVALID_CODE = "INVALID_CODE"
CODE_NOT_FOUND = "CODE_NOT_FOUND"
NOT_SCAN_SOURCE = "NOT_SCAN_SOURCE"
ALREADY_CONFIRMED = "ALREADY_CONFIRMED"
SALE_CANCELLED = "SALE_CANCELLED"

MIN_LOOKUP_CODE_LENGTH = 4

MAX_ITEM_QUANTITY = 10_000
# Upper bound of the INTEGER id and cents columns
MAX_DB_INTEGER = 2_147_483_647

SALE_NOTES = {
    SOURCE_CUSTOMER_SCAN: "Customer scan",
    SOURCE_STAFF_MANUAL: "Manual POS",
}


class SaleError(Exception):
    """Raised for sale workflow errors; `code` is stable, `message` is for humans."""
    def __init__(self, message: str, code: str, details: dict | None = None):
        super().__init__(message)
        self.code = code
        self.details = details or {}


@dataclass(frozen=True)
class ItemRequest:
    product_id: int
    quantity: int


def _coerce_positive_int(value) -> int | None:
    """Positive integer from JSON input, or None. Rejects bools, fractions, NaN/inf."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            return None
        return int(value) if value > 0 else None
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped.isdigit():
            return None
        number = int(stripped)
        return number if number > 0 else None
    return None


def normalize_items(raw_items) -> list[ItemRequest]:
    """
    Validate the cart. Every entry must name a product and a positive whole
    quantity; one bad entry fails the whole cart (nothing is skipped).
    """
    if not isinstance(raw_items, list) or not raw_items:
        raise SaleError("At least one item is required", INVALID_ITEMS)

    items: list[ItemRequest] = []
    invalid: list[int] = []
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            invalid.append(index)
            continue
        product_id = _coerce_positive_int(raw.get("product_id"))
        quantity = _coerce_positive_int(raw.get("qty", raw.get("quantity")))
        if product_id is None or quantity is None:
            invalid.append(index)
            continue
        if product_id > MAX_DB_INTEGER or quantity > MAX_ITEM_QUANTITY:
            invalid.append(index)
            continue
        items.append(ItemRequest(product_id=product_id, quantity=quantity))

    if invalid:
        raise SaleError(
            f"Invalid items (quantity must be a whole number from 1 to {MAX_ITEM_QUANTITY})",
            INVALID_ITEMS,
            details={"invalid_indexes": invalid},
        )

    return items


def normalize_payment(payment_method, momo_reference) -> tuple[str, str | None]:
    """Upper-cased method (default CASH); the MoMo reference is kept only for MOMO."""
    method = str(payment_method or PAYMENT_CASH).strip().upper()
    if method not in PAYMENT_METHODS:
        raise SaleError(
            f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}",
            INVALID_PAYMENT_METHOD,
        )

    reference = None
    if method == PAYMENT_MOMO and momo_reference is not None:
        reference = str(momo_reference).strip() or None
    return method, reference


def _max_code_attempts(override: int | None = None) -> int:
    attempts = override if override is not None else int(
        current_app.config.get("SALE_CODE_MAX_ATTEMPTS", code_service.MAX_CODE_ATTEMPTS)
    )
    if attempts < 1:
        raise ValueError(f"SALE_CODE_MAX_ATTEMPTS must be at least 1, got {attempts}")
    return attempts


def create_sale(
    *,
    source: str,
    items,
    payment_method=None,
    momo_reference=None,
    staff_id: int | None = None,
    max_code_attempts: int | None = None,
) -> Sale:
    """
    Create a sale and all of its items atomically; returns the committed Sale.

    CUSTOMER_SCAN sales are PENDING and gated by the shop's scan flag.
    STAFF_MANUAL sales are PAID immediately and attributed to staff_id.
    """
    if source not in SALE_SOURCES:
        raise ValueError(f"Unknown sale source: {source}")
    if source == SOURCE_STAFF_MANUAL and staff_id is None:
        raise ValueError("Manual sales require staff_id")
    attempts = _max_code_attempts(max_code_attempts)

    requests = normalize_items(items)
    method, reference = normalize_payment(payment_method, momo_reference)

    if source == SOURCE_CUSTOMER_SCAN and not settings_service.is_scan_enabled():
        raise SaleError("Scan checkout is turned off.", SCAN_DISABLED)

    quotes = catalog_service.get_price_quotes(r.product_id for r in requests)
    missing = sorted({r.product_id for r in requests if r.product_id not in quotes})
    if source == SOURCE_CUSTOMER_SCAN:
        missing = sorted(set(missing) | {
            r.product_id for r in requests
            if r.product_id in quotes and not quotes[r.product_id].is_active
        })
    if missing:
        raise SaleError("Unknown product(s) in cart", MISSING_PRODUCT, details={"product_ids": missing})

    lines = [
        (r.product_id, r.quantity, quotes[r.product_id].price_cents)
        for r in requests
    ]
    total_cents = sum(qty * unit for _, qty, unit in lines)
    if total_cents > MAX_DB_INTEGER:
        raise SaleError(
            "Sale total is too large",
            INVALID_ITEMS,
            details={"total_cents": total_cents, "max_total_cents": MAX_DB_INTEGER},
        )

    if source == SOURCE_CUSTOMER_SCAN:
        status, confirming_staff, confirmed_at = STATUS_PENDING, None, None
    else:
        status, confirming_staff, confirmed_at = STATUS_PAID, staff_id, utcnow()

    for attempt in range(1, attempts + 1):
        code = code_service.generate_code()
        sale = Sale(
            public_code=code,
            source=source,
            status=status,
            payment_method=method,
            momo_reference=reference,
            staff_id=confirming_staff,
            note=SALE_NOTES[source],
            total_cents=total_cents,
            confirmed_at=confirmed_at,
        )
        db.session.add(sale)

        try:
            db.session.flush()
        except SQLAlchemyError as exc:
            db.session.rollback()
            if isinstance(exc, IntegrityError) and code_service.is_code_collision(exc):
                current_app.logger.warning("Sale code collision on attempt %s/%s", attempt, attempts)
                continue
            current_app.logger.error("Sale insert failed: %s", exc.__class__.__name__)
            raise

        try:
            for product_id, qty, unit in lines:
                db.session.add(SaleItem(
                    sale_id=sale.id,
                    product_id=product_id,
                    quantity=qty,
                    unit_price_cents=unit,
                    line_total_cents=qty * unit,
                ))
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise SaleError(
                f"sale_items insert failed: {exc.__class__.__name__}",
                ITEMS_INSERT_FAILED,
            ) from exc

        current_app.logger.info(
            "Created %s sale %s (code %s, %s items, %s cents)",
            source, sale.id, sale.public_code, len(lines), total_cents)
        return sale

    raise SaleError(
        "Could not allocate a unique sale code; try again.",
        RETRY_EXHAUSTED,
        details={"attempts": attempts},
    )


def clean_code(code, *, min_length: int = 1) -> str:
    value = str(code or "").strip()
    if not value:
        raise SaleError("Missing code.", INVALID_CODE)
    if len(value) < min_length:
        raise SaleError("Invalid code.", INVALID_CODE)
    return value


def _code_query(code: str):
    """Rows for a code: the PENDING one first, then newest."""
    return db.session.query(Sale).filter(Sale.public_code == code).order_by(
        case((Sale.status == STATUS_PENDING, 0), else_=1),
        Sale.created_at.desc(),
        Sale.id.desc(),
    )


def find_sale_by_code(code: str) -> Sale | None:
    return _code_query(code).first()


def lookup_sale(code, *, scan_only: bool = True) -> Sale:
    """
    Read-only lookup used for display and polling.

    scan_only=True is the customer-facing view and rejects manual POS codes.
    """
    code = clean_code(code, min_length=MIN_LOOKUP_CODE_LENGTH)

    sale = find_sale_by_code(code)
    if not sale:
        raise SaleError("Code not found.", CODE_NOT_FOUND)

    if scan_only and sale.source != SOURCE_CUSTOMER_SCAN:
        raise SaleError("This code is not a scan checkout.", NOT_SCAN_SOURCE)

    return sale


def mark_paid_if_pending(sale_id: int, staff_id: int) -> bool:
    """
    Conditional PENDING -> PAID update; True only for the caller that flipped it.

    The status guard is evaluated by the database against the current row,
    so of two concurrent confirmations exactly one sees rowcount == 1.
    """
    updated = db.session.query(Sale).filter(
        Sale.id == sale_id,
        Sale.status == STATUS_PENDING,
    ).update(
        {
            Sale.status: STATUS_PAID,
            Sale.staff_id: staff_id,
            Sale.confirmed_at: utcnow(),
            Sale.version_id: Sale.version_id + 1,
        },
        synchronize_session=False,
    )
    return updated == 1


def confirm_sale(code, staff_id: int) -> Sale:
    """Redeem a scan sale's code: PENDING -> PAID, at most once."""
    code = clean_code(code)

    def _op():
        sale = lock_for_update(_code_query(code)).first()
        if not sale:
            raise SaleError("Code not found.", CODE_NOT_FOUND)

        if sale.source != SOURCE_CUSTOMER_SCAN:
            raise SaleError("Not a scan checkout code.", NOT_SCAN_SOURCE)

        if sale.status == STATUS_PAID:
            raise SaleError("This code has already been used.", ALREADY_CONFIRMED,
                            details={"sale_id": sale.id})

        if sale.status == STATUS_CANCELLED:
            raise SaleError("This sale was cancelled.", SALE_CANCELLED,
                            details={"sale_id": sale.id})

        sale_id = sale.id
        if not mark_paid_if_pending(sale_id, staff_id):
            raise SaleError("This code has already been used.", ALREADY_CONFIRMED,
                            details={"sale_id": sale_id})

        db.session.commit()
        return db.session.get(Sale, sale_id)

    try:
        sale = run_with_retry(_op)
    except SaleError as exc:
        db.session.rollback()
        if exc.code == ALREADY_CONFIRMED:
            current_app.logger.warning("Rejected repeat confirmation for code %s by staff %s", code, staff_id)
        raise

    current_app.logger.info("Sale %s (code %s) confirmed by staff %s", sale.id, code, staff_id)
    return sale
