# Overview: Service-layer reads against the product catalog.

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..extensions import db
from ..models import Product


@dataclass(frozen=True)
class PriceQuote:
    product_id: int
    price_cents: int
    is_active: bool


def get_price_quotes(product_ids: Iterable[int]) -> dict[int, PriceQuote]:
    """
    Batch price lookup for a set of product ids (one query).

    Ids with no product are simply absent from the result; callers decide
    whether that is fatal.
    """
    ids = sorted(set(product_ids))
    if not ids:
        return {}

    rows = db.session.query(Product.id, Product.price_cents, Product.is_active).filter(
        Product.id.in_(ids)
    ).all()

    return {
        row.id: PriceQuote(product_id=row.id, price_cents=row.price_cents or 0, is_active=bool(row.is_active))
        for row in rows
    }


def list_active_products() -> list[Product]:
    return (
        db.session.query(Product)
        .filter(Product.is_active == True)  # noqa: E712
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )


def create_product(name: str, price_cents: int, sku: str | None = None, is_active: bool = True) -> Product:
    """Used by the seed CLI; there is no HTTP product CRUD."""
    name = (name or "").strip()
    if not name:
        raise ValueError("Product name is required")
    if isinstance(price_cents, bool) or not isinstance(price_cents, int) or price_cents < 0:
        raise ValueError("price_cents must be a non-negative integer")

    product = Product(
        name=name,
        sku=sku.strip().upper() if sku and sku.strip() else None,
        price_cents=price_cents,
        is_active=is_active,
    )
    db.session.add(product)
    db.session.commit()
    return product
