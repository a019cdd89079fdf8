from __future__ import annotations

from ..extensions import db
from scanpos.time_utils import to_utc_z, utcnow


SOURCE_STAFF_MANUAL = "STAFF_MANUAL"
SOURCE_CUSTOMER_SCAN = "CUSTOMER_SCAN"
SALE_SOURCES = (SOURCE_STAFF_MANUAL, SOURCE_CUSTOMER_SCAN)

STATUS_PENDING = "PENDING"
STATUS_PAID = "PAID"
STATUS_CANCELLED = "CANCELLED"
SALE_STATUSES = (STATUS_PENDING, STATUS_PAID, STATUS_CANCELLED)

PAYMENT_CASH = "CASH"
PAYMENT_MOMO = "MOMO"
PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_MOMO)

PAYMENT_STATUS_PENDING = "PENDING"
PAYMENT_STATUS_CONFIRMED = "CONFIRMED"
PAYMENT_STATUS_CANCELLED = "CANCELLED"


class Sale(db.Model):
    """
    Sale record with a short public code.

    `status` is the only state field: PENDING -> PAID (confirmation) or
    PENDING -> CANCELLED (stale sweep). PAID and CANCELLED are terminal.
    `payment_status` exists only in the serialized form, derived from status.

    public_code is unique among PENDING sales only; the partial index is the
    hard guarantee, the retry loop in sales_service relies on it.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index(
            "uq_sales_pending_public_code",
            "public_code",
            unique=True,
            sqlite_where=db.text("status = 'PENDING'"),
            postgresql_where=db.text("status = 'PENDING'"),
        ),
        db.Index("ix_sales_public_code", "public_code"),
        db.Index("ix_sales_status_created", "status", "created_at"),
        db.CheckConstraint(
            "status IN ('PENDING', 'PAID', 'CANCELLED')", name="ck_sales_status"
        ),
        db.CheckConstraint(
            "source IN ('STAFF_MANUAL', 'CUSTOMER_SCAN')", name="ck_sales_source"
        ),
        db.CheckConstraint(
            "payment_method IN ('CASH', 'MOMO')", name="ck_sales_payment_method"
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    public_code = db.Column(db.String(16), nullable=False)

    source = db.Column(db.String(16), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=STATUS_PENDING)

    payment_method = db.Column(db.String(16), nullable=False, default=PAYMENT_CASH)
    momo_reference = db.Column(db.String(128), nullable=True)

    # Confirming staff member (creating staff member for manual sales)
    staff_id = db.Column(db.Integer, db.ForeignKey("staff_profiles.id"), nullable=True, index=True)

    note = db.Column(db.String(255), nullable=True)

    # Sum of item line totals, computed server-side at creation
    total_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    confirmed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    staff = db.relationship("StaffProfile", backref=db.backref("sales", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def payment_status(self) -> str:
        if self.status == STATUS_PAID:
            return PAYMENT_STATUS_CONFIRMED
        if self.status == STATUS_CANCELLED:
            return PAYMENT_STATUS_CANCELLED
        return PAYMENT_STATUS_PENDING

    @property
    def is_paid(self) -> bool:
        return self.status == STATUS_PAID

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "public_code": self.public_code,
            "source": self.source,
            "status": self.status,
            "payment_status": self.payment_status,
            "paid": self.is_paid,
            "payment_method": self.payment_method,
            "momo_reference": self.momo_reference,
            "staff_id": self.staff_id,
            "note": self.note,
            "total_cents": self.total_cents,
            "created_at": to_utc_z(self.created_at),
            "confirmed_at": to_utc_z(self.confirmed_at) if self.confirmed_at else None,
            "cancelled_at": to_utc_z(self.cancelled_at) if self.cancelled_at else None,
            "version_id": self.version_id,
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    """Line item owned by a sale. Prices are snapshots taken at creation."""
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sale_items_quantity_positive"),
        db.CheckConstraint(
            "line_total_cents = quantity * unit_price_cents",
            name="ck_sale_items_line_total",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    sale = db.relationship(
        "Sale",
        backref=db.backref("items", lazy=True, order_by="SaleItem.id"),
    )
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "product_sku": self.product.sku if self.product else None,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "line_total_cents": self.line_total_cents,
            "created_at": to_utc_z(self.created_at),
        }
