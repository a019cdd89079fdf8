from __future__ import annotations

from ..extensions import db
from scanpos.time_utils import to_utc_z, utcnow


SHOP_SETTINGS_ID = 1


class ShopSetting(db.Model):
    """
    Single-row shop settings (id = 1).

    A missing row means the defaults apply: customer scan is disabled.
    """
    __tablename__ = "shop_settings"

    id = db.Column(db.Integer, primary_key=True)
    enable_customer_scan = db.Column(db.Boolean, nullable=False, default=False)

    updated_by_staff_id = db.Column(db.Integer, db.ForeignKey("staff_profiles.id"), nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            "enable_customer_scan": self.enable_customer_scan,
            "updated_by_staff_id": self.updated_by_staff_id,
            "updated_at": to_utc_z(self.updated_at),
        }
