# Overview: Service-layer access to the single-row shop settings.

from __future__ import annotations

from ..extensions import db
from ..models import ShopSetting
from ..models.settings import SHOP_SETTINGS_ID


class SettingsError(ValueError):
    pass


def get_shop_settings() -> ShopSetting | None:
    return db.session.get(ShopSetting, SHOP_SETTINGS_ID)


def is_scan_enabled() -> bool:
    """Customer self-checkout gate. No settings row means disabled."""
    settings = get_shop_settings()
    return bool(settings and settings.enable_customer_scan)


def set_scan_enabled(enable, staff_id: int | None = None) -> ShopSetting:
    if not isinstance(enable, bool):
        raise SettingsError("enable must be a boolean")

    settings = get_shop_settings()
    if settings is None:
        settings = ShopSetting(id=SHOP_SETTINGS_ID)
        db.session.add(settings)

    settings.enable_customer_scan = enable
    settings.updated_by_staff_id = staff_id
    db.session.commit()
    return settings
