from .auth import StaffProfile, AccessToken
from .catalog import Product
from .settings import ShopSetting
from .sales import Sale, SaleItem

__all__ = [
    'StaffProfile', 'AccessToken',
    'Product',
    'ShopSetting',
    'Sale', 'SaleItem',
]
