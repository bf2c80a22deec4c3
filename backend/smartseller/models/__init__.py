from .inventory import Product, Combo, ComboIngredient
from .orders import Order, OrderLine
from .reporting import ReportSession
from .market import MarketItem
from .settings import Setting
from .auth import VendorSession

__all__ = [
    'Product', 'Combo', 'ComboIngredient',
    'Order', 'OrderLine',
    'ReportSession',
    'MarketItem',
    'Setting',
    'VendorSession',
]
