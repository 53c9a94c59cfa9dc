from .cart import cart_bp
from .orders import order_bp
from .inventory import inventory_bp


__all__ = [
    'cart_bp',
    'order_bp',
    'inventory_bp',
]
