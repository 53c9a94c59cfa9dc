from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import BigInteger, Integer

# Use BigInteger in production but fall back to Integer for SQLite
BIGINT = BigInteger().with_variant(Integer, "sqlite")

db = SQLAlchemy()

# Re-export common models for convenience
from .user import User  # noqa: F401,E402
from .product import Product  # noqa: F401,E402
from .inventory import Inventory, InventoryStatus  # noqa: F401,E402
from .cart import Cart, CartItem  # noqa: F401,E402
from .order import (  # noqa: F401,E402
    Order,
    OrderItem,
    OrderStatus,
    OrderStatusLog,
    DeliveryMethod,
)
