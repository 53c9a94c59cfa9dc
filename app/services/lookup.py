"""Read-only access to the catalog and account collaborators."""
from models import db
from models.product import Product
from models.user import User
from .errors import ProductNotFound, CustomerNotFound


def get_product(product_id) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise ProductNotFound(f"Product not found: {product_id}")
    return product


def is_active(product: Product) -> bool:
    return bool(product.is_active)


def get_customer(customer_id) -> User:
    user = db.session.get(User, customer_id)
    if user is None:
        raise CustomerNotFound(f"Customer not found: {customer_id}")
    return user
