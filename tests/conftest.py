import os
import sys
from datetime import datetime, timedelta
from decimal import Decimal
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from models import db
from models.product import Product
from models.user import User


class FrozenClock:
    """Stands in for ``app.config["CLOCK"]``."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(scope='session')
def app_instance():
    os.environ.setdefault('APP_ENV', 'testing')
    from app import create_app
    from app.config import TestingConfig
    return create_app(TestingConfig)


@pytest.fixture(scope='function')
def app(app_instance):
    saved = dict(app_instance.config)
    with app_instance.app_context():
        db.drop_all()
        db.create_all()
        yield app_instance
        db.session.remove()
        db.drop_all()
    app_instance.config.clear()
    app_instance.config.update(saved)


@pytest.fixture(scope='function')
def client(app):
    return app.test_client()


@pytest.fixture
def clock(app):
    frozen = FrozenClock(datetime(2024, 3, 1, 9, 0, 0))
    app.config["CLOCK"] = frozen
    return frozen


@pytest.fixture
def make_product(app):
    def _make(price="5.00", name=None, product_id=None, sku=None, is_active=True):
        product = Product(
            id=product_id,
            name=name or f"Product {product_id or ''}".strip(),
            sku=sku,
            price=Decimal(price),
            is_active=is_active,
        )
        db.session.add(product)
        db.session.commit()
        return product
    return _make


@pytest.fixture
def make_user(app):
    def _make(email="customer@example.com", full_name="Test Customer"):
        user = User(email=email, full_name=full_name)
        db.session.add(user)
        db.session.commit()
        return user
    return _make
