import uuid
from flask import current_app, has_app_context


def _factory(key):
    if has_app_context():
        return current_app.config.get(key)
    return None


def generate_session_id() -> str:
    """Opaque token used to key guest carts."""
    factory = _factory("SESSION_ID_FACTORY")
    if factory is not None:
        return factory()
    return str(uuid.uuid4())


def generate_order_number() -> str:
    """Prefix plus 8 uppercase hex characters, e.g. ``ORD-1A2B3C4D``."""
    factory = _factory("ORDER_NUMBER_FACTORY")
    if factory is not None:
        return factory()
    prefix = current_app.config.get("ORDER_NUMBER_PREFIX", "ORD-") if has_app_context() else "ORD-"
    return prefix + uuid.uuid4().hex[:8].upper()
