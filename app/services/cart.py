"""Guest and user shopping carts.

Every mutation ends with ``Cart.recalculate_total`` so the cached total
always equals the sum of the active (not saved-for-later) lines. Nothing
here commits; routes wrap calls in ``transactional``.
"""
import logging
from datetime import timedelta
from typing import Optional
from flask import current_app
from models import db
from models.cart import Cart, CartItem
from app.utils.clock import utcnow
from app.utils.tokens import generate_session_id as _new_session_token
from app import metrics
from .errors import (
    CartItemNotFound,
    CartKeyError,
    CartMergeError,
    CartNotFound,
    InvalidQuantity,
    OwnershipMismatch,
    ProductUnavailable,
)
from .lookup import get_customer, get_product, is_active

logger = logging.getLogger(__name__)


def _ttl() -> timedelta:
    return timedelta(days=current_app.config.get("CART_TTL_DAYS", 30))


def _touch(cart: Cart, now=None):
    cart.recalculate_total()
    cart.updated_at = now or utcnow()
    return cart


def generate_session_id() -> str:
    return _new_session_token()


def get_cart(cart_id) -> Cart:
    cart = db.session.get(Cart, cart_id)
    if cart is None:
        raise CartNotFound()
    return cart


def find_cart(user_id=None, session_id=None) -> Optional[Cart]:
    if (user_id is None) == (session_id is None):
        raise CartKeyError()
    if user_id is not None:
        return Cart.query.filter_by(user_id=user_id).first()
    return Cart.query.filter_by(session_id=session_id).first()


def get_or_create_cart(user_id=None, session_id=None) -> Cart:
    """Return the cart for a user or a guest session, creating it if needed.

    An expired cart keeps its id and key but loses its items and gets a
    fresh expiry.
    """
    cart = find_cart(user_id=user_id, session_id=session_id)
    now = utcnow()
    if cart is not None:
        if cart.is_expired(now):
            logger.info("cart %s expired, resetting", cart.id)
            cart.items.clear()
            cart.expires_at = now + _ttl()
            _touch(cart, now)
            metrics.CARTS_EXPIRED.labels("lazy").inc()
        return cart

    if user_id is not None:
        get_customer(user_id)
    cart = Cart(
        user_id=user_id,
        session_id=session_id,
        created_at=now,
        updated_at=now,
        expires_at=now + _ttl(),
        total_amount=0,
    )
    db.session.add(cart)
    db.session.flush()
    return cart


def _owned_item(cart: Cart, item_id) -> CartItem:
    item = db.session.get(CartItem, item_id)
    if item is None:
        raise CartItemNotFound()
    if item.cart_id != cart.id:
        raise OwnershipMismatch("Cart item does not belong to the specified cart")
    return item


def add_item(cart_id, product_id, quantity: int) -> Cart:
    if quantity is None or quantity <= 0:
        raise InvalidQuantity()
    cart = get_cart(cart_id)
    product = get_product(product_id)
    if not is_active(product):
        raise ProductUnavailable()

    now = utcnow()
    existing = cart.find_item_for_product(product.id)
    if existing is not None:
        existing.quantity += quantity
        existing.updated_at = now
    else:
        cart.items.append(
            CartItem(
                product_id=product.id,
                quantity=quantity,
                unit_price=product.price,
                saved_for_later=False,
                added_at=now,
                updated_at=now,
            )
        )
        db.session.flush()
    return _touch(cart, now)


def update_item_quantity(cart_id, item_id, quantity: int) -> Cart:
    cart = get_cart(cart_id)
    item = _owned_item(cart, item_id)
    now = utcnow()
    if quantity <= 0:
        cart.items.remove(item)
    else:
        item.quantity = quantity
        item.updated_at = now
    return _touch(cart, now)


def remove_item(cart_id, item_id) -> Cart:
    cart = get_cart(cart_id)
    item = _owned_item(cart, item_id)
    cart.items.remove(item)
    return _touch(cart)


def toggle_saved_for_later(cart_id, item_id) -> Cart:
    cart = get_cart(cart_id)
    item = _owned_item(cart, item_id)
    now = utcnow()
    item.saved_for_later = not item.saved_for_later
    item.updated_at = now
    return _touch(cart, now)


def clear_cart(cart_id) -> Cart:
    cart = get_cart(cart_id)
    cart.items.clear()
    return _touch(cart)


def remove_active_items(cart: Cart) -> Cart:
    """Drop the lines that went into an order; saved-for-later lines stay."""
    for item in cart.active_items():
        cart.items.remove(item)
    return _touch(cart)


def merge_guest_into_user(guest_cart_id, user_cart_id) -> Cart:
    if guest_cart_id == user_cart_id:
        raise CartMergeError("Cannot merge a cart into itself")
    guest = get_cart(guest_cart_id)
    user_cart = get_cart(user_cart_id)
    if not guest.is_guest:
        raise CartMergeError("Source cart is not a guest cart")
    if user_cart.is_guest:
        raise CartMergeError("Target cart is not a user cart")

    now = utcnow()
    for guest_item in list(guest.items):
        existing = user_cart.find_item_for_product(guest_item.product_id)
        if existing is not None:
            existing.quantity += guest_item.quantity
            existing.updated_at = now
        else:
            user_cart.items.append(
                CartItem(
                    product_id=guest_item.product_id,
                    quantity=guest_item.quantity,
                    unit_price=guest_item.unit_price,
                    saved_for_later=guest_item.saved_for_later,
                    added_at=guest_item.added_at,
                    updated_at=now,
                )
            )

    guest.items.clear()
    db.session.flush()
    _touch(guest, now)
    logger.info("merged guest cart %s into cart %s", guest.id, user_cart.id)
    return _touch(user_cart, now)


def cleanup_expired_carts() -> int:
    """Hard-delete every cart whose expiry is in the past."""
    now = utcnow()
    expired = Cart.query.filter(Cart.expires_at < now).all()
    for cart in expired:
        db.session.delete(cart)
    if expired:
        metrics.CARTS_EXPIRED.labels("cleanup").inc(len(expired))
    logger.info("removed %d expired carts", len(expired))
    return len(expired)
