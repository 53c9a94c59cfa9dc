from flask import Blueprint, request, current_app
from flask_limiter.util import get_remote_address
from extensions import limiter
from app.version import API_PREFIX
from app.schemas.cart import (
    AddCartItemRequest,
    UpdateCartItemRequest,
    MergeCartRequest,
    CheckoutRequest,
)
from app.services import cart as cart_service
from app.services.errors import ServiceError, CartNotFound
from app.services.orders import create_order_from_cart
from app.utils import (
    ok,
    error,
    transactional,
    validate_schema,
    service_error_response,
    internal_error_response,
)

cart_bp = Blueprint("cart", __name__, url_prefix=f"{API_PREFIX}/cart")


class _CartKey:
    __slots__ = ("user_id", "session_id", "issued")

    def __init__(self, user_id=None, session_id=None, issued=False):
        self.user_id = user_id
        self.session_id = session_id
        self.issued = issued


def _user_id_header():
    raw = request.headers.get("X-User-ID")
    if not raw:
        return None
    return int(raw)


def _resolve_key() -> _CartKey:
    """Authenticated users come in with X-User-ID from the gateway; guests
    carry a session token in a cookie or the X-Cart-Session header."""
    user_id = _user_id_header()
    if user_id is not None:
        return _CartKey(user_id=user_id)
    cookie = current_app.config.get("CART_SESSION_COOKIE", "cart_session_id")
    session_id = request.headers.get("X-Cart-Session") or request.cookies.get(cookie)
    if session_id:
        return _CartKey(session_id=session_id)
    return _CartKey(session_id=cart_service.generate_session_id(), issued=True)


def _respond(result, key: _CartKey):
    resp, status = result
    if key.issued:
        resp.set_cookie(
            current_app.config.get("CART_SESSION_COOKIE", "cart_session_id"),
            key.session_id,
            max_age=current_app.config.get("CART_TTL_DAYS", 30) * 24 * 3600,
            httponly=True,
            samesite="Lax",
        )
    return resp, status


def _current_cart(key: _CartKey):
    return cart_service.get_or_create_cart(user_id=key.user_id, session_id=key.session_id)


@cart_bp.before_request
def _check_user_header():
    try:
        _user_id_header()
    except ValueError:
        return error("X-User-ID must be an integer", status=400)
    return None


@cart_bp.route("", methods=["GET"])
def get_cart():
    """Current cart for the caller, created on first access."""
    key = _resolve_key()
    try:
        with transactional("Failed to load cart"):
            cart = _current_cart(key)
        return _respond(ok(cart.to_dict(), message="Cart retrieved successfully"), key)
    except ServiceError as e:
        return service_error_response(e)
    except Exception:
        return internal_error_response()


@cart_bp.route("/items", methods=["POST"])
@validate_schema(AddCartItemRequest)
def add_item():
    key = _resolve_key()
    data = request.validated_data
    try:
        with transactional("Failed to add to cart"):
            cart = _current_cart(key)
            cart = cart_service.add_item(cart.id, data.product_id, data.quantity)
        return _respond(ok(cart.to_dict(), message="Item added to cart successfully"), key)
    except ServiceError as e:
        return service_error_response(e)
    except Exception:
        return internal_error_response()


@cart_bp.route("/items/<int:item_id>", methods=["PUT"])
@validate_schema(UpdateCartItemRequest)
def update_item(item_id):
    key = _resolve_key()
    data = request.validated_data
    try:
        with transactional("Failed to update cart quantity"):
            cart = _current_cart(key)
            cart = cart_service.update_item_quantity(cart.id, item_id, data.quantity)
        return _respond(ok(cart.to_dict(), message="Cart item updated successfully"), key)
    except ServiceError as e:
        return service_error_response(e)
    except Exception:
        return internal_error_response()


@cart_bp.route("/items/<int:item_id>", methods=["DELETE"])
def remove_item(item_id):
    key = _resolve_key()
    try:
        with transactional("Failed to remove cart item"):
            cart = _current_cart(key)
            cart = cart_service.remove_item(cart.id, item_id)
        return _respond(ok(cart.to_dict(), message="Item removed from cart"), key)
    except ServiceError as e:
        return service_error_response(e)
    except Exception:
        return internal_error_response()


@cart_bp.route("/items/<int:item_id>/save-for-later", methods=["POST"])
def save_for_later(item_id):
    """Toggle the saved-for-later flag of a cart line."""
    key = _resolve_key()
    try:
        with transactional("Failed to save item for later"):
            cart = _current_cart(key)
            cart = cart_service.toggle_saved_for_later(cart.id, item_id)
        return _respond(ok(cart.to_dict(), message="Item updated"), key)
    except ServiceError as e:
        return service_error_response(e)
    except Exception:
        return internal_error_response()


@cart_bp.route("", methods=["DELETE"])
def clear_cart():
    key = _resolve_key()
    try:
        with transactional("Failed to clear cart"):
            cart = _current_cart(key)
            cart = cart_service.clear_cart(cart.id)
        return _respond(ok(cart.to_dict(), message="Cart cleared"), key)
    except ServiceError as e:
        return service_error_response(e)
    except Exception:
        return internal_error_response()


@cart_bp.route("/merge", methods=["POST"])
@validate_schema(MergeCartRequest)
def merge_cart():
    """Fold a guest cart into the signed-in user's cart after login."""
    user_id = _user_id_header()
    if user_id is None:
        return error("X-User-ID header required", status=401)
    data = request.validated_data
    try:
        with transactional("Failed to merge carts"):
            guest = cart_service.find_cart(session_id=data.session_id)
            if guest is None:
                raise CartNotFound("Guest cart not found")
            user_cart = cart_service.get_or_create_cart(user_id=user_id)
            cart = cart_service.merge_guest_into_user(guest.id, user_cart.id)
        return ok(cart.to_dict(), message="Carts merged successfully")
    except ServiceError as e:
        return service_error_response(e)
    except Exception:
        return internal_error_response()


@cart_bp.route("/checkout", methods=["POST"])
@limiter.limit(
    lambda: current_app.config["ORDER_LIMIT_PER_IP"],
    key_func=get_remote_address,
    error_message="Too many orders from this IP",
)
@validate_schema(CheckoutRequest)
def checkout():
    key = _resolve_key()
    data = request.validated_data
    try:
        with transactional("Checkout failed"):
            cart = _current_cart(key)
            order, warnings = create_order_from_cart(
                cart.id,
                actor=request.headers.get("X-Actor"),
                **data.model_dump(),
            )
        return _respond(
            ok(
                {"order": order.to_dict(), "warnings": warnings},
                message="Order placed successfully",
                status=201,
            ),
            key,
        )
    except ServiceError as e:
        return service_error_response(e)
    except Exception:
        return internal_error_response()
