"""Order placement, the status state machine and order read paths.

Inventory adjustments made on behalf of an order are best effort: a failed
decrement (placement) or increment (cancellation) is logged, counted and
handed back to the caller as a warning, and never blocks the order itself.
"""
import logging
from datetime import datetime
from typing import Iterable, List, Optional, Tuple
from flask import current_app
from models import db
from models.order import (
    Order,
    OrderItem,
    OrderStatus,
    OrderStatusLog,
    DeliveryMethod,
    can_transition,
)
from app.utils.clock import utcnow
from app.utils.money import to_money
from app.utils.tokens import generate_order_number
from app import metrics
from . import inventory as inventory_service
from .cart import get_cart, remove_active_items
from .errors import (
    CannotCancel,
    InvalidAmount,
    InvalidQuantity,
    InvalidTransition,
    OrderNotFound,
    OrderNumberUnavailable,
    ServiceError,
)
from .lookup import get_customer, get_product

logger = logging.getLogger(__name__)

OrderResult = Tuple[Order, List[str]]


def _allocate_order_number() -> str:
    attempts = current_app.config.get("ORDER_NUMBER_MAX_ATTEMPTS", 5)
    for _ in range(attempts):
        number = generate_order_number()
        if not Order.query.filter_by(order_number=number).first():
            return number
        logger.warning("order number collision on %s, retrying", number)
    raise OrderNumberUnavailable()


def _log_status(order: Order, actor: Optional[str], now: datetime):
    order.status_logs.append(
        OrderStatusLog(status=order.status.value, changed_by=actor, timestamp=now)
    )


def _parse_status(value) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).upper())
    except ValueError:
        raise InvalidTransition(f"Unknown order status: {value}")


def _non_negative(value, label):
    amount = to_money(value)
    if amount < 0:
        raise InvalidAmount(f"{label} cannot be negative")
    return amount


def _field(item, name, default=None):
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def _reconcile_inventory(order: Order) -> List[str]:
    """Deduct ordered quantities from stock, one item at a time."""
    warnings = []
    provision = current_app.config.get("INVENTORY_AUTO_PROVISION_QUANTITY", 100)
    for item in order.items:
        try:
            if provision and not inventory_service.is_in_stock(item.product_id, item.quantity):
                # Missing stock records are seeded so sales are never blocked
                logger.warning(
                    "auto-provisioning %s units for product %s on order %s",
                    provision, item.product_id, order.order_number,
                )
                inventory_service.increase(item.product_id, provision)
            inventory_service.decrease(item.product_id, item.quantity)
            item.stock_deducted = True
        except ServiceError as e:
            item.stock_deducted = False
            metrics.INVENTORY_FAILURES.labels("decrease").inc()
            logger.warning("Error updating inventory for order %s: %s", order.order_number, e)
            warnings.append(f"Inventory not updated for product {item.product_id}: {e.message}")
    return warnings


def _restore_inventory(order: Order) -> List[str]:
    warnings = []
    only_deducted = current_app.config.get("INVENTORY_RESTORE_ONLY_DEDUCTED", False)
    for item in order.items:
        if only_deducted and not item.stock_deducted:
            continue
        try:
            inventory_service.increase(item.product_id, item.quantity)
            item.stock_deducted = False
        except ServiceError as e:
            metrics.INVENTORY_FAILURES.labels("increase").inc()
            logger.warning("Error restoring inventory for order %s: %s", order.order_number, e)
            warnings.append(f"Inventory not restored for product {item.product_id}: {e.message}")
    return warnings


def create_order(
    items: Iterable,
    customer_id=None,
    delivery_method=None,
    tax_amount=0,
    shipping_amount=0,
    discount_amount=0,
    notes: Optional[str] = None,
    actor: Optional[str] = None,
    source: str = "api",
) -> OrderResult:
    """Place a PENDING order and deduct its items from inventory.

    ``items`` holds mappings (or objects) with ``product_id``, ``quantity``
    and an optional ``unit_price`` that overrides the catalog price.
    Returns the order and a list of non-fatal inventory warnings.
    """
    items = list(items or [])
    if not items:
        raise InvalidQuantity("Order must contain at least one item")
    if customer_id is not None:
        get_customer(customer_id)

    order = Order(
        customer_id=customer_id,
        status=OrderStatus.PENDING,
        delivery_method=DeliveryMethod(delivery_method) if delivery_method else DeliveryMethod.DELIVERY,
        tax_amount=_non_negative(tax_amount, "Tax"),
        shipping_amount=_non_negative(shipping_amount, "Shipping"),
        discount_amount=_non_negative(discount_amount, "Discount"),
        notes=notes,
    )

    for position, raw in enumerate(items):
        quantity = _field(raw, "quantity")
        if quantity is None or quantity <= 0:
            raise InvalidQuantity()
        product = get_product(_field(raw, "product_id"))
        unit_price = _field(raw, "unit_price")
        unit_price = product.price if unit_price is None else _non_negative(unit_price, "Unit price")
        line = OrderItem(
            position=position,
            product_id=product.id,
            quantity=quantity,
            unit_price=to_money(unit_price),
        )
        line.calculate_total_price()
        order.items.append(line)

    if order.recalculate_totals() < 0:
        raise InvalidAmount("Discount exceeds the order total")

    now = utcnow()
    order.order_number = _allocate_order_number()
    order.order_date = now
    order.created_at = now
    order.updated_at = now
    _log_status(order, actor, now)
    db.session.add(order)
    db.session.flush()

    warnings = _reconcile_inventory(order)
    metrics.ORDERS_CREATED.labels(source).inc()
    logger.info(
        "order %s created total=%s items=%d",
        order.order_number, order.total_amount, len(order.items),
    )
    return order, warnings


def create_order_from_cart(cart_id, actor: Optional[str] = None, **adjustments) -> OrderResult:
    """Check out the active lines of a cart at the prices they were added at."""
    cart = get_cart(cart_id)
    lines = [
        {
            "product_id": ci.product_id,
            "quantity": ci.quantity,
            "unit_price": ci.unit_price,
        }
        for ci in cart.active_items()
    ]
    if not lines:
        raise InvalidQuantity("Cart is empty")
    order, warnings = create_order(
        lines,
        customer_id=cart.user_id,
        actor=actor,
        source="cart",
        **adjustments,
    )
    remove_active_items(cart)
    return order, warnings


def _locked_order(order_id) -> Order:
    order = (
        Order.query.filter_by(id=order_id)
        .with_for_update(of=Order)
        .first()
    )
    if order is None:
        raise OrderNotFound()
    return order


def transition_order(order_id, new_status, actor: Optional[str] = None) -> OrderResult:
    """Move an order along the status graph.

    A move to CANCELLED goes through ``cancel_order`` so stock is restored.
    A rejected move leaves the order untouched.
    """
    new_status = _parse_status(new_status)
    if new_status == OrderStatus.CANCELLED:
        return cancel_order(order_id, actor=actor)

    order = _locked_order(order_id)
    current = order.status
    if not can_transition(current, new_status):
        raise InvalidTransition(
            f"Invalid status transition from {current.value} to {new_status.value}"
        )
    now = utcnow()
    order.status = new_status
    order.updated_at = now
    _log_status(order, actor, now)
    metrics.ORDER_TRANSITIONS.labels(current.value, new_status.value).inc()
    logger.info("order %s %s -> %s", order.order_number, current.value, new_status.value)
    return order, []


def cancel_order(order_id, actor: Optional[str] = None) -> OrderResult:
    order = _locked_order(order_id)
    current = order.status
    if not can_transition(current, OrderStatus.CANCELLED):
        raise CannotCancel(f"Order cannot be cancelled from {current.value}")
    now = utcnow()
    order.status = OrderStatus.CANCELLED
    order.updated_at = now
    _log_status(order, actor, now)
    db.session.flush()

    warnings = _restore_inventory(order)
    metrics.ORDER_TRANSITIONS.labels(current.value, OrderStatus.CANCELLED.value).inc()
    logger.info("order %s cancelled", order.order_number)
    return order, warnings


def delete_order(order_id) -> None:
    """Administrative removal; bypasses the state machine."""
    order = get_order(order_id)
    db.session.delete(order)
    logger.info("order %s deleted", order.order_number)


def get_order(order_id) -> Order:
    order = db.session.get(Order, order_id)
    if order is None:
        raise OrderNotFound()
    return order


def get_order_by_number(order_number: str) -> Order:
    order = Order.query.filter_by(order_number=order_number).first()
    if order is None:
        raise OrderNotFound()
    return order


def list_orders() -> List[Order]:
    return Order.query.order_by(Order.id).all()


def list_orders_for_customer(customer_id) -> List[Order]:
    return (
        Order.query.filter_by(customer_id=customer_id)
        .order_by(Order.order_date.desc(), Order.id.desc())
        .all()
    )


def list_orders_by_status(status) -> List[Order]:
    status = _parse_status(status)
    return Order.query.filter_by(status=status).order_by(Order.order_date).all()


def list_pending_orders() -> List[Order]:
    return (
        Order.query.filter_by(status=OrderStatus.PENDING)
        .order_by(Order.order_date.asc(), Order.id.asc())
        .all()
    )


def list_orders_between(start: datetime, end: datetime) -> List[Order]:
    return (
        Order.query.filter(Order.order_date >= start, Order.order_date <= end)
        .order_by(Order.order_date)
        .all()
    )


def list_recent_orders(limit: Optional[int] = None) -> List[Order]:
    if limit is None:
        limit = current_app.config.get("RECENT_ORDERS_LIMIT", 10)
    return (
        Order.query.order_by(Order.order_date.desc(), Order.id.desc())
        .limit(limit)
        .all()
    )
