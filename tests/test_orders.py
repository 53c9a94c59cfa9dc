from datetime import datetime, timedelta
from decimal import Decimal
import pytest
from models import db
from models.inventory import Inventory
from models.order import Order, OrderStatus, DeliveryMethod, can_transition, TERMINAL_STATUSES
from app.services import cart as cart_service
from app.services import inventory as inventory_service
from app.services import orders as order_service
from app.services.errors import (
    CannotCancel,
    CustomerNotFound,
    InvalidAmount,
    InvalidQuantity,
    InvalidTransition,
    OrderNotFound,
    OrderNumberUnavailable,
    ProductNotFound,
)


def _stock(product_id):
    inv = Inventory.query.filter_by(product_id=product_id).first()
    return inv.quantity if inv else None


@pytest.fixture
def bakery(app, make_product):
    make_product(price="3.00", product_id=1, name="Croissant")
    make_product(price="7.00", product_id=2, name="Sourdough")
    make_product(price="2.50", product_id=5, name="Baguette")
    for pid in (1, 2, 5):
        inventory_service.create_inventory(pid, quantity=50)
    db.session.commit()


def test_create_order_totals(app, clock, bakery):
    order, warnings = order_service.create_order(
        [
            {"product_id": 1, "quantity": 2},
            {"product_id": 2, "quantity": 1},
        ],
        tax_amount="1.00",
        shipping_amount="2.00",
        discount_amount=0,
    )
    db.session.commit()
    assert warnings == []
    assert order.status == OrderStatus.PENDING
    assert order.subtotal == Decimal("13.00")
    assert order.total_amount == Decimal("16.00")
    assert order.delivery_method == DeliveryMethod.DELIVERY
    assert order.order_date == clock.now
    assert order.order_number.startswith("ORD-")
    assert len(order.order_number) == 12
    assert [oi.total_price for oi in order.items] == [Decimal("6.00"), Decimal("7.00")]
    assert _stock(1) == 48
    assert _stock(2) == 49
    assert [log.status for log in order.status_logs] == ["PENDING"]


def test_unit_price_override(app, bakery):
    order, _ = order_service.create_order(
        [{"product_id": 1, "quantity": 3, "unit_price": "1.50"}],
    )
    assert order.items[0].unit_price == Decimal("1.50")
    assert order.total_amount == Decimal("4.50")


def test_create_order_validation(app, bakery):
    with pytest.raises(InvalidQuantity):
        order_service.create_order([])
    with pytest.raises(InvalidQuantity):
        order_service.create_order([{"product_id": 1, "quantity": 0}])
    with pytest.raises(ProductNotFound):
        order_service.create_order([{"product_id": 77, "quantity": 1}])
    with pytest.raises(CustomerNotFound):
        order_service.create_order([{"product_id": 1, "quantity": 1}], customer_id=404)
    with pytest.raises(InvalidAmount):
        order_service.create_order([{"product_id": 1, "quantity": 1}], tax_amount=-1)
    with pytest.raises(InvalidAmount):
        order_service.create_order([{"product_id": 1, "quantity": 1}], discount_amount=10)
    db.session.rollback()
    assert Order.query.count() == 0
    assert _stock(1) == 50


def test_shortfall_is_auto_provisioned(app, make_product):
    make_product(price="1.00", product_id=9)
    order, warnings = order_service.create_order([{"product_id": 9, "quantity": 4}])
    db.session.commit()
    assert warnings == []
    assert _stock(9) == 96
    assert order.items[0].stock_deducted is True


def test_inventory_failure_does_not_block_order(app, make_product):
    app.config["INVENTORY_AUTO_PROVISION_QUANTITY"] = 0
    make_product(price="1.00", product_id=9)
    order, warnings = order_service.create_order([{"product_id": 9, "quantity": 4}])
    db.session.commit()
    assert order.id is not None
    assert order.status == OrderStatus.PENDING
    assert len(warnings) == 1
    assert "product 9" in warnings[0]
    assert order.items[0].stock_deducted is False
    assert _stock(9) is None


def test_order_number_factory_and_retry(app, bakery):
    numbers = iter(["BAKE-1", "BAKE-1", "BAKE-2"])
    app.config["ORDER_NUMBER_FACTORY"] = lambda: next(numbers)
    first, _ = order_service.create_order([{"product_id": 1, "quantity": 1}])
    db.session.commit()
    second, _ = order_service.create_order([{"product_id": 1, "quantity": 1}])
    db.session.commit()
    assert first.order_number == "BAKE-1"
    assert second.order_number == "BAKE-2"


def test_order_number_exhaustion(app, bakery):
    app.config["ORDER_NUMBER_FACTORY"] = lambda: "SAME"
    order_service.create_order([{"product_id": 1, "quantity": 1}])
    db.session.commit()
    with pytest.raises(OrderNumberUnavailable):
        order_service.create_order([{"product_id": 1, "quantity": 1}])


def test_transition_walkthrough(app, clock, bakery):
    order, _ = order_service.create_order([{"product_id": 1, "quantity": 1}])
    db.session.commit()

    clock.advance(minutes=5)
    order, _ = order_service.transition_order(order.id, OrderStatus.CONFIRMED, actor="baker")
    db.session.commit()
    assert order.status == OrderStatus.CONFIRMED
    confirmed_at = order.updated_at
    assert confirmed_at == clock.now

    clock.advance(minutes=5)
    with pytest.raises(InvalidTransition):
        order_service.transition_order(order.id, OrderStatus.READY)
    db.session.rollback()
    order = order_service.get_order(order.id)
    assert order.status == OrderStatus.CONFIRMED
    assert order.updated_at == confirmed_at

    order, _ = order_service.transition_order(order.id, "preparing")
    assert order.status == OrderStatus.PREPARING
    assert [log.status for log in order.status_logs] == ["PENDING", "CONFIRMED", "PREPARING"]
    assert order.status_logs[1].changed_by == "baker"


def test_unknown_status_is_rejected(app, bakery):
    order, _ = order_service.create_order([{"product_id": 1, "quantity": 1}])
    with pytest.raises(InvalidTransition):
        order_service.transition_order(order.id, "BAKED")


def test_transition_graph_has_absorbing_terminal_states():
    for terminal in TERMINAL_STATUSES:
        for target in OrderStatus:
            assert can_transition(terminal, target) is False
    assert can_transition(OrderStatus.CONFIRMED, OrderStatus.PENDING) is False
    assert can_transition(OrderStatus.READY, OrderStatus.PREPARING) is False
    assert can_transition(OrderStatus.PENDING, OrderStatus.REFUNDED) is False
    assert can_transition(OrderStatus.READY, OrderStatus.COMPLETED) is True


def test_cancel_restores_inventory_once(app, bakery):
    order, _ = order_service.create_order([{"product_id": 5, "quantity": 4}])
    order_service.transition_order(order.id, OrderStatus.CONFIRMED)
    db.session.commit()
    assert _stock(5) == 46

    # Stock level at cancellation time does not matter
    inventory_service.set_quantity(5, 0)
    db.session.commit()

    order, warnings = order_service.cancel_order(order.id)
    db.session.commit()
    assert warnings == []
    assert order.status == OrderStatus.CANCELLED
    assert _stock(5) == 4

    with pytest.raises(CannotCancel):
        order_service.cancel_order(order.id)
    db.session.rollback()
    assert _stock(5) == 4


def test_transition_to_cancelled_restores_inventory(app, bakery):
    order, _ = order_service.create_order([{"product_id": 5, "quantity": 2}])
    db.session.commit()
    order, _ = order_service.transition_order(order.id, "CANCELLED")
    db.session.commit()
    assert order.status == OrderStatus.CANCELLED
    assert _stock(5) == 50


def test_completed_order_cannot_be_cancelled(app, bakery):
    order, _ = order_service.create_order([{"product_id": 1, "quantity": 1}])
    for status in ("CONFIRMED", "PREPARING", "READY", "COMPLETED"):
        order_service.transition_order(order.id, status)
    db.session.commit()
    with pytest.raises(CannotCancel):
        order_service.cancel_order(order.id)
    with pytest.raises(InvalidTransition):
        order_service.transition_order(order.id, OrderStatus.REFUNDED)


def test_restore_only_deducted_items(app, make_product):
    app.config["INVENTORY_AUTO_PROVISION_QUANTITY"] = 0
    app.config["INVENTORY_RESTORE_ONLY_DEDUCTED"] = True
    make_product(price="1.00", product_id=1)
    make_product(price="1.00", product_id=2)
    inventory_service.create_inventory(1, quantity=10)
    db.session.commit()
    order, warnings = order_service.create_order(
        [{"product_id": 1, "quantity": 2}, {"product_id": 2, "quantity": 3}]
    )
    db.session.commit()
    assert len(warnings) == 1
    order_service.cancel_order(order.id)
    db.session.commit()
    assert _stock(1) == 10
    assert _stock(2) is None


def test_create_order_from_cart_keeps_saved_items(app, clock, make_product, make_user):
    make_product(price="5.00", product_id=10)
    make_product(price="1.25", product_id=11)
    user = make_user()
    cart = cart_service.get_or_create_cart(user_id=user.id)
    cart_service.add_item(cart.id, 10, 2)
    cart = cart_service.add_item(cart.id, 11, 4)
    cart_service.toggle_saved_for_later(cart.id, cart.items[1].id)
    db.session.commit()

    order, _ = order_service.create_order_from_cart(
        cart.id, delivery_method="PICKUP", shipping_amount="1.00"
    )
    db.session.commit()
    assert order.customer_id == user.id
    assert order.delivery_method == DeliveryMethod.PICKUP
    assert [(oi.product_id, oi.quantity) for oi in order.items] == [(10, 2)]
    assert order.total_amount == Decimal("11.00")
    assert [ci.product_id for ci in cart.items] == [11]
    assert cart.total_amount == Decimal("0.00")


def test_checkout_of_empty_cart_fails(app):
    cart = cart_service.get_or_create_cart(session_id="s1")
    with pytest.raises(InvalidQuantity):
        order_service.create_order_from_cart(cart.id)


def test_queries(app, clock, bakery, make_user):
    user = make_user()
    first, _ = order_service.create_order([{"product_id": 1, "quantity": 1}], customer_id=user.id)
    clock.advance(days=1)
    second, _ = order_service.create_order([{"product_id": 2, "quantity": 1}], customer_id=user.id)
    clock.advance(days=1)
    third, _ = order_service.create_order([{"product_id": 5, "quantity": 1}])
    order_service.transition_order(third.id, OrderStatus.CONFIRMED)
    db.session.commit()

    assert [o.id for o in order_service.list_orders()] == [first.id, second.id, third.id]
    assert [o.id for o in order_service.list_orders_for_customer(user.id)] == [second.id, first.id]
    assert [o.id for o in order_service.list_pending_orders()] == [first.id, second.id]
    assert [o.id for o in order_service.list_orders_by_status("confirmed")] == [third.id]
    assert [o.id for o in order_service.list_recent_orders(2)] == [third.id, second.id]

    start = datetime(2024, 3, 1, 12, 0, 0)
    between = order_service.list_orders_between(start, start + timedelta(days=1))
    assert [o.id for o in between] == [second.id]

    assert order_service.get_order_by_number(second.order_number).id == second.id
    with pytest.raises(OrderNotFound):
        order_service.get_order_by_number("NOPE")


def test_delete_order_bypasses_state_machine(app, bakery):
    order, _ = order_service.create_order([{"product_id": 1, "quantity": 1}])
    for status in ("CONFIRMED", "PREPARING", "READY", "COMPLETED"):
        order_service.transition_order(order.id, status)
    db.session.commit()
    order_service.delete_order(order.id)
    db.session.commit()
    with pytest.raises(OrderNotFound):
        order_service.get_order(order.id)
