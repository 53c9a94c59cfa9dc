import pytest
from models import db
from models.inventory import Inventory, InventoryStatus
from app.services import inventory as inventory_service
from app.services.errors import (
    InsufficientStock,
    InvalidQuantity,
    InventoryExists,
    InventoryNotFound,
    ProductNotFound,
)
from pydantic import ValidationError
from app.schemas.inventory import InventoryPatch


def test_increase_creates_record_with_default_thresholds(app, make_product):
    product = make_product(product_id=1)
    inv = inventory_service.increase(product.id, 5)
    db.session.commit()
    assert inv.quantity == 5
    assert inv.reorder_point == 10
    assert inv.reorder_quantity == 20


def test_increase_adds_to_existing(app, make_product):
    make_product(product_id=1)
    inventory_service.increase(1, 5)
    inv = inventory_service.increase(1, 7)
    assert inv.quantity == 12


def test_increase_unknown_product(app):
    with pytest.raises(ProductNotFound):
        inventory_service.increase(999, 5)


@pytest.mark.parametrize("qty", [0, -3])
def test_adjustments_require_positive_quantity(app, make_product, qty):
    make_product(product_id=1)
    with pytest.raises(InvalidQuantity):
        inventory_service.increase(1, qty)
    with pytest.raises(InvalidQuantity):
        inventory_service.decrease(1, qty)


def test_decrease_below_zero_leaves_quantity(app, make_product):
    make_product(product_id=1)
    inventory_service.increase(1, 3)
    db.session.commit()
    with pytest.raises(InsufficientStock):
        inventory_service.decrease(1, 4)
    assert Inventory.query.filter_by(product_id=1).first().quantity == 3
    inv = inventory_service.decrease(1, 3)
    assert inv.quantity == 0


def test_decrease_without_record_is_insufficient(app, make_product):
    make_product(product_id=1)
    with pytest.raises(InsufficientStock):
        inventory_service.decrease(1, 1)


def test_is_in_stock(app, make_product):
    make_product(product_id=1)
    assert inventory_service.is_in_stock(1, 1) is False
    inventory_service.increase(1, 2)
    assert inventory_service.is_in_stock(1, 2) is True
    assert inventory_service.is_in_stock(1, 3) is False


def test_status_and_reorder_flags(app, make_product):
    make_product(product_id=1)
    inv = inventory_service.create_inventory(1, quantity=10, reorder_point=10)
    assert inv.status == InventoryStatus.IN_STOCK
    assert inv.needs_reorder is True
    inv.quantity = 9
    assert inv.status == InventoryStatus.LOW_STOCK
    inv.quantity = 0
    assert inv.status == InventoryStatus.OUT_OF_STOCK


def test_create_inventory_twice_conflicts(app, make_product):
    make_product(product_id=1)
    inventory_service.create_inventory(1, quantity=4)
    with pytest.raises(InventoryExists):
        inventory_service.create_inventory(1, quantity=4)


def test_low_and_out_of_stock_lists(app, make_product):
    for pid in (1, 2, 3):
        make_product(product_id=pid)
    inventory_service.create_inventory(1, quantity=50)
    inventory_service.create_inventory(2, quantity=5)
    inventory_service.create_inventory(3, quantity=0)
    db.session.commit()
    assert [i.product_id for i in inventory_service.list_low_stock()] == [3, 2]
    assert [i.product_id for i in inventory_service.list_out_of_stock()] == [3]
    assert [i.product_id for i in inventory_service.list_inventory()] == [1, 2, 3]


def test_set_quantity_overwrites_and_creates(app, make_product):
    make_product(product_id=1)
    inv = inventory_service.set_quantity(1, 8)
    assert inv.quantity == 8
    inv = inventory_service.set_quantity(1, 2)
    assert inv.quantity == 2
    with pytest.raises(InvalidQuantity):
        inventory_service.set_quantity(1, -1)


def test_patch_only_touches_sent_fields(app, make_product):
    make_product(product_id=1)
    inv = inventory_service.create_inventory(1, quantity=4, reorder_point=3, reorder_quantity=12)
    inv.location = "Back shelf"
    db.session.commit()
    inventory_service.update_inventory(inv.id, InventoryPatch(reorder_point=6))
    assert inv.reorder_point == 6
    assert inv.reorder_quantity == 12
    assert inv.location == "Back shelf"
    inventory_service.update_inventory(inv.id, InventoryPatch(location=None))
    assert inv.location is None


def test_patch_rejects_null_thresholds():
    for field in ("reorder_point", "reorder_quantity"):
        with pytest.raises(ValidationError):
            InventoryPatch(**{field: None})
    patch = InventoryPatch(location=None)
    assert patch.model_fields_set == {"location"}
    assert InventoryPatch().reorder_point is None


def test_lookup_and_delete(app, make_product):
    make_product(product_id=1)
    inv = inventory_service.create_inventory(1, quantity=4)
    db.session.commit()
    assert inventory_service.get_inventory_for_product(1).id == inv.id
    inventory_service.delete_inventory(inv.id)
    db.session.commit()
    with pytest.raises(InventoryNotFound):
        inventory_service.get_inventory(inv.id)
    with pytest.raises(InventoryNotFound):
        inventory_service.get_inventory_for_product(1)
