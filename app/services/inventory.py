"""Per-product stock ledger.

None of these functions commit; callers own the transaction.
"""
import logging
from typing import List, Optional
from flask import current_app
from models import db
from models.inventory import Inventory
from app.utils.clock import utcnow
from .errors import (
    InsufficientStock,
    InvalidQuantity,
    InventoryExists,
    InventoryNotFound,
)
from .lookup import get_product

logger = logging.getLogger(__name__)


def _require_positive(quantity):
    if quantity is None or quantity <= 0:
        raise InvalidQuantity()


def _locked_for_product(product_id) -> Optional[Inventory]:
    return (
        Inventory.query.filter_by(product_id=product_id)
        .with_for_update(of=Inventory)
        .first()
    )


def _new_record(product_id, quantity, reorder_point=None, reorder_quantity=None) -> Inventory:
    get_product(product_id)
    cfg = current_app.config
    inventory = Inventory(
        product_id=product_id,
        quantity=quantity,
        reorder_point=(
            reorder_point if reorder_point is not None
            else cfg.get("INVENTORY_DEFAULT_REORDER_POINT", 10)
        ),
        reorder_quantity=(
            reorder_quantity if reorder_quantity is not None
            else cfg.get("INVENTORY_DEFAULT_REORDER_QUANTITY", 20)
        ),
        last_updated=utcnow(),
    )
    db.session.add(inventory)
    db.session.flush()
    return inventory


def increase(product_id, quantity: int) -> Inventory:
    """Add stock, creating the record with default thresholds if needed."""
    _require_positive(quantity)
    inventory = _locked_for_product(product_id)
    if inventory is None:
        inventory = _new_record(product_id, quantity)
        logger.info("inventory created product=%s quantity=%s", product_id, quantity)
        return inventory
    inventory.quantity = (inventory.quantity or 0) + quantity
    inventory.last_updated = utcnow()
    return inventory


def decrease(product_id, quantity: int) -> Inventory:
    """Remove stock. A missing record counts as zero on hand."""
    _require_positive(quantity)
    inventory = _locked_for_product(product_id)
    current = (inventory.quantity or 0) if inventory is not None else 0
    if current < quantity:
        raise InsufficientStock(f"Insufficient stock for product ID: {product_id}")
    inventory.quantity = current - quantity
    inventory.last_updated = utcnow()
    return inventory


def is_in_stock(product_id, quantity: int) -> bool:
    inventory = Inventory.query.filter_by(product_id=product_id).first()
    if inventory is None:
        return False
    return (inventory.quantity or 0) >= quantity


def get_inventory(inventory_id) -> Inventory:
    inventory = db.session.get(Inventory, inventory_id)
    if inventory is None:
        raise InventoryNotFound()
    return inventory


def get_inventory_for_product(product_id) -> Inventory:
    inventory = Inventory.query.filter_by(product_id=product_id).first()
    if inventory is None:
        raise InventoryNotFound(f"Inventory not found for product ID: {product_id}")
    return inventory


def list_inventory() -> List[Inventory]:
    return Inventory.query.order_by(Inventory.product_id).all()


def list_low_stock() -> List[Inventory]:
    return (
        Inventory.query.filter(Inventory.quantity <= Inventory.reorder_point)
        .order_by(Inventory.quantity)
        .all()
    )


def list_out_of_stock() -> List[Inventory]:
    return Inventory.query.filter(Inventory.quantity <= 0).order_by(Inventory.product_id).all()


def create_inventory(product_id, quantity: int = 0, reorder_point=None, reorder_quantity=None) -> Inventory:
    if quantity < 0:
        raise InvalidQuantity("Quantity cannot be negative")
    if Inventory.query.filter_by(product_id=product_id).first() is not None:
        raise InventoryExists()
    return _new_record(product_id, quantity, reorder_point, reorder_quantity)


def set_quantity(product_id, quantity: int) -> Inventory:
    """Overwrite the on-hand quantity, creating the record if needed."""
    if quantity < 0:
        raise InvalidQuantity("Quantity cannot be negative")
    inventory = _locked_for_product(product_id)
    if inventory is None:
        return _new_record(product_id, quantity)
    inventory.quantity = quantity
    inventory.last_updated = utcnow()
    return inventory


def update_inventory(inventory_id, patch) -> Inventory:
    """Apply an ``InventoryPatch``; fields the caller did not send stay as they are."""
    inventory = get_inventory(inventory_id)
    changes = patch.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(inventory, field, value)
    if changes:
        inventory.last_updated = utcnow()
    return inventory


def delete_inventory(inventory_id) -> None:
    inventory = get_inventory(inventory_id)
    db.session.delete(inventory)
