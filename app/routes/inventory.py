from flask import Blueprint, request
from app.version import API_PREFIX
from app.schemas.inventory import (
    InventoryCreateRequest,
    InventoryPatch,
    StockAdjustmentRequest,
    SetQuantityRequest,
    StockCheckQuery,
)
from app.services import inventory as inventory_service
from app.services.errors import ServiceError
from app.utils import (
    ok,
    transactional,
    validate_schema,
    validate_query,
    service_error_response,
    internal_error_response,
)

inventory_bp = Blueprint("inventory", __name__, url_prefix=f"{API_PREFIX}/inventory")


def _records(rows):
    return [r.to_dict() for r in rows]


def _mutate(message, fn, *args, status=200):
    try:
        with transactional(message):
            record = fn(*args)
        return ok(record.to_dict(), message="Inventory updated successfully", status=status)
    except ServiceError as e:
        return service_error_response(e)
    except Exception:
        return internal_error_response()


@inventory_bp.route("", methods=["GET"])
def list_inventory():
    return ok(_records(inventory_service.list_inventory()))


@inventory_bp.route("/low-stock", methods=["GET"])
def list_low_stock():
    return ok(_records(inventory_service.list_low_stock()))


@inventory_bp.route("/out-of-stock", methods=["GET"])
def list_out_of_stock():
    return ok(_records(inventory_service.list_out_of_stock()))


@inventory_bp.route("/<int:inventory_id>", methods=["GET"])
def get_inventory(inventory_id):
    try:
        return ok(inventory_service.get_inventory(inventory_id).to_dict())
    except ServiceError as e:
        return service_error_response(e)


@inventory_bp.route("/product/<int:product_id>", methods=["GET"])
def get_product_inventory(product_id):
    try:
        return ok(inventory_service.get_inventory_for_product(product_id).to_dict())
    except ServiceError as e:
        return service_error_response(e)


@inventory_bp.route("", methods=["POST"])
@validate_schema(InventoryCreateRequest)
def create_inventory():
    data = request.validated_data
    return _mutate(
        "Failed to create inventory",
        inventory_service.create_inventory,
        data.product_id,
        data.quantity,
        data.reorder_point,
        data.reorder_quantity,
        status=201,
    )


@inventory_bp.route("/<int:inventory_id>", methods=["PATCH"])
@validate_schema(InventoryPatch)
def patch_inventory(inventory_id):
    return _mutate(
        "Failed to update inventory",
        inventory_service.update_inventory,
        inventory_id,
        request.validated_data,
    )


@inventory_bp.route("/product/<int:product_id>/quantity", methods=["PUT"])
@validate_schema(SetQuantityRequest)
def set_quantity(product_id):
    return _mutate(
        "Failed to set inventory quantity",
        inventory_service.set_quantity,
        product_id,
        request.validated_data.quantity,
    )


@inventory_bp.route("/product/<int:product_id>/increase", methods=["PUT"])
@validate_schema(StockAdjustmentRequest)
def increase(product_id):
    return _mutate(
        "Failed to increase inventory",
        inventory_service.increase,
        product_id,
        request.validated_data.quantity,
    )


@inventory_bp.route("/product/<int:product_id>/decrease", methods=["PUT"])
@validate_schema(StockAdjustmentRequest)
def decrease(product_id):
    return _mutate(
        "Failed to decrease inventory",
        inventory_service.decrease,
        product_id,
        request.validated_data.quantity,
    )


@inventory_bp.route("/product/<int:product_id>/in-stock", methods=["GET"])
@validate_query(StockCheckQuery)
def in_stock(product_id):
    quantity = request.validated_query.quantity
    return ok({
        "product_id": product_id,
        "quantity": quantity,
        "in_stock": inventory_service.is_in_stock(product_id, quantity),
    })


@inventory_bp.route("/<int:inventory_id>", methods=["DELETE"])
def delete_inventory(inventory_id):
    try:
        with transactional("Failed to delete inventory"):
            inventory_service.delete_inventory(inventory_id)
        return ok(message="Inventory deleted successfully")
    except ServiceError as e:
        return service_error_response(e)
    except Exception:
        return internal_error_response()
