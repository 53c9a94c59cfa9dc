from flask import Blueprint, request, current_app
from flask_limiter.util import get_remote_address
from extensions import limiter
from app.version import API_PREFIX
from app.schemas.order import (
    CreateOrderRequest,
    StatusUpdateRequest,
    DateRangeQuery,
    RecentOrdersQuery,
)
from app.services import orders as order_service
from app.services.errors import ServiceError
from models.order import OrderStatus
from app.utils import (
    ok,
    error,
    transactional,
    validate_schema,
    validate_query,
    service_error_response,
    internal_error_response,
)

order_bp = Blueprint("orders", __name__, url_prefix=f"{API_PREFIX}/orders")


def _actor():
    return request.headers.get("X-Actor")


def _order_list(orders):
    return [o.to_dict() for o in orders]


@order_bp.route("", methods=["POST"])
@limiter.limit(
    lambda: current_app.config["ORDER_LIMIT_PER_IP"],
    key_func=get_remote_address,
    error_message="Too many orders from this IP",
)
@validate_schema(CreateOrderRequest)
def create_order():
    """Place an order from an explicit item list.
    ---
    tags:
      - Orders
    responses:
      201:
        description: Order placed, with any inventory warnings
    """
    data = request.validated_data
    try:
        with transactional("Order creation failed"):
            order, warnings = order_service.create_order(
                [item.model_dump() for item in data.items],
                customer_id=data.customer_id,
                delivery_method=data.delivery_method,
                tax_amount=data.tax_amount,
                shipping_amount=data.shipping_amount,
                discount_amount=data.discount_amount,
                notes=data.notes,
                actor=_actor(),
            )
        return ok({"order": order.to_dict(), "warnings": warnings}, message="Order placed successfully", status=201)
    except ServiceError as e:
        return service_error_response(e)
    except Exception:
        return internal_error_response()


@order_bp.route("", methods=["GET"])
def list_orders():
    return ok(_order_list(order_service.list_orders()), message="Orders retrieved successfully")


@order_bp.route("/<int:order_id>", methods=["GET"])
def get_order(order_id):
    try:
        order = order_service.get_order(order_id)
    except ServiceError as e:
        return service_error_response(e)
    data = order.to_dict()
    data["status_history"] = [log.to_dict() for log in order.status_logs]
    return ok(data, message="Order retrieved successfully")


@order_bp.route("/number/<string:order_number>", methods=["GET"])
def get_order_by_number(order_number):
    try:
        order = order_service.get_order_by_number(order_number)
    except ServiceError as e:
        return service_error_response(e)
    return ok(order.to_dict(), message="Order retrieved successfully")


@order_bp.route("/customer/<int:customer_id>", methods=["GET"])
def list_customer_orders(customer_id):
    orders = order_service.list_orders_for_customer(customer_id)
    return ok(_order_list(orders), message="Orders retrieved successfully")


@order_bp.route("/status/<string:status>", methods=["GET"])
def list_orders_by_status(status):
    try:
        parsed = OrderStatus(status.upper())
    except ValueError:
        return error(f"Unknown order status: {status}", status=400)
    orders = order_service.list_orders_by_status(parsed)
    return ok(_order_list(orders), message="Orders retrieved successfully")


@order_bp.route("/pending", methods=["GET"])
def list_pending_orders():
    return ok(_order_list(order_service.list_pending_orders()), message="Orders retrieved successfully")


@order_bp.route("/recent", methods=["GET"])
@validate_query(RecentOrdersQuery)
def list_recent_orders():
    limit = request.validated_query.limit
    orders = order_service.list_recent_orders(limit)
    return ok(_order_list(orders), message="Orders retrieved successfully")


@order_bp.route("/date-range", methods=["GET"])
@validate_query(DateRangeQuery)
def list_orders_by_date_range():
    q = request.validated_query
    orders = order_service.list_orders_between(q.start, q.end)
    return ok(_order_list(orders), message="Orders retrieved successfully")


@order_bp.route("/<int:order_id>/status", methods=["PUT"])
@validate_schema(StatusUpdateRequest)
def update_order_status(order_id):
    """Staff action moving an order along its lifecycle.
    ---
    tags:
      - Orders
    responses:
      200:
        description: Status updated
      409:
        description: Transition not allowed from the current status
    """
    data = request.validated_data
    try:
        with transactional("Failed to update order status"):
            order, warnings = order_service.transition_order(order_id, data.status, actor=_actor())
        return ok({"order": order.to_dict(), "warnings": warnings}, message="Order status updated successfully")
    except ServiceError as e:
        return service_error_response(e)
    except Exception:
        return internal_error_response()


@order_bp.route("/<int:order_id>/cancel", methods=["PUT"])
def cancel_order(order_id):
    try:
        with transactional("Failed to cancel order"):
            order, warnings = order_service.cancel_order(order_id, actor=_actor())
        return ok({"order": order.to_dict(), "warnings": warnings}, message="Order cancelled successfully")
    except ServiceError as e:
        return service_error_response(e)
    except Exception:
        return internal_error_response()


@order_bp.route("/<int:order_id>", methods=["DELETE"])
def delete_order(order_id):
    try:
        with transactional("Failed to delete order"):
            order_service.delete_order(order_id)
        return ok(message="Order deleted successfully")
    except ServiceError as e:
        return service_error_response(e)
    except Exception:
        return internal_error_response()
