class ServiceError(Exception):
    """Base class for domain failures surfaced to the caller."""

    code = "SERVICE_ERROR"
    status = 400

    def __init__(self, message=None):
        self.message = message or self.__class__.__doc__ or self.code
        super().__init__(self.message)


class NotFound(ServiceError):
    code = "NOT_FOUND"
    status = 404


class CartNotFound(NotFound):
    """Cart not found"""


class CartItemNotFound(NotFound):
    """Cart item not found"""


class OrderNotFound(NotFound):
    """Order not found"""


class ProductNotFound(NotFound):
    """Product not found"""


class CustomerNotFound(NotFound):
    """Customer not found"""


class InventoryNotFound(NotFound):
    """Inventory not found"""


class InvalidTransition(ServiceError):
    code = "INVALID_TRANSITION"
    status = 409


class CannotCancel(InvalidTransition):
    """Order cannot be cancelled"""

    code = "CANNOT_CANCEL"


class InsufficientStock(ServiceError):
    code = "INSUFFICIENT_STOCK"
    status = 409


class ProductUnavailable(ServiceError):
    """Product is not available"""

    code = "PRODUCT_UNAVAILABLE"


class InvalidQuantity(ServiceError):
    """Quantity must be greater than zero"""

    code = "INVALID_QUANTITY"


class InvalidAmount(ServiceError):
    code = "INVALID_AMOUNT"


class OwnershipMismatch(ServiceError):
    code = "OWNERSHIP_MISMATCH"
    status = 403


class CartKeyError(ServiceError):
    """Exactly one of user id or session id is required"""

    code = "INVALID_CART_KEY"


class CartMergeError(ServiceError):
    code = "INVALID_MERGE"


class InventoryExists(ServiceError):
    """Inventory already exists for this product"""

    code = "INVENTORY_EXISTS"
    status = 409


class OrderNumberUnavailable(ServiceError):
    """Could not allocate a unique order number"""

    code = "ORDER_NUMBER_UNAVAILABLE"
    status = 503
