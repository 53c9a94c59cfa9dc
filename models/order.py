import enum
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Numeric, Integer, Boolean
from models import db, BIGINT


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PREPARING = "PREPARING"
    READY = "READY"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class DeliveryMethod(str, enum.Enum):
    DELIVERY = "DELIVERY"
    PICKUP = "PICKUP"


TERMINAL_STATUSES = frozenset(
    {OrderStatus.COMPLETED, OrderStatus.CANCELLED, OrderStatus.REFUNDED}
)

# Normal flow: PENDING -> CONFIRMED -> PREPARING -> READY -> COMPLETED
ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
}


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    if current in TERMINAL_STATUSES:
        return False
    return new in ALLOWED_TRANSITIONS.get(current, frozenset())


def _money(value) -> Decimal:
    return Decimal(value) if value is not None else Decimal("0.00")


class Order(db.Model):
    __tablename__ = "order"
    __table_args__ = (
        db.Index("ix_order_status_date", "status", "order_date"),
    )

    id = Column(BIGINT, primary_key=True)
    order_number = Column(String(32), unique=True, nullable=False)
    customer_id = Column(BIGINT, ForeignKey("user_account.id"), nullable=True, index=True)
    status = Column(
        db.Enum(OrderStatus, native_enum=False, length=20),
        nullable=False,
        default=OrderStatus.PENDING,
    )
    delivery_method = Column(
        db.Enum(DeliveryMethod, native_enum=False, length=20),
        nullable=False,
        default=DeliveryMethod.DELIVERY,
    )
    subtotal = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    tax_amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    shipping_amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    discount_amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    total_amount = Column(Numeric(10, 2), nullable=False)
    notes = Column(Text, nullable=True)
    order_date = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    customer = db.relationship("User", lazy=True)
    items = db.relationship(
        "OrderItem",
        backref="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
        lazy=True,
    )
    status_logs = db.relationship(
        "OrderStatusLog",
        backref="order",
        cascade="all, delete-orphan",
        order_by="OrderStatusLog.id",
        lazy=True,
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def recalculate_totals(self) -> Decimal:
        """Recompute subtotal and total from the items and adjustments.

        ``total_amount`` is a cached value; callers never set it directly.
        """
        subtotal = sum((_money(oi.total_price) for oi in self.items), Decimal("0.00"))
        self.subtotal = subtotal
        self.total_amount = (
            subtotal
            + _money(self.tax_amount)
            + _money(self.shipping_amount)
            - _money(self.discount_amount)
        )
        return self.total_amount

    def to_dict(self, include_items=True):
        data = {
            "id": self.id,
            "order_number": self.order_number,
            "customer_id": self.customer_id,
            "status": self.status.value,
            "delivery_method": self.delivery_method.value,
            "subtotal": float(self.subtotal),
            "tax_amount": float(self.tax_amount),
            "shipping_amount": float(self.shipping_amount),
            "discount_amount": float(self.discount_amount),
            "total_amount": float(self.total_amount),
            "notes": self.notes,
            "order_date": self.order_date.isoformat() if self.order_date else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_items:
            data["items"] = [oi.to_dict() for oi in self.items]
        return data


class OrderItem(db.Model):
    __tablename__ = "order_item"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_item_quantity_positive"),
    )

    id = db.Column(BIGINT, primary_key=True)
    order_id = db.Column(BIGINT, db.ForeignKey("order.id"), nullable=False)
    position = db.Column(Integer, nullable=False, default=0)
    product_id = db.Column(BIGINT, db.ForeignKey("product.id"), nullable=False)
    quantity = db.Column(Integer, nullable=False)
    unit_price = db.Column(Numeric(10, 2), nullable=False)
    total_price = db.Column(Numeric(10, 2), nullable=False)
    # Whether the creation-time inventory decrement went through
    stock_deducted = db.Column(Boolean, nullable=False, default=False)

    product = db.relationship("Product")

    def calculate_total_price(self) -> Decimal:
        self.total_price = Decimal(self.unit_price) * self.quantity
        return self.total_price

    def to_dict(self):
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "unit_price": float(self.unit_price),
            "total_price": float(self.total_price),
        }


class OrderStatusLog(db.Model):
    __tablename__ = "order_status_log"
    id = Column(BIGINT, primary_key=True)
    order_id = Column(BIGINT, ForeignKey("order.id"), nullable=False)
    status = Column(String(20), nullable=False)
    changed_by = Column(String(100), nullable=True)
    timestamp = Column(DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "order_id": self.order_id,
            "status": self.status,
            "changed_by": self.changed_by,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }
