from datetime import datetime
from decimal import Decimal
from models import db, BIGINT


class Cart(db.Model):
    __tablename__ = "cart"
    __table_args__ = (
        # A cart is keyed by a guest session or by a user, never both
        db.CheckConstraint(
            "(session_id IS NULL) <> (user_id IS NULL)",
            name="ck_cart_single_owner",
        ),
    )

    id = db.Column(BIGINT, primary_key=True)
    session_id = db.Column(db.String(64), unique=True, nullable=True)
    user_id = db.Column(BIGINT, db.ForeignKey("user_account.id"), unique=True, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))

    items = db.relationship(
        "CartItem",
        backref="cart",
        cascade="all, delete-orphan",
        order_by="CartItem.id",
        lazy=True,
    )

    @property
    def is_guest(self) -> bool:
        return self.session_id is not None

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def active_items(self):
        return [ci for ci in self.items if not ci.saved_for_later]

    def find_item_for_product(self, product_id):
        for ci in self.items:
            if ci.product_id == product_id:
                return ci
        return None

    def recalculate_total(self) -> Decimal:
        total = sum((ci.total_price for ci in self.active_items()), Decimal("0.00"))
        self.total_amount = total
        return total

    def to_dict(self):
        return {
            "id": self.id,
            "session_id": self.session_id,
            "user_id": self.user_id,
            "items": [ci.to_dict() for ci in self.items],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "total_amount": float(self.total_amount or 0),
        }


class CartItem(db.Model):
    __tablename__ = "cart_item"
    __table_args__ = (
        db.UniqueConstraint("cart_id", "product_id", name="uq_cart_item_product"),
        db.CheckConstraint("quantity > 0", name="ck_cart_item_quantity_positive"),
    )

    id = db.Column(BIGINT, primary_key=True)
    cart_id = db.Column(BIGINT, db.ForeignKey("cart.id"), nullable=False)
    product_id = db.Column(BIGINT, db.ForeignKey("product.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)  # price when the item was added
    saved_for_later = db.Column(db.Boolean, nullable=False, default=False)
    added_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

    product = db.relationship("Product")

    @property
    def total_price(self) -> Decimal:
        return Decimal(self.unit_price) * self.quantity

    def to_dict(self):
        product = self.product
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": product.name if product else None,
            "product_sku": product.sku if product else None,
            "product_image": product.image_url if product else None,
            "quantity": self.quantity,
            "unit_price": float(self.unit_price),
            "total_price": float(self.total_price),
            "saved_for_later": self.saved_for_later,
            "added_at": self.added_at.isoformat() if self.added_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
