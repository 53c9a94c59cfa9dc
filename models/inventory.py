import enum
from datetime import datetime
from models import db, BIGINT


class InventoryStatus(str, enum.Enum):
    IN_STOCK = "IN_STOCK"
    LOW_STOCK = "LOW_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"


class Inventory(db.Model):
    __tablename__ = "inventory"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_inventory_quantity_non_negative"),
    )

    id = db.Column(BIGINT, primary_key=True)
    product_id = db.Column(BIGINT, db.ForeignKey("product.id"), unique=True, nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)

    # Replenishment thresholds; reported, never acted on automatically
    reorder_point = db.Column(db.Integer, nullable=False, default=10)
    reorder_quantity = db.Column(db.Integer, nullable=False, default=20)
    location = db.Column(db.String(100), nullable=True)

    last_updated = db.Column(db.DateTime, default=datetime.utcnow)

    product = db.relationship("Product", lazy="joined")

    @property
    def status(self) -> InventoryStatus:
        if self.quantity <= 0:
            return InventoryStatus.OUT_OF_STOCK
        if self.quantity < self.reorder_point:
            return InventoryStatus.LOW_STOCK
        return InventoryStatus.IN_STOCK

    @property
    def needs_reorder(self) -> bool:
        return self.quantity <= self.reorder_point

    def to_dict(self):
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "reorder_point": self.reorder_point,
            "reorder_quantity": self.reorder_quantity,
            "location": self.location,
            "status": self.status.value,
            "needs_reorder": self.needs_reorder,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }
