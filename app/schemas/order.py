from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator
from models.order import DeliveryMethod, OrderStatus

# Matches Numeric(10, 2) on the models
def money_field():
    return Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)


class OrderItemRequest(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)
    # Overrides the catalog price (promotional pricing)
    unit_price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)


class CreateOrderRequest(BaseModel):
    customer_id: Optional[int] = None
    items: List[OrderItemRequest] = Field(min_length=1)
    delivery_method: Optional[DeliveryMethod] = None
    tax_amount: Decimal = money_field()
    shipping_amount: Decimal = money_field()
    discount_amount: Decimal = money_field()
    notes: Optional[str] = Field(default=None, max_length=2000)


class StatusUpdateRequest(BaseModel):
    status: OrderStatus


class DateRangeQuery(BaseModel):
    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _check_order(self):
        if self.end < self.start:
            raise ValueError("end must not be before start")
        return self


class RecentOrdersQuery(BaseModel):
    # None falls back to RECENT_ORDERS_LIMIT
    limit: Optional[int] = Field(default=None, gt=0, le=100)
