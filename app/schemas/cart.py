from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field
from models.order import DeliveryMethod
from app.schemas.order import money_field


class AddCartItemRequest(BaseModel):
    product_id: int
    quantity: int = Field(default=1, gt=0)


class UpdateCartItemRequest(BaseModel):
    # zero or less removes the item
    quantity: int


class MergeCartRequest(BaseModel):
    session_id: str = Field(min_length=1, max_length=64)


class CheckoutRequest(BaseModel):
    delivery_method: Optional[DeliveryMethod] = None
    tax_amount: Decimal = money_field()
    shipping_amount: Decimal = money_field()
    discount_amount: Decimal = money_field()
    notes: Optional[str] = Field(default=None, max_length=2000)
