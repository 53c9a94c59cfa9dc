from typing import Optional
from pydantic import BaseModel, Field, field_validator


class InventoryCreateRequest(BaseModel):
    product_id: int
    quantity: int = Field(default=0, ge=0)
    reorder_point: Optional[int] = Field(default=None, ge=0)
    reorder_quantity: Optional[int] = Field(default=None, ge=0)


class InventoryPatch(BaseModel):
    """Partial update of an inventory record.

    Only fields present in the payload are applied. Thresholds cannot be
    cleared; ``location`` can be cleared by sending ``null``.
    """

    reorder_point: Optional[int] = Field(default=None, ge=0)
    reorder_quantity: Optional[int] = Field(default=None, ge=0)
    location: Optional[str] = Field(default=None, max_length=100)

    @field_validator("reorder_point", "reorder_quantity")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("cannot be null")
        return v


class StockAdjustmentRequest(BaseModel):
    quantity: int = Field(gt=0)


class SetQuantityRequest(BaseModel):
    quantity: int = Field(ge=0)


class StockCheckQuery(BaseModel):
    quantity: int = Field(default=1, gt=0)
