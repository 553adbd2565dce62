from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.core.limits import MAX_QUANTITY

MovementType = Literal["in", "out", "transfer", "adjustment"]


class MovementCreateIn(BaseModel):
    product_id: str
    movement_type: MovementType
    quantity: int = Field(
        ...,
        ge=-MAX_QUANTITY,
        le=MAX_QUANTITY,
        description="Units moved. Must be positive, except adjustments which may be negative. Cannot be zero.",
    )
    reference: str | None = Field(default=None, max_length=100)
    notes: str | None = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def validate_quantity(self) -> "MovementCreateIn":
        if self.quantity == 0:
            raise ValueError("quantity cannot be zero")
        if self.movement_type != "adjustment" and self.quantity < 0:
            raise ValueError("quantity must be positive for in, out and transfer movements")
        return self

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "product_id": "prod-001",
                "movement_type": "out",
                "quantity": 5,
                "reference": "DMG-2026-10",
                "notes": "Damaged during packaging",
            }
        }
    )


class MovementOut(BaseModel):
    id: str
    product_id: str
    product_name: str
    movement_type: str
    quantity: int
    reference: str | None = None
    notes: str | None = None
    created_at: datetime


class InventoryOverviewOut(BaseModel):
    total_products: int
    total_quantity: int
    total_value: float
    low_stock_items: int


class CategoryInventoryOut(BaseModel):
    category: str
    product_count: int
    total_quantity: int
    total_value: float


class ReconciliationRowOut(BaseModel):
    product_id: str
    product_name: str
    sku: str
    stock: int
    ledger_stock: int
    drift: int


class ReconciliationOut(BaseModel):
    checked: int
    drifted: int
    items: list[ReconciliationRowOut]
