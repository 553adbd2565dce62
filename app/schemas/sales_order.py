from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.limits import MAX_QUANTITY, MONEY_DECIMAL_PLACES, MONEY_MAX_DIGITS

ALLOWED_ORDER_STATUSES = {
    "pending",
    "confirmed",
    "shipped",
    "delivered",
    "cancelled",
}


def normalize_order_status(value: str) -> str:
    normalized = value.strip().lower()
    if normalized not in ALLOWED_ORDER_STATUSES:
        allowed = ", ".join(sorted(ALLOWED_ORDER_STATUSES))
        raise ValueError(f"Invalid order status. Allowed: {allowed}")
    return normalized


class SalesOrderItemIn(BaseModel):
    product_id: str
    quantity: int = Field(gt=0, le=MAX_QUANTITY)
    price: Optional[Decimal] = Field(
        default=None,
        ge=0,
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        description="Unit price snapshot. Defaults to the product's current price.",
    )


class SalesOrderCreateIn(BaseModel):
    customer_id: str
    order_date: date
    delivery_date: date
    items: list[SalesOrderItemIn] = Field(min_length=1)
    discount: Decimal = Field(
        default=Decimal("0"), ge=0, max_digits=MONEY_MAX_DIGITS, decimal_places=MONEY_DECIMAL_PLACES
    )
    tax: Decimal = Field(
        default=Decimal("0"), ge=0, max_digits=MONEY_MAX_DIGITS, decimal_places=MONEY_DECIMAL_PLACES
    )
    status: str = "pending"
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator("customer_id")
    @classmethod
    def validate_customer_id(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("customer_id is required")
        return cleaned

    @field_validator("status")
    @classmethod
    def validate_status(cls, value: str) -> str:
        return normalize_order_status(value)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "customer_id": "customer-id-here",
                "order_date": "2026-10-19",
                "delivery_date": "2026-10-26",
                "discount": 0,
                "tax": 75.0,
                "notes": "Deliver to warehouse gate 2",
                "items": [
                    {
                        "product_id": "prod-001",
                        "quantity": 10,
                        "price": 50.0,
                    }
                ],
            }
        }
    )


class SalesOrderStatusIn(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, value: str) -> str:
        return normalize_order_status(value)

    model_config = ConfigDict(json_schema_extra={"example": {"status": "confirmed"}})


class SalesOrderItemOut(BaseModel):
    id: str
    order_id: str
    product_id: str
    product_name: str
    quantity: int
    price: float
    total: float
    created_at: datetime


class SalesOrderOut(BaseModel):
    id: str
    customer_id: str
    customer_name: str
    order_date: date
    delivery_date: date
    subtotal: float
    discount: float
    tax: float
    total: float
    status: str
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
    items: list[SalesOrderItemOut] = []
