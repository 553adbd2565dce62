from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.core.limits import MAX_QUANTITY, MONEY_DECIMAL_PLACES, MONEY_MAX_DIGITS


class ProductCreateIn(BaseModel):
    name: str
    category: str
    sku: str
    description: Optional[str] = None
    price: Decimal = Field(gt=0, max_digits=MONEY_MAX_DIGITS, decimal_places=MONEY_DECIMAL_PLACES)
    cost: Decimal = Field(gt=0, max_digits=MONEY_MAX_DIGITS, decimal_places=MONEY_DECIMAL_PLACES)
    stock: int = Field(default=0, ge=0, le=MAX_QUANTITY)
    min_stock: int = Field(default=0, ge=0, le=MAX_QUANTITY)
    max_stock: int = Field(default=0, ge=0, le=MAX_QUANTITY)
    unit: Optional[str] = Field(default=None, max_length=30)
    status: str = Field(default="active", max_length=20)
    image: Optional[str] = Field(default=None, max_length=500)

    @field_validator("name", "category", "sku")
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("value is required")
        return cleaned

    @field_validator("description", "unit", "image")
    @classmethod
    def normalize_optional_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None

    @field_validator("status")
    @classmethod
    def normalize_status(cls, value: str) -> str:
        cleaned = value.strip().lower()
        if not cleaned:
            raise ValueError("status cannot be empty")
        return cleaned

    @model_validator(mode="after")
    def validate_stock_bounds(self) -> "ProductCreateIn":
        if self.max_stock and self.max_stock < self.min_stock:
            raise ValueError("max_stock cannot be lower than min_stock")
        return self

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Men's cotton shirt",
                "category": "Men's shirts",
                "sku": "SH-001",
                "description": "High quality cotton shirt",
                "price": 120.0,
                "cost": 80.0,
                "stock": 156,
                "min_stock": 50,
                "max_stock": 200,
            }
        }
    )


class ProductUpdateIn(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    sku: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, gt=0, max_digits=MONEY_MAX_DIGITS, decimal_places=MONEY_DECIMAL_PLACES)
    cost: Optional[Decimal] = Field(default=None, gt=0, max_digits=MONEY_MAX_DIGITS, decimal_places=MONEY_DECIMAL_PLACES)
    stock: Optional[int] = Field(default=None, ge=0, le=MAX_QUANTITY)
    min_stock: Optional[int] = Field(default=None, ge=0, le=MAX_QUANTITY)
    max_stock: Optional[int] = Field(default=None, ge=0, le=MAX_QUANTITY)
    unit: Optional[str] = Field(default=None, max_length=30)
    status: Optional[str] = Field(default=None, max_length=20)
    image: Optional[str] = Field(default=None, max_length=500)

    @field_validator("name", "category", "sku", "unit")
    @classmethod
    def validate_non_empty_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("value cannot be empty")
        return cleaned

    @field_validator("status")
    @classmethod
    def normalize_status(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip().lower()
        if not cleaned:
            raise ValueError("status cannot be empty")
        return cleaned

    @model_validator(mode="after")
    def validate_any_field_present(self) -> "ProductUpdateIn":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "price": 130.0,
                "stock": 140,
            }
        }
    )


class ProductOut(BaseModel):
    id: str
    name: str
    category: str
    sku: str
    description: str | None = None
    price: float
    cost: float
    stock: int
    min_stock: int
    max_stock: int
    unit: str
    status: str
    image: str | None = None
    created_at: datetime
    updated_at: datetime
