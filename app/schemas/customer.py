from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from app.core.limits import MONEY_DECIMAL_PLACES, MONEY_MAX_DIGITS


class CustomerCreateIn(BaseModel):
    name: str
    contact: str
    phone: str
    email: EmailStr | None = None
    address: str
    tax_number: str | None = None
    credit_limit: Decimal = Field(
        default=Decimal("0"), ge=0, max_digits=MONEY_MAX_DIGITS, decimal_places=MONEY_DECIMAL_PLACES
    )
    payment_terms: int = Field(default=30, ge=0, le=365)
    customer_type: str = Field(default="retail", max_length=30)
    status: str = Field(default="active", max_length=20)

    @field_validator("name", "contact", "phone", "address")
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("value is required")
        return cleaned

    @field_validator("tax_number")
    @classmethod
    def normalize_optional_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: EmailStr | None) -> EmailStr | None:
        if value is None:
            return None
        return str(value).strip().lower()

    @field_validator("customer_type", "status")
    @classmethod
    def normalize_label(cls, value: str) -> str:
        cleaned = value.strip().lower()
        if not cleaned:
            raise ValueError("value cannot be empty")
        return cleaned

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Al Noor Boutique",
                "contact": "Fatima Al Noor",
                "phone": "+966 50 555 0101",
                "email": "orders@alnoor.example.com",
                "address": "King Fahd Road, Riyadh",
                "credit_limit": 5000.0,
                "payment_terms": 30,
                "customer_type": "wholesale",
            }
        }
    )


class CustomerUpdateIn(BaseModel):
    name: str | None = None
    contact: str | None = None
    phone: str | None = None
    email: EmailStr | None = None
    address: str | None = None
    tax_number: str | None = None
    credit_limit: Optional[Decimal] = Field(
        default=None, ge=0, max_digits=MONEY_MAX_DIGITS, decimal_places=MONEY_DECIMAL_PLACES
    )
    payment_terms: Optional[int] = Field(default=None, ge=0, le=365)
    customer_type: str | None = Field(default=None, max_length=30)
    status: str | None = Field(default=None, max_length=20)

    @field_validator("name", "contact", "phone", "address")
    @classmethod
    def validate_non_empty_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("value cannot be empty")
        return cleaned

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: EmailStr | None) -> EmailStr | None:
        if value is None:
            return None
        return str(value).strip().lower()

    @field_validator("customer_type", "status")
    @classmethod
    def normalize_label(cls, value: str | None) -> str | None:
        if value is None:
            return None
        cleaned = value.strip().lower()
        if not cleaned:
            raise ValueError("value cannot be empty")
        return cleaned

    @model_validator(mode="after")
    def validate_any_field_present(self) -> "CustomerUpdateIn":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class CustomerOut(BaseModel):
    id: str
    name: str
    contact: str
    phone: str
    email: str | None = None
    address: str
    tax_number: str | None = None
    credit_limit: float
    payment_terms: int
    customer_type: str
    status: str
    total_orders: int
    total_spent: float
    created_at: datetime
    updated_at: datetime
