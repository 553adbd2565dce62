from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator


def _clean_permissions(value: list[str] | None) -> list[str] | None:
    if value is None:
        return None
    cleaned: list[str] = []
    for item in value:
        normalized = str(item).strip()
        if normalized and normalized not in cleaned:
            cleaned.append(normalized)
    return cleaned


class UserCreateIn(BaseModel):
    name: str
    email: EmailStr
    password: str
    role: str
    department: str
    phone: Optional[str] = None
    permissions: list[str] = Field(default_factory=list)

    @field_validator("name", "role", "department")
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("value is required")
        return cleaned

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: EmailStr) -> str:
        return str(value).strip().lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < 8:
            raise ValueError("password must be at least 8 characters")
        return value

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None

    @field_validator("permissions")
    @classmethod
    def normalize_permissions(cls, value: list[str]) -> list[str]:
        return _clean_permissions(value) or []

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Sara Ahmed",
                "email": "sara@sabah-alkhair.com",
                "password": "password123",
                "role": "sales",
                "department": "Sales",
                "phone": "+966 50 222 3333",
                "permissions": ["sales", "customers"],
            }
        }
    )


class UserUpdateIn(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    role: Optional[str] = None
    department: Optional[str] = None
    phone: Optional[str] = None
    status: Optional[str] = None
    permissions: Optional[list[str]] = None

    @field_validator("name", "role", "department")
    @classmethod
    def validate_non_empty_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("value cannot be empty")
        return cleaned

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: Optional[EmailStr]) -> Optional[str]:
        if value is None:
            return None
        return str(value).strip().lower()

    @field_validator("status")
    @classmethod
    def validate_status(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip().lower()
        if cleaned not in {"active", "inactive"}:
            raise ValueError("status must be active or inactive")
        return cleaned

    @field_validator("permissions")
    @classmethod
    def normalize_permissions(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        return _clean_permissions(value)

    @model_validator(mode="after")
    def validate_any_field_present(self) -> "UserUpdateIn":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    role: str
    department: str
    phone: str | None = None
    status: str
    permissions: list[str]
    last_login: datetime | None = None
    created_at: datetime
    updated_at: datetime
