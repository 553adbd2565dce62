from datetime import datetime
from pydantic import BaseModel, ConfigDict, field_validator

from app.schemas.user import UserOut


class LoginIn(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        cleaned = value.strip().lower()
        if not cleaned:
            raise ValueError("email is required")
        return cleaned

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "admin@sabah-alkhair.com",
                "password": "password",
            }
        }
    )


class LoginOut(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserOut


class ChangePasswordIn(BaseModel):
    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        if len(value) < 8:
            raise ValueError("new_password must be at least 8 characters")
        return value

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "current_password": "password",
                "new_password": "a-much-better-password",
            }
        }
    )
