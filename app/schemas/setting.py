from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SettingOut(BaseModel):
    key: str
    value: str
    description: str | None = None
    updated_at: datetime


class SettingUpsertIn(BaseModel):
    value: str = Field(max_length=10_000)
    description: str | None = Field(default=None, max_length=255)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "value": "15",
                "description": "VAT percentage applied on invoices",
            }
        }
    )
