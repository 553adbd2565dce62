from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    """Success envelope shared by every endpoint."""

    success: bool = True
    message: str | None = None
    data: DataT | None = None


class MessageOut(BaseModel):
    success: bool = True
    message: str


class ValidationIssueOut(BaseModel):
    field: str
    message: str
    type: str | None = None


class ErrorOut(BaseModel):
    success: bool = False
    message: str
    request_id: str
    details: list[ValidationIssueOut] | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": False,
                "message": "SKU already exists",
                "request_id": "8d8f2b00-6c79-4a45-8ff4-b0a5f2bc4bc2",
                "details": None,
            }
        }
    )
