import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FeedbackCreate(BaseModel):
    """Request body for POST /feedback. Constraints are checked by the service."""
    name: Optional[str] = None
    feedback: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"name": "Ada", "feedback": "Great tool!"}
        }
    )


class FeedbackResponse(BaseModel):
    id: uuid.UUID
    name: str
    feedback: str
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at", "updated_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # SQLite hands back naive datetimes
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class ErrorResponse(BaseModel):
    error: str
