"""Pydantic schemas for push service endpoints."""

from datetime import datetime
from http import HTTPStatus

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from app.utils.datetime import utc_now_naive


def _not_blank(value: str) -> str:
    if not value or not value.strip():
        raise PydanticCustomError("blank", "may not be blank")
    return value


class TokenRequest(BaseModel):
    """Register or remove an FCM registration token for a user."""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "token": "dPnEcn3Q373lvm6tynqGxb:APA91bGOSnSLdQ9j9hkoeRAMMx0eOGVVii...",
                "userId": "124523",
            }
        },
    )

    token: str = Field(..., description="Firebase Cloud Messaging registration token")
    user_id: str = Field(..., alias="userId", description="Unique identifier of the token owner")

    @field_validator("token", "user_id")
    @classmethod
    def check_not_blank(cls, value: str) -> str:
        return _not_blank(value)


class MessageRequest(BaseModel):
    """Send a notification to every device of a user."""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "userId": "12345",
                "messageTitle": "Important!",
                "messageText": "A new sign-in to your account was detected.",
            }
        },
    )

    user_id: str = Field(..., alias="userId", description="Recipient user ID")
    message_title: str = Field(..., alias="messageTitle", description="Notification title")
    message_text: str = Field(..., alias="messageText", description="Notification body text")

    @field_validator("user_id", "message_title", "message_text")
    @classmethod
    def check_not_blank(cls, value: str) -> str:
        return _not_blank(value)


class StatusResponse(BaseModel):
    """Body shared by every success and error response."""
    status: str = Field(..., examples=["200 OK"])
    timestamp: datetime
    message: str = Field(..., examples=["Message sent successfully"])

    @classmethod
    def of(cls, status: HTTPStatus, message: str) -> "StatusResponse":
        return cls(status=format_status(status), timestamp=utc_now_naive(), message=message)


def format_status(status: HTTPStatus) -> str:
    """Render a status as ``"404 NOT_FOUND"``."""
    return f"{status.value} {status.name}"
