"""
Contact submission models.

``ContactSubmission`` is the field ruleset applied to every incoming form:
all fields are validated independently so a single pass reports every
violation. ``StoredContact`` is the persisted shape returned by either
storage tier.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

SERVICE_CATEGORIES = (
    "Interior Painting",
    "Exterior Painting",
    "Waterproofing",
    "POP Work",
    "Tile Installation",
    "Civil Work",
    "Carpenter Work",
)

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
MESSAGE_MIN_LENGTH = 10
MESSAGE_MAX_LENGTH = 1000

# word chars optionally split by single '.' or '-', ending in one or more 2-3 char segments
EMAIL_PATTERN = re.compile(r"^\w+(?:[.-]\w+)*@\w+(?:[.-]\w+)*(?:\.\w{2,3})+$", re.ASCII)
PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{0,15}$", re.ASCII)


class ContactStatus(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    COMPLETED = "completed"


def _required_text(value: Any, label: str) -> str:
    if value is None or value == "":
        raise PydanticCustomError("required", "{label} is required", {"label": label})
    if not isinstance(value, str):
        raise PydanticCustomError("text_type", "{label} must be text", {"label": label})
    value = value.strip()
    if not value:
        raise PydanticCustomError("required", "{label} is required", {"label": label})
    return value


class ContactSubmission(BaseModel):
    """Field rules for a contact form submission"""
    name: Optional[str] = Field(None, validate_default=True)
    email: Optional[str] = Field(None, validate_default=True)
    phone: Optional[str] = None
    service: Optional[str] = Field(None, validate_default=True)
    message: Optional[str] = Field(None, validate_default=True)

    @field_validator("name", mode="before")
    @classmethod
    def check_name(cls, value):
        value = _required_text(value, "Name")
        if len(value) < NAME_MIN_LENGTH:
            raise PydanticCustomError("too_short", "Name must be at least 2 characters")
        if len(value) > NAME_MAX_LENGTH:
            raise PydanticCustomError("too_long", "Name cannot exceed 50 characters")
        return value

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, value):
        value = _required_text(value, "Email").lower()
        if not EMAIL_PATTERN.fullmatch(value):
            raise PydanticCustomError("email_format", "Please enter a valid email")
        return value

    @field_validator("phone", mode="before")
    @classmethod
    def check_phone(cls, value):
        if value is None:
            return None
        if not isinstance(value, str):
            raise PydanticCustomError("text_type", "Phone must be text")
        value = value.strip()
        if not value:
            return None
        if not PHONE_PATTERN.fullmatch(value):
            raise PydanticCustomError("phone_format", "Please enter a valid phone number")
        return value

    @field_validator("service", mode="before")
    @classmethod
    def check_service(cls, value):
        value = _required_text(value, "Service")
        if value not in SERVICE_CATEGORIES:
            raise PydanticCustomError("service_choice", "Please select a valid service")
        return value

    @field_validator("message", mode="before")
    @classmethod
    def check_message(cls, value):
        value = _required_text(value, "Message")
        if len(value) < MESSAGE_MIN_LENGTH:
            raise PydanticCustomError("too_short", "Message must be at least 10 characters")
        if len(value) > MESSAGE_MAX_LENGTH:
            raise PydanticCustomError("too_long", "Message cannot exceed 1000 characters")
        return value


class StoredContact(BaseModel):
    """A submission as persisted by either storage tier"""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    email: str
    phone: Optional[str] = None
    service: str
    message: str
    submittedAt: datetime
    status: ContactStatus = ContactStatus.NEW

    def to_response(self) -> dict:
        return self.model_dump(mode="json")


class ContactStatusUpdate(BaseModel):
    status: ContactStatus
