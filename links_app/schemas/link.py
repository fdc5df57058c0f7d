import re
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import (
    AnyUrl,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    computed_field,
    field_validator,
)
from pydantic_core import PydanticCustomError

from links_app.config import settings


SHORT_CODE_MIN_LENGTH = 3
SHORT_CODE_MAX_LENGTH = 10
TITLE_MAX_LENGTH = 255
SHORT_CODE_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

FIELD_LABELS = {
    "short_code": "Short code",
    "original_url": "URL",
    "title": "Title",
    "description": "Description",
    "is_active": "Active flag",
    "expires_at": "Expiry date",
}

_url_adapter = TypeAdapter(AnyUrl)


def check_short_code(value: str) -> str:
    # Same order as the messages are reported: min, max, alphabet
    if len(value) < SHORT_CODE_MIN_LENGTH:
        raise PydanticCustomError(
            "short_code_too_short",
            "Short code must be at least {min} characters",
            {"min": SHORT_CODE_MIN_LENGTH},
        )
    if len(value) > SHORT_CODE_MAX_LENGTH:
        raise PydanticCustomError(
            "short_code_too_long",
            "Short code must be at most {max} characters",
            {"max": SHORT_CODE_MAX_LENGTH},
        )
    if not SHORT_CODE_PATTERN.match(value):
        raise PydanticCustomError(
            "short_code_alphabet",
            "Short code can only contain letters, numbers, hyphens, and underscores",
        )
    return value


def check_url(value: str) -> str:
    """Accept any absolute URL; the string is kept exactly as submitted."""
    try:
        _url_adapter.validate_python(value)
    except ValidationError:
        raise PydanticCustomError("invalid_url", "Please enter a valid URL")
    return value


def check_title(value: Optional[str]) -> Optional[str]:
    if value is not None and len(value) > TITLE_MAX_LENGTH:
        raise PydanticCustomError(
            "title_too_long",
            "Title must be at most {max} characters",
            {"max": TITLE_MAX_LENGTH},
        )
    return value


def normalize_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Store timestamps as UTC; naive input is taken to be UTC already."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def first_error_message(exc: ValidationError) -> str:
    """
    Fail-fast reporting: only the first violation is surfaced.

    Pydantic reports errors in field declaration order, so the first entry
    belongs to the first failing field.
    """
    errors = exc.errors()
    if not errors:
        return "Invalid input"
    error = errors[0]
    field = error["loc"][0] if error["loc"] else None
    label = FIELD_LABELS.get(field, "Input")
    if error["type"] == "missing":
        return f"{label} is required"
    if error["type"] == "model_type" or error["type"] == "dict_type":
        return "Invalid input"
    return error["msg"]


class LinkCreate(BaseModel):
    short_code: str = Field(..., description="Public token, 3-10 chars of [A-Za-z0-9_-]")
    original_url: str = Field(..., description="Destination URL")
    title: Optional[str] = None
    description: Optional[str] = None
    expires_at: Optional[datetime] = None

    @field_validator("short_code")
    @classmethod
    def validate_short_code(cls, value: str) -> str:
        return check_short_code(value)

    @field_validator("original_url")
    @classmethod
    def validate_original_url(cls, value: str) -> str:
        return check_url(value)

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: Optional[str]) -> Optional[str]:
        return check_title(value)

    @field_validator("expires_at")
    @classmethod
    def validate_expires_at(cls, value: Optional[datetime]) -> Optional[datetime]:
        return normalize_utc(value)


class LinkUpdate(BaseModel):
    """
    Partial update payload.

    Only fields present in the request are applied (use
    model_dump(exclude_unset=True)). title, description and expires_at may be
    cleared with null; the rest cannot. Unknown keys such as click_count are
    dropped.
    """
    short_code: Optional[str] = None
    original_url: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None
    expires_at: Optional[datetime] = None

    @field_validator("short_code", "original_url", "is_active", mode="before")
    @classmethod
    def reject_null(cls, value, info: ValidationInfo):
        if value is None:
            raise PydanticCustomError(
                "null_not_allowed",
                "{label} cannot be empty",
                {"label": FIELD_LABELS[info.field_name]},
            )
        return value

    @field_validator("short_code")
    @classmethod
    def validate_short_code(cls, value: str) -> str:
        return check_short_code(value)

    @field_validator("original_url")
    @classmethod
    def validate_original_url(cls, value: str) -> str:
        return check_url(value)

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: Optional[str]) -> Optional[str]:
        return check_title(value)

    @field_validator("expires_at")
    @classmethod
    def validate_expires_at(cls, value: Optional[datetime]) -> Optional[datetime]:
        return normalize_utc(value)

    def changes(self) -> dict:
        """Fields the caller actually sent."""
        return self.model_dump(exclude_unset=True)


class LinkResponse(BaseModel):
    """Serializes a Link row (from_attributes reads straight off the ORM object)"""
    id: int
    short_code: str
    user_id: str
    original_url: str
    title: Optional[str] = None
    description: Optional[str] = None
    click_count: int
    is_active: bool
    expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def short_url(self) -> str:
        return f"{settings.base_url}/{self.short_code}"

    model_config = ConfigDict(from_attributes=True)


class LinkResult(BaseModel):
    success: bool = True
    data: LinkResponse


class LinkListResult(BaseModel):
    success: bool = True
    data: List[LinkResponse]


class DeleteResult(BaseModel):
    success: bool = True


class ErrorResult(BaseModel):
    error: str
