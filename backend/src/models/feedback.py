"""Feedback data models."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError


class Division(str, Enum):
    """Organizational unit a feedback item concerns."""

    LNT = "LnT"
    EEO = "EEO"
    PR = "PR"
    HRD = "HRD"
    RND = "RnD"


class FeedbackStatus(str, Enum):
    """Triage state of a feedback record."""

    OPEN = "open"
    IN_REVIEW = "in-review"
    RESOLVED = "resolved"


# Wire and storage format uses camelCase keys (eventName, createdAt)
_CAMEL_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    use_enum_values=True,
)

REQUIRED_FIELDS = ("name", "email", "eventName", "division", "rating")
IMMUTABLE_FIELDS = ("id", "createdAt")

MISSING_FIELDS_MESSAGE = f"Missing required fields: {', '.join(REQUIRED_FIELDS)}"
INVALID_DIVISION_MESSAGE = (
    f"Invalid division. Must be one of: {', '.join(d.value for d in Division)}"
)
INVALID_STATUS_MESSAGE = (
    f"Invalid status. Must be one of: {', '.join(s.value for s in FeedbackStatus)}"
)
INVALID_RATING_MESSAGE = "Rating must be between 1 and 5"
NULL_FIELDS_MESSAGE = "Fields cannot be null"

NULL_VALUE_ERROR = "null_value"


class FeedbackSubmission(BaseModel):
    """Request model for submitting feedback."""

    model_config = _CAMEL_CONFIG

    name: str = Field(..., min_length=1, description="Submitter name")
    email: str = Field(..., min_length=1, description="Submitter email")
    event_name: str = Field(..., min_length=1, description="Event the feedback is about")
    division: Division = Field(..., description="Division running the event")
    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5")
    comment: str | None = Field(None, description="Free-form comment")
    suggestion: str | None = Field(None, description="Improvement suggestion")

    def to_record_fields(self) -> dict[str, Any]:
        """Return the storable fields, with optional text defaulted to ''."""
        fields = self.model_dump(by_alias=True)
        fields["comment"] = self.comment or ""
        fields["suggestion"] = self.suggestion or ""
        return fields


class FeedbackUpdate(BaseModel):
    """Request model for a partial feedback update.

    Known fields are type and range checked and may be omitted but not sent
    as null. Unknown keys are kept and merged into the record as-is.
    """

    model_config = ConfigDict(**_CAMEL_CONFIG, extra="allow")

    name: str | None = Field(None, min_length=1, description="New submitter name")
    email: str | None = Field(None, min_length=1, description="New submitter email")
    event_name: str | None = Field(None, min_length=1, description="New event name")
    division: Division | None = Field(None, description="New division")
    rating: int | None = Field(None, ge=1, le=5, description="New rating")
    comment: str | None = Field(None, description="New comment")
    suggestion: str | None = Field(None, description="New suggestion")
    status: FeedbackStatus | None = Field(None, description="New status")

    @field_validator("*", mode="before")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        if value is None:
            raise PydanticCustomError(NULL_VALUE_ERROR, "Field cannot be null")
        return value

    def to_update_fields(self) -> dict[str, Any]:
        """Return only the supplied fields, minus the immutable ones."""
        fields = self.model_dump(by_alias=True, exclude_unset=True)
        for key in IMMUTABLE_FIELDS:
            fields.pop(key, None)
        return fields


class Feedback(BaseModel):
    """Stored feedback record."""

    model_config = ConfigDict(**_CAMEL_CONFIG, extra="allow")

    id: str
    name: str
    email: str
    event_name: str
    division: Division
    rating: int
    comment: str = ""
    suggestion: str = ""
    status: FeedbackStatus = FeedbackStatus.OPEN
    created_at: str


def describe_validation_errors(errors: list[dict[str, Any]]) -> str:
    """Turn pydantic validation errors into a single client-facing message.

    Missing or blank required values win over everything else, then fields an
    update sent as null, then invalid division, rating and status. Anything
    else is reported field by field.
    """
    fields = []
    null_fields = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        fields.append(loc[-1] if loc else "body")

        if error["type"] == NULL_VALUE_ERROR:
            null_fields.append(fields[-1])
            continue
        if error["type"] in ("missing", "string_too_short") or error.get("input") is None:
            return MISSING_FIELDS_MESSAGE

    if null_fields:
        return f"{NULL_FIELDS_MESSAGE}: {', '.join(null_fields)}"

    for field, message in (
        ("division", INVALID_DIVISION_MESSAGE),
        ("rating", INVALID_RATING_MESSAGE),
        ("status", INVALID_STATUS_MESSAGE),
    ):
        if field in fields:
            return message

    return "; ".join(
        f"{field}: {error.get('msg', 'Invalid value')}"
        for field, error in zip(fields, errors)
    )
