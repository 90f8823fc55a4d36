"""Suggestion input DTOs.

Pydantic models validating what callers send into SuggestionService.
Validation messages are the wording shown to users by the submission and
review forms.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from innovation_hub.domain.errors import InvalidSuggestionError
from innovation_hub.domain.models.suggestion import (
    BODY_MIN_LENGTH,
    RATING_MAX,
    RATING_MIN,
    TITLE_MAX_LENGTH,
    TITLE_MIN_LENGTH,
    SuggestionCategory,
    SuggestionStatus,
)


class SuggestionSubmissionDTO(BaseModel):
    """A new suggestion as submitted by a student.

    Attributes:
        title: 10-100 characters after trimming.
        body: At least 50 characters after trimming.
        category: One of SuggestionCategory.
        is_anonymous: Store the author as ANONYMOUS.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    title: str
    body: str
    category: SuggestionCategory
    is_anonymous: bool = False

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        if len(value) < TITLE_MIN_LENGTH:
            raise PydanticCustomError(
                "title_too_short",
                "Title must be at least {min} characters.",
                {"min": TITLE_MIN_LENGTH},
            )
        if len(value) > TITLE_MAX_LENGTH:
            raise PydanticCustomError(
                "title_too_long",
                "Title cannot exceed {max} characters.",
                {"max": TITLE_MAX_LENGTH},
            )
        return value

    @field_validator("body")
    @classmethod
    def validate_body(cls, value: str) -> str:
        if len(value) < BODY_MIN_LENGTH:
            raise PydanticCustomError(
                "body_too_short",
                "Suggestion body must be at least {min} characters.",
                {"min": BODY_MIN_LENGTH},
            )
        return value


class SuggestionReviewDTO(BaseModel):
    """An admin review. Fields left as None are not changed.

    Attributes:
        status: New review status.
        impact_score: 1-5.
        feasibility_rating: 1-5.
        cost_effectiveness_rating: 1-5.
        public_feedback: Feedback shown to everyone ("" clears it).
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    status: SuggestionStatus | None = None
    impact_score: int | None = None
    feasibility_rating: int | None = None
    cost_effectiveness_rating: int | None = None
    public_feedback: str | None = None

    @field_validator("impact_score", "feasibility_rating", "cost_effectiveness_rating")
    @classmethod
    def validate_rating(cls, value: int | None) -> int | None:
        if value is not None and not RATING_MIN <= value <= RATING_MAX:
            raise PydanticCustomError(
                "rating_out_of_range",
                "Ratings must be between {min} and {max}.",
                {"min": RATING_MIN, "max": RATING_MAX},
            )
        return value


def invalid_payload_error(exc: ValidationError) -> InvalidSuggestionError:
    """Translate the first pydantic error into an InvalidSuggestionError."""
    errors = exc.errors()
    if not errors:
        return InvalidSuggestionError("payload", str(exc))
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "payload"
    return InvalidSuggestionError(field, first.get("msg", "invalid value"))
