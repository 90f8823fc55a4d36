"""Comment input DTO."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic_core import PydanticCustomError

from innovation_hub.domain.models.comment import (
    COMMENT_BODY_MAX_LENGTH,
    COMMENT_BODY_MIN_LENGTH,
)


class CommentSubmissionDTO(BaseModel):
    """A comment body, 1-500 characters after trimming."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    body: str

    @field_validator("body")
    @classmethod
    def validate_body(cls, value: str) -> str:
        if len(value) < COMMENT_BODY_MIN_LENGTH:
            raise PydanticCustomError("comment_empty", "Comment cannot be empty.")
        if len(value) > COMMENT_BODY_MAX_LENGTH:
            raise PydanticCustomError("comment_too_long", "Comment is too long.")
        return value
