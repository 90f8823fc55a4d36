"""Application-layer DTOs validated with pydantic."""

from innovation_hub.application.dtos.comment import CommentSubmissionDTO
from innovation_hub.application.dtos.suggestion import (
    SuggestionReviewDTO,
    SuggestionSubmissionDTO,
    invalid_payload_error,
)

__all__ = [
    "CommentSubmissionDTO",
    "SuggestionReviewDTO",
    "SuggestionSubmissionDTO",
    "invalid_payload_error",
]
