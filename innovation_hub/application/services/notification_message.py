"""Status-change message composition."""

from __future__ import annotations

from innovation_hub.config.hub_config import NotificationConfig
from innovation_hub.domain.models.suggestion import SuggestionStatus

_STATUS_PARAGRAPHS: dict[SuggestionStatus, str] = {
    SuggestionStatus.SHORTLISTED: (
        "This means your suggestion has been selected for further "
        "consideration and review. The team will be evaluating it for "
        "potential implementation."
    ),
    SuggestionStatus.IMPLEMENTED: (
        "This means your suggestion has been successfully implemented! "
        "Thank you for contributing to the improvement of {site_name}."
    ),
}


def compose_subject(title: str, status: SuggestionStatus) -> str:
    """e.g. 'Suggestion Update: "Better Wi-Fi" is now Shortlisted'."""
    return f'Suggestion Update: "{title}" is now {status.label}'


def compose_body(
    recipient_name: str,
    title: str,
    status: SuggestionStatus,
    public_feedback: str | None,
    suggestion_id: str,
    config: NotificationConfig,
) -> str:
    """Build the plain-text body of a status-change message.

    Args:
        recipient_name: Display name used in the greeting.
        title: Suggestion title.
        status: The status the suggestion moved into.
        public_feedback: Admin feedback; the paragraph is omitted if empty.
        suggestion_id: Used to build the link.
        config: Site name and link template.

    Returns:
        The message body.
    """
    paragraphs = [
        f"Hello {recipient_name},",
        f'Great news! The suggestion "{title}" has been {status.label.lower()}.',
    ]

    status_paragraph = _STATUS_PARAGRAPHS.get(status)
    if status_paragraph:
        paragraphs.append(status_paragraph.format(site_name=config.site_name))

    if public_feedback:
        paragraphs.append(f"Feedback from the review team:\n{public_feedback}")

    paragraphs.extend(
        [
            "We'd love to hear your thoughts on this update. Please feel free "
            "to provide feedback or ask questions by visiting the suggestion "
            "page.",
            f"View the suggestion: {config.suggestion_url(suggestion_id)}",
            "Thank you for your participation!",
            f"Best regards,\n{config.site_name} Team",
        ]
    )
    return "\n\n".join(paragraphs)
