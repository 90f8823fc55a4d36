"""Base exception classes for the Innovation Hub domain layer."""


class InnovationHubError(Exception):
    """Base exception for all domain errors.

    All domain-specific exceptions MUST inherit from this class so that
    callers can separate hub failures from programming errors.
    """

    def __init__(self, message: str = "") -> None:
        """Initialize the exception with an optional message.

        Args:
            message: Human-readable error description.
        """
        super().__init__(message)
