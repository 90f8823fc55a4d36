"""
Domain layer - pure business logic for the Innovation Hub.

This layer contains:
- Domain models (Suggestion, Vote, Comment, timestamps, audiences)
- Domain events (published after commits)
- Domain exceptions

CRITICAL: This layer must NOT import from application, infrastructure or
bootstrap. Only stdlib, typing and uuid6 imports are allowed.
"""

from innovation_hub.domain.exceptions import InnovationHubError

__all__: list[str] = [
    "InnovationHubError",
]
