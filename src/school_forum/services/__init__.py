"""Business logic services for the school forum."""

from .moderation import ModerationService

__all__ = [
    "ModerationService",
]
