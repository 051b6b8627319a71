"""Data access layer."""

from .forum_repo import ForumRepository, VoteTarget

__all__ = ["ForumRepository", "VoteTarget"]
