"""Version 1 API endpoints."""

from .endpoints import (
    comments_router,
    moderation_router,
    posts_router,
    votes_router,
)

__all__ = [
    "comments_router",
    "moderation_router",
    "posts_router",
    "votes_router",
]
