"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .comment import (
    CommentCreate,
    CommentResponse,
    CommentUpdate,
    HiddenUpdate,
    ThreadNodeResponse,
    ThreadResponse,
)
from .post import PostCreate, PostResponse, PostUpdate
from .principal import Principal, Role

__all__ = [
    "CommentCreate", "CommentResponse", "CommentUpdate", "HiddenUpdate",
    "ThreadNodeResponse", "ThreadResponse",
    "PostCreate", "PostResponse", "PostUpdate",
    "Principal", "Role",
]
