"""Comment and thread Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CommentCreate(BaseModel):
    """Schema for replying to a post or to another comment."""

    body: str = Field(..., description="Comment text")
    parent_id: int | None = Field(None, description="Comment being replied to; null for the post")


class CommentUpdate(BaseModel):
    """Schema for editing a comment body."""

    body: str


class HiddenUpdate(BaseModel):
    """Schema for setting the moderation flag on a comment."""

    hidden: bool


class CommentResponse(BaseModel):
    """A single comment as seen by the requesting viewer.

    Hidden comments shown to non-moderators have `placeholder` set and carry
    no body or author details.
    """

    id: int
    post_id: int
    parent_id: int | None
    body: str | None
    author_id: str | None
    author_role: str | None
    author_name: str
    created_at: datetime
    updated_at: datetime | None = None
    upvotes: int
    has_upvoted: bool = False
    hidden: bool
    placeholder: bool = False

    model_config = ConfigDict(from_attributes=True)


class ThreadNodeResponse(CommentResponse):
    """A comment with its nested replies."""

    depth: int = 0
    replies: list[ThreadNodeResponse] = Field(default_factory=list)


class ThreadResponse(BaseModel):
    """All visible comments on a post as a forest."""

    post_id: int
    comment_count: int
    comments: list[ThreadNodeResponse]
