"""Post-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PostCreate(BaseModel):
    """Schema for creating a new post.

    Content rules (non-empty text, known tag) are enforced by the service
    layer so that direct callers get the same checks.
    """

    title: str = Field(..., description="Post title")
    body: str = Field(..., description="Post body")
    tag: str = Field("general", description="One of general, question, advice, event, policy")
    class_id: str | None = Field(None, description="Restrict the post to a class")


class PostUpdate(BaseModel):
    """Schema for editing a post; omitted fields are left unchanged."""

    title: str | None = None
    body: str | None = None
    tag: str | None = None
    class_id: str | None = None

    model_config = ConfigDict(extra="forbid")


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: int
    title: str
    body: str
    tag: str
    author_id: str
    author_role: str
    author_name: str
    created_at: datetime
    updated_at: datetime | None
    is_pinned: bool
    upvotes: int
    class_id: str | None
    comment_count: int = 0
    has_upvoted: bool = False

    model_config = ConfigDict(from_attributes=True)
