"""SQLAlchemy models for forum posts."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from school_forum.db.session import Base
from school_forum.db.time import utcnow

if TYPE_CHECKING:
    from .vote import PostVote

FORUM_TAGS = ("general", "question", "advice", "event", "policy")


class Post(Base):
    """Top-level forum thread started by a community member.

    Author role and name are a snapshot taken at creation time, not a join
    against the user directory.
    """

    __tablename__ = "forum_post"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    tag: Mapped[str] = mapped_column(String(16), nullable=False, default="general")

    author_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    author_role: Mapped[str] = mapped_column(String(16), nullable=False)
    author_name: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    # Only set by an edit.
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    is_pinned: Mapped[bool] = mapped_column(default=False, nullable=False)
    # Denormalised count of `votes`; always recomputed, never incremented.
    upvotes: Mapped[int] = mapped_column(default=0, nullable=False)

    # Absent means visible to the whole community.
    class_id: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)

    votes: Mapped[list[PostVote]] = relationship(
        back_populates="post",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def upvoted_by(self) -> frozenset[str]:
        """Ids of principals holding an active upvote."""
        return frozenset(vote.voter_id for vote in self.votes)
