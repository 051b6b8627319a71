"""SQLAlchemy models for comments on forum posts."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from school_forum.db.session import Base
from school_forum.db.time import utcnow

if TYPE_CHECKING:
    from .vote import CommentVote


class Comment(Base):
    """Reply to a post or to another comment on the same post.

    Comments are stored flat; the thread is rebuilt on read by grouping on
    `parent_id`. The parent reference is a lookup, never an ownership link.
    """

    __tablename__ = "forum_comment"
    __table_args__ = (
        Index("ix_forum_comment_post_parent", "post_id", "parent_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("forum_post.id", ondelete="CASCADE"),
        nullable=False,
    )
    # NULL for top-level replies to the post.
    parent_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("forum_comment.id"),
        nullable=True,
    )

    body: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[str] = mapped_column(String(128), nullable=False)
    author_role: Mapped[str] = mapped_column(String(16), nullable=False)
    author_name: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    upvotes: Mapped[int] = mapped_column(default=0, nullable=False)

    hidden: Mapped[bool] = mapped_column(default=False, nullable=False)
    hidden_by: Mapped[str | None] = mapped_column(String(128), nullable=True)

    votes: Mapped[list[CommentVote]] = relationship(
        back_populates="comment",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def upvoted_by(self) -> frozenset[str]:
        """Ids of principals holding an active upvote."""
        return frozenset(vote.voter_id for vote in self.votes)
