"""Models capturing upvotes on posts and comments."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from school_forum.db.session import Base

if TYPE_CHECKING:
    from .comment import Comment
    from .post import Post


class PostVote(Base):
    """Active upvote by one principal on one post.

    The composite primary key is the membership set: a principal can appear
    at most once per post.
    """

    __tablename__ = "forum_post_vote"
    __table_args__ = (
        Index("ix_forum_post_vote_post_id", "post_id"),
    )

    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("forum_post.id", ondelete="CASCADE"),
        primary_key=True,
    )
    voter_id: Mapped[str] = mapped_column(String(128), primary_key=True)

    post: Mapped[Post] = relationship(back_populates="votes")


class CommentVote(Base):
    """Active upvote by one principal on one comment."""

    __tablename__ = "forum_comment_vote"
    __table_args__ = (
        Index("ix_forum_comment_vote_comment_id", "comment_id"),
    )

    comment_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("forum_comment.id", ondelete="CASCADE"),
        primary_key=True,
    )
    voter_id: Mapped[str] = mapped_column(String(128), primary_key=True)

    comment: Mapped[Comment] = relationship(back_populates="votes")
