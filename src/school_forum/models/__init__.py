"""SQLAlchemy models for the school forum."""

from .comment import Comment
from .post import FORUM_TAGS, Post
from .vote import CommentVote, PostVote

__all__ = [
    "Comment",
    "CommentVote",
    "FORUM_TAGS",
    "Post",
    "PostVote",
]
