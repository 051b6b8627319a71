"""Data access helpers for posts, comments and their votes."""
from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum

from sqlalchemy import delete, func, insert, or_, select, update
from sqlalchemy.orm import Session

from school_forum.models import Comment, CommentVote, Post, PostVote

__all__ = ["ForumRepository", "VoteTarget"]


class VoteTarget(StrEnum):
    """Kinds of content that can be upvoted."""

    POST = "post"
    COMMENT = "comment"


# target kind -> (content model, vote model, vote foreign key column name)
_VOTE_TABLES = {
    VoteTarget.POST: (Post, PostVote, "post_id"),
    VoteTarget.COMMENT: (Comment, CommentVote, "comment_id"),
}


class ForumRepository:
    """Thin wrapper around database access for forum entities.

    The repository never commits; services own the unit of work.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    # Posts

    def get_post(self, post_id: int) -> Post | None:
        """Return a post by identifier."""
        return self.session.get(Post, post_id)

    def list_posts(self, class_id: str | None = None) -> list[Post]:
        """Return the posts visible within `class_id`.

        Community-wide posts (no class) are always included. Posts scoped to a
        class appear only when that class is requested.
        """
        visible = Post.class_id.is_(None)
        if class_id is not None:
            visible = or_(Post.class_id == class_id, visible)
        stmt = select(Post).where(visible)
        result = self.session.execute(stmt.order_by(Post.id))
        return list(result.scalars())

    def add_post(self, post: Post) -> Post:
        """Insert a new post and return the persisted ORM instance."""
        self.session.add(post)
        self.session.flush()
        return post

    def delete_post(self, post_id: int) -> int:
        """Delete a post together with all of its comments and votes.

        Returns:
            The number of comments removed alongside the post.
        """
        comment_ids = select(Comment.id).where(Comment.post_id == post_id)
        self.session.execute(
            delete(CommentVote).where(CommentVote.comment_id.in_(comment_ids))
        )
        removed = self.session.execute(delete(Comment).where(Comment.post_id == post_id))
        self.session.execute(delete(PostVote).where(PostVote.post_id == post_id))
        self.session.execute(delete(Post).where(Post.id == post_id))
        return removed.rowcount or 0

    def count_comments(self, post_ids: Iterable[int]) -> dict[int, int]:
        """Return the number of comments for each of the given posts."""
        ids = list(post_ids)
        if not ids:
            return {}
        rows = self.session.execute(
            select(Comment.post_id, func.count())
            .where(Comment.post_id.in_(ids))
            .group_by(Comment.post_id)
        )
        counts = dict.fromkeys(ids, 0)
        counts.update({post_id: count for post_id, count in rows})
        return counts

    # Comments

    def get_comment(self, comment_id: int) -> Comment | None:
        """Return a comment by identifier."""
        return self.session.get(Comment, comment_id)

    def list_comments(self, post_id: int) -> list[Comment]:
        """Return every comment on a post ordered by creation."""
        result = self.session.execute(
            select(Comment)
            .where(Comment.post_id == post_id)
            .order_by(Comment.created_at, Comment.id)
        )
        return list(result.scalars())

    def add_comment(self, comment: Comment) -> Comment:
        """Insert a new comment and return the persisted ORM instance."""
        self.session.add(comment)
        self.session.flush()
        return comment

    def delete_comments(self, comment_ids: Iterable[int]) -> int:
        """Delete the given comments and their votes in one statement each.

        Missing ids are ignored so the call can be repeated safely.
        """
        ids = list(comment_ids)
        if not ids:
            return 0
        self.session.execute(delete(CommentVote).where(CommentVote.comment_id.in_(ids)))
        result = self.session.execute(delete(Comment).where(Comment.id.in_(ids)))
        return result.rowcount or 0

    def list_orphans(self, post_id: int) -> list[Comment]:
        """Return comments on a post whose parent no longer exists."""
        parent_ids = select(Comment.id).where(Comment.post_id == post_id)
        result = self.session.execute(
            select(Comment).where(
                Comment.post_id == post_id,
                Comment.parent_id.is_not(None),
                Comment.parent_id.not_in(parent_ids),
            )
        )
        return list(result.scalars())

    # Votes

    def get_target(self, kind: VoteTarget, target_id: int) -> Post | Comment | None:
        """Return the post or comment a vote is aimed at."""
        model, _, _ = _VOTE_TABLES[kind]
        return self.session.get(model, target_id)

    def toggle_vote(self, kind: VoteTarget, target_id: int, voter_id: str) -> bool:
        """Flip a voter's membership in the target's upvote set.

        The target row is locked first so concurrent voters queue up. The
        membership row is then removed with a conditional delete; only when
        nothing was removed is a new row inserted. The denormalised counter is
        finally recomputed from the membership table so it can never drift or go
        negative.

        Returns:
            True if the voter now holds an upvote, False if it was withdrawn.
        """
        model, vote_model, fk_name = _VOTE_TABLES[kind]
        fk = getattr(vote_model, fk_name)

        # Serialise toggles on one target so the recount sees every insert.
        self.session.execute(select(model.id).where(model.id == target_id).with_for_update())

        removed = self.session.execute(
            delete(vote_model).where(fk == target_id, vote_model.voter_id == voter_id)
        )
        upvoted = not removed.rowcount
        if upvoted:
            self.session.execute(
                insert(vote_model).values({fk_name: target_id, "voter_id": voter_id})
            )

        member_count = (
            select(func.count()).select_from(vote_model).where(fk == target_id).scalar_subquery()
        )
        self.session.execute(
            update(model).where(model.id == target_id).values(upvotes=member_count)
        )
        return upvoted
