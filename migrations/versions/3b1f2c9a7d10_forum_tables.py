"""forum tables

Revision ID: 3b1f2c9a7d10
Revises:
Create Date: 2026-10-16 09:12:44.512301

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3b1f2c9a7d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create posts, comments and their vote tables."""
    op.create_table(
        "forum_post",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("tag", sa.String(length=16), nullable=False),
        sa.Column("author_id", sa.String(length=128), nullable=False),
        sa.Column("author_role", sa.String(length=16), nullable=False),
        sa.Column("author_name", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_pinned", sa.Boolean(), nullable=False),
        sa.Column("upvotes", sa.Integer(), nullable=False),
        sa.Column("class_id", sa.String(length=128), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_forum_post_author_id", "forum_post", ["author_id"])
    op.create_index("ix_forum_post_class_id", "forum_post", ["class_id"])

    op.create_table(
        "forum_comment",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("post_id", sa.Integer(), nullable=False),
        sa.Column("parent_id", sa.Integer(), nullable=True),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("author_id", sa.String(length=128), nullable=False),
        sa.Column("author_role", sa.String(length=16), nullable=False),
        sa.Column("author_name", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("upvotes", sa.Integer(), nullable=False),
        sa.Column("hidden", sa.Boolean(), nullable=False),
        sa.Column("hidden_by", sa.String(length=128), nullable=True),
        sa.ForeignKeyConstraint(["post_id"], ["forum_post.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["parent_id"], ["forum_comment.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_forum_comment_post_parent",
        "forum_comment",
        ["post_id", "parent_id"],
    )

    op.create_table(
        "forum_post_vote",
        sa.Column("post_id", sa.Integer(), nullable=False),
        sa.Column("voter_id", sa.String(length=128), nullable=False),
        sa.ForeignKeyConstraint(["post_id"], ["forum_post.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("post_id", "voter_id"),
    )
    op.create_index("ix_forum_post_vote_post_id", "forum_post_vote", ["post_id"])

    op.create_table(
        "forum_comment_vote",
        sa.Column("comment_id", sa.Integer(), nullable=False),
        sa.Column("voter_id", sa.String(length=128), nullable=False),
        sa.ForeignKeyConstraint(["comment_id"], ["forum_comment.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("comment_id", "voter_id"),
    )
    op.create_index(
        "ix_forum_comment_vote_comment_id",
        "forum_comment_vote",
        ["comment_id"],
    )


def downgrade() -> None:
    """Drop the forum tables."""
    op.drop_index("ix_forum_comment_vote_comment_id", table_name="forum_comment_vote")
    op.drop_table("forum_comment_vote")
    op.drop_index("ix_forum_post_vote_post_id", table_name="forum_post_vote")
    op.drop_table("forum_post_vote")
    op.drop_index("ix_forum_comment_post_parent", table_name="forum_comment")
    op.drop_table("forum_comment")
    op.drop_index("ix_forum_post_class_id", table_name="forum_post")
    op.drop_index("ix_forum_post_author_id", table_name="forum_post")
    op.drop_table("forum_post")
