"""Comment threads: tree construction, traversal, descendants and visibility.

Comments are stored flat with a `parent_id` back-reference. A thread is
rebuilt on every read by grouping comments on their parent, which keeps the
stored data free of ownership cycles.
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, Protocol, TypeVar

from sqlalchemy.orm import Session

from school_forum.core.errors import NotFoundError
from school_forum.core.permissions import is_moderator
from school_forum.core.settings import settings
from school_forum.db.time import as_utc
from school_forum.models import Comment
from school_forum.repositories.forum_repo import ForumRepository
from school_forum.schemas.principal import Principal

logger = logging.getLogger(__name__)

HIDDEN_AUTHOR_NAME = "hidden"


class Threadable(Protocol):
    """Fields needed to place a comment in a tree."""

    id: int
    parent_id: int | None
    created_at: datetime


T = TypeVar("T")
C = TypeVar("C", bound=Threadable)


@dataclass
class ThreadNode(Generic[T]):
    """One comment in a thread with its direct replies in display order."""

    comment: T
    depth: int = 0
    children: list[ThreadNode[T]] = field(default_factory=list)


@dataclass
class ThreadTree(Generic[T]):
    """Forest of comments rooted at a post."""

    post_id: int
    roots: list[ThreadNode[T]] = field(default_factory=list)

    def walk(self) -> Iterator[ThreadNode[T]]:
        """Yield nodes depth-first, each parent before its children.

        Every call returns a fresh generator, so a tree can be walked any
        number of times.
        """
        stack = list(reversed(self.roots))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def __iter__(self) -> Iterator[ThreadNode[T]]:
        return self.walk()

    def __len__(self) -> int:
        return sum(1 for _ in self.walk())


@dataclass(frozen=True)
class CommentView:
    """A comment as a particular viewer is allowed to see it."""

    id: int
    post_id: int
    parent_id: int | None
    body: str | None
    author_id: str | None
    author_role: str | None
    author_name: str
    created_at: datetime
    updated_at: datetime | None
    upvotes: int
    has_upvoted: bool
    hidden: bool
    placeholder: bool


def _display_order(comment: Threadable) -> tuple[datetime, int]:
    return (as_utc(comment.created_at), comment.id)


def build_tree(post_id: int, comments: Iterable[C]) -> ThreadTree[C]:
    """Group comments by parent and return the thread forest.

    Comments whose parent is missing from `comments` (left behind by an
    interrupted delete) are not attached anywhere. Each comment appears at
    most once even if the stored parent links were corrupted into a cycle.
    """
    by_parent: dict[int | None, list[C]] = defaultdict(list)
    known_ids: set[int] = set()
    for comment in comments:
        by_parent[comment.parent_id].append(comment)
        known_ids.add(comment.id)

    for siblings in by_parent.values():
        siblings.sort(key=_display_order)

    orphaned = [pid for pid in by_parent if pid is not None and pid not in known_ids]
    if orphaned:
        logger.warning("Post %s has comments under missing parents %s", post_id, orphaned)

    tree: ThreadTree[C] = ThreadTree(post_id=post_id)
    seen: set[int] = set()
    pending: list[tuple[ThreadNode[C], list[ThreadNode[C]]]] = []
    for root in by_parent.get(None, []):
        node = ThreadNode(root, depth=0)
        tree.roots.append(node)
        seen.add(root.id)
        pending.append((node, node.children))

    while pending:
        parent, children = pending.pop()
        for child in by_parent.get(parent.comment.id, []):
            if child.id in seen:
                continue
            seen.add(child.id)
            node = ThreadNode(child, depth=parent.depth + 1)
            children.append(node)
            pending.append((node, node.children))
    return tree


def descendants_of(comment_id: int, all_comments: Iterable[Threadable]) -> set[int]:
    """Return ids of every comment transitively below `comment_id`.

    Repeatedly scans the comments, adding any whose parent is already known,
    until a full pass adds nothing. The start id is not part of the result.
    Quadratic in the number of comments, which is fine for a single post.
    """
    comments = list(all_comments)
    frontier = {comment_id}
    found: set[int] = set()
    changed = True
    while changed:
        changed = False
        for comment in comments:
            if comment.id in found or comment.id == comment_id:
                continue
            if comment.parent_id in frontier:
                found.add(comment.id)
                frontier.add(comment.id)
                changed = True
    return found


def project_comment(comment: Comment, viewer: Principal | None) -> CommentView:
    """Return the view of `comment` appropriate for `viewer`.

    Moderators always see the real content; everyone else sees a placeholder
    in place of a hidden comment.
    """
    voted = viewer is not None and viewer.id in comment.upvoted_by
    if comment.hidden and not is_moderator(viewer):
        return CommentView(
            id=comment.id,
            post_id=comment.post_id,
            parent_id=comment.parent_id,
            body=None,
            author_id=None,
            author_role=None,
            author_name=HIDDEN_AUTHOR_NAME,
            created_at=comment.created_at,
            updated_at=None,
            upvotes=0,
            has_upvoted=False,
            hidden=True,
            placeholder=True,
        )
    return CommentView(
        id=comment.id,
        post_id=comment.post_id,
        parent_id=comment.parent_id,
        body=comment.body,
        author_id=comment.author_id,
        author_role=comment.author_role,
        author_name=comment.author_name,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        upvotes=comment.upvotes,
        has_upvoted=voted,
        hidden=comment.hidden,
        placeholder=False,
    )


def project_tree(
    tree: ThreadTree[Comment],
    viewer: Principal | None,
    *,
    hide_replies_under_hidden: bool | None = None,
) -> ThreadTree[CommentView]:
    """Apply the viewer's visibility rules to every node of a thread.

    By default replies below a hidden comment stay visible to everyone, since
    hiding only suppresses the hidden comment's own content. With
    `hide_replies_under_hidden` a non-moderator stops at the hidden node.
    """
    if hide_replies_under_hidden is None:
        hide_replies_under_hidden = settings.hide_replies_under_hidden
    prune = hide_replies_under_hidden and not is_moderator(viewer)

    projected: ThreadTree[CommentView] = ThreadTree(post_id=tree.post_id)
    pending: deque[tuple[ThreadNode[Comment], list[ThreadNode[CommentView]]]] = deque(
        (root, projected.roots) for root in tree.roots
    )
    # FIFO keeps siblings in display order.
    while pending:
        source, target = pending.popleft()
        view = project_comment(source.comment, viewer)
        node = ThreadNode(view, depth=source.depth)
        target.append(node)
        if prune and view.placeholder:
            continue
        pending.extend((child, node.children) for child in source.children)
    return projected


def get_thread(
    db: Session,
    post_id: int,
    viewer: Principal | None = None,
) -> ThreadTree[CommentView]:
    """Load a post's comments and return the thread as `viewer` sees it.

    Raises:
        NotFoundError: If the post does not exist.
    """
    repo = ForumRepository(db)
    if repo.get_post(post_id) is None:
        raise NotFoundError("Post not found")
    tree = build_tree(post_id, repo.list_comments(post_id))
    return project_tree(tree, viewer)
