"""Ranking and filtering of forum posts.

Everything here except `list_posts` is a pure function over post-like
objects, so the ordering rules can be exercised without a database.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from enum import StrEnum
from typing import Protocol

from sqlalchemy.orm import Session

from school_forum.core.errors import ValidationError
from school_forum.core.settings import settings
from school_forum.db.time import as_utc, utcnow
from school_forum.models import FORUM_TAGS, Post
from school_forum.repositories.forum_repo import ForumRepository

ALL_TAGS = "all"
SECONDS_PER_HOUR = 3600.0


class SortKey(StrEnum):
    """Secondary orderings offered by the forum list."""

    HOT = "hot"
    NEW = "new"
    TOP = "top"


class Rankable(Protocol):
    """Fields the ranking functions read from a post."""

    id: int
    title: str
    body: str
    tag: str
    is_pinned: bool
    upvotes: int
    created_at: datetime


def age_hours(post: Rankable, now: datetime) -> float:
    """Hours elapsed since the post was created, clamped at zero."""
    delta = as_utc(now) - as_utc(post.created_at)
    return max(0.0, delta.total_seconds() / SECONDS_PER_HOUR)


def hotness(post: Rankable, now: datetime) -> float:
    """Decayed-by-age popularity score: upvotes / (age_hours + 2) ** 1.5."""
    base = age_hours(post, now) + settings.hot_age_offset_hours
    return (post.upvotes or 0) / base ** settings.hot_gravity


def parse_sort_key(value: str | SortKey) -> SortKey:
    """Validate a caller-supplied sort key."""
    try:
        return SortKey(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown sort key: {value!r}") from exc


def _secondary(post: Rankable, sort: SortKey, now: datetime) -> tuple[float, ...]:
    created = as_utc(post.created_at).timestamp()
    if sort is SortKey.NEW:
        return (-created,)
    if sort is SortKey.TOP:
        return (-float(post.upvotes or 0), -created)
    return (-hotness(post, now),)


def sort_key(post: Rankable, sort: SortKey, now: datetime) -> tuple[object, ...]:
    """Return an ascending sort key: pinned first, then `sort`, then id."""
    return (not post.is_pinned, *_secondary(post, sort, now), post.id)


def compare(a: Rankable, b: Rankable, sort: SortKey, now: datetime) -> int:
    """Three-way comparison consistent with `sort_key`."""
    key_a, key_b = sort_key(a, sort, now), sort_key(b, sort, now)
    return (key_a > key_b) - (key_a < key_b)


def rank(posts: Iterable[Rankable], sort: SortKey, now: datetime) -> list[Rankable]:
    """Order posts deterministically for the given sort key."""
    return sorted(posts, key=lambda post: sort_key(post, sort, now))


def validate_tag_filter(tag_filter: str) -> str:
    """Accept "all" or one of the forum tags."""
    if tag_filter != ALL_TAGS and tag_filter not in FORUM_TAGS:
        raise ValidationError(f"Unknown tag filter: {tag_filter!r}")
    return tag_filter


def matches(post: Rankable, tag_filter: str, text_query: str) -> bool:
    """Return True if the post passes both the tag and text filters."""
    if tag_filter != ALL_TAGS and post.tag != tag_filter:
        return False
    needle = text_query.strip().lower()
    if not needle:
        return True
    return needle in post.title.lower() or needle in post.body.lower()


def filter_posts(
    posts: Iterable[Rankable],
    tag_filter: str = ALL_TAGS,
    text_query: str = "",
) -> list[Rankable]:
    """Keep posts matching the tag filter and case-insensitive text query."""
    return [post for post in posts if matches(post, tag_filter, text_query)]


def list_posts(
    db: Session,
    *,
    tag_filter: str = ALL_TAGS,
    sort: str | SortKey = SortKey.HOT,
    text_query: str = "",
    class_id: str | None = None,
    now: datetime | None = None,
) -> Sequence[Post]:
    """Return filtered posts in ranked order.

    Args:
        db: Database session.
        tag_filter: "all" or a forum tag.
        sort: One of "hot", "new" or "top".
        text_query: Substring matched against title and body, case-insensitively.
        class_id: Also include posts scoped to this class; community-wide
            posts are always included.
        now: Reference time for hotness; defaults to the current time.

    Raises:
        ValidationError: If the sort key or tag filter is unknown.
    """
    sort_key_value = parse_sort_key(sort)
    validate_tag_filter(tag_filter)
    posts = ForumRepository(db).list_posts(class_id)
    visible = filter_posts(posts, tag_filter, text_query)
    return rank(visible, sort_key_value, now or utcnow())
