# tests/test_ranking.py
"""Tests for hotness, filtering and ordering of posts."""

import random
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import pytest

from school_forum.core.errors import ValidationError
from school_forum.services import ranking
from school_forum.services.ranking import SortKey

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@dataclass
class FakePost:
    id: int
    title: str = "Title"
    body: str = "Body"
    tag: str = "general"
    is_pinned: bool = False
    upvotes: int = 0
    created_at: datetime = NOW


def _aged(post_id: int, hours: float, **kwargs) -> FakePost:
    return FakePost(id=post_id, created_at=NOW - timedelta(hours=hours), **kwargs)


def test_hotness_formula() -> None:
    """Score is upvotes / (age_hours + 2) ** 1.5."""
    post = _aged(1, 7, upvotes=27)
    assert ranking.hotness(post, NOW) == pytest.approx(27 / 9 ** 1.5)


def test_hotness_zero_age_and_future_posts_do_not_divide_by_zero() -> None:
    fresh = _aged(1, 0, upvotes=4)
    future = FakePost(id=2, upvotes=4, created_at=NOW + timedelta(hours=5))
    assert ranking.hotness(fresh, NOW) == pytest.approx(4 / 2 ** 1.5)
    assert ranking.hotness(future, NOW) == ranking.hotness(fresh, NOW)


def test_hotness_accepts_naive_timestamps() -> None:
    """Rows read back from SQLite carry no tzinfo."""
    post = FakePost(id=1, upvotes=3, created_at=(NOW - timedelta(hours=1)).replace(tzinfo=None))
    assert ranking.hotness(post, NOW) == pytest.approx(3 / 3 ** 1.5)


def test_hotness_monotonic_in_age_and_votes() -> None:
    """Younger never scores lower; more votes never score lower."""
    for hours in range(0, 48):
        younger = _aged(1, hours, upvotes=5)
        older = _aged(2, hours + 0.5, upvotes=5)
        assert ranking.hotness(younger, NOW) >= ranking.hotness(older, NOW)
    for votes in range(0, 20):
        fewer = _aged(1, 3, upvotes=votes)
        more = _aged(2, 3, upvotes=votes + 1)
        assert ranking.hotness(more, NOW) > ranking.hotness(fewer, NOW)


def test_hot_sort_prefers_recent_post_with_same_votes() -> None:
    x = _aged(1, 1, upvotes=4)
    y = _aged(2, 10, upvotes=4)
    assert ranking.hotness(x, NOW) > ranking.hotness(y, NOW)
    assert ranking.rank([y, x], SortKey.HOT, NOW) == [x, y]


def test_new_sort_orders_by_creation_descending() -> None:
    posts = [_aged(1, 5), _aged(2, 1), _aged(3, 3)]
    assert [p.id for p in ranking.rank(posts, SortKey.NEW, NOW)] == [2, 3, 1]


def test_top_sort_breaks_ties_by_recency() -> None:
    posts = [_aged(1, 1, upvotes=2), _aged(2, 4, upvotes=9), _aged(3, 2, upvotes=9)]
    assert [p.id for p in ranking.rank(posts, SortKey.TOP, NOW)] == [3, 2, 1]


@pytest.mark.parametrize("sort", list(SortKey))
def test_pinned_posts_always_come_first(sort: SortKey) -> None:
    """No unpinned post is ever ranked above a pinned one."""
    rng = random.Random(1234)
    for _ in range(25):
        posts = [
            _aged(
                i,
                rng.uniform(0, 200),
                upvotes=rng.randint(0, 50),
                is_pinned=rng.random() < 0.3,
            )
            for i in range(rng.randint(1, 15))
        ]
        ranked = ranking.rank(posts, sort, NOW)
        flags = [p.is_pinned for p in ranked]
        assert flags == sorted(flags, reverse=True)


def test_equal_keys_fall_back_to_id() -> None:
    posts = [_aged(3, 2), _aged(1, 2), _aged(2, 2)]
    for sort in SortKey:
        assert [p.id for p in ranking.rank(posts, sort, NOW)] == [1, 2, 3]


def test_compare_agrees_with_rank() -> None:
    pinned = _aged(1, 50, is_pinned=True)
    popular = _aged(2, 1, upvotes=10)
    assert ranking.compare(pinned, popular, SortKey.TOP, NOW) < 0
    assert ranking.compare(popular, pinned, SortKey.TOP, NOW) > 0
    assert ranking.compare(popular, popular, SortKey.HOT, NOW) == 0


def test_filter_by_tag_and_text() -> None:
    posts = [
        FakePost(id=1, title="Field trip?", body="When is it", tag="question"),
        FakePost(id=2, title="Bake sale", body="Bring a FIELD guide", tag="event"),
        FakePost(id=3, title="Homework policy", body="Late work", tag="policy"),
    ]
    assert [p.id for p in ranking.filter_posts(posts, "all", "")] == [1, 2, 3]
    assert [p.id for p in ranking.filter_posts(posts, "question", "")] == [1]
    assert [p.id for p in ranking.filter_posts(posts, "all", "  field ")] == [1, 2]
    assert [p.id for p in ranking.filter_posts(posts, "event", "field")] == [2]
    assert ranking.filter_posts(posts, "advice", "") == []


def test_unknown_sort_and_tag_are_rejected(db_session) -> None:
    with pytest.raises(ValidationError):
        ranking.list_posts(db_session, sort="random")
    with pytest.raises(ValidationError):
        ranking.list_posts(db_session, tag_filter="gossip")


def test_list_posts_from_database(make_post, db_session) -> None:
    """A single new post is returned by the "new" listing."""
    post = make_post(title="Field trip?", tag="general")
    result = ranking.list_posts(db_session, sort="new")
    assert [p.id for p in result] == [post.id]


def test_list_posts_scopes_by_class(make_post, db_session) -> None:
    community = make_post(title="Everyone")
    mine = make_post(title="Class 3B", class_id="3B")
    make_post(title="Class 4A", class_id="4A")

    scoped = ranking.list_posts(db_session, sort="new", class_id="3B")
    assert {p.id for p in scoped} == {community.id, mine.id}
    unscoped = ranking.list_posts(db_session, sort="new")
    assert [p.id for p in unscoped] == [community.id]
