# tests/services/test_cascade_foreign_keys.py
"""Cascading delete against a store that enforces comment parent links."""

from collections.abc import Callable, Iterator

import pytest
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from school_forum.core.errors import ConsistencyError
from school_forum.core.settings import settings
from school_forum.db.session import Base, build_engine
from school_forum.db.time import utcnow
from school_forum.models import Comment, Post
from school_forum.repositories.forum_repo import ForumRepository
from school_forum.schemas.principal import Principal
from school_forum.services import comment_service


@pytest.fixture()
def fk_engine(tmp_path) -> Iterator[Engine]:
    engine = build_engine(f"sqlite:///{tmp_path / 'forum.db'}")
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def fk_sessions(fk_engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=fk_engine, autocommit=False, autoflush=False)


def _add_comment(
    session: Session, post_id: int, parent_id: int | None, author: Principal, body: str
) -> int:
    comment = Comment(
        post_id=post_id,
        parent_id=parent_id,
        body=body,
        author_id=author.id,
        author_role=author.role.value,
        author_name=author.display_name,
        created_at=utcnow(),
    )
    session.add(comment)
    session.commit()
    return comment.id


def _seed_thread(session: Session, author: Principal) -> tuple[int, int, int]:
    post = Post(
        title="Field trip?",
        body="When is it?",
        tag="general",
        author_id=author.id,
        author_role=author.role.value,
        author_name=author.display_name,
        created_at=utcnow(),
    )
    session.add(post)
    session.commit()
    c1 = _add_comment(session, post.id, None, author, "c1")
    c2 = _add_comment(session, post.id, c1, author, "c2")
    return post.id, c1, c2


def _reply_during_orphan_check(
    monkeypatch: pytest.MonkeyPatch,
    sessions: sessionmaker[Session],
    parent_id: int,
    author: Principal,
    times: int | None,
) -> list[int]:
    """Have another session reply under `parent_id` while a delete is underway."""
    original: Callable[[ForumRepository, int], list[Comment]] = ForumRepository.list_orphans
    late_ids: list[int] = []

    def list_orphans(self: ForumRepository, post_id: int) -> list[Comment]:
        if times is None or len(late_ids) < times:
            with sessions() as other:
                late_ids.append(_add_comment(other, post_id, parent_id, author, "late reply"))
        return original(self, post_id)

    monkeypatch.setattr(ForumRepository, "list_orphans", list_orphans)
    return late_ids


def test_foreign_keys_are_enforced(fk_sessions) -> None:
    with fk_sessions() as session:
        assert session.execute(text("PRAGMA foreign_keys")).scalar() == 1


def test_delete_retries_after_late_reply(fk_sessions, parent, monkeypatch) -> None:
    """A reply written after the snapshot is picked up by the next pass."""
    with fk_sessions() as session:
        post_id, c1, c2 = _seed_thread(session, parent)
        late_ids = _reply_during_orphan_check(monkeypatch, fk_sessions, c1, parent, times=1)

        removed = comment_service.delete_comment(session, parent, c1)

        assert len(late_ids) == 1
        assert removed == {c1, c2, late_ids[0]}
        assert ForumRepository(session).list_comments(post_id) == []


def test_delete_gives_up_when_replies_keep_arriving(fk_sessions, parent, monkeypatch) -> None:
    with fk_sessions() as session:
        post_id, c1, _ = _seed_thread(session, parent)
        _reply_during_orphan_check(monkeypatch, fk_sessions, c1, parent, times=None)
        monkeypatch.setattr(settings, "cascade_delete_max_passes", 2)

        with pytest.raises(ConsistencyError):
            comment_service.delete_comment(session, parent, c1)

        remaining = {c.id for c in ForumRepository(session).list_comments(post_id)}
        assert c1 in remaining
