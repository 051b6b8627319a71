# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from school_forum.core.settings import settings  # noqa: E402
from school_forum.db.session import Base  # noqa: E402
from school_forum.db.session import get_db as app_get_session  # noqa: E402
from school_forum.db.time import utcnow  # noqa: E402
from school_forum.main import app as fastapi_app  # noqa: E402
from school_forum.models import Comment, Post  # noqa: E402
from school_forum.schemas.principal import Principal, Role  # noqa: E402

TEST_DB_URL = "sqlite://"


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def parent() -> Principal:
    """A parent account."""
    return Principal(id="parent-1", role=Role.PARENT, display_name="Pat Parent")


@pytest.fixture()
def other_parent() -> Principal:
    """A second parent, unrelated to anything `parent` wrote."""
    return Principal(id="parent-2", role=Role.PARENT, display_name="Sam Parent")


@pytest.fixture()
def teacher() -> Principal:
    """A teacher account."""
    return Principal(id="teacher-1", role=Role.TEACHER, display_name="Ms Teacher")


@pytest.fixture()
def admin() -> Principal:
    """An admin account."""
    return Principal(id="admin-1", role=Role.ADMIN, display_name="Admin")


def make_token(principal: Principal, **extra_claims: object) -> str:
    """Mint a bearer token the way the identity provider would."""
    claims = {
        "sub": principal.id,
        "role": principal.role.value,
        "name": principal.display_name,
        "exp": utcnow() + timedelta(minutes=5),
        **extra_claims,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


@pytest.fixture()
def auth_headers() -> Callable[[Principal], dict[str, str]]:
    """Return a helper building Authorization headers for a principal."""

    def _headers(principal: Principal) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(principal)}"}

    return _headers


@pytest.fixture()
def make_post(db_session: Session, parent: Principal) -> Callable[..., Post]:
    """Insert posts directly, with control over age and vote count."""

    def _make_post(
        *,
        title: str = "Field trip?",
        body: str = "Does anyone know when the field trip is?",
        tag: str = "general",
        author: Principal | None = None,
        hours_ago: float = 0.0,
        upvotes: int = 0,
        is_pinned: bool = False,
        class_id: str | None = None,
    ) -> Post:
        author = author or parent
        post = Post(
            title=title,
            body=body,
            tag=tag,
            author_id=author.id,
            author_role=author.role.value,
            author_name=author.display_name,
            created_at=utcnow() - timedelta(hours=hours_ago),
            is_pinned=is_pinned,
            upvotes=upvotes,
            class_id=class_id,
        )
        db_session.add(post)
        db_session.commit()
        db_session.refresh(post)
        return post

    return _make_post


@pytest.fixture()
def test_post(make_post: Callable[..., Post]) -> Post:
    """Create a baseline post for tests."""
    return make_post()


@pytest.fixture()
def make_comment(db_session: Session, parent: Principal) -> Callable[..., Comment]:
    """Insert comments directly under a post or another comment."""

    def _make_comment(
        post: Post,
        parent_comment: Comment | None = None,
        *,
        body: str = "Reply",
        author: Principal | None = None,
        hidden: bool = False,
    ) -> Comment:
        author = author or parent
        comment = Comment(
            post_id=post.id,
            parent_id=parent_comment.id if parent_comment else None,
            body=body,
            author_id=author.id,
            author_role=author.role.value,
            author_name=author.display_name,
            created_at=utcnow(),
            hidden=hidden,
        )
        db_session.add(comment)
        db_session.commit()
        db_session.refresh(comment)
        return comment

    return _make_comment
