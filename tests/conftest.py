# tests/conftest.py
from __future__ import annotations

from collections.abc import Generator, Iterator
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ballot.db.session import Base
from ballot.db.session import get_db as app_get_session
from ballot.main import app as fastapi_app
from ballot.services.ballots import BallotService
from tests.models import AnonKey, Comment, Post, Tag, User

TEST_DB_URL = "sqlite://"

_USER_COUNTER = count(1)


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite does not emit BEGIN itself; take over so SAVEPOINTs behave.
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture()
def ballots(db_session: Session) -> BallotService:
    """Return a balloting service bound to the test session."""
    return BallotService(db_session)


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


def _create_user(db_session: Session) -> User:
    user = User(display_name=f"User {next(_USER_COUNTER)}")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture()
def user(db_session: Session) -> User:
    """Create and return a persisted voter."""
    return _create_user(db_session)


@pytest.fixture()
def other_user(db_session: Session) -> User:
    """Create and return a second persisted voter."""
    return _create_user(db_session)


@pytest.fixture()
def make_user(db_session: Session):
    """Return a factory for additional persisted voters."""
    return lambda: _create_user(db_session)


@pytest.fixture()
def post(db_session: Session) -> Post:
    """Create a votable that caches its ballot summary."""
    post = Post(body_md="Test post content")
    db_session.add(post)
    db_session.commit()
    return post


@pytest.fixture()
def comment(db_session: Session, post: Post) -> Comment:
    """Create a votable without a summary cache."""
    comment = Comment(post_id=post.id, body_md="Test comment")
    db_session.add(comment)
    db_session.commit()
    return comment


@pytest.fixture()
def anon_key(db_session: Session) -> AnonKey:
    """Create a voter keyed by raw bytes."""
    key = AnonKey(user_id=bytes(range(32)))
    db_session.add(key)
    db_session.commit()
    return key


@pytest.fixture()
def tag(db_session: Session) -> Tag:
    """Create a record that is neither votable nor voter."""
    tag = Tag(name="misc")
    db_session.add(tag)
    db_session.commit()
    return tag
