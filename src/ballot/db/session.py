"""Declarative base for the ledger and the session used by the HTTP adapter.

Host applications mix the capability mixins into their own models on this
``Base`` and usually hand their own sessions to ``BallotService``; the engine
below only backs ``get_db`` for ``ballot.main``.
"""

from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from ballot.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by the ledger and by host models."""


# Register the ledger table on Base.metadata for Alembic and create_all.
import ballot.models  # noqa: E402,F401

engine = create_engine(
    settings.effective_database_url,
    pool_pre_ping=True,
    echo=settings.sql_debug,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a request-scoped session for the ballot endpoints."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
