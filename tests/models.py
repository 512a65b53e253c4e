# tests/models.py
"""Host models used by the test-suite to exercise the balloting mixins."""

from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, LargeBinary, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ballot.db.session import Base
from ballot.models import CachedVotableMixin, VotableMixin, VoterMixin


class User(VoterMixin, Base):
    """A voter."""

    __tablename__ = "test_user"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    display_name: Mapped[str] = mapped_column(String(64), nullable=False)


class Post(CachedVotableMixin, Base):
    """A votable that caches its ballot summary."""

    __tablename__ = "test_post"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    body_md: Mapped[str] = mapped_column(Text, nullable=False)


class Comment(VotableMixin, VoterMixin, Base):
    """A votable without a summary cache that can also vote."""

    __tablename__ = "test_comment"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(ForeignKey("test_post.id"), nullable=False)
    body_md: Mapped[str] = mapped_column(Text, nullable=False)


class AnonKey(VoterMixin, Base):
    """A voter keyed by raw bytes, stored under a custom ballot type."""

    __tablename__ = "test_anon_key"
    __ballot_type__ = "Anon"

    user_id: Mapped[bytes] = mapped_column(LargeBinary(32), primary_key=True)


class Tag(Base):
    """Neither votable nor voter."""

    __tablename__ = "test_tag"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(32), nullable=False)
