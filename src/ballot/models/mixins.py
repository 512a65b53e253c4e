"""Capability mixins that turn host models into voters and votables.

Mix these into SQLAlchemy declarative classes::

    class Post(CachedVotableMixin, Base):
        __tablename__ = "post"
        id: Mapped[int] = mapped_column(primary_key=True)

    class User(VoterMixin, Base):
        __tablename__ = "user_account"
        id: Mapped[int] = mapped_column(primary_key=True)

Mapped subclasses register themselves with ``default_registry`` so that
``EntityKey``/``GlobalRef`` references can be resolved back to rows.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, inspect
from sqlalchemy.orm import Mapped, mapped_column

from ballot.services.identity import (
    default_registry,
    format_identifier,
)


class BallotEntity:
    """Shared identity behaviour for voters and votables."""

    # Overrides the class name as the stored ballot type.
    __ballot_type__ = None
    __ballot_registry__ = default_registry

    ballot_votable = False
    ballot_voter = False

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "__tablename__" in cls.__dict__ or "__table__" in cls.__dict__:
            cls.__ballot_registry__.register(cls)

    @classmethod
    def ballot_type(cls) -> str:
        """Return the type name stored in the ledger for this class."""
        return cls.__dict__.get("__ballot_type__") or cls.__name__

    @property
    def ballot_id(self) -> str:
        """Return the primary key of this row as an opaque string."""
        state = inspect(self)
        values = state.mapper.primary_key_from_instance(self)
        if len(values) != 1:
            raise TypeError(f"{type(self).__name__} must have a single-column primary key")
        if values[0] is None:
            raise ValueError(f"{type(self).__name__} has no primary key yet; flush it first")
        return format_identifier(values[0])


class VoterMixin(BallotEntity):
    """Marks a model as able to cast votes."""

    ballot_voter = True


class VotableMixin(BallotEntity):
    """Marks a model as able to receive votes."""

    ballot_votable = True
    # Statically declared; set by CachedVotableMixin.
    caches_ballot_summary = False

    _ballot_registered = None

    @property
    def ballot_registered(self) -> bool | None:
        """Whether the last cast or removal on this instance changed the ledger.

        ``None`` until a vote has been registered through this instance.
        """
        return self._ballot_registered

    @ballot_registered.setter
    def ballot_registered(self, value: bool) -> None:
        self._ballot_registered = value


class CachedVotableMixin(VotableMixin):
    """Votable that keeps per-scope ballot summaries in a JSON column."""

    caches_ballot_summary = True

    cached_ballot_summary: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if self.cached_ballot_summary is None:
            self.cached_ballot_summary = {}


def is_votable(entity: Any) -> bool:
    """Return True if ``entity`` is an instance of a votable model."""
    return isinstance(entity, VotableMixin)


def is_voter(entity: Any) -> bool:
    """Return True if ``entity`` is an instance of a voter model."""
    return isinstance(entity, VoterMixin)


__all__ = [
    "BallotEntity",
    "CachedVotableMixin",
    "VotableMixin",
    "VoterMixin",
    "is_votable",
    "is_voter",
]
