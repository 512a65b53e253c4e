"""Data access helpers for the ballot ledger."""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy import and_, func, inspect, select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.sql.elements import ColumnElement

from ballot.core.settings import settings
from ballot.errors import VoteNotFound
from ballot.models.vote import BallotVote
from ballot.services.identity import ALL_SCOPES, EntityKey, ScopeFilter, normalize_scope

__all__ = ["BallotKey", "BallotLedger", "LedgerAggregate"]

ScopeArg = str | None | ScopeFilter


@dataclass(frozen=True)
class BallotKey:
    """Identity of a vote: who voted, on what, in which scope."""

    voter: EntityKey
    votable: EntityKey
    scope: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "scope", normalize_scope(self.scope))


@dataclass(frozen=True)
class LedgerAggregate:
    """Row count and weight sum over a slice of the ledger."""

    count: int = 0
    weight_sum: int = 0


def _scope_clause(scope: ScopeArg) -> ColumnElement[bool] | None:
    if scope is ALL_SCOPES:
        return None
    scope = normalize_scope(scope)
    if scope is None:
        return BallotVote.scope.is_(None)
    return BallotVote.scope == scope


def _key_clause(key: BallotKey) -> ColumnElement[bool]:
    return and_(
        BallotVote.voter_type == key.voter.type,
        BallotVote.voter_id == key.voter.id,
        BallotVote.votable_type == key.votable.type,
        BallotVote.votable_id == key.votable.id,
        _scope_clause(key.scope),
    )


class BallotLedger:
    """Thin wrapper around database access for ballot votes.

    The ledger knows nothing about summary caches; it only stores, finds and
    aggregates vote rows.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the ledger with a SQLAlchemy session."""
        self.session = session

    def find(self, key: BallotKey) -> BallotVote | None:
        """Return the vote stored under ``key``, if any."""
        stmt = select(BallotVote).where(_key_clause(key)).order_by(BallotVote.id).limit(1)
        return self.session.execute(stmt).scalars().first()

    def find_all(self, key: BallotKey) -> list[BallotVote]:
        """Return every vote stored under ``key``, oldest first."""
        stmt = select(BallotVote).where(_key_clause(key)).order_by(BallotVote.id)
        return list(self.session.execute(stmt).scalars())

    def insert(self, key: BallotKey, vote: bool, weight: int) -> BallotVote:
        """Insert a new vote row and return the persisted ORM instance."""
        ballot = BallotVote(
            voter_type=key.voter.type,
            voter_id=key.voter.id,
            votable_type=key.votable.type,
            votable_id=key.votable.id,
            scope=key.scope,
            vote=vote,
            weight=weight,
        )
        self.session.add(ballot)
        self.session.flush()
        return ballot

    def update(self, vote_id: int, vote: bool, weight: int) -> BallotVote:
        """Change the direction and weight of an existing vote in place.

        Raises:
            VoteNotFound: If the row was deleted since it was looked up.
        """
        ballot = self.session.get(BallotVote, vote_id)
        if ballot is None:
            raise VoteNotFound("Ballot vanished before it could be updated", {"id": vote_id})
        ballot.vote = vote
        ballot.weight = weight
        try:
            self.session.flush()
        except StaleDataError as exc:
            raise VoteNotFound(
                "Ballot vanished before it could be updated", {"id": vote_id}
            ) from exc
        return ballot

    def delete(self, key: BallotKey) -> int:
        """Delete every vote stored under ``key``, duplicates included; return rows removed."""
        ballots = self.find_all(key)
        for ballot in ballots:
            self.session.delete(ballot)
        self.session.flush()
        return len(ballots)

    def aggregate(
        self,
        votable: EntityKey,
        scope: str | None,
        vote: bool | None = None,
    ) -> LedgerAggregate:
        """Count and sum weights of votes on ``votable`` in exactly one scope.

        Args:
            votable: Key of the votable.
            scope: Scope to aggregate; ``None`` is the default scope.
            vote: Restrict to one direction; ``None`` aggregates both.
        """
        stmt = select(
            func.count(BallotVote.id),
            func.coalesce(func.sum(BallotVote.weight), 0),
        ).where(
            BallotVote.votable_type == votable.type,
            BallotVote.votable_id == votable.id,
            _scope_clause(scope),
        )
        if vote is not None:
            stmt = stmt.where(BallotVote.vote.is_(vote))
        count, weight_sum = self.session.execute(stmt).one()
        return LedgerAggregate(count=int(count), weight_sum=int(weight_sum))

    def aggregate_by_direction(
        self,
        votable: EntityKey,
        scope: str | None,
    ) -> dict[bool, LedgerAggregate]:
        """Return aggregates for both directions of one scope in a single query."""
        stmt = (
            select(
                BallotVote.vote,
                func.count(BallotVote.id),
                func.coalesce(func.sum(BallotVote.weight), 0),
            )
            .where(
                BallotVote.votable_type == votable.type,
                BallotVote.votable_id == votable.id,
                _scope_clause(scope),
            )
            .group_by(BallotVote.vote)
        )
        aggregates = {True: LedgerAggregate(), False: LedgerAggregate()}
        for vote, count, weight_sum in self.session.execute(stmt):
            aggregates[bool(vote)] = LedgerAggregate(count=int(count), weight_sum=int(weight_sum))
        return aggregates

    def for_votable(
        self,
        votable: EntityKey,
        *,
        scope: ScopeArg = None,
        vote: bool | None = None,
        voter_type: str | None = None,
    ) -> list[BallotVote]:
        """Return votes cast on ``votable``, optionally filtered."""
        stmt = select(BallotVote).where(
            BallotVote.votable_type == votable.type,
            BallotVote.votable_id == votable.id,
        )
        stmt = self._filter(stmt, scope=scope, vote=vote)
        if voter_type is not None:
            stmt = stmt.where(BallotVote.voter_type == voter_type)
        return list(self.session.execute(stmt.order_by(BallotVote.id)).scalars())

    def for_voter(
        self,
        voter: EntityKey,
        *,
        scope: ScopeArg = None,
        vote: bool | None = None,
        votable_type: str | None = None,
    ) -> list[BallotVote]:
        """Return votes cast by ``voter``, optionally filtered."""
        stmt = select(BallotVote).where(
            BallotVote.voter_type == voter.type,
            BallotVote.voter_id == voter.id,
        )
        stmt = self._filter(stmt, scope=scope, vote=vote)
        if votable_type is not None:
            stmt = stmt.where(BallotVote.votable_type == votable_type)
        return list(self.session.execute(stmt.order_by(BallotVote.id)).scalars())

    def exists(self, key: BallotKey, vote: bool | None = None) -> bool:
        """Return True if a vote exists under ``key`` (optionally in one direction)."""
        stmt = select(BallotVote.id).where(_key_clause(key))
        if vote is not None:
            stmt = stmt.where(BallotVote.vote.is_(vote))
        return self.session.execute(stmt.limit(1)).first() is not None

    def lock_votable(self, votable: Any, refresh: Sequence[str] = ()) -> None:
        """Take a row lock on ``votable`` for the rest of the transaction.

        Serialises registrations on the same votable. The attributes named in
        ``refresh`` are reloaded under the lock; other pending changes on the
        instance are flushed first rather than discarded. Skipped for rows that
        are not persisted yet, or when locking is disabled.
        """
        if not settings.lock_votable_rows:
            return
        state = inspect(votable)
        if not state.persistent:
            return
        self.session.flush()
        if refresh:
            self.session.refresh(votable, attribute_names=list(refresh), with_for_update=True)
            return
        mapper = state.mapper
        criteria = [
            column == value
            for column, value in zip(mapper.primary_key, mapper.primary_key_from_instance(votable))
        ]
        self.session.execute(select(*mapper.primary_key).where(*criteria).with_for_update())

    @staticmethod
    def _filter(stmt: Any, *, scope: ScopeArg, vote: bool | None) -> Any:
        clause = _scope_clause(scope)
        if clause is not None:
            stmt = stmt.where(clause)
        if vote is not None:
            stmt = stmt.where(BallotVote.vote.is_(vote))
        return stmt
