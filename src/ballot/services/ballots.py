"""Per-entity balloting surface consumed by host applications.

``BallotService`` binds the word normaliser, the ledger, the registrar and the
summary calculator to one SQLAlchemy session. Every entity argument may be
the mapped instance itself, an ``EntityKey`` or a ``GlobalRef``; references
are resolved through the registry and checked for the capability the call
needs.

    ballots = BallotService(session)
    ballots.up_ballot_by(post, user, weight=4)
    ballots.ballot_by(post, EntityKey("User", "2"), vote="no", scope="quality")
    ballots.ballot_score(post)
    session.commit()
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from ballot.errors import NotVotable, NotVoter, UnresolvableReference
from ballot.models.mixins import VotableMixin, VoterMixin, is_votable, is_voter
from ballot.models.vote import BallotVote
from ballot.repositories.ledger import BallotKey, BallotLedger, ScopeArg
from ballot.schemas.summary import BallotSummary
from ballot.services.identity import BallotRegistry, EntityKey, EntityRef, default_registry
from ballot.services.registration import VoteRegistrar
from ballot.services.summary import SummaryCalculator
from ballot.services.words import truthy

__all__ = ["BallotService"]


def _direction(vote: Any) -> bool | None:
    return None if vote is None else truthy(vote)


class BallotService:
    """Cast, remove and query ballots for votables and voters."""

    def __init__(self, session: Session, registry: BallotRegistry | None = None) -> None:
        self.session = session
        self.registry = registry or default_registry
        self.ledger = BallotLedger(session)
        self.calculator = SummaryCalculator(self.ledger)
        self.registrar = VoteRegistrar(self.ledger, self.calculator)

    # ------------------------------------------------------------------
    # Reference resolution
    # ------------------------------------------------------------------

    def resolve_votable(self, ref: EntityRef, *, persist: bool = False) -> VotableMixin:
        """Resolve ``ref`` and ensure it can receive votes.

        An unsaved instance is added to the session and flushed when
        ``persist`` is set, and rejected otherwise.

        Raises:
            UnresolvableReference: If ``ref`` does not resolve to a saved row.
            NotVotable: If the resolved entity is not votable.
        """
        entity = self.registry.resolve(self.session, ref)
        if not is_votable(entity):
            raise NotVotable(entity)
        self._ensure_identity(entity, persist)
        return entity

    def resolve_voter(self, ref: EntityRef, *, persist: bool = False) -> VoterMixin:
        """Resolve ``ref`` and ensure it can cast votes.

        Unsaved instances are handled as in ``resolve_votable``.

        Raises:
            UnresolvableReference: If ``ref`` does not resolve to a saved row.
            NotVoter: If the resolved entity is not a voter.
        """
        entity = self.registry.resolve(self.session, ref)
        if not is_voter(entity):
            raise NotVoter(entity)
        self._ensure_identity(entity, persist)
        return entity

    def _ensure_identity(self, entity: Any, persist: bool) -> None:
        # Only writes may save a new row; reads never touch the session.
        state = inspect(entity)
        if state.key is not None:
            return
        if not persist:
            raise UnresolvableReference(
                "Entity has not been saved", {"type": type(entity).__name__}
            )
        if state.transient:
            self.session.add(entity)
        self.session.flush()

    def _voter_key(self, ref: EntityRef, *, persist: bool = False) -> EntityKey:
        return EntityKey.of(self.resolve_voter(ref, persist=persist))

    def _votable_key(self, ref: EntityRef) -> EntityKey:
        return EntityKey.of(self.resolve_votable(ref))

    # ------------------------------------------------------------------
    # Recording votes (votable side)
    # ------------------------------------------------------------------

    def ballot_by(
        self,
        votable: EntityRef,
        voter: EntityRef,
        *,
        scope: str | None = None,
        vote: Any = True,
        weight: int | None = None,
        duplicate: bool = False,
    ) -> bool:
        """Record a vote on ``votable`` by ``voter``; return whether it registered.

        ``vote`` is parsed through ``truthy`` and ``weight`` defaults to the
        configured default weight. With ``duplicate`` a new row is always
        inserted.
        """
        target = self.resolve_votable(votable, persist=True)
        return self.registrar.cast(
            self._voter_key(voter, persist=True),
            target,
            scope=scope,
            vote=vote,
            weight=weight,
            duplicate=duplicate,
        )

    def up_ballot_by(self, votable: EntityRef, voter: EntityRef, **kwargs: Any) -> bool:
        """Record a positive vote; any ``vote`` keyword is ignored."""
        kwargs["vote"] = True
        return self.ballot_by(votable, voter, **kwargs)

    def down_ballot_by(self, votable: EntityRef, voter: EntityRef, **kwargs: Any) -> bool:
        """Record a negative vote; any ``vote`` keyword is ignored."""
        kwargs["vote"] = False
        return self.ballot_by(votable, voter, **kwargs)

    def remove_ballot_by(
        self,
        votable: EntityRef,
        voter: EntityRef,
        *,
        scope: str | None = None,
    ) -> bool:
        """Remove every vote ``voter`` holds on ``votable`` in ``scope``.

        Returns whether anything was deleted.
        """
        target = self.resolve_votable(votable, persist=True)
        return self.registrar.remove(self._voter_key(voter, persist=True), target, scope=scope)

    # ------------------------------------------------------------------
    # Recording votes (voter side)
    # ------------------------------------------------------------------

    def ballot_for(self, voter: EntityRef, votable: EntityRef, **kwargs: Any) -> bool:
        """Record a vote by ``voter`` on ``votable``. See ``ballot_by``."""
        return self.ballot_by(votable, voter, **kwargs)

    def up_ballot_for(self, voter: EntityRef, votable: EntityRef, **kwargs: Any) -> bool:
        """Record a positive vote by ``voter`` on ``votable``."""
        return self.up_ballot_by(votable, voter, **kwargs)

    def down_ballot_for(self, voter: EntityRef, votable: EntityRef, **kwargs: Any) -> bool:
        """Record a negative vote by ``voter`` on ``votable``."""
        return self.down_ballot_by(votable, voter, **kwargs)

    def remove_ballot_for(self, voter: EntityRef, votable: EntityRef, **kwargs: Any) -> bool:
        """Remove ``voter``'s vote on ``votable``."""
        return self.remove_ballot_by(votable, voter, **kwargs)

    # ------------------------------------------------------------------
    # Finding votes
    # ------------------------------------------------------------------

    def ballots_for(
        self,
        votable: EntityRef,
        *,
        vote: Any = None,
        scope: ScopeArg = None,
    ) -> list[BallotVote]:
        """Return the votes cast on ``votable``.

        Only the given scope is searched (the default scope when omitted);
        pass ``ALL_SCOPES`` to search every scope.
        """
        return self.ledger.for_votable(self._votable_key(votable), scope=scope, vote=_direction(vote))

    def up_ballots_for(self, votable: EntityRef, *, scope: ScopeArg = None) -> list[BallotVote]:
        """Return the positive votes cast on ``votable``."""
        return self.ballots_for(votable, vote=True, scope=scope)

    def down_ballots_for(self, votable: EntityRef, *, scope: ScopeArg = None) -> list[BallotVote]:
        """Return the negative votes cast on ``votable``."""
        return self.ballots_for(votable, vote=False, scope=scope)

    def ballots_by_class(
        self,
        votable: EntityRef,
        model_class: type,
        *,
        vote: Any = None,
        scope: ScopeArg = None,
    ) -> list[BallotVote]:
        """Return votes on ``votable`` cast by voters of ``model_class``."""
        return self.ledger.for_votable(
            self._votable_key(votable),
            scope=scope,
            vote=_direction(vote),
            voter_type=model_class.ballot_type(),
        )

    def up_ballots_by_class(self, votable: EntityRef, model_class: type, **kwargs: Any) -> list[BallotVote]:
        """Return positive votes on ``votable`` cast by voters of ``model_class``."""
        kwargs["vote"] = True
        return self.ballots_by_class(votable, model_class, **kwargs)

    def down_ballots_by_class(self, votable: EntityRef, model_class: type, **kwargs: Any) -> list[BallotVote]:
        """Return negative votes on ``votable`` cast by voters of ``model_class``."""
        kwargs["vote"] = False
        return self.ballots_by_class(votable, model_class, **kwargs)

    def ballot_voters(
        self,
        votable: EntityRef,
        *,
        vote: Any = None,
        scope: ScopeArg = None,
    ) -> list[Any]:
        """Return the distinct voters that voted on ``votable``.

        Voters are loaded with one query per voter class and returned in the
        order of their first vote.
        """
        ballots = self.ballots_for(votable, vote=vote, scope=scope)
        return self._load_distinct(
            [EntityKey(type=ballot.voter_type, id=ballot.voter_id) for ballot in ballots]
        )

    def up_ballot_voters(self, votable: EntityRef, *, scope: ScopeArg = None) -> list[Any]:
        """Return the voters that voted positively on ``votable``."""
        return self.ballot_voters(votable, vote=True, scope=scope)

    def down_ballot_voters(self, votable: EntityRef, *, scope: ScopeArg = None) -> list[Any]:
        """Return the voters that voted negatively on ``votable``."""
        return self.ballot_voters(votable, vote=False, scope=scope)

    def ballots_by(
        self,
        voter: EntityRef,
        *,
        vote: Any = None,
        scope: ScopeArg = None,
    ) -> list[BallotVote]:
        """Return the votes cast by ``voter``."""
        return self.ledger.for_voter(self._voter_key(voter), scope=scope, vote=_direction(vote))

    def up_ballots_by(self, voter: EntityRef, *, scope: ScopeArg = None) -> list[BallotVote]:
        """Return the positive votes cast by ``voter``."""
        return self.ballots_by(voter, vote=True, scope=scope)

    def down_ballots_by(self, voter: EntityRef, *, scope: ScopeArg = None) -> list[BallotVote]:
        """Return the negative votes cast by ``voter``."""
        return self.ballots_by(voter, vote=False, scope=scope)

    def ballots_for_class(
        self,
        voter: EntityRef,
        model_class: type,
        *,
        vote: Any = None,
        scope: ScopeArg = None,
    ) -> list[BallotVote]:
        """Return votes by ``voter`` on votables of ``model_class``."""
        return self.ledger.for_voter(
            self._voter_key(voter),
            scope=scope,
            vote=_direction(vote),
            votable_type=model_class.ballot_type(),
        )

    def up_ballots_for_class(self, voter: EntityRef, model_class: type, **kwargs: Any) -> list[BallotVote]:
        """Return positive votes by ``voter`` on votables of ``model_class``."""
        kwargs["vote"] = True
        return self.ballots_for_class(voter, model_class, **kwargs)

    def down_ballots_for_class(self, voter: EntityRef, model_class: type, **kwargs: Any) -> list[BallotVote]:
        """Return negative votes by ``voter`` on votables of ``model_class``."""
        kwargs["vote"] = False
        return self.ballots_for_class(voter, model_class, **kwargs)

    def ballot_votables(
        self,
        voter: EntityRef,
        *,
        vote: Any = None,
        scope: ScopeArg = None,
    ) -> list[Any]:
        """Return the distinct votables ``voter`` voted on."""
        ballots = self.ballots_by(voter, vote=vote, scope=scope)
        return self._load_distinct(
            [EntityKey(type=ballot.votable_type, id=ballot.votable_id) for ballot in ballots]
        )

    def _load_distinct(self, keys: list[EntityKey]) -> list[Any]:
        ordered = list(dict.fromkeys(keys))
        loaded = self.registry.load_many(self.session, ordered)
        return [loaded[key] for key in ordered if key in loaded]

    # ------------------------------------------------------------------
    # Voter inquiries
    # ------------------------------------------------------------------

    def has_ballot_by(
        self,
        votable: EntityRef,
        voter: EntityRef,
        *,
        scope: str | None = None,
        vote: Any = None,
    ) -> bool:
        """Return True if ``voter`` has voted on ``votable`` in ``scope``.

        With ``vote`` given, only votes in that direction count.
        """
        key = BallotKey(
            voter=self._voter_key(voter),
            votable=self._votable_key(votable),
            scope=scope,
        )
        return self.ledger.exists(key, vote=_direction(vote))

    def has_up_ballot_by(self, votable: EntityRef, voter: EntityRef, *, scope: str | None = None) -> bool:
        """Return True if ``voter`` has voted positively on ``votable``."""
        return self.has_ballot_by(votable, voter, scope=scope, vote=True)

    def has_down_ballot_by(self, votable: EntityRef, voter: EntityRef, *, scope: str | None = None) -> bool:
        """Return True if ``voter`` has voted negatively on ``votable``."""
        return self.has_ballot_by(votable, voter, scope=scope, vote=False)

    def has_ballot_for(self, voter: EntityRef, votable: EntityRef, **kwargs: Any) -> bool:
        """Return True if ``voter`` has voted on ``votable``."""
        return self.has_ballot_by(votable, voter, **kwargs)

    def has_up_ballot_for(self, voter: EntityRef, votable: EntityRef, **kwargs: Any) -> bool:
        """Return True if ``voter`` has voted positively on ``votable``."""
        return self.has_up_ballot_by(votable, voter, **kwargs)

    def has_down_ballot_for(self, voter: EntityRef, votable: EntityRef, **kwargs: Any) -> bool:
        """Return True if ``voter`` has voted negatively on ``votable``."""
        return self.has_down_ballot_by(votable, voter, **kwargs)

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    def ballot_summary(
        self,
        votable: EntityRef,
        scope: str | None = None,
        *,
        skip_cache: bool = False,
    ) -> BallotSummary:
        """Return every summary statistic for ``votable`` in ``scope``.

        Served from the votable's cache when it has one, unless ``skip_cache``.
        """
        return self.calculator.get(self.resolve_votable(votable), scope, skip_cache=skip_cache)

    def total_ballots(self, votable: EntityRef, scope: str | None = None, *, skip_cache: bool = False) -> int:
        """Number of ballots cast on ``votable`` in ``scope``."""
        return self.ballot_summary(votable, scope, skip_cache=skip_cache).total

    def total_up_ballots(self, votable: EntityRef, scope: str | None = None, *, skip_cache: bool = False) -> int:
        """Number of positive ballots cast on ``votable`` in ``scope``."""
        return self.ballot_summary(votable, scope, skip_cache=skip_cache).up

    def total_down_ballots(self, votable: EntityRef, scope: str | None = None, *, skip_cache: bool = False) -> int:
        """Number of negative ballots cast on ``votable`` in ``scope``."""
        return self.ballot_summary(votable, scope, skip_cache=skip_cache).down

    def ballot_score(self, votable: EntityRef, scope: str | None = None, *, skip_cache: bool = False) -> int:
        """Positive ballots less negative ballots."""
        return self.ballot_summary(votable, scope, skip_cache=skip_cache).score

    def weighted_ballot_total(self, votable: EntityRef, scope: str | None = None, *, skip_cache: bool = False) -> int:
        """Sum of all ballot weights."""
        return self.ballot_summary(votable, scope, skip_cache=skip_cache).weighted_total

    def weighted_ballot_score(self, votable: EntityRef, scope: str | None = None, *, skip_cache: bool = False) -> int:
        """Sum of positive ballot weights less sum of negative ballot weights."""
        return self.ballot_summary(votable, scope, skip_cache=skip_cache).weighted_score

    def weighted_ballot_average(
        self,
        votable: EntityRef,
        scope: str | None = None,
        *,
        skip_cache: bool = False,
    ) -> float:
        """Weighted score over the number of ballots in ``scope``; 0.0 when there are none."""
        return self.ballot_summary(votable, scope, skip_cache=skip_cache).weighted_average

    def refresh_ballot_summary(self, votable: EntityRef, scope: str | None = None) -> BallotSummary:
        """Rebuild the cached summary of one scope from the ledger."""
        return self.registrar.refresh(self.resolve_votable(votable), scope=scope)
