"""Vote registration: deciding and applying ledger changes for one slot.

A slot is one (voter, votable, scope) key. It is either absent or holds a
single vote with a direction and a weight. Casting moves the slot to the
requested state with the smallest possible ledger change and reports whether
anything changed ("registered"); an identical repeat is a no-op.
"""

from __future__ import annotations

import logging
from numbers import Number
from typing import Any

from sqlalchemy.orm import Session

from ballot.core.settings import settings
from ballot.errors import InvalidWeight
from ballot.models.mixins import VotableMixin
from ballot.repositories.ledger import BallotKey, BallotLedger
from ballot.schemas.summary import BallotSummary
from ballot.services.identity import EntityKey
from ballot.services.summary import SummaryCalculator, caches_summary
from ballot.services.words import truthy

logger = logging.getLogger(__name__)

_CACHE_ATTRIBUTES = ("cached_ballot_summary",)


def _normalize_weight(weight: Any) -> int:
    if weight is None:
        return settings.default_weight
    if isinstance(weight, bool) or not isinstance(weight, Number):
        raise InvalidWeight(weight)
    try:
        whole = int(weight)
    except (TypeError, ValueError, OverflowError) as exc:
        raise InvalidWeight(weight) from exc
    if whole != weight:
        raise InvalidWeight(weight)
    return whole


class VoteRegistrar:
    """Applies casts and removals to the ledger and keeps summary caches current.

    Each operation runs inside a SAVEPOINT with the votable row locked, so the
    ledger change and the cache rewrite are committed together or not at all.
    Committing the surrounding transaction is left to the caller.
    """

    def __init__(self, ledger: BallotLedger, calculator: SummaryCalculator | None = None) -> None:
        self.ledger = ledger
        self.calculator = calculator or SummaryCalculator(ledger)

    @property
    def session(self) -> Session:
        """Session the ledger writes through."""
        return self.ledger.session

    def cast(
        self,
        voter: EntityKey,
        votable: VotableMixin,
        *,
        scope: str | None = None,
        vote: Any = True,
        weight: int | None = None,
        duplicate: bool = False,
    ) -> bool:
        """Record ``voter``'s vote on ``votable``.

        Args:
            voter: Key of the voter.
            votable: The votable instance (must be persisted or flushable).
            scope: Scope of the vote; ``None`` or ``""`` is the default scope.
            vote: Direction, parsed by ``truthy``.
            weight: Weight of the vote; defaults to ``settings.default_weight``.
            duplicate: Always insert a new row, bypassing the one-vote-per-slot rule.

        Returns:
            True if the ledger changed, False for an identical repeat.

        Raises:
            InvalidVoteWord: If ``vote`` is not a recognised vote.
            InvalidWeight: If ``weight`` is not a whole number.
            VoteNotFound: If the existing vote vanished before it was updated.
        """
        direction = truthy(vote)
        weight = _normalize_weight(weight)
        key = BallotKey(voter=voter, votable=EntityKey.of(votable), scope=scope)

        with self.session.begin_nested():
            self._lock(votable)
            registered = self._apply_cast(key, direction, weight, duplicate)
            if registered:
                self.calculator.recompute(votable, key.scope)

        votable.ballot_registered = registered
        return registered

    def remove(
        self,
        voter: EntityKey,
        votable: VotableMixin,
        *,
        scope: str | None = None,
    ) -> bool:
        """Remove every vote ``voter`` holds on ``votable`` in ``scope``.

        Rows left behind by duplicate-mode casts are removed too.

        Returns:
            True if at least one row was deleted.
        """
        key = BallotKey(voter=voter, votable=EntityKey.of(votable), scope=scope)

        with self.session.begin_nested():
            self._lock(votable)
            removed = self.ledger.delete(key) > 0
            if removed:
                logger.debug("Removed ballot %s on %s scope %r", key.voter, key.votable, key.scope)
                self.calculator.recompute(votable, key.scope)

        votable.ballot_registered = removed
        return removed

    def refresh(self, votable: VotableMixin, *, scope: str | None = None) -> BallotSummary:
        """Rebuild the cached summary of one scope from the ledger under the votable lock."""
        with self.session.begin_nested():
            self._lock(votable)
            return self.calculator.recompute(votable, scope)

    def _apply_cast(self, key: BallotKey, direction: bool, weight: int, duplicate: bool) -> bool:
        if duplicate:
            self.ledger.insert(key, direction, weight)
            logger.debug("Inserted duplicate ballot %s on %s scope %r", key.voter, key.votable, key.scope)
            return True

        existing = self.ledger.find(key)
        if existing is None:
            self.ledger.insert(key, direction, weight)
            logger.debug("Inserted ballot %s on %s scope %r", key.voter, key.votable, key.scope)
            return True

        if existing.vote == direction and existing.weight == weight:
            logger.debug("Ballot %s on %s scope %r unchanged", key.voter, key.votable, key.scope)
            return False

        self.ledger.update(existing.id, direction, weight)
        logger.debug("Updated ballot %s on %s scope %r", key.voter, key.votable, key.scope)
        return True

    def _lock(self, votable: VotableMixin) -> None:
        refresh = _CACHE_ATTRIBUTES if caches_summary(votable) else ()
        self.ledger.lock_votable(votable, refresh=refresh)


__all__ = ["VoteRegistrar"]
