"""Ballot summary computation and caching."""

from __future__ import annotations

import logging
from typing import Any

from ballot.models.mixins import VotableMixin
from ballot.repositories.ledger import BallotLedger
from ballot.schemas.summary import BallotSummary
from ballot.services.identity import EntityKey, cache_label, normalize_scope

logger = logging.getLogger(__name__)


def caches_summary(votable: Any) -> bool:
    """Return True if ``votable`` keeps a cached ballot summary."""
    return bool(getattr(type(votable), "caches_ballot_summary", False))


class SummaryCalculator:
    """Computes per-scope ballot statistics live or from a votable's cache."""

    def __init__(self, ledger: BallotLedger) -> None:
        self.ledger = ledger

    def calculate(self, votable: EntityKey, scope: str | None = None) -> BallotSummary:
        """Compute the summary for one scope directly from the ledger."""
        aggregates = self.ledger.aggregate_by_direction(votable, normalize_scope(scope))
        up, down = aggregates[True], aggregates[False]
        return BallotSummary.from_counts(
            up=up.count,
            down=down.count,
            up_weight=up.weight_sum,
            down_weight=down.weight_sum,
        )

    def recompute(self, votable: VotableMixin, scope: str | None = None) -> BallotSummary:
        """Recompute one scope and store it in the votable's cache.

        Only the entry for ``scope`` is replaced; other scopes are untouched.
        Votables without a cache just get the live summary back.
        """
        summary = self.calculate(EntityKey.of(votable), scope)
        if caches_summary(votable):
            cache = dict(votable.cached_ballot_summary or {})
            cache[cache_label(scope)] = summary.to_cache()
            # Assign a new mapping so the JSON column is flagged as modified.
            votable.cached_ballot_summary = cache
            logger.debug(
                "Cached ballot summary for %s scope %r: %s",
                EntityKey.of(votable),
                cache_label(scope),
                summary.to_cache(),
            )
        return summary

    def get(
        self,
        votable: VotableMixin,
        scope: str | None = None,
        *,
        skip_cache: bool = False,
    ) -> BallotSummary:
        """Return the summary for ``scope``, from the cache when available.

        Reading never writes the cache.
        """
        if skip_cache or not caches_summary(votable):
            return self.calculate(EntityKey.of(votable), scope)
        return BallotSummary.from_cache(self.cached_entry(votable, scope))

    @staticmethod
    def cached_entry(votable: VotableMixin, scope: str | None = None) -> dict[str, Any]:
        """Return the raw cache entry for ``scope``; empty when nothing is cached."""
        cache = votable.cached_ballot_summary or {}
        return cache.get(cache_label(scope)) or {}


__all__ = ["SummaryCalculator", "caches_summary"]
