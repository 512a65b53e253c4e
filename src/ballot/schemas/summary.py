"""Ballot summary schema shared by the calculator, the cache and the API."""

from __future__ import annotations

from typing import Any, Final

from pydantic import BaseModel, Field

SUMMARY_FIELDS: Final[tuple[str, ...]] = (
    "total",
    "up",
    "down",
    "score",
    "weighted_total",
    "weighted_score",
    "weighted_average",
)


class BallotSummary(BaseModel):
    """Aggregate statistics for the ballots of one votable in one scope."""

    total: int = Field(default=0, description="Number of ballots cast")
    up: int = Field(default=0, description="Number of positive ballots")
    down: int = Field(default=0, description="Number of negative ballots")
    score: int = Field(default=0, description="Positive less negative ballots")
    weighted_total: int = Field(default=0, description="Sum of all ballot weights")
    weighted_score: int = Field(
        default=0,
        description="Sum of positive ballot weights less sum of negative ballot weights",
    )
    weighted_average: float = Field(
        default=0.0,
        description="Weighted score over the number of ballots; 0.0 with no ballots",
    )

    @classmethod
    def from_counts(
        cls,
        *,
        up: int,
        down: int,
        up_weight: int,
        down_weight: int,
    ) -> BallotSummary:
        """Derive every summary field from per-direction counts and weight sums."""
        total = up + down
        weighted_score = up_weight - down_weight
        return cls(
            total=total,
            up=up,
            down=down,
            score=up - down,
            weighted_total=up_weight + down_weight,
            weighted_score=weighted_score,
            weighted_average=weighted_score / total if total > 0 else 0.0,
        )

    @classmethod
    def from_cache(cls, entry: dict[str, Any] | None) -> BallotSummary:
        """Read a cache entry; missing fields read as zero."""
        entry = entry or {}
        return cls(**{name: entry[name] for name in SUMMARY_FIELDS if entry.get(name) is not None})

    def to_cache(self) -> dict[str, Any]:
        """Return the flat mapping stored under a scope label in the cache."""
        return self.model_dump(include=set(SUMMARY_FIELDS))
