"""Scoped, polymorphic voting for SQLAlchemy models."""

from ballot.models import BallotVote, CachedVotableMixin, VotableMixin, VoterMixin
from ballot.errors import (
    BallotError,
    InvalidVoteWord,
    InvalidWeight,
    NotVotable,
    NotVoter,
    UnresolvableReference,
    VoteNotFound,
)
from ballot.schemas.summary import BallotSummary
from ballot.services.ballots import BallotService
from ballot.services.identity import ALL_SCOPES, EntityKey, GlobalRef, default_registry
from ballot.services.words import falsy, truthy

__version__ = "0.1.0"

__all__ = [
    "ALL_SCOPES",
    "BallotError",
    "BallotService",
    "BallotSummary",
    "BallotVote",
    "CachedVotableMixin",
    "EntityKey",
    "GlobalRef",
    "InvalidVoteWord",
    "InvalidWeight",
    "NotVotable",
    "NotVoter",
    "UnresolvableReference",
    "VotableMixin",
    "VoteNotFound",
    "VoterMixin",
    "default_registry",
    "falsy",
    "truthy",
]
