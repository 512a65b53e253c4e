"""SQLAlchemy models and capability mixins for Ballot."""

from .mixins import BallotEntity, CachedVotableMixin, VotableMixin, VoterMixin, is_votable, is_voter
from .vote import BallotVote

__all__ = [
    "BallotEntity",
    "BallotVote",
    "CachedVotableMixin",
    "VotableMixin",
    "VoterMixin",
    "is_votable",
    "is_voter",
]
