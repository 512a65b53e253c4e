"""Business logic services for Ballot.

Only dependency-free helpers are re-exported here; import the ledger-backed
services (``ballots``, ``registration``, ``summary``) from their modules, or
from the top-level ``ballot`` package.
"""

from .identity import ALL_SCOPES, BallotRegistry, EntityKey, GlobalRef, default_registry
from .words import falsy, truthy

__all__ = [
    "ALL_SCOPES",
    "BallotRegistry",
    "EntityKey",
    "GlobalRef",
    "default_registry",
    "falsy",
    "truthy",
]
