"""Data access layer for Ballot."""

from .ledger import BallotKey, BallotLedger, LedgerAggregate

__all__ = ["BallotKey", "BallotLedger", "LedgerAggregate"]
