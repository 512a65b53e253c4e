"""Pydantic schemas for Ballot."""

from .ballot import BallotCreate, BallotOut, BallotRemove, VoterReference
from .summary import SUMMARY_FIELDS, BallotSummary

__all__ = [
    "BallotCreate",
    "BallotOut",
    "BallotRemove",
    "BallotSummary",
    "SUMMARY_FIELDS",
    "VoterReference",
]
