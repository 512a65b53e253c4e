"""Exception hierarchy for Ballot.

All Ballot failures derive from ``BallotError`` so callers can catch them in
one place, while the builtin bases (``ValueError``, ``TypeError``,
``LookupError``) keep generic handlers working. Storage failures raised by
SQLAlchemy are never wrapped; they propagate unchanged.
"""

from __future__ import annotations

from typing import Any


class BallotError(Exception):
    """Base exception for all Ballot errors.

    Carries an optional ``context`` mapping for logging, and reports whether
    the caller may retry the whole operation via ``is_retryable``.
    """

    _retryable: bool = False

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        self.context = context or {}
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        """Return True if re-running the cast/remove from scratch may succeed."""
        return self._retryable

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{base_msg} (context: {context_str})"
        return base_msg


class InvalidVoteWord(BallotError, ValueError):
    """Raised when a vote value is not a recognised truthy or falsey word."""

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(f"{value!r} is not a valid vote", {"value": repr(value)})


class InvalidWeight(BallotError, ValueError):
    """Raised when a vote weight is not a whole number."""

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(f"{value!r} is not a valid vote weight", {"value": repr(value)})


class NotVotable(BallotError, TypeError):
    """Raised when a resolved entity cannot receive votes."""

    def __init__(self, entity: Any) -> None:
        self.entity = entity
        super().__init__(f"{type(entity).__name__} is not votable")


class NotVoter(BallotError, TypeError):
    """Raised when a resolved entity cannot cast votes."""

    def __init__(self, entity: Any) -> None:
        self.entity = entity
        super().__init__(f"{type(entity).__name__} is not a voter")


class UnresolvableReference(BallotError, LookupError):
    """Raised when a loose entity reference cannot be resolved to a record."""


class VoteNotFound(BallotError, LookupError):
    """Raised when a vote row vanished between lookup and write.

    The ledger was changed concurrently; the cast or removal can be attempted
    again from scratch.
    """

    _retryable = True


__all__ = [
    "BallotError",
    "InvalidVoteWord",
    "InvalidWeight",
    "NotVotable",
    "NotVoter",
    "UnresolvableReference",
    "VoteNotFound",
]
