"""Normalisation of loose vote values into a direction."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from numbers import Number
from typing import Any, Final

from ballot.errors import InvalidVoteWord

TRUTHY_WORDS: Final[frozenset[str]] = frozenset(
    {
        "true", "t", "yes", "y", "1", "+", "up", "upvote", "positive",
        "like", "liked", "good", "love", "loved", "fave", "favorite",
        "support", "approve", "approved", "agree", "accept", "accepted",
    }
)

FALSEY_WORDS: Final[frozenset[str]] = frozenset(
    {
        "false", "f", "no", "n", "0", "-", "down", "downvote", "negative",
        "dislike", "disliked", "bad", "hate", "hated", "unfave",
        "oppose", "disapprove", "disapproved", "disagree", "reject", "rejected",
    }
)


def truthy(value: Any) -> bool:
    """Return the vote direction represented by ``value``.

    Booleans pass through, numbers are true when non-zero, and strings are
    matched case-insensitively against ``TRUTHY_WORDS`` and ``FALSEY_WORDS``
    (numeric strings are read as numbers).

    Raises:
        InvalidVoteWord: If ``value`` is not a recognised vote.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, Number):
        return value != 0
    if isinstance(value, str):
        word = value.strip().lower()
        if word in TRUTHY_WORDS:
            return True
        if word in FALSEY_WORDS:
            return False
        try:
            number = Decimal(word)
        except InvalidOperation:
            number = None
        if number is not None and number.is_finite():
            return number != 0
    raise InvalidVoteWord(value)


def falsy(value: Any) -> bool:
    """Return True when ``value`` represents a negative vote."""
    return not truthy(value)


__all__ = ["FALSEY_WORDS", "TRUTHY_WORDS", "falsy", "truthy"]
