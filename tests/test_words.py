# tests/test_words.py
"""Tests for vote word normalisation."""

from decimal import Decimal

import pytest

from ballot.errors import BallotError, InvalidVoteWord
from ballot.services.words import falsy, truthy


@pytest.mark.parametrize("value", [True, 1, -3, 0.5, Decimal("2"), "true", "YES", " y ", "up", "Good", "1", "+", "2.5"])
def test_truthy_values(value) -> None:
    """Positive booleans, non-zero numbers and positive words are up votes."""
    assert truthy(value) is True


@pytest.mark.parametrize("value", [False, 0, 0.0, Decimal("0"), "false", "No", "n", "down", "BAD", "0", "-", "0.0"])
def test_falsey_values(value) -> None:
    """Negative booleans, zero and negative words are down votes."""
    assert truthy(value) is False
    assert falsy(value) is True


@pytest.mark.parametrize("value", [None, "", "maybe", "nan", object(), [], {"vote": True}])
def test_unrecognised_values_raise(value) -> None:
    """Anything outside the word lists is rejected."""
    with pytest.raises(InvalidVoteWord) as exc_info:
        truthy(value)

    assert isinstance(exc_info.value, ValueError)
    assert isinstance(exc_info.value, BallotError)
    assert exc_info.value.is_retryable is False


def test_falsy_propagates_invalid_words() -> None:
    """falsy validates the same way truthy does."""
    with pytest.raises(InvalidVoteWord):
        falsy("sideways")
