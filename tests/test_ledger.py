# tests/test_ledger.py
"""Tests for the ballot ledger repository."""

import pytest
from sqlalchemy import delete, func, select

from ballot.errors import VoteNotFound
from ballot.models import BallotVote
from ballot.repositories.ledger import BallotKey, BallotLedger, LedgerAggregate
from ballot.services.identity import ALL_SCOPES, EntityKey


@pytest.fixture()
def ledger(db_session) -> BallotLedger:
    return BallotLedger(db_session)


@pytest.fixture()
def key(user, post) -> BallotKey:
    return BallotKey(voter=EntityKey.of(user), votable=EntityKey.of(post))


def test_key_normalises_empty_scope(user, post) -> None:
    key = BallotKey(voter=EntityKey.of(user), votable=EntityKey.of(post), scope="")
    assert key.scope is None


def test_insert_and_find(ledger: BallotLedger, key: BallotKey) -> None:
    assert ledger.find(key) is None

    ballot = ledger.insert(key, True, 3)

    assert ballot.id is not None
    assert ledger.find(key) is ballot
    assert (ballot.scope, ballot.vote, ballot.weight) == (None, True, 3)


def test_find_keeps_scopes_apart(ledger: BallotLedger, key: BallotKey) -> None:
    ledger.insert(key, True, 1)
    scoped = BallotKey(voter=key.voter, votable=key.votable, scope="love")

    assert ledger.find(scoped) is None
    ledger.insert(scoped, False, 1)
    assert ledger.find(scoped).vote is False
    assert ledger.find(key).vote is True


def test_update_in_place(ledger: BallotLedger, key: BallotKey) -> None:
    ballot = ledger.insert(key, True, 1)

    ledger.update(ballot.id, False, 5)

    assert ledger.find(key).id == ballot.id
    assert (ballot.vote, ballot.weight) == (False, 5)


def test_update_missing_row_raises(ledger: BallotLedger) -> None:
    with pytest.raises(VoteNotFound) as exc_info:
        ledger.update(424242, True, 1)
    assert exc_info.value.is_retryable is True


def test_update_row_deleted_behind_the_session(db_session, ledger: BallotLedger, key: BallotKey) -> None:
    """A row removed by another writer surfaces as a retryable conflict."""
    ballot = ledger.insert(key, True, 1)
    db_session.execute(
        delete(BallotVote)
        .where(BallotVote.id == ballot.id)
        .execution_options(synchronize_session=False)
    )

    with pytest.raises(VoteNotFound):
        ledger.update(ballot.id, False, 1)


def test_delete_removes_every_row_for_the_key(ledger: BallotLedger, key: BallotKey) -> None:
    for _ in range(3):
        ledger.insert(key, True, 1)
    love = BallotKey(voter=key.voter, votable=key.votable, scope="love")
    ledger.insert(love, True, 1)

    assert ledger.delete(key) == 3
    assert ledger.find_all(key) == []
    assert ledger.delete(key) == 0
    assert len(ledger.find_all(love)) == 1


def test_aggregate(ledger: BallotLedger, key: BallotKey, make_user) -> None:
    ledger.insert(key, True, 4)
    other = BallotKey(voter=EntityKey.of(make_user()), votable=key.votable)
    ledger.insert(other, False, 1)
    ledger.insert(BallotKey(voter=key.voter, votable=key.votable, scope="haha"), True, 10)

    assert ledger.aggregate(key.votable, None) == LedgerAggregate(count=2, weight_sum=5)
    assert ledger.aggregate(key.votable, None, True) == LedgerAggregate(count=1, weight_sum=4)
    assert ledger.aggregate(key.votable, None, False) == LedgerAggregate(count=1, weight_sum=1)
    assert ledger.aggregate(key.votable, "haha") == LedgerAggregate(count=1, weight_sum=10)
    assert ledger.aggregate(key.votable, "love") == LedgerAggregate()

    by_direction = ledger.aggregate_by_direction(key.votable, None)
    assert by_direction[True] == LedgerAggregate(count=1, weight_sum=4)
    assert by_direction[False] == LedgerAggregate(count=1, weight_sum=1)


def test_listing_filters(ledger: BallotLedger, key: BallotKey, comment) -> None:
    ledger.insert(key, True, 1)
    ledger.insert(BallotKey(voter=key.voter, votable=key.votable, scope="love"), False, 1)
    ledger.insert(BallotKey(voter=EntityKey.of(comment), votable=key.votable), False, 1)

    assert len(ledger.for_votable(key.votable)) == 2
    assert len(ledger.for_votable(key.votable, scope=ALL_SCOPES)) == 3
    assert len(ledger.for_votable(key.votable, scope="love", vote=False)) == 1
    assert len(ledger.for_votable(key.votable, voter_type="Comment")) == 1
    assert len(ledger.for_voter(key.voter, scope=ALL_SCOPES)) == 2
    assert len(ledger.for_voter(key.voter, votable_type="Comment")) == 0

    assert ledger.exists(key) is True
    assert ledger.exists(key, vote=False) is False


def test_no_unique_constraint_on_identity(db_session, ledger: BallotLedger, key: BallotKey) -> None:
    """Duplicate rows are storable; uniqueness is enforced by registration."""
    ledger.insert(key, True, 1)
    ledger.insert(key, True, 1)

    total = db_session.execute(select(func.count(BallotVote.id))).scalar_one()
    assert total == 2
