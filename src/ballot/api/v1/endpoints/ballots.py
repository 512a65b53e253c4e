# src/ballot/api/v1/endpoints/ballots.py
"""Ballot endpoints exposing the balloting service over HTTP."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ballot.db.session import get_db
from ballot.errors import (
    BallotError,
    InvalidVoteWord,
    InvalidWeight,
    NotVotable,
    NotVoter,
    UnresolvableReference,
    VoteNotFound,
)
from ballot.schemas.ballot import BallotCreate, BallotOut, BallotRemove, VoterReference
from ballot.schemas.summary import BallotSummary
from ballot.services.ballots import BallotService
from ballot.services.identity import EntityKey, EntityRef, GlobalRef

router = APIRouter(prefix="/ballots", tags=["ballots"])


SessionDep = Annotated[Session, Depends(get_db)]


def get_ballot_service(db: SessionDep) -> BallotService:
    """Return a balloting service bound to the request's session."""
    return BallotService(db)


BallotServiceDep = Annotated[BallotService, Depends(get_ballot_service)]

_ERROR_STATUS: list[tuple[type[BallotError], int]] = [
    (InvalidVoteWord, status.HTTP_422_UNPROCESSABLE_CONTENT),
    (InvalidWeight, status.HTTP_422_UNPROCESSABLE_CONTENT),
    (NotVotable, status.HTTP_400_BAD_REQUEST),
    (NotVoter, status.HTTP_400_BAD_REQUEST),
    (UnresolvableReference, status.HTTP_404_NOT_FOUND),
    (VoteNotFound, status.HTTP_409_CONFLICT),
]


def _http_error(exc: BallotError) -> HTTPException:
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _voter_ref(data: VoterReference) -> EntityRef:
    if data.voter_gid is not None:
        return GlobalRef(data.voter_gid)
    return EntityKey(type=data.voter_type, id=data.voter_id)


@router.post("/{votable_type}/{votable_id}", status_code=status.HTTP_201_CREATED)
async def cast_ballot(
    votable_type: str,
    votable_id: str,
    ballot_data: BallotCreate,
    ballots: BallotServiceDep,
    db: SessionDep,
) -> dict[str, bool]:
    """Cast a ballot on a votable; ``registered`` is False for an identical repeat."""
    try:
        registered = ballots.ballot_by(
            EntityKey(type=votable_type, id=votable_id),
            _voter_ref(ballot_data),
            scope=ballot_data.scope,
            vote=ballot_data.vote,
            weight=ballot_data.weight,
            duplicate=ballot_data.duplicate,
        )
    except BallotError as exc:
        db.rollback()
        raise _http_error(exc) from exc

    db.commit()
    return {"registered": registered}


@router.delete("/{votable_type}/{votable_id}")
async def remove_ballot(
    votable_type: str,
    votable_id: str,
    ballot_data: BallotRemove,
    ballots: BallotServiceDep,
    db: SessionDep,
) -> dict[str, bool]:
    """Remove the caller's ballot on a votable."""
    try:
        removed = ballots.remove_ballot_by(
            EntityKey(type=votable_type, id=votable_id),
            _voter_ref(ballot_data),
            scope=ballot_data.scope,
        )
    except BallotError as exc:
        db.rollback()
        raise _http_error(exc) from exc

    db.commit()
    return {"removed": removed}


@router.get("/{votable_type}/{votable_id}", response_model=list[BallotOut])
async def list_ballots(
    votable_type: str,
    votable_id: str,
    ballots: BallotServiceDep,
    scope: str | None = None,
    vote: str | None = Query(None, description="Optional direction filter, parsed as a vote word"),
) -> list[BallotOut]:
    """List the ballots cast on a votable in one scope."""
    try:
        rows = ballots.ballots_for(EntityKey(type=votable_type, id=votable_id), vote=vote, scope=scope)
    except BallotError as exc:
        raise _http_error(exc) from exc
    return [BallotOut.model_validate(row) for row in rows]


@router.get("/{votable_type}/{votable_id}/summary", response_model=BallotSummary)
async def get_ballot_summary(
    votable_type: str,
    votable_id: str,
    ballots: BallotServiceDep,
    scope: str | None = None,
    skip_cache: bool = False,
) -> BallotSummary:
    """Return the ballot summary of a votable for one scope."""
    try:
        return ballots.ballot_summary(
            EntityKey(type=votable_type, id=votable_id),
            scope,
            skip_cache=skip_cache,
        )
    except BallotError as exc:
        raise _http_error(exc) from exc
