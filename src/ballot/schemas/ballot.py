"""Ballot-related Pydantic schemas for the HTTP adapter."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class VoterReference(BaseModel):
    """Identifies the voter either by type and id or by a global reference."""

    voter_type: str | None = None
    voter_id: str | None = None
    voter_gid: str | None = Field(None, description="gid://<app>/<Type>/<id> reference")
    scope: str | None = Field(None, description="Ballot scope; empty or null is the default scope")

    @model_validator(mode="after")
    def _check_voter(self) -> VoterReference:
        if self.voter_gid is None and (self.voter_type is None or self.voter_id is None):
            raise ValueError("Provide voter_gid, or both voter_type and voter_id")
        return self


class BallotCreate(VoterReference):
    """Schema for casting a ballot."""

    vote: bool | int | str = Field(True, description="Direction; parsed as a vote word")
    weight: int | None = Field(None, description="Ballot weight; defaults to the configured weight")
    duplicate: bool = Field(False, description="Always record a new ballot row")


class BallotRemove(VoterReference):
    """Schema for removing a ballot; every row for the voter and scope is removed."""


class BallotOut(BaseModel):
    """A ledger row as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    voter_type: str
    voter_id: str
    votable_type: str
    votable_id: str
    scope: str | None
    vote: bool
    weight: int
