"""Ledger model recording one voter's vote on one votable."""

from sqlalchemy import Boolean, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ballot.db.session import Base


class BallotVote(Base):
    """A single vote linking a voter to a votable within a scope.

    Both endpoints are polymorphic: they are stored as a type name and an
    opaque identifier rather than as foreign keys, so any registered model can
    take part. The identity of a vote is (voter, votable, scope); direction
    and weight are the mutable parts.
    """

    __tablename__ = "ballot_vote"
    __table_args__ = (
        Index(
            "ix_ballot_vote_identity",
            "voter_type",
            "voter_id",
            "votable_type",
            "votable_id",
            "scope",
        ),
        Index("ix_ballot_vote_votable", "votable_type", "votable_id", "scope", "vote"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    voter_type: Mapped[str] = mapped_column(String(255), nullable=False)
    voter_id: Mapped[str] = mapped_column(String(255), nullable=False)
    votable_type: Mapped[str] = mapped_column(String(255), nullable=False)
    votable_id: Mapped[str] = mapped_column(String(255), nullable=False)

    # NULL is the default scope.
    scope: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # True = up, False = down.
    vote: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    weight: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    def __repr__(self) -> str:
        return (
            f"BallotVote(id={self.id!r}, voter={self.voter_type}#{self.voter_id}, "
            f"votable={self.votable_type}#{self.votable_id}, scope={self.scope!r}, "
            f"vote={self.vote!r}, weight={self.weight!r})"
        )
