# src/ballot/main.py
"""Standalone FastAPI application serving the Ballot endpoints."""

from __future__ import annotations

from fastapi import FastAPI

from ballot.api.v1 import ballots_router
from ballot.core.logging import configure_logging
from ballot.core.settings import settings

configure_logging()

app = FastAPI(
    title=f"{settings.app_name} API",
    description="Scoped, polymorphic voting for SQLAlchemy models",
    version=settings.app_version,
)

app.include_router(ballots_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness check."""
    return {"status": "ok"}
