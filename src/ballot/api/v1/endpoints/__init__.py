"""API endpoint modules for version 1."""

from .ballots import router as ballots_router

__all__ = ["ballots_router"]
