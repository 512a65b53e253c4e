"""Version 1 API endpoints."""

from .endpoints import ballots_router

__all__ = ["ballots_router"]
