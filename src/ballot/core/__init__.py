"""Core configuration for Ballot."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
