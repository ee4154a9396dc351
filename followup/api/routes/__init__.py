"""API routes package."""

from . import followups

__all__ = ["followups"]
