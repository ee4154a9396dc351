"""
FastAPI dependencies for session lookup.
"""

from functools import lru_cache

from fastapi import Depends

from followup.session import FollowUpSession, SessionRegistry
from followup.store import NoteStoreClient


@lru_cache
def get_registry() -> SessionRegistry:
    """Process-wide registry of follow-up sessions."""
    return SessionRegistry(client=NoteStoreClient())


def get_session(
    session_id: str,
    customer_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> FollowUpSession:
    """The isolated follow-up session for this user session and customer."""
    return registry.get(session_id, customer_id)
