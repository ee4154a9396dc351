"""API schemas package."""

from .requests import ShareCheckRequest, SubmitNoteRequest
from .responses import (
    AckResponse,
    DirectoryPageResponse,
    NoteListResponse,
    NotificationListResponse,
    SessionClosedResponse,
    ShareCheckResponse,
    SubmitNoteResponse,
    TimelineResponse,
)

__all__ = [
    # Requests
    "ShareCheckRequest",
    "SubmitNoteRequest",
    # Responses
    "TimelineResponse",
    "NoteListResponse",
    "NotificationListResponse",
    "AckResponse",
    "DirectoryPageResponse",
    "ShareCheckResponse",
    "SubmitNoteResponse",
    "SessionClosedResponse",
]
