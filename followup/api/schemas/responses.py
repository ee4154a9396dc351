"""
Response Schemas

Pydantic models for API responses.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from followup.models import ClassifiedNote, Customer, Notification, Stage, StageProgress


class TimelineResponse(BaseModel):
    """Journey progress of a customer."""

    customer_id: str
    current_stage: Stage
    note_count: int
    stages: list[StageProgress]
    fetched_at: Optional[datetime] = None


class NoteListResponse(BaseModel):
    """Classified notes of a customer, optionally filtered."""

    customer_id: str
    notes: list[ClassifiedNote]
    total_count: int


class NotificationListResponse(BaseModel):
    """Due reminders not yet acknowledged in this session."""

    customer_id: str
    notifications: list[Notification]


class AckResponse(BaseModel):
    """Result of acknowledging a notification."""

    key: str
    acknowledged: bool = True


class ShareCheckResponse(BaseModel):
    """Candidates that already received this customer's profile."""

    customer_id: str
    already_shared: list[str] = Field(default_factory=list)
    already_shared_names: list[str] = Field(default_factory=list)


class SubmitNoteResponse(BaseModel):
    """Result of a note submission."""

    customer_id: str
    note_id: Optional[str] = None
    timeline: TimelineResponse


class SessionClosedResponse(BaseModel):
    """Result of tearing a session down."""

    session_id: str
    closed_customers: int


class DirectoryPageResponse(BaseModel):
    """One page of the customer picker."""

    customers: list[Customer]
    page: int
    total_pages: int
    total_items: int
