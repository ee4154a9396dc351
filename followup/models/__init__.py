"""Pydantic data models for the follow-up engine."""

from .enums import Gender, Stage, StageStatus, Urgency
from .customers import Customer
from .notes import (
    PAYLOAD_MODELS,
    CallStatusPayload,
    ClassifiedNote,
    CommunicationStatusPayload,
    FutureMatchStatusPayload,
    GeneralNotePayload,
    MarriageOutcomeStatusPayload,
    MarriageProgressStatusPayload,
    MatchProcessStatusPayload,
    Note,
    PastMatchStatusPayload,
    PaymentDetailsPayload,
    ProfileClosedStatusPayload,
    ProfileStatusPayload,
    StagePayload,
)
from .timeline import StageProgress, Timeline
from .notifications import Notification
from .drafts import NoteDraft, ValidationError

__all__ = [
    # Enums
    "Stage",
    "StageStatus",
    "Urgency",
    "Gender",
    # Directory
    "Customer",
    # Notes
    "Note",
    "ClassifiedNote",
    "StagePayload",
    "PAYLOAD_MODELS",
    "GeneralNotePayload",
    "CallStatusPayload",
    "ProfileStatusPayload",
    "PaymentDetailsPayload",
    "FutureMatchStatusPayload",
    "CommunicationStatusPayload",
    "PastMatchStatusPayload",
    "MatchProcessStatusPayload",
    "MarriageProgressStatusPayload",
    "MarriageOutcomeStatusPayload",
    "ProfileClosedStatusPayload",
    # Timeline
    "StageProgress",
    "Timeline",
    # Reminders
    "Notification",
    # Drafts
    "NoteDraft",
    "ValidationError",
]
