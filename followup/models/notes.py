"""Models for follow-up notes.

A raw ``Note`` mirrors what the note store returns: a shared envelope plus a
loose bag of stage-specific fields. Classification turns it into a
``ClassifiedNote`` whose ``payload`` is a tagged union keyed by ``Stage``.
"""

import json
import math
from datetime import date, datetime
from typing import Annotated, Any, Literal, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

from followup.time_utils import parse_datetime, to_reference_date

from .enums import Stage

logger = structlog.get_logger(__name__)

# Keys of a store record that belong to the envelope rather than the stage bag
ENVELOPE_KEYS = frozenset({
    "id",
    "customer_id",
    "customer_user_id",
    "section_heading",
    "stage",
    "created_at",
    "note",
    "reminder_date",
    "reminder_note",
    "associated_customer_ids",
})


def _parse_stage(value: Any) -> Stage | None:
    if value in (None, ""):
        return None
    if isinstance(value, Stage):
        return value
    try:
        return Stage(value)
    except ValueError:
        return None


def _parse_reminder_date(value: Any) -> date | None:
    if value in (None, ""):
        return None
    try:
        return to_reference_date(value)
    except (TypeError, ValueError):
        logger.warning("invalid_reminder_date", value=str(value))
        return None


def _parse_customer_ids(value: Any) -> tuple[str, ...]:
    if value in (None, ""):
        return ()
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            value = [part for part in value.split(",") if part.strip()]
    if not isinstance(value, (list, tuple, set)):
        return ()
    return tuple(str(item).strip() for item in value if str(item).strip())


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


# =============================================================================
# Raw store record
# =============================================================================

class Note(BaseModel):
    """One follow-up record as fetched from the note store."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique note identifier")
    customer_id: str = Field(default="", description="Owning customer")
    stage: Stage | None = Field(None, description="Explicit stage tag, absent on legacy rows")
    created_at: datetime | None = Field(None, description="Creation time in the reference zone")
    note: str = Field(default="", description="Free-text follow-up note")
    reminder_date: date | None = Field(None, description="Reminder calendar date")
    reminder_note: str | None = Field(None, description="Reminder text")
    associated_customer_ids: tuple[str, ...] = Field(
        default=(), description="Third-party customers this note shared profiles with"
    )
    fields: dict[str, Any] = Field(
        default_factory=dict, description="Stage-specific attributes keyed by wire name"
    )

    @field_validator("id", "customer_id", mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("stage", mode="before")
    @classmethod
    def _validate_stage(cls, value: Any) -> Stage | None:
        return _parse_stage(value)

    @field_validator("created_at", mode="before")
    @classmethod
    def _validate_created_at(cls, value: Any) -> datetime | None:
        if value in (None, ""):
            return None
        try:
            return parse_datetime(value)
        except (TypeError, ValueError):
            logger.warning("invalid_created_at", value=str(value))
            return None

    @field_validator("note", mode="before")
    @classmethod
    def _validate_note(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("reminder_date", mode="before")
    @classmethod
    def _validate_reminder_date(cls, value: Any) -> date | None:
        return _parse_reminder_date(value)

    @field_validator("reminder_note", mode="before")
    @classmethod
    def _validate_reminder_note(cls, value: Any) -> str | None:
        return _optional_text(value)

    @field_validator("associated_customer_ids", mode="before")
    @classmethod
    def _validate_customer_ids(cls, value: Any) -> tuple[str, ...]:
        return _parse_customer_ids(value)

    @classmethod
    def from_record(cls, record: dict) -> "Note":
        """Build a note from a store record.

        The store names the stage ``section_heading`` and the customer
        ``customer_user_id``; every non-envelope key goes into ``fields``.
        """
        return cls(
            id=record.get("id"),
            customer_id=record.get("customer_user_id", record.get("customer_id")),
            stage=record.get("section_heading", record.get("stage")),
            created_at=record.get("created_at"),
            note=record.get("note"),
            reminder_date=record.get("reminder_date"),
            reminder_note=record.get("reminder_note"),
            associated_customer_ids=record.get("associated_customer_ids"),
            fields={k: v for k, v in record.items() if k not in ENVELOPE_KEYS},
        )


# =============================================================================
# Stage payloads (tagged union)
# =============================================================================

class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True)


class _StatusPayload(_Payload):
    status: str | None = Field(None, description="Status code")
    status_note: str | None = Field(None, description="Status details")
    image: str | None = Field(None, description="Attachment reference")


class GeneralNotePayload(_Payload):
    stage: Literal[Stage.GENERAL_NOTE] = Stage.GENERAL_NOTE


class CallStatusPayload(_StatusPayload):
    stage: Literal[Stage.CALL_STATUS] = Stage.CALL_STATUS
    other_note: str | None = Field(None, description="Details for the 'other' status")


class ProfileStatusPayload(_StatusPayload):
    stage: Literal[Stage.PROFILE_STATUS] = Stage.PROFILE_STATUS


class PaymentDetailsPayload(_Payload):
    stage: Literal[Stage.PAYMENT_DETAILS] = Stage.PAYMENT_DETAILS
    amount: float | None = Field(None, description="Payment amount")
    payment_note: str | None = Field(None, description="Payment details")
    image: str | None = Field(None, description="Receipt attachment reference")
    audio: str | None = Field(None, description="Audio attachment reference")

    @field_validator("amount", mode="before")
    @classmethod
    def _validate_amount(cls, value: Any) -> float | None:
        if value in (None, ""):
            return None
        try:
            amount = float(value)
        except (TypeError, ValueError):
            return None
        return amount if math.isfinite(amount) else None


class FutureMatchStatusPayload(_StatusPayload):
    stage: Literal[Stage.FUTURE_MATCH_STATUS] = Stage.FUTURE_MATCH_STATUS


class CommunicationStatusPayload(_StatusPayload):
    stage: Literal[Stage.COMMUNICATION_STATUS] = Stage.COMMUNICATION_STATUS


class PastMatchStatusPayload(_StatusPayload):
    stage: Literal[Stage.PAST_MATCH_STATUS] = Stage.PAST_MATCH_STATUS


class MatchProcessStatusPayload(_StatusPayload):
    stage: Literal[Stage.MATCH_PROCESS_STATUS] = Stage.MATCH_PROCESS_STATUS


class MarriageProgressStatusPayload(_StatusPayload):
    stage: Literal[Stage.MARRIAGE_PROGRESS_STATUS] = Stage.MARRIAGE_PROGRESS_STATUS


class MarriageOutcomeStatusPayload(_StatusPayload):
    stage: Literal[Stage.MARRIAGE_OUTCOME_STATUS] = Stage.MARRIAGE_OUTCOME_STATUS


class ProfileClosedStatusPayload(_StatusPayload):
    stage: Literal[Stage.PROFILE_CLOSED_STATUS] = Stage.PROFILE_CLOSED_STATUS


StagePayload = Annotated[
    Union[
        GeneralNotePayload,
        CallStatusPayload,
        ProfileStatusPayload,
        PaymentDetailsPayload,
        FutureMatchStatusPayload,
        CommunicationStatusPayload,
        PastMatchStatusPayload,
        MatchProcessStatusPayload,
        MarriageProgressStatusPayload,
        MarriageOutcomeStatusPayload,
        ProfileClosedStatusPayload,
    ],
    Field(discriminator="stage"),
]

PAYLOAD_MODELS: dict[Stage, type[_Payload]] = {
    Stage.GENERAL_NOTE: GeneralNotePayload,
    Stage.CALL_STATUS: CallStatusPayload,
    Stage.PROFILE_STATUS: ProfileStatusPayload,
    Stage.PAYMENT_DETAILS: PaymentDetailsPayload,
    Stage.FUTURE_MATCH_STATUS: FutureMatchStatusPayload,
    Stage.COMMUNICATION_STATUS: CommunicationStatusPayload,
    Stage.PAST_MATCH_STATUS: PastMatchStatusPayload,
    Stage.MATCH_PROCESS_STATUS: MatchProcessStatusPayload,
    Stage.MARRIAGE_PROGRESS_STATUS: MarriageProgressStatusPayload,
    Stage.MARRIAGE_OUTCOME_STATUS: MarriageOutcomeStatusPayload,
    Stage.PROFILE_CLOSED_STATUS: ProfileClosedStatusPayload,
}


# =============================================================================
# Classified note
# =============================================================================

class ClassifiedNote(BaseModel):
    """A note with a definite stage and its stage-specific payload."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique note identifier")
    customer_id: str = Field(default="", description="Owning customer")
    stage: Stage = Field(..., description="Classified stage")
    created_at: datetime | None = Field(None, description="Creation time in the reference zone")
    note: str = Field(default="", description="Free-text follow-up note")
    reminder_date: date | None = Field(None, description="Reminder calendar date")
    reminder_note: str | None = Field(None, description="Reminder text")
    associated_customer_ids: tuple[str, ...] = Field(default=(), description="Shared-with customers")
    payload: StagePayload = Field(..., description="Stage-specific attributes")
    is_re_shared: bool = Field(
        default=False, description="Shares a customer already shared by an earlier note"
    )

    @property
    def status(self) -> str | None:
        """Status code of the payload, if the stage has one."""
        return getattr(self.payload, "status", None)
