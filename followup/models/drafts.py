"""Models for notes being composed and their validation errors."""

from datetime import date

from pydantic import BaseModel, Field, field_validator

from .enums import Stage


class NoteDraft(BaseModel):
    """A note-in-progress, before it is accepted for submission.

    Values are kept as entered; ``payment_amount`` in particular stays a raw
    string until validation parses it.
    """

    customer_id: str = Field(..., description="Customer the note is for")
    stage: Stage = Field(..., description="Active stage of the form")
    note: str = Field(default="", description="Free-text follow-up note")
    status: str | None = Field(None, description="Stage status code")
    status_note: str | None = Field(None, description="Stage status details")
    other_note: str | None = Field(None, description="Details for 'other' (Call Status only)")
    payment_amount: str | None = Field(None, description="Payment amount as entered")
    payment_note: str | None = Field(None, description="Payment details")
    reminder_date: date | None = Field(None, description="Reminder date")
    reminder_note: str | None = Field(None, description="Reminder text")
    associated_customer_ids: list[str] = Field(
        default_factory=list, description="Customers whose profiles are being shared"
    )
    attachments: dict[str, str] = Field(
        default_factory=dict, description="Attachment references keyed by form field name"
    )

    @field_validator("customer_id", mode="before")
    @classmethod
    def _coerce_customer_id(cls, value):
        return "" if value is None else str(value)

    @field_validator("payment_amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value):
        return None if value is None else str(value)

    @field_validator("reminder_date", mode="before")
    @classmethod
    def _blank_date(cls, value):
        return None if value == "" else value

    @property
    def has_reminder_date(self) -> bool:
        return self.reminder_date is not None

    @property
    def has_reminder_note(self) -> bool:
        return bool(self.reminder_note and self.reminder_note.strip())


class ValidationError(BaseModel):
    """A field-level problem that blocks submission of a draft."""

    fields: list[str] = Field(..., description="Offending field names")
    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable message")
