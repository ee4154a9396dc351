"""Models for reminder notifications."""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field

from .enums import Stage, Urgency


class Notification(BaseModel):
    """A due reminder surfaced to the user."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Stable key: '<note id>-reminder-<YYYY-MM-DD>'")
    note_id: str = Field(..., description="Note carrying the reminder")
    stage: Stage = Field(..., description="Stage of that note")
    date: dt.date = Field(..., description="Reminder date")
    urgency: Urgency = Field(..., description="Due today or tomorrow")
    reminder_note: str | None = Field(None, description="Reminder text")
    display_date: str = Field(..., description="Reminder date as DD-MM-YYYY")

    @property
    def message(self) -> str:
        """One-line text for the notification."""
        return f"Reminder: {self.stage.value} is scheduled {self.urgency.value} on {self.display_date}"
