"""Reminder scheduler - due-reminder notifications from note reminder dates.

A reminder is due when its date is today or tomorrow (calendar dates in the
reference timezone). Each notification has a stable key so that a dismissed
reminder stays dismissed for the rest of the session; the acknowledgement set
itself belongs to the caller and is never persisted.
"""

from datetime import date
from typing import AbstractSet, Iterable

import structlog

from followup.engine.classifier import classify_note
from followup.models import ClassifiedNote, Note, Notification, Urgency
from followup.time_utils import add_days, format_display_date, reference_today

logger = structlog.get_logger(__name__)


def reminder_key(note_id: str, reminder_date: date) -> str:
    """Stable notification key for a note's reminder."""
    return f"{note_id}-reminder-{reminder_date.isoformat()}"


def reminder_urgency(reminder_date: date | None, today: date) -> Urgency | None:
    """Urgency of a reminder date, or None when it is not due."""
    if reminder_date is None:
        return None
    if reminder_date == today:
        return Urgency.TODAY
    if reminder_date == add_days(today, 1):
        return Urgency.TOMORROW
    return None


def is_urgent(note: Note | ClassifiedNote, today: date | None = None) -> bool:
    """Whether a note's reminder is due today or tomorrow."""
    today = today or reference_today()
    return reminder_urgency(note.reminder_date, today) is not None


def scan(
    notes: Iterable[Note | ClassifiedNote],
    ack_set: AbstractSet[str],
    today: date | None = None,
) -> list[Notification]:
    """Build the notification queue for due, unacknowledged reminders.

    Args:
        notes: Notes to scan.
        ack_set: Keys of notifications already dismissed this session.
        today: Today's date in the reference timezone (defaults to now).

    Returns:
        One notification per due reminder; order is not significant.
    """
    today = today or reference_today()
    queue: list[Notification] = []
    skipped_acknowledged = 0

    for note in notes:
        urgency = reminder_urgency(note.reminder_date, today)
        if urgency is None:
            continue

        key = reminder_key(note.id, note.reminder_date)
        if key in ack_set:
            skipped_acknowledged += 1
            continue

        stage = note.stage if isinstance(note, ClassifiedNote) else classify_note(note).stage
        queue.append(
            Notification(
                key=key,
                note_id=note.id,
                stage=stage,
                date=note.reminder_date,
                urgency=urgency,
                reminder_note=note.reminder_note,
                display_date=format_display_date(note.reminder_date),
            )
        )

    logger.debug(
        "reminders_scanned",
        today=today.isoformat(),
        queued=len(queue),
        acknowledged=skipped_acknowledged,
    )
    return queue
