"""Free-text search over a customer's notes."""

from typing import Iterable

from followup.models import ClassifiedNote


def _searchable_values(note: ClassifiedNote) -> list[str]:
    payload = note.payload
    values = [
        note.note,
        note.stage.value,
        note.reminder_note or "",
        note.reminder_date.isoformat() if note.reminder_date else "",
    ]
    for attr in ("status", "status_note", "other_note", "payment_note"):
        value = getattr(payload, attr, None)
        if value:
            values.append(value)
    amount = getattr(payload, "amount", None)
    if amount is not None:
        values.append(f"{amount:g}")
    return values


def search_notes(notes: Iterable[ClassifiedNote], query: str) -> list[ClassifiedNote]:
    """Notes whose text, statuses, payment or reminder fields contain the query."""
    query = query.strip().lower()
    notes = list(notes)
    if not query:
        return notes
    return [
        note for note in notes
        if any(query in value.lower() for value in _searchable_values(note))
    ]
