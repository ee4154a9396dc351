"""Stage classifier - assigns exactly one stage to every note.

An explicit registered stage tag always wins. Untagged (legacy) notes are
classified by the first stage-specific field group, in priority order, that
has any populated field; notes with none fall back to General Note.
"""

from typing import Any, Iterable

import structlog

from followup.engine.registry import (
    CLASSIFIER_PRIORITY,
    get_field_spec,
    is_registered,
    STAGE_DEFINITIONS,
)
from followup.models import PAYLOAD_MODELS, ClassifiedNote, Note, Stage

logger = structlog.get_logger(__name__)


def _is_populated(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    if isinstance(value, (bool, int, float)):
        return value != 0
    return True


def classify(note: Note) -> Stage:
    """Assign a stage to a note. Pure and total."""
    if note.stage is not None and is_registered(note.stage):
        return note.stage

    for stage in CLASSIFIER_PRIORITY:
        group = STAGE_DEFINITIONS[stage].classifier_fields
        if any(_is_populated(note.fields.get(name)) for name in group):
            return stage

    return Stage.GENERAL_NOTE


def build_payload(stage: Stage, fields: dict[str, Any]):
    """Build the stage-specific payload from a note's field bag."""
    model = PAYLOAD_MODELS[stage]

    if stage == Stage.GENERAL_NOTE:
        return model()

    if stage == Stage.PAYMENT_DETAILS:
        return model(
            amount=fields.get("payment_amount"),
            payment_note=_text(fields.get("payment_note")),
            image=_text(fields.get("payment_image")),
            audio=_text(fields.get("file_upload")),
        )

    spec = get_field_spec(stage)
    values = {
        "status": _text(fields.get(spec.status_field)),
        "status_note": _text(fields.get(spec.status_note_field)),
        "image": _text(fields.get(spec.attachment_fields[0])),
    }
    if spec.other_note_field:
        values["other_note"] = _text(fields.get(spec.other_note_field))
    return model(**values)


def _text(value: Any) -> str | None:
    return str(value) if _is_populated(value) else None


def classify_note(note: Note) -> ClassifiedNote:
    """Classify a note and attach its stage payload."""
    stage = classify(note)
    return ClassifiedNote(
        id=note.id,
        customer_id=note.customer_id,
        stage=stage,
        created_at=note.created_at,
        note=note.note,
        reminder_date=note.reminder_date,
        reminder_note=note.reminder_note,
        associated_customer_ids=note.associated_customer_ids,
        payload=build_payload(stage, note.fields),
    )


def classify_notes(notes: Iterable[Note | ClassifiedNote]) -> list[ClassifiedNote]:
    """Classify a note collection and mark re-shared profile notes.

    Already classified notes pass through unchanged apart from the re-share
    annotation, which is always recomputed against the whole collection.
    """
    from followup.engine.sharing import annotate_re_shared

    notes = list(notes)
    classified = [
        note if isinstance(note, ClassifiedNote) else classify_note(note)
        for note in notes
    ]
    annotated = annotate_re_shared(classified)

    logger.debug(
        "notes_classified",
        total=len(annotated),
        untagged=sum(1 for n in notes if isinstance(n, Note) and n.stage is None),
        re_shared=sum(1 for n in annotated if n.is_re_shared),
    )
    return annotated
