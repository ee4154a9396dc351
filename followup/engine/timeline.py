"""Stage timeline - per-stage progress derived from a customer's notes.

Status precedence per stage (first match wins):
1. COMPLETED - some note is classified into the stage
2. SKIPPED   - the stage comes before the current stage
3. CURRENT   - the stage is the current stage
4. PENDING   - otherwise

Completeness is checked first, so a current stage that already has a note is
reported COMPLETED rather than CURRENT.
"""

from typing import Iterable

import structlog

from followup.engine.classifier import classify_note
from followup.engine.registry import STAGE_ORDER, index_of
from followup.models import (
    ClassifiedNote,
    Note,
    Stage,
    StageProgress,
    StageStatus,
    Timeline,
)

logger = structlog.get_logger(__name__)


def latest_note(notes: Iterable[ClassifiedNote]) -> ClassifiedNote | None:
    """The note with the greatest ``created_at``.

    Ties go to the earliest note in input order; undated notes are never latest.
    """
    latest = None
    for note in notes:
        if note.created_at is None:
            continue
        if latest is None or note.created_at > latest.created_at:
            latest = note
    return latest


def stage_status(stage: Stage, completed: set[Stage], current: Stage) -> StageStatus:
    """Status of one stage given the completed set and current stage."""
    if stage in completed:
        return StageStatus.COMPLETED
    if index_of(stage) < index_of(current):
        return StageStatus.SKIPPED
    if stage == current:
        return StageStatus.CURRENT
    return StageStatus.PENDING


def derive_timeline(notes: Iterable[Note | ClassifiedNote]) -> Timeline:
    """Derive the current stage and per-stage status from a note set.

    Deterministic: the same note set always yields the same timeline.
    """
    classified = [
        note if isinstance(note, ClassifiedNote) else classify_note(note)
        for note in notes
    ]

    completed = {note.stage for note in classified}
    latest = latest_note(classified)
    current = latest.stage if latest is not None else Stage.GENERAL_NOTE

    stages = tuple(
        StageProgress(
            stage=stage,
            position=index_of(stage),
            status=stage_status(stage, completed, current),
        )
        for stage in STAGE_ORDER
    )

    logger.debug(
        "timeline_derived",
        notes=len(classified),
        current_stage=current.value,
        completed=len(completed),
    )

    return Timeline(
        current_stage=current,
        stages=stages,
        completed_stages=frozenset(completed),
    )
