"""Share deduplicator - flags profiles being re-shared with the same customers.

A share is a Profile Status note with status ``profiles_shared`` and a
non-empty list of associated customers. Prior exposure is checked against the
ENTIRE history, not only the latest share note. History may hold raw or
classified notes; raw notes are classified before they are inspected.
"""

from typing import Iterable

import structlog

from followup.engine.classifier import classify_note
from followup.engine.registry import PROFILES_SHARED, accepts_associated_customers
from followup.errors import DuplicateShareWarning
from followup.models import ClassifiedNote, Customer, Note, NoteDraft, Stage

logger = structlog.get_logger(__name__)


def _classified(note: Note | ClassifiedNote) -> ClassifiedNote:
    return note if isinstance(note, ClassifiedNote) else classify_note(note)


def is_share_note(note: Note | ClassifiedNote) -> bool:
    """Whether a note records profiles being shared."""
    note = _classified(note)
    return (
        note.stage == Stage.PROFILE_STATUS
        and note.status == PROFILES_SHARED
        and len(note.associated_customer_ids) > 0
    )


def shared_customer_ids(
    history: Iterable[Note | ClassifiedNote],
    exclude_note_id: str | None = None,
) -> set[str]:
    """Union of customer ids shared by any note in the history."""
    shared: set[str] = set()
    for note in history:
        if exclude_note_id is not None and note.id == exclude_note_id:
            continue
        if is_share_note(note):
            shared.update(note.associated_customer_ids)
    return shared


def find_already_shared(
    history: Iterable[Note | ClassifiedNote],
    candidate_ids: Iterable[str],
    exclude_note_id: str | None = None,
) -> list[str]:
    """Candidate ids that were already shared at any point in the history.

    Args:
        history: Every known note of the customer, raw or classified.
        candidate_ids: Customers about to be shared.
        exclude_note_id: Note to leave out, used when re-checking a note being edited.

    Returns:
        The already-shared candidates, in candidate order, without duplicates.
    """
    shared = shared_customer_ids(history, exclude_note_id)

    result: list[str] = []
    for candidate in candidate_ids:
        if candidate in shared and candidate not in result:
            result.append(candidate)
    return result


def annotate_re_shared(notes: list[ClassifiedNote]) -> list[ClassifiedNote]:
    """Mark share notes that repeat a customer from an earlier share note.

    Notes are ordered newest first by ``created_at`` with input order kept
    among equal timestamps, so of two notes stamped alike the later one in
    the input counts as the earlier share. Undated notes count as oldest. The
    returned list keeps the input order.
    """

    def _age_key(indexed: tuple[int, ClassifiedNote]):
        index, note = indexed
        if note.created_at is None:
            return (0, -index)
        return (1, note.created_at, -index)

    flags: dict[int, bool] = {}
    seen: set[str] = set()
    for index, note in sorted(enumerate(notes), key=_age_key):
        if not is_share_note(note):
            continue
        flags[index] = any(cid in seen for cid in note.associated_customer_ids)
        seen.update(note.associated_customer_ids)

    annotated = []
    for index, note in enumerate(notes):
        flag = flags.get(index, False)
        if note.is_re_shared != flag:
            note = note.model_copy(update={"is_re_shared": flag})
        annotated.append(note)
    return annotated


def gate_share(
    history: Iterable[Note | ClassifiedNote],
    draft: NoteDraft,
    override: bool = False,
    exclude_note_id: str | None = None,
) -> list[str]:
    """Submission-time share check.

    Returns:
        The candidate ids to submit - always the draft's original ids.

    Raises:
        DuplicateShareWarning: If candidates were already shared and
            ``override`` is not set.
    """
    candidate_ids = list(draft.associated_customer_ids)
    if not candidate_ids or not accepts_associated_customers(draft.stage, draft.status):
        return candidate_ids

    already_shared = find_already_shared(history, candidate_ids, exclude_note_id)
    if already_shared:
        if not override:
            logger.info(
                "duplicate_share_blocked",
                customer_id=draft.customer_id,
                already_shared=already_shared,
            )
            raise DuplicateShareWarning(already_shared, candidate_ids)
        logger.info(
            "duplicate_share_overridden",
            customer_id=draft.customer_id,
            already_shared=already_shared,
        )
    return candidate_ids


def describe_customers(ids: Iterable[str], directory: Iterable[Customer]) -> list[str]:
    """Resolve customer ids to names, falling back to the id."""
    names = {customer.id: customer.name for customer in directory}
    return [names.get(cid) or cid for cid in ids]
