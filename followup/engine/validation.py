"""Submission validator - cross-field checks on a note before it is submitted.

Every rule is evaluated and all errors are collected; the reminder range check
only applies when a reminder date is set. Any error rejects the whole draft.
"""

import math
from datetime import date

import structlog

from followup.config.settings import get_settings
from followup.engine.registry import (
    StageFieldSpec,
    accepts_associated_customers,
    get_definition,
    get_field_spec,
)
from followup.models import NoteDraft, Stage, ValidationError
from followup.time_utils import add_days, reference_today

logger = structlog.get_logger(__name__)

REMINDER_NOTE_REQUIRED = "reminder note is mandatory when a date is set"
REMINDER_DATE_REQUIRED = "reminder date is mandatory when a note is set"


def parse_amount(value: str | None) -> float | None:
    """Parse a payment amount as entered; None if it is not a finite number."""
    if value is None:
        return None
    try:
        amount = float(value.strip())
    except ValueError:
        return None
    return amount if math.isfinite(amount) else None


def _check_note(draft: NoteDraft, spec: StageFieldSpec) -> list[ValidationError]:
    if spec.has_note_field and not draft.note.strip():
        return [ValidationError(
            fields=["note"],
            code="note_required",
            message="follow-up note is required for this stage",
        )]
    return []


def _check_payment(draft: NoteDraft) -> list[ValidationError]:
    if draft.stage != Stage.PAYMENT_DETAILS:
        return []
    amount = parse_amount(draft.payment_amount)
    if amount is None or amount <= 0:
        return [ValidationError(
            fields=["payment_amount"],
            code="invalid_payment_amount",
            message="payment amount must be a positive number",
        )]
    return []


def _check_reminder_pair(draft: NoteDraft) -> list[ValidationError]:
    if draft.has_reminder_date and not draft.has_reminder_note:
        return [ValidationError(
            fields=["reminder_note"],
            code="reminder_note_required",
            message=REMINDER_NOTE_REQUIRED,
        )]
    if draft.has_reminder_note and not draft.has_reminder_date:
        return [ValidationError(
            fields=["reminder_date"],
            code="reminder_date_required",
            message=REMINDER_DATE_REQUIRED,
        )]
    return []


def _check_reminder_range(
    draft: NoteDraft, today: date, max_days_ahead: int
) -> list[ValidationError]:
    if not draft.has_reminder_date:
        return []
    latest = add_days(today, max_days_ahead)
    if not (today < draft.reminder_date <= latest):
        return [ValidationError(
            fields=["reminder_date"],
            code="reminder_date_out_of_range",
            message=f"reminder date must be within the next {max_days_ahead} days from today",
        )]
    return []


def _check_status(draft: NoteDraft, spec: StageFieldSpec) -> list[ValidationError]:
    if not draft.status or spec.status_field is None:
        return []
    options = get_definition(draft.stage).status_options
    if draft.status not in options:
        return [ValidationError(
            fields=[spec.status_field],
            code="unknown_status",
            message=f"'{draft.status}' is not a valid {draft.stage.value.lower()}",
        )]
    return []


def _check_associated(draft: NoteDraft) -> list[ValidationError]:
    if draft.associated_customer_ids and not accepts_associated_customers(
        draft.stage, draft.status
    ):
        return [ValidationError(
            fields=["associated_customer_ids"],
            code="unexpected_associated_customers",
            message="customers can only be associated with a 'Profiles Shared' profile status",
        )]
    return []


def validate(
    draft: NoteDraft,
    field_spec: StageFieldSpec | None = None,
    today: date | None = None,
    max_days_ahead: int | None = None,
) -> list[ValidationError]:
    """Validate a draft against the cross-field submission rules.

    Args:
        draft: The note being composed.
        field_spec: Form fields of the active stage (defaults to the registry's).
        today: Today's date in the reference timezone (defaults to now).
        max_days_ahead: Reminder window in days (defaults to settings).

    Returns:
        All validation errors; an empty list means the draft is valid.
    """
    spec = field_spec or get_field_spec(draft.stage)
    today = today or reference_today()
    if max_days_ahead is None:
        max_days_ahead = get_settings().reminder_max_days_ahead

    errors: list[ValidationError] = []
    errors.extend(_check_note(draft, spec))
    errors.extend(_check_payment(draft))
    errors.extend(_check_reminder_pair(draft))
    errors.extend(_check_reminder_range(draft, today, max_days_ahead))
    errors.extend(_check_status(draft, spec))
    errors.extend(_check_associated(draft))

    if errors:
        logger.info(
            "draft_invalid",
            customer_id=draft.customer_id,
            stage=draft.stage.value,
            codes=[error.code for error in errors],
        )
    return errors
