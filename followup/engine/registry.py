"""Stage registry - the fixed, ordered catalog of journey stages.

All ordering comparisons go through ``STAGE_ORDER`` / ``index_of`` so the order
is defined exactly once. Per-stage definitions describe:
- the field group the classifier inspects on untagged notes
- the form fields the stage declares for submission
- the allowed status codes and their display labels
"""

from dataclasses import dataclass, field

from followup.models import Stage

STAGE_ORDER: tuple[Stage, ...] = (
    Stage.GENERAL_NOTE,
    Stage.CALL_STATUS,
    Stage.PROFILE_STATUS,
    Stage.PAYMENT_DETAILS,
    Stage.FUTURE_MATCH_STATUS,
    Stage.COMMUNICATION_STATUS,
    Stage.PAST_MATCH_STATUS,
    Stage.MATCH_PROCESS_STATUS,
    Stage.MARRIAGE_PROGRESS_STATUS,
    Stage.MARRIAGE_OUTCOME_STATUS,
    Stage.PROFILE_CLOSED_STATUS,
)

_STAGE_INDEX = {stage: index for index, stage in enumerate(STAGE_ORDER)}

# Status code that marks a Profile Status note as a profile share
PROFILES_SHARED = "profiles_shared"

REMINDER_FIELDS = ("reminder_date", "reminder_note")


def index_of(stage: Stage) -> int:
    """Position of a stage in the journey order."""
    return _STAGE_INDEX[stage]


def is_registered(value: object) -> bool:
    """Whether a value is a registered stage."""
    return isinstance(value, Stage) and value in _STAGE_INDEX


# =============================================================================
# Stage definitions
# =============================================================================

@dataclass(frozen=True)
class StageFieldSpec:
    """Form fields declared by a stage, by wire name."""

    stage: Stage
    fields: tuple[str, ...]
    status_field: str | None = None
    status_note_field: str | None = None
    other_note_field: str | None = None
    attachment_fields: tuple[str, ...] = ()

    @property
    def has_note_field(self) -> bool:
        return "note" in self.fields

    @property
    def has_reminder(self) -> bool:
        return all(name in self.fields for name in REMINDER_FIELDS)

    def declares(self, name: str) -> bool:
        return name in self.fields


@dataclass(frozen=True)
class StageDefinition:
    """Everything the engine knows about one stage."""

    stage: Stage
    field_spec: StageFieldSpec
    classifier_fields: tuple[str, ...] = ()
    status_options: dict[str, str] = field(default_factory=dict)
    # Status codes that open the customer picker; None means "any concrete
    # status except 'other'"
    picker_statuses: frozenset[str] | None = frozenset()


def _status_definition(
    stage: Stage,
    prefix: str,
    options: dict[str, str],
    picker_statuses: frozenset[str] | None = frozenset(),
    other_note: bool = False,
) -> StageDefinition:
    status_field = prefix
    note_field = f"{prefix}_note"
    other_field = f"{prefix}_other_note" if other_note else None
    image_field = f"{prefix}_image"

    form_fields = ["note", status_field, note_field]
    if other_field:
        form_fields.append(other_field)
    form_fields.extend(REMINDER_FIELDS)
    form_fields.extend((image_field, "file_upload"))

    classifier_fields = tuple(
        name for name in (status_field, note_field, other_field, image_field) if name
    )

    return StageDefinition(
        stage=stage,
        field_spec=StageFieldSpec(
            stage=stage,
            fields=tuple(form_fields),
            status_field=status_field,
            status_note_field=note_field,
            other_note_field=other_field,
            attachment_fields=(image_field, "file_upload"),
        ),
        classifier_fields=classifier_fields,
        status_options=options,
        picker_statuses=picker_statuses,
    )


CALL_STATUS_OPTIONS = {
    "not_answered": "Call Not Answered",
    "not_reachable": "Not Reachable",
    "switch_off": "Switch Off",
    "call_back_requested": "Call Back Requested",
    "call_busy": "Call Busy",
    "call_completed": "Call Completed",
    "not_interested": "Not Interested",
    "other": "Other",
}

PROFILE_STATUS_OPTIONS = {
    "success_story_photos": "Success Story & Office Photos Sent",
    "partner_details_added": "Partner & Profile Details Added",
    "profile_verified": "Profile Verification Screenshots Submitted",
    "credentials_shared": "Username & Password Shared with Customer",
    "photo_uploaded": "Profile Photo Uploaded (Good Looking)",
    "verified_screenshots": "Profile Verified & Screenshots Uploaded",
    "profiles_shortlisted": "Profiles Shortlisted by Customer",
    "service_explained": "Service Comparison Explained to Customer",
    "fees_explained": "Fees & Commitment Explained",
    "payment_pending": "Payment Pending from Customer",
    "fees_recorded": "Fees Recorded by Employee",
    "receipt_sent": "Receipt Sent to Customer (WhatsApp & Post)",
    "commitment_pending": "Commitment Pending from Customer",
    "commitment_recorded": "Commitment Recorded by Employee",
    "package_activated": "Package Activated",
    PROFILES_SHARED: "Profiles Shared",
    "not_interested_shared": "Customer Not Interested in Shared Profiles (Reason Provided)",
    "requested_new_profiles": "Requested New Profiles",
    "new_profile_submitted": "New Profile Submitted by Customer",
    "other": "Other",
}

FUTURE_MATCH_STATUS_OPTIONS = {
    "interested": "Interested for Future Match - Date Fixed",
    "not_interested": "Not Interested for Future Match - Date Fixed",
    "future_fixed": "Future Match Date Fixed",
    "postponed": "Future Match Postponed",
    "rejected": "Future Match Rejected",
}

COMMUNICATION_STATUS_OPTIONS = {
    "audio_completed": "Audio Conference Completed",
    "number_given": "Number Given",
    "other": "Other",
}

PAST_MATCH_STATUS_OPTIONS = {
    "completed": "Past Match Completed",
    "interested": "Past Match Interested",
    "rejected": "Past Match Rejected",
}

MATCH_PROCESS_STATUS_OPTIONS = {
    "both_ok_process": "Both Side OK - In Process",
    "both_ok_rejected": "Both Side OK - Process Rejected",
}

MARRIAGE_PROGRESS_STATUS_OPTIONS = {
    "matamuchata_fixed": "Matamuchata Date Fixed",
    "engagement_fixed": "Engagement Date Fixed",
    "marriage_fixed": "Marriage Date Fixed",
}

MARRIAGE_OUTCOME_STATUS_OPTIONS = {
    "settled_us": "Marriage Settled By Us",
    "settled_other": "Marriage Settled By Other Bureau / Relation",
    "completed_other": "Marriage Completed By Other Bureau / Relation",
    "other": "Other",
}

PROFILE_CLOSED_STATUS_OPTIONS = {
    "disable_customer_profile": "Customer Requested To Close Account",
    "inactive_customer_profile": "Inactive Customer Account",
    "other": "Other",
}


STAGE_DEFINITIONS: dict[Stage, StageDefinition] = {
    Stage.GENERAL_NOTE: StageDefinition(
        stage=Stage.GENERAL_NOTE,
        field_spec=StageFieldSpec(
            stage=Stage.GENERAL_NOTE,
            fields=("note", *REMINDER_FIELDS, "image", "file_upload"),
            attachment_fields=("image", "file_upload"),
        ),
    ),
    Stage.CALL_STATUS: _status_definition(
        Stage.CALL_STATUS, "call_status", CALL_STATUS_OPTIONS, other_note=True
    ),
    Stage.PROFILE_STATUS: _status_definition(
        Stage.PROFILE_STATUS,
        "profile_status",
        PROFILE_STATUS_OPTIONS,
        picker_statuses=frozenset({PROFILES_SHARED}),
    ),
    Stage.PAYMENT_DETAILS: StageDefinition(
        stage=Stage.PAYMENT_DETAILS,
        field_spec=StageFieldSpec(
            stage=Stage.PAYMENT_DETAILS,
            fields=(
                "note",
                "payment_amount",
                "payment_note",
                *REMINDER_FIELDS,
                "payment_image",
                "file_upload",
            ),
            attachment_fields=("payment_image", "file_upload"),
        ),
        classifier_fields=("payment_amount", "payment_note", "payment_image"),
    ),
    Stage.FUTURE_MATCH_STATUS: _status_definition(
        Stage.FUTURE_MATCH_STATUS,
        "future_match_status",
        FUTURE_MATCH_STATUS_OPTIONS,
        picker_statuses=None,
    ),
    Stage.COMMUNICATION_STATUS: _status_definition(
        Stage.COMMUNICATION_STATUS,
        "communication_status",
        COMMUNICATION_STATUS_OPTIONS,
        picker_statuses=None,
    ),
    Stage.PAST_MATCH_STATUS: _status_definition(
        Stage.PAST_MATCH_STATUS,
        "past_match_status",
        PAST_MATCH_STATUS_OPTIONS,
        picker_statuses=None,
    ),
    Stage.MATCH_PROCESS_STATUS: _status_definition(
        Stage.MATCH_PROCESS_STATUS,
        "match_process_status",
        MATCH_PROCESS_STATUS_OPTIONS,
        picker_statuses=None,
    ),
    Stage.MARRIAGE_PROGRESS_STATUS: _status_definition(
        Stage.MARRIAGE_PROGRESS_STATUS,
        "marriage_progress_status",
        MARRIAGE_PROGRESS_STATUS_OPTIONS,
        picker_statuses=None,
    ),
    Stage.MARRIAGE_OUTCOME_STATUS: _status_definition(
        Stage.MARRIAGE_OUTCOME_STATUS,
        "marriage_outcome_status",
        MARRIAGE_OUTCOME_STATUS_OPTIONS,
        picker_statuses=frozenset({"settled_us"}),
    ),
    Stage.PROFILE_CLOSED_STATUS: _status_definition(
        Stage.PROFILE_CLOSED_STATUS,
        "profile_closed_status",
        PROFILE_CLOSED_STATUS_OPTIONS,
    ),
}

# Field groups inspected on untagged notes, highest priority first
CLASSIFIER_PRIORITY: tuple[Stage, ...] = (
    Stage.CALL_STATUS,
    Stage.PROFILE_STATUS,
    Stage.PAYMENT_DETAILS,
    Stage.FUTURE_MATCH_STATUS,
    Stage.COMMUNICATION_STATUS,
    Stage.PAST_MATCH_STATUS,
    Stage.MATCH_PROCESS_STATUS,
    Stage.MARRIAGE_PROGRESS_STATUS,
    Stage.MARRIAGE_OUTCOME_STATUS,
    Stage.PROFILE_CLOSED_STATUS,
)


def get_definition(stage: Stage) -> StageDefinition:
    """Get the definition of a stage."""
    return STAGE_DEFINITIONS[stage]


def get_field_spec(stage: Stage) -> StageFieldSpec:
    """Get the form field spec of a stage."""
    return STAGE_DEFINITIONS[stage].field_spec


def status_label(stage: Stage, status: str | None) -> str | None:
    """Display label of a status code, falling back to the code itself."""
    if not status:
        return None
    return STAGE_DEFINITIONS[stage].status_options.get(status, status)


def opens_customer_picker(stage: Stage, status: str | None) -> bool:
    """Whether choosing this status should open the customer picker."""
    if not status:
        return False
    picker_statuses = STAGE_DEFINITIONS[stage].picker_statuses
    if picker_statuses is None:
        return status != "other"
    return status in picker_statuses


def accepts_associated_customers(stage: Stage, status: str | None) -> bool:
    """Whether a note with this stage and status may carry associated customers."""
    return stage == Stage.PROFILE_STATUS and status == PROFILES_SHARED
