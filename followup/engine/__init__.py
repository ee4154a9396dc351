"""Follow-up engine - pure functions over immutable note snapshots.

Flow:
    raw notes -> classify -> {timeline, reminders, sharing}
    draft     -> validate (+ share gate) -> note store
"""

from followup.engine.registry import (
    STAGE_ORDER,
    PROFILES_SHARED,
    StageDefinition,
    StageFieldSpec,
    get_definition,
    get_field_spec,
    index_of,
    opens_customer_picker,
    status_label,
)
from followup.engine.classifier import classify, classify_note, classify_notes
from followup.engine.sharing import (
    annotate_re_shared,
    describe_customers,
    find_already_shared,
    gate_share,
    is_share_note,
)
from followup.engine.timeline import derive_timeline
from followup.engine.reminders import is_urgent, reminder_key, scan
from followup.engine.validation import validate
from followup.engine.directory import paginate, search_customers
from followup.engine.search import search_notes

__all__ = [
    # Registry
    "STAGE_ORDER",
    "PROFILES_SHARED",
    "StageDefinition",
    "StageFieldSpec",
    "index_of",
    "get_definition",
    "get_field_spec",
    "status_label",
    "opens_customer_picker",
    # Classification
    "classify",
    "classify_note",
    "classify_notes",
    # Timeline
    "derive_timeline",
    # Reminders
    "scan",
    "reminder_key",
    "is_urgent",
    # Sharing
    "find_already_shared",
    "gate_share",
    "annotate_re_shared",
    "is_share_note",
    "describe_customers",
    # Validation
    "validate",
    # Search
    "search_customers",
    "search_notes",
    "paginate",
]
