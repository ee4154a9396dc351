"""Unit tests for the share deduplicator."""

import pytest

from followup.engine import (
    annotate_re_shared,
    classify_notes,
    describe_customers,
    find_already_shared,
    gate_share,
    is_share_note,
)
from followup.errors import DuplicateShareWarning
from followup.models import Customer, Note, NoteDraft, Stage


@pytest.fixture
def history(share_record):
    """Classified history with two share notes and a non-share note."""
    return classify_notes([
        Note.from_record(share_record("A", ["C1", "C2"], "2024-06-01T10:00:00")),
        Note.from_record({
            "id": "B",
            "section_heading": "Profile Status",
            "profile_status": "package_activated",
            "associated_customer_ids": ["C9"],
            "created_at": "2024-06-02T10:00:00",
        }),
        Note.from_record(share_record("C", ["C5"], "2024-06-03T10:00:00")),
    ])


def share_draft(ids: list[str]) -> NoteDraft:
    return NoteDraft(
        customer_id="CUST001",
        stage=Stage.PROFILE_STATUS,
        note="Shared matching profiles",
        status="profiles_shared",
        status_note="Sharing",
        associated_customer_ids=ids,
    )


class TestIsShareNote:
    """Tests for recognizing share notes."""

    def test_share_note(self, history):
        assert is_share_note(history[0])

    def test_other_status_is_not_share(self, history):
        assert not is_share_note(history[1])

    def test_empty_ids_is_not_share(self, share_record):
        note = classify_notes([Note.from_record(share_record("X", []))])[0]
        assert not is_share_note(note)


class TestFindAlreadyShared:
    """Tests for the already-shared lookup."""

    def test_intersection(self, share_record):
        history = classify_notes([Note.from_record(share_record("A", ["C1", "C2"]))])
        assert find_already_shared(history, ["C2", "C3"]) == ["C2"]

    def test_empty_history(self):
        assert find_already_shared([], ["C2", "C3"]) == []

    def test_scans_entire_history(self, history):
        assert find_already_shared(history, ["C1", "C5"]) == ["C1", "C5"]

    def test_non_share_notes_ignored(self, history):
        assert find_already_shared(history, ["C9"]) == []

    def test_candidate_order_and_dedup(self, history):
        assert find_already_shared(history, ["C5", "C3", "C1", "C5"]) == ["C5", "C1"]

    def test_exclude_note(self, history):
        assert find_already_shared(history, ["C1", "C5"], exclude_note_id="A") == ["C5"]

    def test_raw_notes_are_classified(self, share_record):
        history = [
            Note.from_record(share_record("A", ["C1", "C2"])),
            Note.from_record({"id": "B", "section_heading": "General Note", "note": "C3"}),
        ]
        assert find_already_shared(history, ["C3", "C2"]) == ["C2"]

    def test_raw_untagged_share_note(self):
        raw = Note.from_record({
            "id": "L",
            "profile_status": "profiles_shared",
            "associated_customer_ids": ["C4"],
        })
        assert is_share_note(raw)
        assert find_already_shared([raw], ["C4"]) == ["C4"]


class TestAnnotateReShared:
    """Tests for the re-share flag."""

    def test_only_later_note_flagged(self, share_record):
        notes = classify_notes([
            Note.from_record(share_record("later", ["C1"], "2024-06-05T10:00:00")),
            Note.from_record(share_record("earlier", ["C1"], "2024-06-01T10:00:00")),
        ])
        flags = {note.id: note.is_re_shared for note in annotate_re_shared(notes)}
        assert flags == {"later": True, "earlier": False}

    def test_equal_timestamps_flag_first_in_input(self, share_record):
        notes = classify_notes([
            Note.from_record(share_record("first", ["C1"], "2024-06-05T10:00:00")),
            Note.from_record(share_record("second", ["C1"], "2024-06-05T10:00:00")),
        ])
        flags = {note.id: note.is_re_shared for note in annotate_re_shared(notes)}
        assert flags == {"first": True, "second": False}

    def test_input_order_preserved(self, history):
        assert [note.id for note in annotate_re_shared(history)] == ["A", "B", "C"]

    def test_no_overlap(self, history):
        assert not any(note.is_re_shared for note in history)


class TestGateShare:
    """Tests for the submission-time share gate."""

    def test_no_overlap_passes(self, history):
        assert gate_share(history, share_draft(["C7", "C8"])) == ["C7", "C8"]

    def test_overlap_raises(self, history):
        with pytest.raises(DuplicateShareWarning) as exc_info:
            gate_share(history, share_draft(["C2", "C7"]))

        assert exc_info.value.already_shared == ["C2"]
        assert exc_info.value.candidate_ids == ["C2", "C7"]
        assert "C2" in str(exc_info.value)

    def test_override_returns_original_ids(self, history):
        assert gate_share(history, share_draft(["C2", "C7"]), override=True) == ["C2", "C7"]

    def test_non_share_draft_not_gated(self, history, valid_draft):
        assert gate_share(history, valid_draft) == []


class TestDescribeCustomers:
    """Tests for resolving customer names."""

    def test_names_with_fallback(self):
        directory = [Customer(id="C1", name="Asha Patil"), Customer(id="C2", name="")]
        assert describe_customers(["C1", "C2", "C3"], directory) == ["Asha Patil", "C2", "C3"]
