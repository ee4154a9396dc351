"""Unit tests for the stage timeline."""

from followup.engine import classify_notes, derive_timeline
from followup.engine.timeline import latest_note, stage_status
from followup.models import Stage, StageStatus


class TestDeriveTimeline:
    """Tests for per-stage status derivation."""

    def test_empty_history(self):
        timeline = derive_timeline([])

        assert timeline.current_stage == Stage.GENERAL_NOTE
        assert timeline.status_of(Stage.GENERAL_NOTE) == StageStatus.CURRENT
        assert all(
            status == StageStatus.PENDING
            for stage, status in timeline.per_stage_status.items()
            if stage != Stage.GENERAL_NOTE
        )

    def test_completed_takes_precedence_over_current(self, make_note):
        notes = [
            make_note("1", section_heading="General Note", created_at="2024-06-01T10:00:00"),
            make_note("2", section_heading="Profile Status", created_at="2024-06-02T10:00:00"),
        ]
        timeline = derive_timeline(notes)

        assert timeline.current_stage == Stage.PROFILE_STATUS
        assert timeline.status_of(Stage.GENERAL_NOTE) == StageStatus.COMPLETED
        assert timeline.status_of(Stage.CALL_STATUS) == StageStatus.SKIPPED
        assert timeline.status_of(Stage.PROFILE_STATUS) == StageStatus.COMPLETED
        for stage in list(Stage)[3:]:
            assert timeline.status_of(stage) == StageStatus.PENDING

    def test_current_is_stage_of_latest_note_not_furthest(self, make_note):
        notes = [
            make_note("1", section_heading="Payment Details", created_at="2024-06-01T10:00:00"),
            make_note("2", section_heading="Call Status", created_at="2024-06-05T10:00:00"),
        ]
        timeline = derive_timeline(notes)

        assert timeline.current_stage == Stage.CALL_STATUS
        assert timeline.status_of(Stage.GENERAL_NOTE) == StageStatus.SKIPPED
        assert timeline.status_of(Stage.PROFILE_STATUS) == StageStatus.PENDING
        assert timeline.status_of(Stage.PAYMENT_DETAILS) == StageStatus.COMPLETED

    def test_sample_history(self, sample_notes):
        timeline = derive_timeline(sample_notes)

        assert timeline.current_stage == Stage.PAYMENT_DETAILS
        assert timeline.completed_stages == frozenset({
            Stage.GENERAL_NOTE,
            Stage.CALL_STATUS,
            Stage.PROFILE_STATUS,
            Stage.PAYMENT_DETAILS,
        })
        assert timeline.status_of(Stage.FUTURE_MATCH_STATUS) == StageStatus.PENDING

    def test_idempotent(self, sample_notes):
        first = derive_timeline(sample_notes)
        second = derive_timeline(sample_notes)

        assert first.current_stage == second.current_stage
        assert first.per_stage_status == second.per_stage_status

    def test_classified_and_raw_agree(self, sample_notes, classified_notes):
        assert derive_timeline(sample_notes) == derive_timeline(classified_notes)

    def test_stages_in_order(self, sample_notes):
        timeline = derive_timeline(sample_notes)
        assert [p.position for p in timeline.stages] == list(range(len(Stage)))
        assert [p.stage for p in timeline.stages] == list(Stage)

    def test_undated_notes_count_as_completed_but_not_current(self, make_note):
        notes = [
            make_note("1", section_heading="Marriage Outcome Status"),
            make_note("2", section_heading="Call Status", created_at="2024-06-01T10:00:00"),
        ]
        timeline = derive_timeline(notes)

        assert timeline.current_stage == Stage.CALL_STATUS
        assert timeline.status_of(Stage.MARRIAGE_OUTCOME_STATUS) == StageStatus.COMPLETED

    def test_timezones_compared_as_instants(self, make_note):
        notes = [
            # 2024-06-01 04:00 UTC
            make_note("1", section_heading="Call Status", created_at="2024-06-01T09:30:00+05:30"),
            # 2024-06-01 03:00 UTC
            make_note("2", section_heading="Profile Status", created_at="2024-06-01T03:00:00Z"),
        ]
        assert derive_timeline(notes).current_stage == Stage.CALL_STATUS


class TestLatestNote:
    """Tests for picking the most recent note."""

    def test_tie_goes_to_first_in_input_order(self, make_note):
        notes = classify_notes([
            make_note("a", section_heading="Call Status", created_at="2024-06-01T10:00:00"),
            make_note("b", section_heading="Profile Status", created_at="2024-06-01T10:00:00"),
        ])
        assert latest_note(notes).id == "a"

    def test_all_undated(self, make_note):
        notes = classify_notes([make_note("a"), make_note("b")])
        assert latest_note(notes) is None


class TestStageStatus:
    """Tests for the status precedence of a single stage."""

    def test_precedence(self):
        completed = {Stage.CALL_STATUS}
        current = Stage.CALL_STATUS

        assert stage_status(Stage.CALL_STATUS, completed, current) == StageStatus.COMPLETED
        assert stage_status(Stage.GENERAL_NOTE, completed, current) == StageStatus.SKIPPED
        assert stage_status(Stage.PROFILE_STATUS, completed, current) == StageStatus.PENDING

    def test_completed_before_skipped(self):
        completed = {Stage.GENERAL_NOTE}
        assert stage_status(Stage.GENERAL_NOTE, completed, Stage.PAYMENT_DETAILS) == StageStatus.COMPLETED

    def test_current_without_note(self):
        assert stage_status(Stage.CALL_STATUS, set(), Stage.CALL_STATUS) == StageStatus.CURRENT
