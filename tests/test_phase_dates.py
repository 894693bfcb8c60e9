"""Tests for phase-status date bookkeeping."""

from datetime import datetime, timezone

from trainingpulse.core.phase_dates import (
    all_date_columns,
    clear_dates_warning,
    clears_dates,
    describe_status,
    phase_change_updates,
)

NOW = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


class TestClearsDates:
    def test_dated_status_to_no_status_needs_confirmation(self):
        assert clears_dates("alpha_review", "") is True

    def test_undated_status_to_no_status_is_silent(self):
        assert clears_dates("pending", "") is False

    def test_switch_between_dated_statuses_does_not_clear(self):
        assert clears_dates("alpha_review", "beta_review") is False

    def test_warning_names_the_old_status(self):
        message = clear_dates_warning("beta_revision")
        assert '"Beta Revision"' in message
        assert '"No Status"' in message


class TestPhaseChangeUpdates:
    def test_same_status_changes_nothing(self):
        updates, changes = phase_change_updates({"status": "alpha_review"}, "alpha_review", NOW)
        assert updates == {}
        assert changes == {}

    def test_no_status_clears_every_recorded_date(self):
        current = {
            "status": "beta_review",
            "start_date": "2026-01-01",
            "alpha_review_start_date": "2026-01-02",
            "alpha_review_end_date": "2026-01-05",
            "beta_review_start_date": "2026-01-06",
        }
        updates, changes = phase_change_updates(current, "", NOW)

        assert updates == {
            "start_date": None,
            "alpha_review_start_date": None,
            "alpha_review_end_date": None,
            "beta_review_start_date": None,
        }
        assert changes["start_date"] == {"from": "2026-01-01", "to": None}

    def test_leaving_pending_sets_start_date(self):
        updates, _ = phase_change_updates({"status": "pending"}, "alpha_draft", NOW)
        assert updates["start_date"] == NOW

    def test_leaving_pending_keeps_existing_start_date(self):
        updates, _ = phase_change_updates({"status": "pending", "start_date": "2026-01-01"}, "alpha_draft", NOW)
        assert "start_date" not in updates

    def test_entering_phase_stamps_start_and_completion_and_clears_end(self):
        updates, _ = phase_change_updates({"status": "alpha_draft"}, "alpha_review", NOW)

        assert updates["alpha_review_start_date"] == NOW
        assert updates["alpha_review_date"] == NOW
        assert updates["alpha_review_end_date"] is None

    def test_leaving_phase_stamps_its_end_date(self):
        updates, _ = phase_change_updates({"status": "alpha_review"}, "beta_revision", NOW)
        assert updates["alpha_review_end_date"] == NOW

    def test_leaving_phase_keeps_recorded_end_date(self):
        current = {"status": "alpha_review", "alpha_review_end_date": "2026-02-01"}
        updates, _ = phase_change_updates(current, "beta_revision", NOW)
        assert "alpha_review_end_date" not in updates

    def test_entering_completion_sets_finish_date(self):
        updates, _ = phase_change_updates({"status": "beta_review"}, "final_revision", NOW)
        assert updates["finish_date"] == NOW

    def test_leaving_completion_clears_finish_date(self):
        current = {"status": "final_signoff_received", "finish_date": "2026-02-10"}
        updates, _ = phase_change_updates(current, "beta_review", NOW)
        assert updates["finish_date"] is None

    def test_rewinding_clears_later_phases(self):
        current = {
            "status": "final_revision",
            "beta_review_start_date": "2026-02-01",
            "beta_review_end_date": "2026-02-03",
            "beta_review_date": "2026-02-01",
            "final_revision_start_date": "2026-02-04",
        }
        updates, changes = phase_change_updates(current, "alpha_review", NOW)

        assert updates["beta_review_start_date"] is None
        assert updates["beta_review_end_date"] is None
        assert updates["beta_review_date"] is None
        assert updates["alpha_review_start_date"] == NOW
        # Nothing was recorded for these, so nothing to clear
        assert "final_signoff_sent_start_date" not in changes

    def test_final_signoff_received_has_no_end_column(self):
        updates, _ = phase_change_updates({"status": "final_signoff_sent"}, "final_signoff_received", NOW)
        assert "final_signoff_received_end_date" not in updates
        assert updates["final_signoff_received_date"] == NOW


def test_all_date_columns_covers_basic_and_phase_columns():
    columns = all_date_columns()
    assert columns[:3] == ["start_date", "finish_date", "completed_at"]
    assert "final_signoff_received_end_date" not in columns
    assert "final_signoff_sent_end_date" in columns


def test_describe_status():
    assert describe_status("") == "No Status"
    assert describe_status("final_signoff_sent") == "Final Signoff Sent"
