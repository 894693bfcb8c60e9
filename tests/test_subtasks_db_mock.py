"""Tests for subtask and custom field database operations with mocked Supabase."""

from unittest.mock import patch
from uuid import uuid4

import pytest

from tests.fakes.supabase import chain_returning, mock_result
from trainingpulse.db.custom_fields import validate_values
from trainingpulse.db.subtasks import create_subtask, delete_subtask, update_subtask

COURSE_ID = uuid4()
SUBTASK_ID = uuid4()


def _subtask(**fields):
    return {"id": str(SUBTASK_ID), "course_id": str(COURSE_ID), "title": "Alpha", **fields}


class TestUpdateSubtask:
    def test_status_change_stamps_dates_and_records_history(self):
        current = _subtask(status="alpha_draft")
        updated = _subtask(status="alpha_review")
        supabase = chain_returning(mock_result([current]), mock_result([updated]), mock_result([]))
        user_id = uuid4()

        with patch("trainingpulse.db.subtasks.get_supabase", return_value=supabase):
            subtask, changes = update_subtask(COURSE_ID, SUBTASK_ID, {"status": "alpha_review"}, changed_by=user_id)

        assert subtask == updated
        assert changes["status"] == {"from": "alpha_draft", "to": "alpha_review"}
        assert "alpha_review_start_date" in changes

        row = supabase.builder.update.call_args_list[0].args[0]
        assert row["status"] == "alpha_review"
        assert row["alpha_review_start_date"] == row["alpha_review_date"]
        assert row["alpha_review_end_date"] is None

        # Previous history entry closed, new one opened
        assert set(supabase.builder.update.call_args_list[1].args[0]) == {"finished_at"}
        history = supabase.builder.insert.call_args.args[0]
        assert history["status"] == "alpha_review"
        assert history["changed_by"] == str(user_id)

    def test_non_status_update_skips_history(self):
        supabase = chain_returning(mock_result([_subtask(status="alpha_draft", weight=1)]), mock_result([_subtask(weight=3)]))

        with patch("trainingpulse.db.subtasks.get_supabase", return_value=supabase):
            _, changes = update_subtask(COURSE_ID, SUBTASK_ID, {"weight": 3})

        assert changes == {"weight": {"from": 1, "to": 3}}
        supabase.builder.insert.assert_not_called()

    def test_missing_subtask(self):
        supabase = chain_returning(mock_result([]))

        with patch("trainingpulse.db.subtasks.get_supabase", return_value=supabase):
            with pytest.raises(ValueError, match="Subtask not found"):
                update_subtask(COURSE_ID, SUBTASK_ID, {"weight": 3})


def test_create_with_status_opens_history():
    supabase = chain_returning(mock_result([_subtask(status="alpha_draft")]))

    with patch("trainingpulse.db.subtasks.get_supabase", return_value=supabase):
        create_subtask(COURSE_ID, {"title": "Alpha", "status": "alpha_draft", "weight": 1})

    subtask_row, history_row = (c.args[0] for c in supabase.builder.insert.call_args_list)
    assert subtask_row["course_id"] == str(COURSE_ID)
    assert subtask_row["alpha_draft_start_date"] == subtask_row["alpha_draft_date"]
    assert history_row["status"] == "alpha_draft"


def test_create_without_status_has_no_history():
    supabase = chain_returning(mock_result([_subtask(status="")]))

    with patch("trainingpulse.db.subtasks.get_supabase", return_value=supabase):
        create_subtask(COURSE_ID, {"title": "Alpha", "status": ""})

    assert supabase.builder.insert.call_count == 1


def test_delete_reports_whether_a_row_was_removed():
    supabase = chain_returning(mock_result([]))

    with patch("trainingpulse.db.subtasks.get_supabase", return_value=supabase):
        assert delete_subtask(COURSE_ID, SUBTASK_ID) is False


class TestCustomFieldValidation:
    FIELDS = [
        {"name": "hours", "label": "Seat hours", "field_type": "number", "is_required": True},
        {"name": "format", "field_type": "select", "options": ["elearning", "ilt"]},
        {"name": "audiences", "field_type": "multi_select", "options": ["sales", "support"]},
        {"name": "accredited", "field_type": "boolean"},
    ]

    def test_valid_values(self):
        values = {"hours": 2.5, "format": "ilt", "audiences": ["sales"], "accredited": False}
        assert validate_values(self.FIELDS, values) == []

    def test_reports_each_problem(self):
        errors = validate_values(
            self.FIELDS,
            {"format": "webinar", "audiences": ["sales", "legal"], "accredited": "yes", "color": "red"},
        )

        assert errors == [
            "Unknown field: color",
            "Seat hours is required",
            "format must be one of elearning, ilt",
            "audiences has invalid options: legal",
            "accredited must be true or false",
        ]

    def test_number_type_is_checked(self):
        assert validate_values(self.FIELDS, {"hours": "two"}) == ["hours must be a number"]
