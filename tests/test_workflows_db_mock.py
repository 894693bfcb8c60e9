"""Tests for workflow template database operations with mocked Supabase."""

from unittest.mock import patch
from uuid import uuid4

from tests.fakes.supabase import chain_returning, mock_result
from trainingpulse.db.workflows import update_template

TEMPLATE_ID = uuid4()

STORED_TRANSITIONS = [
    {"id": "tr1", "from_state": "a", "to_state": "b", "condition": "auto", "order": 0},
    {"id": "tr2", "from_state": "b", "to_state": "c", "condition": "auto", "order": 1},
]

STATES = [
    {"state_name": "a", "display_name": "A", "is_initial": True},
    {"state_name": "b", "display_name": "B"},
    {"state_name": "c", "display_name": "C", "is_final": True},
]


def _inserted(supabase):
    return [c.args[0] for c in supabase.builder.insert.call_args_list]


class TestUpdateTemplate:
    def test_states_without_transitions_rewrites_stored_transitions(self):
        supabase = chain_returning(
            mock_result([{"id": str(TEMPLATE_ID)}]),  # template update
            mock_result(STORED_TRANSITIONS),  # stored transitions
            mock_result([]),
        )

        with patch("trainingpulse.db.workflows.get_supabase", return_value=supabase):
            update_template(TEMPLATE_ID, {"states": STATES})

        states_rows, transition_rows = _inserted(supabase)
        assert [r["state_name"] for r in states_rows] == ["a", "b", "c"]
        assert [(r["from_state"], r["to_state"]) for r in transition_rows] == [("a", "b"), ("b", "c")]
        assert all(r["workflow_template_id"] == str(TEMPLATE_ID) for r in transition_rows)

    def test_explicit_transitions_replace_stored_ones(self):
        supabase = chain_returning(mock_result([{"id": str(TEMPLATE_ID)}]), mock_result([]))

        with patch("trainingpulse.db.workflows.get_supabase", return_value=supabase):
            update_template(
                TEMPLATE_ID,
                {"states": STATES[:2], "transitions": [{"from_state": "a", "to_state": "b"}]},
            )

        _, transition_rows = _inserted(supabase)
        assert transition_rows == [
            {
                "workflow_template_id": str(TEMPLATE_ID),
                "from_state": "a",
                "to_state": "b",
                "condition": "auto",
                "order": 0,
            }
        ]

    def test_metadata_only_update_leaves_graph_alone(self):
        supabase = chain_returning(mock_result([{"id": str(TEMPLATE_ID), "name": "Renamed"}]))

        with patch("trainingpulse.db.workflows.get_supabase", return_value=supabase):
            update_template(TEMPLATE_ID, {"name": "Renamed"})

        supabase.builder.delete.assert_not_called()
        supabase.builder.insert.assert_not_called()
