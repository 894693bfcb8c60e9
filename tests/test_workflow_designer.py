"""Tests for the workflow designer."""

import json

import pytest

from trainingpulse.client.errors import ValidationFailed
from trainingpulse.client.query_cache import QueryClient
from trainingpulse.client.workflow_designer import WorkflowDesigner, infer_stage_type

TEMPLATE = {
    "id": "t1",
    "name": "Standard",
    "description": "Default",
    "states": [
        {"id": "s1", "state_name": "content_dev", "display_name": "Build"},
        {"id": "s2", "state_name": "sme_review", "display_name": "SME Review", "position_x": 400, "position_y": 90},
    ],
}


@pytest.mark.parametrize(
    "name,expected",
    [
        ("course_planning", "planning"),
        ("content_build", "content_development"),
        ("development_phase", "content_development"),
        ("legal_review", "review"),
        ("final_approval", "approval"),
        ("legal_check", "legal_review"),
        ("published", "published"),
        ("archived_old", "archived"),
        ("kickoff", "planning"),
        (None, "planning"),
    ],
)
def test_infer_stage_type(name, expected):
    assert infer_stage_type(name) == expected


class TestEditing:
    def test_loaded_stages_get_positions_and_types(self):
        designer = WorkflowDesigner.from_template(TEMPLATE)

        first, second = designer.stages
        assert (first["position_x"], first["position_y"]) == (50, 150)
        assert first["stage_type"] == "content_development"
        assert (second["position_x"], second["position_y"]) == (400, 90)
        assert second["stage_type"] == "review"
        assert designer.has_unsaved_changes is False

    def test_added_stages_line_up_left_to_right(self):
        designer = WorkflowDesigner(name="New")

        first = designer.add_stage("planning")
        second = designer.add_stage("review", display_name="Peer Review")

        assert first["is_initial"] is True
        assert second["is_initial"] is False
        assert first["display_name"] == "Planning"
        assert second["display_name"] == "Peer Review"
        assert second["position_x"] - first["position_x"] == 300
        assert first["state_name"].startswith("planning_")
        assert designer.has_unsaved_changes

    def test_unknown_stage_type_is_rejected(self):
        with pytest.raises(ValueError):
            WorkflowDesigner().add_stage("brainstorm")

    def test_reordering(self):
        designer = WorkflowDesigner.from_template(TEMPLATE)

        assert designer.move_stage_up(0) is False
        assert designer.move_stage_down(1) is False
        assert designer.move_stage_down(0) is True
        assert [s["id"] for s in designer.stages] == ["s2", "s1"]

    def test_drag_is_clamped_to_canvas(self):
        designer = WorkflowDesigner.from_template(TEMPLATE)
        designer.begin_drag("s1", offset=(20, 10))

        stage = designer.drag_to(10, 300)
        assert (stage["position_x"], stage["position_y"]) == (0, 290)

        designer.end_drag()
        assert designer.drag_to(500, 500) is None

    def test_deleting_dragged_stage_ends_drag(self):
        designer = WorkflowDesigner.from_template(TEMPLATE)
        designer.begin_drag("s2")

        designer.delete_stage("s2")

        assert designer.dragging is None
        with pytest.raises(KeyError):
            designer.delete_stage("s2")

    def test_cancel_asks_before_discarding(self, notifier):
        designer = WorkflowDesigner.from_template(TEMPLATE, notifier=notifier)
        designer.set_name("Renamed")

        notifier.answer = False
        assert designer.cancel() is False
        assert designer.name == "Renamed"

        notifier.answer = True
        assert designer.cancel() is True
        assert designer.name == "Standard"
        assert not designer.has_unsaved_changes

    def test_duplicate_renames_states(self):
        designer = WorkflowDesigner.for_duplicate(TEMPLATE, suffix=42)

        assert designer.name == "Copy of Standard"
        assert [s["state_name"] for s in designer.stages] == ["content_dev_copy_42", "sme_review_copy_42"]
        assert all(s["id"].startswith("temp_") for s in designer.stages)
        assert designer.has_unsaved_changes


class TestPayload:
    def test_linear_chain(self):
        designer = WorkflowDesigner(name="Chain")
        stages = [designer.add_stage(t) for t in ("planning", "review", "published")]

        payload = designer.build_payload()

        assert [s["order"] for s in payload["states"]] == [0, 1, 2]
        assert [s["is_initial"] for s in payload["states"]] == [True, False, False]
        assert [s["is_final"] for s in payload["states"]] == [False, False, True]
        assert payload["transitions"] == [
            {"from_state": stages[0]["state_name"], "to_state": stages[1]["state_name"], "condition": "auto", "order": 0},
            {"from_state": stages[1]["state_name"], "to_state": stages[2]["state_name"], "condition": "auto", "order": 1},
        ]

    def test_single_stage_is_initial_and_final(self):
        designer = WorkflowDesigner(name="One")
        designer.add_stage("planning")

        (state,) = designer.build_payload()["states"]
        assert state["is_initial"] and state["is_final"]
        assert designer.build_payload()["transitions"] == []

    @pytest.mark.parametrize(
        "name,stages,message",
        [
            ("  ", 1, "Please enter a workflow name"),
            ("Named", 0, "Please add at least one stage to the workflow"),
        ],
    )
    def test_validation(self, name, stages, message):
        designer = WorkflowDesigner(name=name)
        for _ in range(stages):
            designer.add_stage("planning")

        with pytest.raises(ValidationFailed, match=message):
            designer.validate()


class TestSave:
    @pytest.mark.asyncio
    async def test_creates_template_and_refreshes_list(self, fake_api, api_client, notifier):
        query_client = QueryClient()
        designer = WorkflowDesigner(name="Fresh", notifier=notifier)
        designer.add_stage("planning")
        designer.add_stage("published")

        saved = await designer.save(api_client, query_client)

        assert saved["id"] in fake_api.templates
        (request,) = fake_api.calls("POST", "/workflows/templates")
        assert len(json.loads(request.content)["transitions"]) == 1
        assert notifier.successes == ["Workflow saved successfully!"]
        assert designer.has_unsaved_changes is False

    @pytest.mark.asyncio
    async def test_updates_existing_template(self, fake_api, api_client, notifier):
        fake_api.templates["t1"] = dict(TEMPLATE)
        designer = WorkflowDesigner.from_template(TEMPLATE, notifier=notifier)
        designer.set_name("Standard v2")

        saved = await designer.save(api_client, QueryClient(), template_id="t1")

        assert saved["name"] == "Standard v2"
        assert len(fake_api.calls("PUT", "/workflows/templates/t1")) == 1

    @pytest.mark.asyncio
    async def test_validation_failure_makes_no_request(self, fake_api, api_client, notifier):
        designer = WorkflowDesigner(name="Empty", notifier=notifier)

        with pytest.raises(ValidationFailed):
            await designer.save(api_client, QueryClient())

        assert notifier.errors == ["Please add at least one stage to the workflow"]
        assert fake_api.requests == []

    @pytest.mark.asyncio
    async def test_server_failure_is_reported(self, fake_api, api_client, notifier):
        fake_api.fail("POST", r"/workflows/templates")
        designer = WorkflowDesigner(name="Fresh", notifier=notifier)
        designer.add_stage("planning")

        assert await designer.save(api_client, QueryClient()) is None

        assert notifier.errors == ["Failed to save workflow. Please try again."]
        assert designer.has_unsaved_changes is True
        assert len(fake_api.calls("POST", "/workflows/templates")) == 1
