"""Tests for the priority and modality lookup endpoints."""

from unittest.mock import patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from tests.fakes.supabase import chain_returning, make_user, mock_result
from trainingpulse.core.auth_middleware import AuthContext, require_auth
from trainingpulse.db.modalities import ModalityInUse
from trainingpulse.db.priorities import PriorityInUse, create_priority, delete_priority, update_priority
from trainingpulse.main import app


@pytest.fixture
def client():
    def _client(role="admin"):
        app.dependency_overrides[require_auth] = lambda: AuthContext(make_user(role), "test-token")
        return TestClient(app)

    yield _client
    app.dependency_overrides.clear()


@pytest.fixture
def priorities_db():
    with patch("trainingpulse.api.priorities.priorities_db") as mock:
        yield mock


@pytest.fixture
def modalities_db():
    with patch("trainingpulse.api.modalities.modalities_db") as mock:
        yield mock


class TestPriorities:
    def test_any_user_can_list(self, client, priorities_db):
        priorities_db.list_priorities.return_value = [{"value": "high", "label": "High"}]

        response = client("viewer").get("/api/v1/priorities")

        assert response.status_code == 200
        assert response.json()["data"] == [{"value": "high", "label": "High"}]

    def test_create_requires_admin(self, client, priorities_db):
        response = client("manager").post("/api/v1/priorities", json={"value": "urgent", "label": "Urgent"})

        assert response.status_code == 403
        priorities_db.create_priority.assert_not_called()

    def test_duplicate_value_conflicts(self, client, priorities_db):
        priorities_db.get_priority_by_value.return_value = {"id": "p1", "value": "urgent"}

        response = client().post("/api/v1/priorities", json={"value": "Urgent", "label": "Urgent"})

        assert response.status_code == 409
        priorities_db.create_priority.assert_not_called()

    def test_creates_priority(self, client, priorities_db):
        priorities_db.get_priority_by_value.return_value = None
        priorities_db.create_priority.return_value = {"id": "p1", "value": "urgent"}

        response = client().post("/api/v1/priorities", json={"value": "urgent", "label": "Urgent"})

        assert response.status_code == 201
        data = priorities_db.create_priority.call_args.args[0]
        assert data["icon"] == "Flag"
        assert data["is_default"] is False

    def test_in_use_priority_conflicts(self, client, priorities_db):
        priorities_db.delete_priority.side_effect = PriorityInUse("Priority 'high' is used by 3 course(s)")

        response = client().delete(f"/api/v1/priorities/{uuid4()}")

        assert response.status_code == 409
        assert "3 course(s)" in response.json()["detail"]

    def test_missing_priority_delete_is_404(self, client, priorities_db):
        priorities_db.delete_priority.side_effect = ValueError("Priority not found")

        response = client().delete(f"/api/v1/priorities/{uuid4()}")

        assert response.status_code == 404


class TestPriorityQueries:
    def test_value_is_lowercased(self):
        supabase = chain_returning(mock_result([{"id": "p1", "value": "urgent"}]))

        with patch("trainingpulse.db.priorities.get_supabase", return_value=supabase):
            create_priority({"value": "Urgent", "label": "Urgent", "is_default": False})

        assert supabase.builder.insert.call_args.args[0]["value"] == "urgent"
        supabase.builder.update.assert_not_called()

    def test_new_default_clears_previous_default(self):
        priority_id = uuid4()
        supabase = chain_returning(mock_result([{"id": str(priority_id)}]))

        with patch("trainingpulse.db.priorities.get_supabase", return_value=supabase):
            update_priority(priority_id, {"is_default": True})

        first_update = supabase.builder.update.call_args_list[0].args[0]
        assert first_update == {"is_default": False}
        supabase.builder.neq.assert_called_once_with("id", str(priority_id))

    def test_delete_is_soft(self):
        priority_id = uuid4()
        supabase = chain_returning(mock_result([{"id": str(priority_id), "value": "low"}]), mock_result([], count=0))

        with patch("trainingpulse.db.priorities.get_supabase", return_value=supabase):
            delete_priority(priority_id)

        supabase.builder.delete.assert_not_called()
        assert supabase.builder.update.call_args.args[0]["is_active"] is False

    def test_delete_in_use_raises(self):
        supabase = chain_returning(mock_result([{"id": "p1", "value": "low"}]), mock_result([], count=2))

        with patch("trainingpulse.db.priorities.get_supabase", return_value=supabase):
            with pytest.raises(PriorityInUse):
                delete_priority(uuid4())

        supabase.builder.update.assert_not_called()


class TestModalities:
    def test_tasks_route_is_not_taken_for_an_id(self, client, modalities_db):
        modalities_db.list_tasks_grouped.return_value = {"elearning": [{"task_type": "Storyboard"}]}

        response = client("viewer").get("/api/v1/modalities/tasks")

        assert response.status_code == 200
        assert response.json()["data"]["elearning"][0]["task_type"] == "Storyboard"
        modalities_db.get_modality.assert_not_called()

    def test_tasks_for_one_modality(self, client, modalities_db):
        modalities_db.list_tasks.return_value = [{"task_type": "Storyboard", "order_index": 1}]

        response = client("viewer").get("/api/v1/modalities/tasks/elearning")

        assert response.status_code == 200
        modalities_db.list_tasks.assert_called_once_with("elearning")

    def test_task_for_unknown_modality_is_404(self, client, modalities_db):
        modalities_db.get_modality_by_value.return_value = None

        response = client().post(
            "/api/v1/modalities/tasks", json={"modality": "vr", "task_type": "Script", "order_index": 1}
        )

        assert response.status_code == 404
        modalities_db.create_task.assert_not_called()

    def test_reorder(self, client, modalities_db):
        ids = [str(uuid4()), str(uuid4())]
        modalities_db.reorder_tasks.return_value = []

        response = client().post("/api/v1/modalities/tasks/reorder", json={"modality": "elearning", "taskIds": ids})

        assert response.status_code == 200
        modality, task_ids = modalities_db.reorder_tasks.call_args.args
        assert modality == "elearning"
        assert [str(t) for t in task_ids] == ids

    def test_duplicate_modality_conflicts(self, client, modalities_db):
        modalities_db.get_modality_by_value.return_value = {"id": "m1"}

        response = client().post("/api/v1/modalities", json={"value": "elearning", "name": "eLearning"})

        assert response.status_code == 409

    def test_in_use_modality_conflicts(self, client, modalities_db):
        modalities_db.delete_modality.side_effect = ModalityInUse("Modality 'elearning' is used by 1 course(s)")

        response = client().delete(f"/api/v1/modalities/{uuid4()}")

        assert response.status_code == 409

    def test_weight_is_bounded(self, client, modalities_db):
        response = client().post(
            "/api/v1/modalities/tasks",
            json={"modality": "elearning", "task_type": "Script", "order_index": 1, "weight_percentage": 150},
        )
        assert response.status_code == 422
