"""Tests for the activity feed endpoints and database queries."""

from unittest.mock import patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from tests.fakes.supabase import chain_returning, make_user, mock_result
from trainingpulse.core.auth_middleware import AuthContext, require_auth
from trainingpulse.db.activity import list_activity, list_program_activity
from trainingpulse.main import app

ENTRY = {"id": "a1", "entity_type": "course", "entity_id": "c1", "action": "updated", "users": {"name": "Ana"}}


@pytest.fixture
def client():
    app.dependency_overrides[require_auth] = lambda: AuthContext(make_user("viewer"), "test-token")
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def activity_db():
    with patch("trainingpulse.api.activity.activity_db") as mock:
        yield mock


class TestRecentActivity:
    def test_returns_page_of_entries(self, client, activity_db):
        activity_db.list_activity.return_value = {"activities": [ENTRY], "total": 75}

        response = client.get("/api/v1/activities", params={"limit": 25, "offset": 50})

        assert response.status_code == 200
        body = response.json()
        assert body["data"] == [ENTRY]
        assert body["pagination"] == {"total": 75, "limit": 25, "offset": 50, "has_more": False}
        activity_db.list_activity.assert_called_once_with(entity_type=None, action=None, limit=25, offset=50)

    def test_filters_by_entity_type(self, client, activity_db):
        activity_db.list_activity.return_value = {"activities": [], "total": 0}

        client.get("/api/v1/activities", params={"entity_type": "course", "action": "commented"})

        kwargs = activity_db.list_activity.call_args.kwargs
        assert kwargs["entity_type"] == "course"
        assert kwargs["action"] == "commented"

    def test_requires_auth(self, activity_db):
        response = TestClient(app).get("/api/v1/activities")
        assert response.status_code == 401


class TestEntityActivity:
    def test_lists_one_entity(self, client, activity_db):
        activity_db.list_activity.return_value = {"activities": [ENTRY], "total": 1}

        response = client.get("/api/v1/activities/course/c1")

        assert response.status_code == 200
        assert response.json()["data"][0]["action"] == "updated"
        activity_db.list_activity.assert_called_once_with(entity_type="course", entity_id="c1", limit=50, offset=0)


class TestProgramActivity:
    def test_missing_program_is_404(self, client, activity_db):
        with patch("trainingpulse.api.activity.programs_db") as programs_db:
            programs_db.get_program.return_value = None
            response = client.get(f"/api/v1/activities/program/{uuid4()}")

        assert response.status_code == 404
        activity_db.list_program_activity.assert_not_called()

    def test_lists_program_and_course_entries(self, client, activity_db):
        program_id = uuid4()
        activity_db.list_program_activity.return_value = {"activities": [ENTRY], "total": 1}

        with patch("trainingpulse.api.activity.programs_db") as programs_db:
            programs_db.get_program.return_value = {"id": str(program_id)}
            response = client.get(f"/api/v1/activities/program/{program_id}")

        assert response.status_code == 200
        activity_db.list_program_activity.assert_called_once_with(program_id, limit=50, offset=0)


class TestActivityQueries:
    def test_list_activity_applies_filters_and_range(self):
        supabase = chain_returning(mock_result([ENTRY], count=1))

        with patch("trainingpulse.db.activity.get_supabase", return_value=supabase):
            result = list_activity(entity_type="course", entity_id="c1", limit=10, offset=20)

        assert result == {"activities": [ENTRY], "total": 1}
        supabase.builder.eq.assert_any_call("entity_type", "course")
        supabase.builder.eq.assert_any_call("entity_id", "c1")
        supabase.builder.range.assert_called_once_with(20, 29)

    def test_program_activity_covers_program_courses(self):
        program_id = uuid4()
        supabase = chain_returning(mock_result([{"id": "c1"}, {"id": "c2"}]), mock_result([ENTRY], count=1))

        with patch("trainingpulse.db.activity.get_supabase", return_value=supabase):
            result = list_program_activity(program_id)

        assert result["total"] == 1
        (clause,) = supabase.builder.or_.call_args.args
        assert f"entity_id.eq.{program_id}" in clause
        assert "entity_id.in.(c1,c2)" in clause

    def test_program_without_courses_only_matches_program(self):
        program_id = uuid4()
        supabase = chain_returning(mock_result([]), mock_result([], count=0))

        with patch("trainingpulse.db.activity.get_supabase", return_value=supabase):
            list_program_activity(program_id)

        (clause,) = supabase.builder.or_.call_args.args
        assert clause == f"and(entity_type.eq.program,entity_id.eq.{program_id})"
