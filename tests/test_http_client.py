"""Tests for the API client: token refresh, error mapping and session helpers."""

import json

import pytest
import pytest_asyncio

from trainingpulse.client.errors import ApiError, AuthenticationExpired, error_message
from trainingpulse.client.resources import unwrap
from trainingpulse.client.state import ClientState


@pytest_asyncio.fixture
async def anonymous_client(fake_api, tmp_path):
    client = fake_api.client(tmp_path, authenticated=False)
    yield client
    await client.http.aclose()


@pytest.mark.asyncio
async def test_attaches_bearer_token(fake_api, api_client):
    await api_client.courses.get_all()

    (request,) = fake_api.calls("GET", "/courses")
    assert request.headers["Authorization"] == "Bearer access-1"


@pytest.mark.asyncio
async def test_expired_token_is_refreshed_and_request_replayed(fake_api, api_client):
    fake_api.add_course(id="c1")
    fake_api.valid_tokens = set()

    body = await api_client.courses.get_by_id("c1")

    assert unwrap(body)["id"] == "c1"
    assert len(fake_api.calls("GET", "/courses/c1")) == 2
    assert len(fake_api.calls("POST", "/auth/refresh")) == 1
    assert api_client.state.access_token == "access-2"
    assert api_client.state.refresh_token == "refresh-1-next"


@pytest.mark.asyncio
async def test_rejected_refresh_clears_session(fake_api, api_client):
    fake_api.valid_tokens = set()
    fake_api.refresh_tokens = {}

    with pytest.raises(AuthenticationExpired):
        await api_client.courses.get_all()

    assert len(fake_api.calls("GET", "/courses")) == 1
    assert api_client.state.access_token is None
    assert api_client.state.user is None
    assert api_client.is_authenticated is False


@pytest.mark.asyncio
async def test_refreshes_at_most_once_per_request(fake_api, api_client):
    fake_api.fail("GET", r"/courses", status=401)

    with pytest.raises(AuthenticationExpired):
        await api_client.courses.get_all()

    assert len(fake_api.calls("POST", "/auth/refresh")) == 1
    assert len(fake_api.calls("GET", "/courses")) == 2
    assert api_client.state.access_token is None


@pytest.mark.asyncio
async def test_missing_refresh_token_fails_without_request(fake_api, anonymous_client):
    with pytest.raises(AuthenticationExpired, match="Not logged in"):
        await anonymous_client.courses.get_all()

    assert fake_api.calls("POST", "/auth/refresh") == []


@pytest.mark.asyncio
async def test_error_responses_raise_api_error(api_client):
    with pytest.raises(ApiError) as exc_info:
        await api_client.courses.get_by_id("missing")

    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Course not found"


@pytest.mark.asyncio
async def test_login_stores_tokens_and_user(fake_api, anonymous_client):
    user = await anonymous_client.login("admin@example.com", "secret")

    assert user["id"] == "user-admin"
    assert anonymous_client.state.access_token == "access-1"
    assert anonymous_client.is_authenticated


@pytest.mark.asyncio
async def test_failed_login_does_not_refresh(fake_api, anonymous_client):
    with pytest.raises(ApiError) as exc_info:
        await anonymous_client.login("admin@example.com", "wrong")

    assert not isinstance(exc_info.value, AuthenticationExpired)
    assert exc_info.value.message == "Invalid email or password"
    assert fake_api.calls("POST", "/auth/refresh") == []


@pytest.mark.asyncio
async def test_logout_clears_session_even_when_server_fails(fake_api, api_client):
    fake_api.fail("POST", r"/auth/logout")

    await api_client.logout()

    assert api_client.state.access_token is None
    assert not api_client.is_authenticated


def test_state_persists_between_instances(tmp_path):
    state = ClientState(tmp_path / "state.json")
    state.set_tokens("a", "r")
    state.toggle_theme()

    reloaded = ClientState(tmp_path / "state.json")
    assert reloaded.access_token == "a"
    assert reloaded.theme == "dark"


def test_unreadable_state_file_is_ignored(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json")

    assert ClientState(path).access_token is None


@pytest.mark.parametrize(
    "payload,expected",
    [
        ({"error": {"message": "Nested"}}, "Nested"),
        ({"detail": "Detail"}, "Detail"),
        ({"message": "Flat"}, "Flat"),
        ({"detail": [{"loc": ["body"]}]}, "Bad Request"),
        (None, "Bad Request"),
    ],
)
def test_error_message(payload, expected):
    assert error_message(payload, "Bad Request") == expected


@pytest.mark.asyncio
async def test_activity_feed_requests(fake_api, api_client):
    fake_api.respond("GET", "/activities", [{"id": "a1", "action": "commented"}])
    fake_api.respond("GET", "/activities/course/c1", [{"id": "a2", "action": "updated"}])

    recent = unwrap(await api_client.activity.get_recent(limit=10))
    for_course = unwrap(await api_client.activity.get_by_entity("course", "c1"))

    assert recent[0]["action"] == "commented"
    assert for_course[0]["id"] == "a2"
    (request,) = fake_api.calls("GET", "/activities")
    assert request.url.params["limit"] == "10"


@pytest.mark.asyncio
async def test_comment_requests_use_camel_case_payload(fake_api, api_client):
    fake_api.respond("POST", "/comments", {"id": "m1"})
    fake_api.respond("POST", "/comments/m1/reply", {"id": "m2", "parent_id": "m1"})

    await api_client.comments.create("course", "c1", "Looks good", mentions=["u2"])
    reply = unwrap(await api_client.comments.reply("m1", "Thanks"))

    (create,) = fake_api.calls("POST", "/comments")
    assert json.loads(create.content) == {
        "entityType": "course",
        "entityId": "c1",
        "content": "Looks good",
        "mentions": ["u2"],
    }
    assert reply["parent_id"] == "m1"


@pytest.mark.asyncio
async def test_lookup_resources(fake_api, api_client):
    fake_api.respond("GET", "/priorities", [{"value": "high"}])
    fake_api.respond("GET", "/modalities/tasks/elearning", [{"task_type": "Storyboard"}])

    assert unwrap(await api_client.priorities.get_all())[0]["value"] == "high"
    assert unwrap(await api_client.modalities.get_tasks("elearning"))[0]["task_type"] == "Storyboard"
