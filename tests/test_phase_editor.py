"""Tests for the phase editor: debounced status autosave, rollback and row editing."""

import asyncio
import json

import pytest
import pytest_asyncio

from trainingpulse.client.debounce import KeyedDebouncer
from trainingpulse.client.phase_editor import PhaseEditor, TaskRow, default_status
from trainingpulse.client.query_cache import QueryClient
from trainingpulse.client.resources import unwrap

PHASE_STATUSES = [
    {"value": "alpha_draft", "sort_order": 2, "is_active": True},
    {"value": "alpha_review", "sort_order": 1, "is_active": True},
    {"value": "legacy", "sort_order": 0, "is_active": False},
]


@pytest_asyncio.fixture
async def editor(fake_api, api_client, notifier):
    fake_api.add_course(
        id="c1",
        subtasks=[
            {"title": "Alpha", "status": "alpha_draft"},
            {"title": "Beta", "status": "alpha_review"},
        ],
    )
    query_client = QueryClient()

    async def load_course():
        return unwrap(await api_client.courses.get_by_id("c1"))

    course = await query_client.fetch(("course", "c1"), load_course)
    editor = PhaseEditor(
        api_client, query_client, "c1", KeyedDebouncer(0.01), notifier=notifier, phase_statuses=PHASE_STATUSES
    )
    editor.load(course["subtasks"])
    return editor


def _cached_status(editor, index=0):
    return editor.query_client.get_query_data(editor.course_key)["subtasks"][index]["status"]


class TestStatusAutosave:
    @pytest.mark.asyncio
    async def test_saves_status_and_refetches_course(self, fake_api, editor, notifier):
        task_id = editor.tasks[0].id

        pending = editor.update_task(0, "status", "alpha_review")
        assert editor.has_pending_update(task_id)
        await pending

        (request,) = fake_api.calls("PUT", f"/courses/c1/subtasks/{task_id}")
        assert json.loads(request.content) == {"status": "alpha_review"}
        assert notifier.successes == ["Phase status updated successfully"]
        assert not editor.has_pending_update(task_id)
        assert _cached_status(editor) == "alpha_review"
        assert len(fake_api.calls("GET", "/courses/c1")) == 2

    @pytest.mark.asyncio
    async def test_rapid_changes_send_only_the_last(self, fake_api, editor):
        task_id = editor.tasks[0].id

        editor.update_task(0, "status", "alpha_review")
        last = editor.update_task(0, "status", "beta_revision")
        await last

        requests = fake_api.calls("PUT", f"/courses/c1/subtasks/{task_id}")
        assert len(requests) == 1
        assert json.loads(requests[0].content) == {"status": "beta_revision"}

    @pytest.mark.asyncio
    async def test_cache_is_patched_while_request_is_in_flight(self, fake_api, editor):
        editor.debouncer.delay = 0
        fake_api.delay = 0.05

        pending = editor.update_task(0, "status", "alpha_review")
        await asyncio.sleep(0.02)
        assert _cached_status(editor) == "alpha_review"
        await pending

    @pytest.mark.asyncio
    async def test_failure_rolls_back_and_reports(self, fake_api, editor, notifier):
        fake_api.fail("PUT", r"/courses/c1/subtasks/.*")
        task_id = editor.tasks[0].id

        result = await editor.update_task(0, "status", "alpha_review")

        assert result is None
        assert notifier.errors == ["Failed to update phase: Injected failure for /courses/c1/subtasks/" + task_id]
        assert _cached_status(editor) == "alpha_draft"
        assert not editor.has_pending_update(task_id)

    @pytest.mark.asyncio
    async def test_declined_clear_leaves_row_untouched(self, fake_api, editor, notifier):
        notifier.answer = False

        assert editor.update_task(0, "status", "") is None

        assert editor.tasks[0].status == "alpha_draft"
        assert '"Alpha Draft"' in notifier.confirmations[0]
        assert fake_api.calls("PUT", f"/courses/c1/subtasks/{editor.tasks[0].id}") == []

    @pytest.mark.asyncio
    async def test_confirmed_clear_is_saved(self, fake_api, editor, notifier):
        await editor.update_task(0, "status", "")

        assert len(notifier.confirmations) == 1
        assert editor.tasks[0].status == ""
        assert _cached_status(editor) == ""

    @pytest.mark.asyncio
    async def test_pending_rows_keep_local_values_on_reload(self, fake_api, editor):
        editor.debouncer.delay = 1
        editor.update_task(0, "status", "beta_review")
        course = fake_api.courses["c1"]
        course["subtasks"][1]["title"] = "Beta (renamed)"

        editor.load(course["subtasks"])

        assert editor.tasks[0].status == "beta_review"
        assert editor.tasks[1].title == "Beta (renamed)"
        editor.debouncer.cancel_all()


class TestRows:
    def test_default_status_prefers_flagged_then_sort_order(self):
        assert default_status(PHASE_STATUSES) == "alpha_review"
        flagged = PHASE_STATUSES + [{"value": "beta_review", "sort_order": 5, "is_default": True}]
        assert default_status(flagged) == "beta_review"
        assert default_status([]) == "alpha_review"

    @pytest.mark.asyncio
    async def test_new_rows_are_local_until_saved(self, fake_api, editor, notifier):
        task = editor.add_task()
        assert task.id.startswith("temp_")
        assert task.status == "alpha_review"

        assert editor.update_task(2, "status", "alpha_draft") is None
        assert await editor.save_task(2) is None
        assert notifier.errors == ["Phase title is required"]

        editor.update_task(2, "title", "  Gamma ")
        saved = await editor.save_task(2)

        assert saved.is_new is False
        assert saved.title == "Gamma"
        assert saved.order_index == 2
        assert editor.tasks[2] is saved
        assert notifier.successes == ["Phase created successfully"]
        assert len(fake_api.courses["c1"]["subtasks"]) == 3

    @pytest.mark.asyncio
    async def test_remove_saved_row(self, fake_api, editor, notifier):
        removed_id = editor.tasks[0].id

        assert await editor.remove_task(0) is True

        assert removed_id not in [t.id for t in editor.tasks]
        assert editor.tasks[0].order_index == 0
        assert notifier.successes == ["Phase deleted successfully"]
        assert len(fake_api.courses["c1"]["subtasks"]) == 1

    @pytest.mark.asyncio
    async def test_failed_remove_keeps_row(self, fake_api, editor, notifier):
        fake_api.fail("DELETE", r"/courses/c1/subtasks/.*")

        assert await editor.remove_task(0) is False

        assert len(editor.tasks) == 2
        assert notifier.errors[0].startswith("Failed to delete phase")

    @pytest.mark.asyncio
    async def test_remove_new_row_is_local(self, fake_api, editor):
        editor.add_task()

        assert await editor.remove_task(2) is True
        assert not any(r.method == "DELETE" for r in fake_api.requests)
        assert len(editor.tasks) == 2

    def test_move_and_tasks_data(self):
        editor = PhaseEditor(None, QueryClient(), "c1", KeyedDebouncer(0))
        editor.tasks = [TaskRow(id="a", title="A"), TaskRow(id="b", title="B", order_index=1)]
        editor.add_task()

        assert editor.move_task(0, 1) is True
        assert editor.move_task(0, -1) is False

        data = editor.tasks_data()
        assert [row["id"] for row in data] == ["b", "a"]
        assert [row["order_index"] for row in data] == [0, 1]

    def test_only_known_fields_are_editable(self):
        editor = PhaseEditor(None, QueryClient(), "c1", KeyedDebouncer(0))
        editor.tasks = [TaskRow(id="a")]

        with pytest.raises(ValueError):
            editor.update_task(0, "course_id", "other")


class TestReload:
    def _editor(self):
        editor = PhaseEditor(None, QueryClient(), "c1", KeyedDebouncer(0))
        editor.load([{"id": "a", "title": "A"}, {"id": "b", "title": "B", "order_index": 1}])
        return editor

    def test_rows_deleted_on_server_are_dropped(self):
        editor = self._editor()

        editor.load([{"id": "b", "title": "B", "order_index": 1}])

        assert [t.id for t in editor.tasks] == ["b"]

    def test_empty_server_list_clears_saved_rows_but_keeps_new_ones(self):
        editor = self._editor()
        new_row = editor.add_task()

        editor.load([])

        assert editor.tasks == [new_row]

    def test_rows_added_on_server_appear(self):
        editor = self._editor()

        editor.load([{"id": "a", "title": "A"}, {"id": "b", "title": "B"}, {"id": "c", "title": "C"}])

        assert [t.id for t in editor.tasks] == ["a", "b", "c"]
