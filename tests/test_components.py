"""Tests for badges, formatting helpers, the activity feed and list/dialog state."""

from datetime import datetime, timedelta, timezone

import pytest

from trainingpulse.client.components import (
    Column,
    DataTable,
    Modal,
    Tabs,
    activity_message,
    format_activity,
    format_duration,
    format_file_size,
    format_relative_time,
    priority_badge,
    role_badge,
    status_badge,
    upload_error,
)
from trainingpulse.core.config import Settings

NOW = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)


class TestBadges:
    def test_status_badge(self):
        assert status_badge("alpha_review") == ("Alpha Review", "info")
        assert status_badge(" Overdue ") == ("Overdue", "danger")
        assert status_badge(None) == ("No Status", "default")
        assert status_badge("mystery") == ("Mystery", "default")

    def test_priority_and_role_badges(self):
        assert priority_badge("urgent") == ("Urgent", "danger")
        assert priority_badge(None) == ("Low", "default")
        assert role_badge("admin") == ("Admin", "purple")
        assert role_badge("") == ("Viewer", "default")


class TestFormatting:
    @pytest.mark.parametrize(
        "moment,expected",
        [
            (NOW - timedelta(seconds=20), "less than a minute ago"),
            (NOW - timedelta(minutes=1), "1 minute ago"),
            (NOW - timedelta(minutes=5), "5 minutes ago"),
            (NOW - timedelta(hours=3), "about 3 hours ago"),
            (NOW - timedelta(days=4), "4 days ago"),
            (NOW - timedelta(days=90), "about 3 months ago"),
            (NOW + timedelta(days=2), "in 2 days"),
        ],
    )
    def test_relative_time(self, moment, expected):
        assert format_relative_time(moment, NOW) == expected

    def test_relative_time_accepts_strings_and_rejects_garbage(self):
        assert format_relative_time("2026-06-15T11:00:00Z", NOW) == "about 1 hour ago"
        assert format_relative_time("2026-06-15T11:00:00", NOW) == "about 1 hour ago"
        assert format_relative_time("yesterday-ish", NOW) == ""
        assert format_relative_time(None, NOW) == ""

    @pytest.mark.parametrize(
        "hours,expected",
        [(None, "0h"), (0.5, "30m"), (2, "2h"), (2.5, "2h 30m"), (26, "1d 2h"), (48, "2d")],
    )
    def test_duration(self, hours, expected):
        assert format_duration(hours) == expected

    @pytest.mark.parametrize(
        "size,expected",
        [(0, "0 B"), (512, "512 B"), (1536, "1.5 KB"), (10_485_760, "10 MB")],
    )
    def test_file_size(self, size, expected):
        assert format_file_size(size) == expected


class TestUploadError:
    @pytest.fixture
    def settings(self):
        return Settings(MAX_UPLOAD_BYTES=2048, ALLOWED_UPLOAD_TYPES="pdf, PNG")

    def test_allowed_file(self, settings):
        assert upload_error("storyboard.PDF", 100, settings) is None
        assert upload_error("mockup.png", 2048, settings) is None

    def test_too_large(self, settings):
        assert upload_error("big.pdf", 4096, settings) == 'File "big.pdf" is too large. Maximum size is 2 KB'

    def test_wrong_type(self, settings):
        assert upload_error("script.exe", 10, settings) == 'File type not allowed for "script.exe"'
        assert upload_error("README", 10, settings) == 'File type not allowed for "README"'


class TestActivity:
    def test_updated_lists_changed_fields(self):
        entry = {"action": "updated", "entity_type": "course", "changes": {"title": {}, "due_date": {}}}
        assert activity_message(entry) == "updated course (title, due_date)"

    def test_status_change(self):
        assert (
            activity_message({"action": "status_changed", "entity_type": "subtask", "details": {"to": "review"}})
            == "changed phase status to review"
        )
        assert (
            activity_message(
                {"action": "status_changed", "entity_type": "course", "changes": {"status": {"from": "a", "to": "b"}}}
            )
            == "changed course status to b"
        )

    def test_long_comment_is_truncated(self):
        entry = {"action": "commented", "entity_type": "course", "details": {"content": "x" * 60}}
        assert activity_message(entry) == f'commented on course: "{"x" * 50}..."'

    def test_templates_and_fallback(self):
        assert activity_message({"action": "uploaded", "entity_type": "course"}) == "uploaded a file to course"
        assert activity_message({"action": "archived", "entity_type": "program"}) == "performed archived on program"

    def test_format_activity(self):
        entry = {
            "action": "created",
            "entity_type": "course",
            "users": {"name": "Ana"},
            "created_at": "2026-06-15T11:55:00Z",
        }

        assert format_activity(entry, NOW) == {
            "actor": "Ana",
            "message": "created a new course",
            "time": "5 minutes ago",
        }
        assert format_activity({"action": "deleted"}, NOW)["actor"] == "Someone"


class TestDataTable:
    COLUMNS = [
        Column("title", "Title"),
        Column("priority", "Priority", searchable=False),
        Column("id", "ID", sortable=False, searchable=False),
    ]

    def rows(self):
        return [
            {"id": "1", "title": "beta", "priority": 2},
            {"id": "2", "title": "Alpha", "priority": None},
            {"id": "3", "title": "gamma", "priority": 1},
        ]

    def test_sort_toggles_and_keeps_missing_values_last(self):
        table = DataTable(self.rows(), self.COLUMNS)

        table.toggle_sort("title")
        assert [r["title"] for r in table.filtered()] == ["Alpha", "beta", "gamma"]

        table.toggle_sort("priority")
        assert [r["id"] for r in table.filtered()] == ["3", "1", "2"]
        table.toggle_sort("priority")
        assert table.sort_order == "desc"
        assert [r["id"] for r in table.filtered()] == ["1", "3", "2"]

    def test_unsortable_column(self):
        table = DataTable(self.rows(), self.COLUMNS)
        with pytest.raises(ValueError):
            table.toggle_sort("id")
        with pytest.raises(ValueError):
            table.toggle_sort("missing")

    def test_search_only_uses_searchable_columns_and_resets_page(self):
        table = DataTable(self.rows(), self.COLUMNS, page_size=1)
        table.go_to(3)

        table.set_search("ALP")
        assert table.page == 1
        assert [r["id"] for r in table.filtered()] == ["2"]

        table.set_search("2")
        assert table.filtered() == []

    def test_paging(self):
        table = DataTable(self.rows(), self.COLUMNS, page_size=2)

        assert table.page_count == 2
        table.go_to(9)
        assert table.page == 2
        assert [r["id"] for r in table.visible_rows()] == ["3"]

        table.set_rows(self.rows()[:1])
        assert table.page == 1

    def test_page_size_must_be_positive(self):
        with pytest.raises(ValueError):
            DataTable([], self.COLUMNS, page_size=0)


def test_tabs():
    tabs = Tabs(["all", "unread", "read"], active="unread")

    assert tabs.is_active("unread")
    tabs.select("read")
    assert tabs.active == "read"
    with pytest.raises(ValueError):
        tabs.select("archived")
    with pytest.raises(ValueError):
        Tabs([])


class TestModal:
    @pytest.mark.asyncio
    async def test_confirm_runs_action_and_closes(self):
        seen = []

        async def delete(payload):
            seen.append(payload)
            return "deleted"

        modal = Modal("Delete course", on_confirm=delete)
        modal.open({"id": "c1"})

        assert await modal.confirm() == "deleted"
        assert seen == [{"id": "c1"}]
        assert modal.is_open is False
        assert modal.payload is None

    @pytest.mark.asyncio
    async def test_failed_action_keeps_modal_open(self):
        def reject(payload):
            raise ValueError("Course has active phases")

        modal = Modal("Delete course", on_confirm=reject)
        modal.open("c1")

        with pytest.raises(ValueError):
            await modal.confirm()
        assert modal.is_open
        assert modal.error == "Course has active phases"

    @pytest.mark.asyncio
    async def test_confirm_requires_open_modal(self):
        with pytest.raises(RuntimeError):
            await Modal("Closed").confirm()
