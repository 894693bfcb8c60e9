"""Editor for a course's phase (subtask) list with debounced status autosave."""

import logging
from dataclasses import dataclass, replace
from typing import Any, Optional
from uuid import uuid4

import httpx

from trainingpulse.client.debounce import KeyedDebouncer
from trainingpulse.client.errors import ApiError, AuthenticationExpired
from trainingpulse.client.notifier import LoggingNotifier, Notifier
from trainingpulse.client.query_cache import Mutation, QueryClient, optimistic_update
from trainingpulse.client.resources import TrainingPulseClient, unwrap
from trainingpulse.core.logging import get_logger, log_with_context
from trainingpulse.core.phase_dates import clears_dates, clear_dates_warning

logger = get_logger(__name__)

FALLBACK_STATUS = "alpha_review"
EDITABLE_FIELDS = {"title", "status", "is_blocking", "weight"}


@dataclass
class TaskRow:
    """One editable phase row. New rows carry a ``temp_`` id until saved."""

    id: str
    title: str = ""
    status: str = "pending"
    is_blocking: bool = False
    weight: int = 1
    order_index: int = 0
    is_new: bool = False

    @classmethod
    def from_subtask(cls, subtask: dict[str, Any]) -> "TaskRow":
        return cls(
            id=str(subtask["id"]),
            title=subtask.get("title") or "",
            status=subtask.get("status") if subtask.get("status") is not None else "pending",
            is_blocking=bool(subtask.get("is_blocking")),
            weight=subtask.get("weight") or 1,
            order_index=subtask.get("order_index") or 0,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "title": self.title.strip(),
            "status": self.status,
            "is_blocking": self.is_blocking,
            "weight": self.weight,
            "order_index": self.order_index,
        }


def default_status(phase_statuses: list[dict[str, Any]]) -> str:
    """The status new rows start in: the flagged default, else the first active one."""
    active = sorted(
        (s for s in phase_statuses if s.get("is_active", True)),
        key=lambda s: s.get("sort_order") or 0,
    )
    for status in active:
        if status.get("is_default"):
            return status["value"]
    if active:
        return active[0]["value"]
    return FALLBACK_STATUS


def _patch_subtask(course: dict[str, Any], subtask_id: str, updates: dict[str, Any]) -> dict[str, Any]:
    subtasks = [
        {**s, **updates} if str(s.get("id")) == subtask_id else s
        for s in course.get("subtasks") or []
    ]
    return {**course, "subtasks": subtasks}


class PhaseEditor:
    """
    Local phase rows for one course.

    Status changes of saved rows are written through a debounced mutation that
    optimistically patches the ``("course", course_id)`` cache entry, rolls it
    back when the server refuses, and always refetches the course afterwards.
    Other edits stay local until ``save_task`` or ``save_new_tasks``.
    """

    def __init__(
        self,
        client: TrainingPulseClient,
        query_client: QueryClient,
        course_id: str,
        debouncer: KeyedDebouncer,
        notifier: Optional[Notifier] = None,
        phase_statuses: Optional[list[dict[str, Any]]] = None,
    ):
        self.client = client
        self.query_client = query_client
        self.course_id = str(course_id)
        self.debouncer = debouncer
        self.notifier = notifier or LoggingNotifier()
        self.phase_statuses = phase_statuses or []
        self.tasks: list[TaskRow] = []
        self._pending_ids: set[str] = set()
        self.status_mutation = Mutation(
            query_client,
            self._send_status,
            on_mutate=self._apply_status,
            on_success=self._status_saved,
            on_error=self._status_failed,
            on_settled=self._status_settled,
        )

    @property
    def course_key(self) -> tuple:
        return ("course", self.course_id)

    def has_pending_update(self, task_id: str) -> bool:
        return task_id in self._pending_ids

    # ========================================================================
    # Local rows
    # ========================================================================

    def load(self, subtasks: list[dict[str, Any]]) -> list[TaskRow]:
        """
        Merge server rows into the local list.

        The server's rows replace saved local rows, so rows deleted elsewhere
        disappear, including when the server returns none. Rows with a pending
        status update keep their local values, and unsaved new rows stay at the
        end.
        """
        incoming = [TaskRow.from_subtask(s) for s in subtasks or []]
        local = {t.id: t for t in self.tasks}
        merged = []
        for row in incoming:
            existing = local.get(row.id)
            if existing is not None and self.has_pending_update(row.id):
                merged.append(existing)
            else:
                merged.append(row)
        returned = {row.id for row in incoming}
        dropped = [t.id for t in self.tasks if not t.is_new and t.id not in returned]
        if dropped:
            logger.debug(f"Dropping {len(dropped)} phase(s) no longer on course {self.course_id}")
        merged.extend(t for t in self.tasks if t.is_new)
        self.tasks = merged
        return self.tasks

    def add_task(self) -> TaskRow:
        task = TaskRow(
            id=f"temp_{uuid4().hex}",
            status=default_status(self.phase_statuses),
            order_index=len(self.tasks),
            is_new=True,
        )
        self.tasks.append(task)
        return task

    def move_task(self, index: int, delta: int) -> bool:
        """Move a row by ``delta`` places. Out-of-range moves are ignored."""
        target = index + delta
        if not (0 <= index < len(self.tasks)) or not (0 <= target < len(self.tasks)):
            return False
        self.tasks[index], self.tasks[target] = self.tasks[target], self.tasks[index]
        self._reindex()
        return True

    def _reindex(self) -> None:
        for i, task in enumerate(self.tasks):
            task.order_index = i

    def update_task(self, index: int, field_name: str, value: Any):
        """
        Change one field of a row.

        Returns the scheduled autosave task for status changes of saved rows,
        otherwise None. Clearing a dated status needs confirmation; a declined
        confirmation leaves the row untouched.
        """
        if field_name not in EDITABLE_FIELDS:
            raise ValueError(f"Field cannot be edited: {field_name}")
        task = self.tasks[index]

        if field_name == "status" and not task.is_new:
            if clears_dates(task.status, value) and not self.notifier.confirm(clear_dates_warning(task.status)):
                logger.info(f"Status change on phase {task.id} declined")
                return None
            setattr(task, field_name, value)
            self._pending_ids.add(task.id)
            return self.debouncer.schedule(task.id, lambda: self._autosave(task.id, value))

        setattr(task, field_name, value)
        return None

    async def remove_task(self, index: int) -> bool:
        """Remove a row. Saved rows are deleted on the server first."""
        task = self.tasks[index]
        if task.is_new:
            self.tasks.pop(index)
            self._reindex()
            return True

        try:
            await self.client.courses.delete_subtask(self.course_id, task.id)
        except AuthenticationExpired:
            raise
        except (ApiError, httpx.HTTPError) as e:
            logger.warning(f"Failed to delete phase {task.id}: {e}")
            self.notifier.error(f"Failed to delete phase: {e}")
            return False

        self.debouncer.cancel(task.id)
        self.tasks = [t for t in self.tasks if t.id != task.id]
        self._reindex()
        self.notifier.success("Phase deleted successfully")
        await self.query_client.invalidate(self.course_key)
        return True

    # ========================================================================
    # Status autosave
    # ========================================================================

    async def _autosave(self, task_id: str, status: str):
        try:
            return await self.status_mutation.mutate({"id": task_id, "status": status})
        except AuthenticationExpired:
            raise
        except (ApiError, httpx.HTTPError):
            # already reported through on_error
            return None

    def _apply_status(self, variables: dict[str, Any]):
        return optimistic_update(
            self.query_client,
            self.course_key,
            lambda course: _patch_subtask(course, variables["id"], {"status": variables["status"]}),
        )

    async def _send_status(self, variables: dict[str, Any]):
        response = await self.client.courses.update_subtask(
            self.course_id, variables["id"], {"status": variables["status"]}
        )
        return unwrap(response)

    def _status_saved(self, result, variables, snapshot) -> None:
        self.notifier.success("Phase status updated successfully")

    def _status_failed(self, exc, variables, snapshot) -> None:
        if snapshot is not None:
            snapshot.rollback(self.query_client)
        log_with_context(
            logger,
            logging.WARNING,
            "Phase status autosave failed",
            course_id=self.course_id,
            subtask_id=variables["id"],
            status=variables["status"],
            error=str(exc),
        )
        self.notifier.error(f"Failed to update phase: {exc}")

    async def _status_settled(self, result, exc, variables, snapshot) -> None:
        self._pending_ids.discard(variables["id"])
        await self.query_client.invalidate(self.course_key)

    # ========================================================================
    # Explicit saves
    # ========================================================================

    async def save_task(self, index: int) -> Optional[TaskRow]:
        """Create or update one row from its local values."""
        task = self.tasks[index]
        if not task.title.strip():
            self.notifier.error("Phase title is required")
            return None

        try:
            if task.is_new:
                created = unwrap(await self.client.courses.create_subtask(self.course_id, task.to_payload()), {})
                saved = replace(TaskRow.from_subtask(created), order_index=task.order_index)
                message = "Phase created successfully"
            else:
                updated = unwrap(
                    await self.client.courses.update_subtask(self.course_id, task.id, task.to_payload()), {}
                )
                saved = replace(TaskRow.from_subtask({"id": task.id, **updated}), order_index=task.order_index)
                message = "Phase updated successfully"
        except AuthenticationExpired:
            raise
        except (ApiError, httpx.HTTPError) as e:
            logger.warning(f"Failed to save phase {task.id}: {e}")
            self.notifier.error(f"Failed to save phase: {e}")
            return None

        self.tasks[index] = saved
        self.notifier.success(message)
        await self.query_client.invalidate(self.course_key)
        return saved

    async def save_new_tasks(self) -> list[TaskRow]:
        """Create every still-local row that has a title."""
        saved = []
        for index, task in enumerate(list(self.tasks)):
            if task.is_new and task.title.strip():
                row = await self.save_task(index)
                if row is not None:
                    saved.append(row)
        return saved

    def tasks_data(self) -> list[dict[str, Any]]:
        """Rows with a title, as the course form submits them. New rows have no id."""
        return [
            {"id": None if t.is_new else t.id, **t.to_payload()}
            for t in self.tasks
            if t.title.strip()
        ]
