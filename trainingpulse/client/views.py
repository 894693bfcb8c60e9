"""Page loaders: fetch what each view needs and derive its summary numbers."""

import asyncio
from datetime import date
from typing import Any, Awaitable, Optional

from dateutil.parser import isoparse

from trainingpulse.client.errors import AuthenticationExpired
from trainingpulse.client.query_cache import QueryClient
from trainingpulse.client.resources import TrainingPulseClient, unwrap
from trainingpulse.core.logging import get_logger

logger = get_logger(__name__)

ACTIVE_COURSE_STATUSES = {"pre_development", "outlines", "storyboard", "development"}
DASHBOARD_COURSE_LIMIT = 100


async def gather_settled(requests: dict[str, tuple[Awaitable[Any], Any]]) -> dict[str, Any]:
    """
    Run named requests in parallel, unwrapping each response.

    ``requests`` maps a name to ``(awaitable, default)``. A failed request
    yields its default instead of failing the whole page, except an expired
    session, which is re-raised so the caller can send the user to log in.
    """
    names = list(requests)
    results = await asyncio.gather(*(requests[n][0] for n in names), return_exceptions=True)

    loaded: dict[str, Any] = {}
    for name, result in zip(names, results):
        default = requests[name][1]
        if isinstance(result, AuthenticationExpired):
            raise result
        if isinstance(result, Exception):
            logger.warning(f"Failed to load {name}: {result}")
            loaded[name] = default
        else:
            loaded[name] = unwrap(result, default)
    return loaded


def _as_date(value: Any) -> Optional[date]:
    if not value:
        return None
    if isinstance(value, date):
        return value
    return isoparse(str(value)).date()


def _status(row: dict[str, Any]) -> str:
    return (row.get("status") or "").strip().lower()


# ============================================================================
# Dashboard
# ============================================================================


def course_stats(courses: list[dict[str, Any]], today: date) -> dict[str, int]:
    return {
        "total_courses": len(courses),
        "active_courses": sum(1 for c in courses if _status(c) in ACTIVE_COURSE_STATUSES),
        "completed_courses": sum(1 for c in courses if _status(c) == "completed"),
        "overdue_courses": sum(
            1
            for c in courses
            if _as_date(c.get("due_date")) and _as_date(c["due_date"]) < today and _status(c) != "completed"
        ),
    }


def assignment_stats(assignments: list[dict[str, Any]], today: date) -> dict[str, int]:
    def count(phase_status: str) -> int:
        return sum(1 for a in assignments if a.get("phase_status") == phase_status)

    return {
        "total_assignments": len(assignments),
        "pending_assignments": count("not_started"),
        "in_progress_assignments": count("in_progress"),
        "completed_assignments": count("completed"),
        "overdue_assignments": sum(
            1
            for a in assignments
            if _as_date(a.get("finish_date"))
            and _as_date(a["finish_date"]) < today
            and a.get("phase_status") != "completed"
        ),
    }


async def load_dashboard(
    client: TrainingPulseClient,
    user: dict[str, Any],
    today: Optional[date] = None,
) -> dict[str, Any]:
    """Courses (all of them for admins), the user's assignments, notification digest and bottlenecks."""
    today = today or date.today()
    if user.get("role") == "admin":
        courses_call = client.courses.get_all(limit=DASHBOARD_COURSE_LIMIT)
    else:
        courses_call = client.courses.get_by_user(user["id"], limit=DASHBOARD_COURSE_LIMIT)

    loaded = await gather_settled(
        {
            "courses": (courses_call, []),
            "assignments": (client.users.get_subtask_assignments(user["id"]), []),
            "digest": (client.notifications.get_digest(days=1), {}),
            "bottlenecks": (client.analytics.get_bottlenecks(period="7d"), {}),
        }
    )
    return {
        "stats": course_stats(loaded["courses"], today),
        "assignment_stats": assignment_stats(loaded["assignments"], today),
        "notifications": loaded["digest"].get("notifications", []),
        "unread_count": loaded["digest"].get("unread_count", 0),
        "bottlenecks": loaded["bottlenecks"].get("bottlenecks", [])[:5],
    }


# ============================================================================
# Course detail
# ============================================================================


async def load_course_detail(
    client: TrainingPulseClient,
    query_client: QueryClient,
    course_id: str,
) -> dict[str, Any]:
    """The course through the query cache plus lookups that may fail independently."""

    async def fetch_course():
        return unwrap(await client.courses.get_by_id(course_id), {})

    async def fetch_phase_statuses():
        return unwrap(await client.phase_statuses.get_all(), [])

    async def fetch_statuses():
        return unwrap(await client.statuses.get_all(), [])

    async def fetch_instance():
        return unwrap(await client.workflows.get_instance(course_id))

    course = await query_client.fetch(("course", str(course_id)), fetch_course)
    loaded = await gather_settled(
        {
            "phase_statuses": (query_client.fetch(("phase-statuses",), fetch_phase_statuses), []),
            "statuses": (query_client.fetch(("statuses",), fetch_statuses), []),
            "workflow": (query_client.fetch(("workflow-instance", str(course_id)), fetch_instance), None),
        }
    )
    return {"course": course, **loaded}


# ============================================================================
# Admin, teams and notifications
# ============================================================================


async def load_admin(client: TrainingPulseClient) -> dict[str, Any]:
    return await gather_settled(
        {
            "users": (client.users.get_all(limit=200), []),
            "roles": (client.roles.get_all(), []),
            "permissions": (client.permissions.get_grouped(), {}),
            "statuses": (client.statuses.get_all(), []),
            "phase_statuses": (client.phase_statuses.get_all(include_inactive=True), []),
            "custom_fields": (client.custom_fields.get_all(), []),
            "settings": (client.settings.get_all(), {}),
        }
    )


async def load_teams(client: TrainingPulseClient, selected_team_id: Optional[str] = None) -> dict[str, Any]:
    requests = {
        "teams": (client.teams.get_all(), []),
        "users": (client.users.get_all(limit=200), []),
    }
    if selected_team_id:
        requests["selected_team"] = (client.teams.get_by_id(selected_team_id), None)
    loaded = await gather_settled(requests)
    loaded.setdefault("selected_team", None)
    return loaded


async def load_notifications(client: TrainingPulseClient, filter: str = "all") -> dict[str, Any]:
    """Notifications for the ``all``, ``unread`` or ``read`` tab, with the unread count."""
    if filter not in ("all", "unread", "read"):
        raise ValueError(f"Unknown notification filter: {filter}")

    params: dict[str, Any] = {"limit": 100}
    if filter == "unread":
        params["unread_only"] = True
    response = await client.notifications.get_all(**params)
    notifications = unwrap(response, [])
    if filter == "read":
        notifications = [n for n in notifications if n.get("read_at")]

    unread = response.get("unread_count", 0) if isinstance(response, dict) else 0
    return {"notifications": notifications, "unread_count": unread}
