"""Row fetches backing the analytics endpoints. Aggregation lives in core.analytics."""

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from trainingpulse.db.supabase_client import get_supabase

PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90, "180d": 180, "365d": 365}


def period_start(period: str) -> str:
    days = PERIOD_DAYS.get(period, 30)
    return (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()


def fetch_transitions(period: str = "30d", team_id: UUID | None = None) -> list[dict[str, Any]]:
    """Workflow transition log entries in the period, with the actor's team."""
    supabase = get_supabase()
    query = (
        supabase.table("workflow_transition_log")
        .select("workflow_instance_id, course_id, from_state, to_state, created_at, users(id, name, team_id)")
        .gte("created_at", period_start(period))
    )
    rows = query.order("created_at").execute().data or []
    if team_id:
        rows = [r for r in rows if (r.get("users") or {}).get("team_id") == str(team_id)]
    return rows


def fetch_course_transitions(course_id: UUID) -> list[dict[str, Any]]:
    supabase = get_supabase()
    result = (
        supabase.table("workflow_transition_log")
        .select("from_state, to_state, created_at, users(id, name, email)")
        .eq("course_id", str(course_id))
        .order("created_at")
        .execute()
    )
    return result.data or []


def fetch_workload_rows(team_id: UUID | None = None, user_id: UUID | None = None) -> dict[str, list[dict[str, Any]]]:
    """Active users, their capacity rows and open course assignments."""
    supabase = get_supabase()
    users_query = supabase.table("users").select("id, name, email, role, team_id").eq("is_active", True)
    if team_id:
        users_query = users_query.eq("team_id", str(team_id))
    if user_id:
        users_query = users_query.eq("id", str(user_id))
    users = users_query.execute().data or []
    user_ids = [u["id"] for u in users]
    if not user_ids:
        return {"users": [], "capacity": [], "assignments": []}

    capacity = supabase.table("user_capacity").select("*").in_("user_id", user_ids).execute().data or []
    assignments = (
        supabase.table("course_assignments")
        .select("user_id, role, courses(id, title, status, due_date, estimated_hours)")
        .in_("user_id", user_ids)
        .execute()
        .data
        or []
    )
    return {"users": users, "capacity": capacity, "assignments": assignments}
