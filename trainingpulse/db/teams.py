"""Database operations for teams and team membership."""

from typing import Any, Optional
from uuid import UUID

from trainingpulse.core.logging import get_logger
from trainingpulse.db.rows import to_row, utcnow_iso
from trainingpulse.db.supabase_client import get_supabase

logger = get_logger(__name__)


def list_teams(is_active: bool | None = None, search: str | None = None) -> list[dict[str, Any]]:
    """List teams with member counts."""
    supabase = get_supabase()
    query = supabase.table("teams").select("*, team_members(count)")
    if is_active is not None:
        query = query.eq("is_active", is_active)
    if search:
        query = query.ilike("name", f"%{search}%")
    result = query.order("name").execute()
    teams = []
    for row in result.data or []:
        members = row.pop("team_members", None) or [{}]
        row["member_count"] = members[0].get("count", 0)
        teams.append(row)
    return teams


def get_team(team_id: UUID) -> Optional[dict[str, Any]]:
    """Get a team with its members."""
    supabase = get_supabase()
    result = supabase.table("teams").select("*").eq("id", str(team_id)).execute()
    if not result.data:
        return None
    team = result.data[0]
    team["members"] = list_members(team_id)
    return team


def create_team(data: dict[str, Any], created_by: UUID | None = None) -> dict[str, Any]:
    supabase = get_supabase()
    member_ids = data.pop("member_ids", None) or []
    row = to_row({k: v for k, v in data.items() if v is not None})
    if created_by:
        row["created_by"] = str(created_by)
    result = supabase.table("teams").insert(row).execute()
    if not result.data:
        raise ValueError("No data returned from team insert")
    team = result.data[0]
    for user_id in member_ids:
        add_member(team["id"], user_id)
    logger.info(f"Created team {team['id']}: {team['name']} ({len(member_ids)} members)")
    return team


def update_team(team_id: UUID, data: dict[str, Any]) -> dict[str, Any]:
    supabase = get_supabase()
    if not data:
        raise ValueError("No fields to update")
    payload = to_row(data)
    payload["updated_at"] = utcnow_iso()
    result = supabase.table("teams").update(payload).eq("id", str(team_id)).execute()
    if not result.data:
        raise ValueError(f"Team not found: {team_id}")
    return result.data[0]


def delete_team(team_id: UUID) -> None:
    supabase = get_supabase()
    supabase.table("users").update({"team_id": None}).eq("team_id", str(team_id)).execute()
    supabase.table("teams").delete().eq("id", str(team_id)).execute()


def list_members(team_id: UUID) -> list[dict[str, Any]]:
    supabase = get_supabase()
    result = (
        supabase.table("team_members")
        .select("role, joined_at, users(id, name, email, role, is_active)")
        .eq("team_id", str(team_id))
        .execute()
    )
    members = []
    for row in result.data or []:
        user = row.get("users") or {}
        members.append({**user, "team_role": row.get("role"), "joined_at": row.get("joined_at")})
    return members


def add_member(team_id: str | UUID, user_id: str | UUID, role: str = "member") -> dict[str, Any]:
    supabase = get_supabase()
    result = (
        supabase.table("team_members")
        .upsert(
            {"team_id": str(team_id), "user_id": str(user_id), "role": role},
            on_conflict="team_id,user_id",
        )
        .execute()
    )
    supabase.table("users").update({"team_id": str(team_id)}).eq("id", str(user_id)).execute()
    if not result.data:
        raise ValueError("No data returned from team member upsert")
    return result.data[0]


def remove_member(team_id: UUID, user_id: UUID) -> None:
    supabase = get_supabase()
    supabase.table("team_members").delete().eq("team_id", str(team_id)).eq("user_id", str(user_id)).execute()
    supabase.table("users").update({"team_id": None}).eq("id", str(user_id)).eq(
        "team_id", str(team_id)
    ).execute()
