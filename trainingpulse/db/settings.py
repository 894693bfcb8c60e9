"""Database operations for system settings (key/value rows)."""

from typing import Any, Optional
from uuid import UUID

from trainingpulse.db.rows import to_value, utcnow_iso
from trainingpulse.db.supabase_client import get_supabase


def get_all_settings() -> dict[str, Any]:
    """All settings as a key -> value mapping."""
    supabase = get_supabase()
    result = supabase.table("system_settings").select("key, value").order("key").execute()
    return {row["key"]: row.get("value") for row in result.data or []}


def get_setting(key: str) -> Optional[dict[str, Any]]:
    supabase = get_supabase()
    result = supabase.table("system_settings").select("*").eq("key", key).execute()
    return result.data[0] if result.data else None


def set_setting(key: str, value: Any, updated_by: UUID | None = None) -> dict[str, Any]:
    supabase = get_supabase()
    row = {
        "key": key,
        "value": to_value(value),
        "updated_at": utcnow_iso(),
        "updated_by": str(updated_by) if updated_by else None,
    }
    result = supabase.table("system_settings").upsert(row, on_conflict="key").execute()
    if not result.data:
        raise ValueError(f"No data returned from setting upsert: {key}")
    return result.data[0]


def update_settings(values: dict[str, Any], updated_by: UUID | None = None) -> dict[str, Any]:
    """Upsert several settings at once and return the full mapping."""
    if not values:
        raise ValueError("No settings to update")
    supabase = get_supabase()
    now = utcnow_iso()
    rows = [
        {
            "key": key,
            "value": to_value(value),
            "updated_at": now,
            "updated_by": str(updated_by) if updated_by else None,
        }
        for key, value in values.items()
    ]
    supabase.table("system_settings").upsert(rows, on_conflict="key").execute()
    return get_all_settings()
