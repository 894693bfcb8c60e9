"""Database operations for delivery modalities and the phase templates each one seeds."""

from typing import Any, Optional
from uuid import UUID

from trainingpulse.core.logging import get_logger
from trainingpulse.db.rows import to_row, utcnow_iso
from trainingpulse.db.supabase_client import get_supabase

logger = get_logger(__name__)


class ModalityInUse(ValueError):
    pass


# ============================================================================
# Modalities
# ============================================================================


def list_modalities(include_inactive: bool = False) -> list[dict[str, Any]]:
    supabase = get_supabase()
    query = supabase.table("modalities").select("*")
    if not include_inactive:
        query = query.eq("is_active", True)
    return query.order("sort_order").execute().data or []


def get_modality(modality_id: UUID) -> Optional[dict[str, Any]]:
    supabase = get_supabase()
    result = supabase.table("modalities").select("*").eq("id", str(modality_id)).execute()
    return result.data[0] if result.data else None


def get_modality_by_value(value: str) -> Optional[dict[str, Any]]:
    supabase = get_supabase()
    result = supabase.table("modalities").select("*").eq("value", value).execute()
    return result.data[0] if result.data else None


def create_modality(data: dict[str, Any]) -> dict[str, Any]:
    supabase = get_supabase()
    result = supabase.table("modalities").insert(to_row(data)).execute()
    if not result.data:
        raise ValueError("No data returned from modality insert")
    return result.data[0]


def update_modality(modality_id: UUID, data: dict[str, Any]) -> dict[str, Any]:
    if not data:
        raise ValueError("No fields to update")
    supabase = get_supabase()
    payload = {**to_row(data), "updated_at": utcnow_iso()}
    result = supabase.table("modalities").update(payload).eq("id", str(modality_id)).execute()
    if not result.data:
        raise ValueError(f"Modality not found: {modality_id}")
    return result.data[0]


def delete_modality(modality_id: UUID) -> None:
    """Delete a modality and its task templates unless courses still use it."""
    supabase = get_supabase()
    modality = get_modality(modality_id)
    if not modality:
        raise ValueError(f"Modality not found: {modality_id}")
    in_use = (
        supabase.table("courses")
        .select("id", count="exact")
        .eq("modality", modality["value"])
        .execute()
    )
    if in_use.count:
        raise ModalityInUse(f"Modality '{modality['value']}' is used by {in_use.count} course(s)")
    supabase.table("modality_tasks").delete().eq("modality", modality["value"]).execute()
    supabase.table("modalities").delete().eq("id", str(modality_id)).execute()


# ============================================================================
# Modality tasks
# ============================================================================


def list_tasks(modality: str | None = None) -> list[dict[str, Any]]:
    supabase = get_supabase()
    query = supabase.table("modality_tasks").select("*")
    if modality:
        query = query.eq("modality", modality)
    return query.order("modality").order("order_index").execute().data or []


def list_tasks_grouped() -> dict[str, list[dict[str, Any]]]:
    grouped: dict[str, list[dict[str, Any]]] = {}
    for task in list_tasks():
        grouped.setdefault(task["modality"], []).append(task)
    return grouped


def create_task(data: dict[str, Any]) -> dict[str, Any]:
    supabase = get_supabase()
    result = supabase.table("modality_tasks").insert(to_row(data)).execute()
    if not result.data:
        raise ValueError("No data returned from modality task insert")
    return result.data[0]


def update_task(task_id: UUID, data: dict[str, Any]) -> dict[str, Any]:
    if not data:
        raise ValueError("No fields to update")
    supabase = get_supabase()
    result = supabase.table("modality_tasks").update(to_row(data)).eq("id", str(task_id)).execute()
    if not result.data:
        raise ValueError(f"Modality task not found: {task_id}")
    return result.data[0]


def delete_task(task_id: UUID) -> None:
    supabase = get_supabase()
    result = supabase.table("modality_tasks").delete().eq("id", str(task_id)).execute()
    if not result.data:
        raise ValueError(f"Modality task not found: {task_id}")


def reorder_tasks(modality: str, task_ids: list[UUID]) -> list[dict[str, Any]]:
    """Renumber a modality's tasks 1..n in the given order."""
    supabase = get_supabase()
    for index, task_id in enumerate(task_ids, start=1):
        supabase.table("modality_tasks").update({"order_index": index}).eq("id", str(task_id)).eq(
            "modality", modality
        ).execute()
    logger.info(f"Reordered {len(task_ids)} task(s) for modality {modality!r}")
    return list_tasks(modality)
