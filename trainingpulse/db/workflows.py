"""Database operations for workflow templates, stages, transitions and instances."""

from typing import Any, Optional
from uuid import UUID

from trainingpulse.core.logging import get_logger
from trainingpulse.core.workflow_engine import transition_payload
from trainingpulse.db.rows import to_row, utcnow_iso
from trainingpulse.db.supabase_client import get_supabase

logger = get_logger(__name__)

STATE_FIELDS = (
    "state_name",
    "display_name",
    "stage_type",
    "is_initial",
    "is_final",
    "position_x",
    "position_y",
    "order",
    "state_config",
)


def _state_row(template_id: str, state: dict[str, Any], index: int) -> dict[str, Any]:
    row = {k: state.get(k) for k in STATE_FIELDS}
    row["order"] = state.get("order") if state.get("order") is not None else index
    row["state_config"] = state.get("state_config") or {}
    row["workflow_template_id"] = template_id
    return to_row(row)


def _transition_row(template_id: str, transition: dict[str, Any], index: int) -> dict[str, Any]:
    return {
        "workflow_template_id": template_id,
        "from_state": transition["from_state"],
        "to_state": transition["to_state"],
        "condition": transition.get("condition") or "auto",
        "order": transition.get("order") if transition.get("order") is not None else index,
    }


# ============================================================================
# Templates
# ============================================================================


def list_templates(is_active: bool | None = None) -> list[dict[str, Any]]:
    """List templates with stage and transition counts."""
    supabase = get_supabase()
    query = supabase.table("workflow_templates").select(
        "*, workflow_states(count), workflow_transitions(count)"
    )
    if is_active is not None:
        query = query.eq("is_active", is_active)
    result = query.order("name").execute()
    templates = []
    for row in result.data or []:
        states = row.pop("workflow_states", None) or [{}]
        transitions = row.pop("workflow_transitions", None) or [{}]
        row["stage_count"] = states[0].get("count", 0)
        row["transition_count"] = transitions[0].get("count", 0)
        templates.append(row)
    return templates


def get_template(template_id: UUID) -> Optional[dict[str, Any]]:
    """Get a template with ordered states and transitions."""
    supabase = get_supabase()
    result = (
        supabase.table("workflow_templates")
        .select("*")
        .eq("id", str(template_id))
        .execute()
    )
    if not result.data:
        return None
    template = result.data[0]

    states = (
        supabase.table("workflow_states")
        .select("*")
        .eq("workflow_template_id", str(template_id))
        .order("order")
        .execute()
    )
    template["states"] = states.data or []
    template["transitions"] = _list_transitions(template_id)
    return template


def _list_transitions(template_id: UUID) -> list[dict[str, Any]]:
    supabase = get_supabase()
    result = (
        supabase.table("workflow_transitions")
        .select("*")
        .eq("workflow_template_id", str(template_id))
        .order("order")
        .execute()
    )
    return result.data or []


def create_template(data: dict[str, Any], created_by: UUID | None = None) -> dict[str, Any]:
    """Insert a template together with its states and transitions."""
    supabase = get_supabase()
    row: dict[str, Any] = {
        "name": data["name"],
        "description": data.get("description"),
        "is_active": data.get("is_active", True),
    }
    if created_by:
        row["created_by"] = str(created_by)
    result = supabase.table("workflow_templates").insert(row).execute()
    if not result.data:
        raise ValueError("No data returned from workflow template insert")
    template = result.data[0]
    _write_graph(template["id"], data.get("states") or [], data.get("transitions") or [])
    logger.info(f"Created workflow template {template['id']}: {template['name']}")
    return get_template(template["id"]) or template


def update_template(template_id: UUID, data: dict[str, Any]) -> dict[str, Any]:
    """Update template metadata; replaces states/transitions when given."""
    supabase = get_supabase()
    meta = {k: data[k] for k in ("name", "description", "is_active") if k in data}
    meta["updated_at"] = utcnow_iso()
    result = (
        supabase.table("workflow_templates")
        .update(meta)
        .eq("id", str(template_id))
        .execute()
    )
    if not result.data:
        raise ValueError(f"Workflow template not found: {template_id}")

    if data.get("states") is not None:
        transitions = data.get("transitions")
        if transitions is None:
            transitions = transition_payload(_list_transitions(template_id))
        supabase.table("workflow_transitions").delete().eq(
            "workflow_template_id", str(template_id)
        ).execute()
        supabase.table("workflow_states").delete().eq(
            "workflow_template_id", str(template_id)
        ).execute()
        _write_graph(str(template_id), data["states"], transitions)
    elif data.get("transitions") is not None:
        supabase.table("workflow_transitions").delete().eq(
            "workflow_template_id", str(template_id)
        ).execute()
        _write_graph(str(template_id), [], data["transitions"])

    return get_template(template_id) or result.data[0]


def _write_graph(template_id: str, states: list[dict], transitions: list[dict]) -> None:
    supabase = get_supabase()
    if states:
        supabase.table("workflow_states").insert(
            [_state_row(template_id, s, i) for i, s in enumerate(states)]
        ).execute()
    if transitions:
        supabase.table("workflow_transitions").insert(
            [_transition_row(template_id, t, i) for i, t in enumerate(transitions)]
        ).execute()


def delete_template(template_id: UUID) -> None:
    """Delete a template. States and transitions cascade via FK."""
    supabase = get_supabase()
    supabase.table("workflow_templates").delete().eq("id", str(template_id)).execute()


def count_active_instances(template_id: UUID) -> int:
    supabase = get_supabase()
    result = (
        supabase.table("workflow_instances")
        .select("id", count="exact")
        .eq("workflow_template_id", str(template_id))
        .eq("is_complete", False)
        .execute()
    )
    return result.count or 0


# ============================================================================
# Stages and transitions
# ============================================================================


def add_stage(template_id: UUID, stage: dict[str, Any]) -> dict[str, Any]:
    supabase = get_supabase()
    existing = (
        supabase.table("workflow_states")
        .select("id", count="exact")
        .eq("workflow_template_id", str(template_id))
        .execute()
    )
    row = _state_row(str(template_id), stage, existing.count or 0)
    result = supabase.table("workflow_states").insert(row).execute()
    if not result.data:
        raise ValueError("No data returned from stage insert")
    return result.data[0]


def update_stage(template_id: UUID, stage_id: UUID, updates: dict[str, Any]) -> dict[str, Any]:
    supabase = get_supabase()
    if not updates:
        raise ValueError("No fields to update")
    result = (
        supabase.table("workflow_states")
        .update(to_row(updates))
        .eq("id", str(stage_id))
        .eq("workflow_template_id", str(template_id))
        .execute()
    )
    if not result.data:
        raise ValueError(f"Stage not found: {stage_id}")
    return result.data[0]


def delete_stage(template_id: UUID, stage_id: UUID) -> None:
    """Delete a stage and every transition touching it."""
    supabase = get_supabase()
    stage = (
        supabase.table("workflow_states")
        .select("state_name")
        .eq("id", str(stage_id))
        .eq("workflow_template_id", str(template_id))
        .execute()
    )
    if not stage.data:
        raise ValueError(f"Stage not found: {stage_id}")
    name = stage.data[0]["state_name"]
    supabase.table("workflow_transitions").delete().eq(
        "workflow_template_id", str(template_id)
    ).or_(f"from_state.eq.{name},to_state.eq.{name}").execute()
    supabase.table("workflow_states").delete().eq("id", str(stage_id)).execute()


def add_transition(template_id: UUID, transition: dict[str, Any]) -> dict[str, Any]:
    supabase = get_supabase()
    row = _transition_row(str(template_id), transition, transition.get("order") or 0)
    result = supabase.table("workflow_transitions").insert(row).execute()
    if not result.data:
        raise ValueError("No data returned from transition insert")
    return result.data[0]


def delete_transition(template_id: UUID, transition_id: UUID) -> None:
    supabase = get_supabase()
    supabase.table("workflow_transitions").delete().eq("id", str(transition_id)).eq(
        "workflow_template_id", str(template_id)
    ).execute()


# ============================================================================
# Instances
# ============================================================================


def list_instances(is_complete: bool | None = None, limit: int = 50) -> list[dict[str, Any]]:
    supabase = get_supabase()
    query = supabase.table("workflow_instances").select(
        "*, courses(id, title), workflow_templates(id, name)"
    )
    if is_complete is not None:
        query = query.eq("is_complete", is_complete)
    result = query.order("updated_at", desc=True).limit(limit).execute()
    return result.data or []


def get_instance(instance_id: UUID) -> Optional[dict[str, Any]]:
    supabase = get_supabase()
    result = supabase.table("workflow_instances").select("*").eq("id", str(instance_id)).execute()
    return result.data[0] if result.data else None


def get_instance_for_course(course_id: UUID) -> Optional[dict[str, Any]]:
    """The course's open workflow instance, if any."""
    supabase = get_supabase()
    result = (
        supabase.table("workflow_instances")
        .select("*")
        .eq("course_id", str(course_id))
        .eq("is_complete", False)
        .execute()
    )
    return result.data[0] if result.data else None


def create_instance(course_id: UUID, template_id: UUID, initial_state: str) -> dict[str, Any]:
    supabase = get_supabase()
    result = (
        supabase.table("workflow_instances")
        .insert(
            {
                "course_id": str(course_id),
                "workflow_template_id": str(template_id),
                "current_state": initial_state,
                "is_complete": False,
            }
        )
        .execute()
    )
    if not result.data:
        raise ValueError("No data returned from workflow instance insert")
    return result.data[0]


def update_instance(instance_id: UUID, updates: dict[str, Any]) -> dict[str, Any]:
    supabase = get_supabase()
    payload = to_row(updates)
    payload["updated_at"] = utcnow_iso()
    result = (
        supabase.table("workflow_instances")
        .update(payload)
        .eq("id", str(instance_id))
        .execute()
    )
    if not result.data:
        raise ValueError(f"Workflow instance not found: {instance_id}")
    return result.data[0]


def log_transition(
    instance: dict[str, Any],
    from_state: str | None,
    to_state: str,
    actor_id: UUID | None,
    notes: str = "",
) -> None:
    supabase = get_supabase()
    supabase.table("workflow_transition_log").insert(
        {
            "workflow_instance_id": str(instance["id"]),
            "workflow_template_id": str(instance["workflow_template_id"]),
            "course_id": str(instance["course_id"]),
            "from_state": from_state,
            "to_state": to_state,
            "changed_by": str(actor_id) if actor_id else None,
            "notes": notes,
        }
    ).execute()


def list_template_activity(template_id: UUID, limit: int = 50, offset: int = 0) -> list[dict[str, Any]]:
    supabase = get_supabase()
    result = (
        supabase.table("workflow_transition_log")
        .select("*, courses(id, title), users(id, name)")
        .eq("workflow_template_id", str(template_id))
        .order("created_at", desc=True)
        .range(offset, offset + limit - 1)
        .execute()
    )
    return result.data or []
