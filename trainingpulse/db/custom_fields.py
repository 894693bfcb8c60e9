"""Database operations for custom field definitions and their per-entity values."""

from typing import Any, Optional
from uuid import UUID

from trainingpulse.db.rows import to_row, to_value, utcnow_iso
from trainingpulse.db.supabase_client import get_supabase


def list_fields(entity_type: str | None = None) -> list[dict[str, Any]]:
    supabase = get_supabase()
    query = supabase.table("custom_fields").select("*")
    if entity_type:
        query = query.eq("entity_type", entity_type)
    return query.order("sort_order").execute().data or []


def get_field(field_id: UUID) -> Optional[dict[str, Any]]:
    supabase = get_supabase()
    result = supabase.table("custom_fields").select("*").eq("id", str(field_id)).execute()
    return result.data[0] if result.data else None


def create_field(data: dict[str, Any]) -> dict[str, Any]:
    supabase = get_supabase()
    result = supabase.table("custom_fields").insert(to_row(data)).execute()
    if not result.data:
        raise ValueError("No data returned from custom field insert")
    return result.data[0]


def update_field(field_id: UUID, data: dict[str, Any]) -> dict[str, Any]:
    if not data:
        raise ValueError("No fields to update")
    supabase = get_supabase()
    payload = {**to_row(data), "updated_at": utcnow_iso()}
    result = supabase.table("custom_fields").update(payload).eq("id", str(field_id)).execute()
    if not result.data:
        raise ValueError(f"Custom field not found: {field_id}")
    return result.data[0]


def delete_field(field_id: UUID) -> None:
    supabase = get_supabase()
    supabase.table("custom_field_values").delete().eq("field_id", str(field_id)).execute()
    supabase.table("custom_fields").delete().eq("id", str(field_id)).execute()


def get_values(entity_type: str, entity_id: UUID) -> dict[str, Any]:
    """Values for one entity keyed by field name."""
    supabase = get_supabase()
    result = (
        supabase.table("custom_field_values")
        .select("value, custom_fields(name)")
        .eq("entity_type", entity_type)
        .eq("entity_id", str(entity_id))
        .execute()
    )
    values = {}
    for row in result.data or []:
        field = row.get("custom_fields") or {}
        if field.get("name"):
            values[field["name"]] = row.get("value")
    return values


def validate_values(fields: list[dict[str, Any]], values: dict[str, Any]) -> list[str]:
    """Return validation errors for ``values`` against field definitions."""
    errors = []
    by_name = {f["name"]: f for f in fields}
    for name in values:
        if name not in by_name:
            errors.append(f"Unknown field: {name}")
    for field in fields:
        value = values.get(field["name"])
        if value in (None, "", []):
            if field.get("is_required"):
                errors.append(f"{field.get('label') or field['name']} is required")
            continue
        options = field.get("options") or []
        if field["field_type"] == "number" and not isinstance(value, (int, float)):
            errors.append(f"{field['name']} must be a number")
        elif field["field_type"] == "boolean" and not isinstance(value, bool):
            errors.append(f"{field['name']} must be true or false")
        elif field["field_type"] == "select" and options and value not in options:
            errors.append(f"{field['name']} must be one of {', '.join(options)}")
        elif field["field_type"] == "multi_select" and options:
            invalid = [v for v in value if v not in options]
            if invalid:
                errors.append(f"{field['name']} has invalid options: {', '.join(map(str, invalid))}")
    return errors


def set_values(entity_type: str, entity_id: UUID, values: dict[str, Any]) -> dict[str, Any]:
    """Validate and upsert values for one entity. Raises ValueError on invalid input."""
    fields = list_fields(entity_type)
    errors = validate_values(fields, values)
    if errors:
        raise ValueError("; ".join(errors))
    supabase = get_supabase()
    by_name = {f["name"]: f for f in fields}
    rows = [
        {
            "field_id": str(by_name[name]["id"]),
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "value": to_value(value),
            "updated_at": utcnow_iso(),
        }
        for name, value in values.items()
    ]
    if rows:
        supabase.table("custom_field_values").upsert(
            rows, on_conflict="field_id,entity_type,entity_id"
        ).execute()
    return get_values(entity_type, entity_id)
