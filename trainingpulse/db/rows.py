"""Helpers for turning pydantic-dumped values into Supabase row values."""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID


def to_value(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return [to_value(v) for v in value]
    if isinstance(value, dict):
        return {k: to_value(v) for k, v in value.items()}
    return value


def to_row(data: dict[str, Any]) -> dict[str, Any]:
    """JSON-safe copy of ``data`` for insert/update payloads."""
    return {key: to_value(value) for key, value in data.items()}


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
