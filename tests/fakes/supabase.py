"""Helpers for mocking Supabase query chains and user rows."""

from typing import Any, Optional
from unittest.mock import MagicMock
from uuid import uuid4


def make_user(role: str = "admin", **fields) -> dict:
    return {
        "id": str(uuid4()),
        "email": f"{role}@example.com",
        "name": role.capitalize(),
        "role": role,
        "is_active": True,
        **fields,
    }


def mock_result(data: Any = None, count: Optional[int] = None) -> MagicMock:
    """A Supabase ``execute()`` result."""
    result = MagicMock()
    result.data = data
    result.count = count
    return result


def chain_returning(*results: MagicMock) -> MagicMock:
    """
    Supabase client mock whose query builder accepts any chain of calls.

    Each ``execute()`` returns the next of ``results``; the last one repeats.
    """
    supabase = MagicMock()
    builder = MagicMock()
    for name in (
        "select", "insert", "update", "upsert", "delete", "eq", "neq", "in_", "or_",
        "is_", "gte", "lt", "lte", "ilike", "order", "range", "limit",
    ):
        getattr(builder, name).return_value = builder
    builder.not_ = builder
    remaining = list(results)

    def execute():
        return remaining.pop(0) if len(remaining) > 1 else remaining[0]

    builder.execute.side_effect = execute
    supabase.table.return_value = builder
    supabase.builder = builder
    return supabase
