"""Shared helpers for API routers."""

from typing import Any, Optional

from fastapi import HTTPException, status


def envelope(data: Any, pagination: Optional[dict[str, Any]] = None, **extra: Any) -> dict[str, Any]:
    """Wrap a payload in the response envelope the client expects: ``{"data": ...}``."""
    body: dict[str, Any] = {"data": data}
    if pagination is not None:
        body["pagination"] = pagination
    body.update(extra)
    return body


def page(total: int, limit: int, offset: int) -> dict[str, Any]:
    return {"total": total, "limit": limit, "offset": offset, "has_more": offset + limit < total}


def not_found(entity: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{entity} not found")


def forbidden(detail: str = "Insufficient permissions") -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
