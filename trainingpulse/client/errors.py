"""Client-side exceptions."""

from typing import Any, Optional

import httpx


class ApiError(Exception):
    """A non-2xx response from the API."""

    def __init__(self, status_code: int, message: str, payload: Optional[Any] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.payload = payload

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        payload = _json_or_none(response)
        return cls(response.status_code, error_message(payload, response.reason_phrase), payload)


class AuthenticationExpired(ApiError):
    """A 401 that a single refresh-and-replay could not recover. Tokens are already cleared."""

    def __init__(self, message: str = "Session expired, please log in again", payload: Optional[Any] = None):
        super().__init__(401, message, payload)


class ValidationFailed(ValueError):
    """Input rejected on the client before any request is made."""


def _json_or_none(response: httpx.Response) -> Optional[Any]:
    try:
        return response.json()
    except ValueError:
        return None


def error_message(payload: Optional[Any], fallback: str) -> str:
    """Pick the most specific message from an error body."""
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(payload.get("detail"), str):
            return payload["detail"]
        if payload.get("message"):
            return str(payload["message"])
    return fallback or "Request failed"
