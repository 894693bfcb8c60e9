"""HTTP layer: bearer auth, one refresh-and-replay on 401, error mapping."""

from typing import Any, Optional

import httpx

from trainingpulse.client.errors import ApiError, AuthenticationExpired
from trainingpulse.client.state import ClientState
from trainingpulse.core.logging import get_logger

logger = get_logger(__name__)

REFRESH_PATH = "/auth/refresh"
# 401s from these mean bad credentials, not an expired token
NO_REFRESH_PATHS = ("/auth/login", REFRESH_PATH)


class ApiClient:
    """
    Thin wrapper over ``httpx.AsyncClient`` rooted at the versioned API.

    Every request carries the stored access token. A 401 triggers exactly one
    token refresh followed by a replay of the original request; if that fails
    the stored auth is cleared and ``AuthenticationExpired`` is raised.
    """

    def __init__(
        self,
        base_url: str,
        state: ClientState,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.state = state
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )

    @classmethod
    def from_settings(cls, settings, state: ClientState, transport: Optional[httpx.AsyncBaseTransport] = None) -> "ApiClient":
        return cls(settings.api_root, state, timeout=settings.REQUEST_TIMEOUT_SECONDS, transport=transport)

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _send(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]],
        json: Any,
        token: Optional[str],
    ) -> httpx.Response:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        return await self._client.request(method, path, params=params, json=json, headers=headers)

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (None when empty)."""
        response = await self._send(method, path, params, json, self.state.access_token)

        if response.status_code == 401 and path not in NO_REFRESH_PATHS:
            token = await self._refresh()
            response = await self._send(method, path, params, json, token)
            if response.status_code == 401:
                logger.warning(f"Replay of {method} {path} rejected after refresh")
                self.state.clear_auth()
                raise AuthenticationExpired()

        return self._decode(response)

    async def _refresh(self) -> str:
        refresh_token = self.state.refresh_token
        if not refresh_token:
            self.state.clear_auth()
            raise AuthenticationExpired("Not logged in")

        try:
            response = await self._send("POST", REFRESH_PATH, None, {"refreshToken": refresh_token}, None)
        except httpx.HTTPError as e:
            logger.warning(f"Token refresh failed: {e}")
            self.state.clear_auth()
            raise AuthenticationExpired() from e

        if response.is_error:
            logger.info(f"Token refresh rejected with {response.status_code}")
            self.state.clear_auth()
            raise AuthenticationExpired(payload=_safe_json(response))

        data = (_safe_json(response) or {}).get("data") or {}
        access_token = data.get("accessToken")
        if not access_token:
            self.state.clear_auth()
            raise AuthenticationExpired("Refresh response had no access token")

        self.state.set_tokens(access_token, data.get("refreshToken"))
        logger.debug("Access token refreshed")
        return access_token

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if response.is_error:
            raise ApiError.from_response(response)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None, params: Optional[dict[str, Any]] = None) -> Any:
        return await self.request("POST", path, params=params, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def patch(self, path: str, json: Any = None) -> Any:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)


def _safe_json(response: httpx.Response) -> Optional[dict[str, Any]]:
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None
