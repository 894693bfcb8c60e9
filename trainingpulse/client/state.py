"""Persistent client state: auth tokens, cached user and UI preferences.

Stored as a small JSON file so a session survives restarts.
"""

import json
from pathlib import Path
from typing import Any, Optional

from trainingpulse.core.logging import get_logger

logger = get_logger(__name__)

THEMES = ("light", "dark")


class ClientState:
    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()
        self._data: dict[str, Any] = self._load()

    @classmethod
    def from_settings(cls, settings) -> "ClientState":
        return cls(settings.CLIENT_STATE_PATH)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable client state at {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._data, indent=2, sort_keys=True))

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._save()

    def remove(self, *keys: str) -> None:
        for key in keys:
            self._data.pop(key, None)
        self._save()

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    @property
    def access_token(self) -> Optional[str]:
        return self._data.get("accessToken")

    @property
    def refresh_token(self) -> Optional[str]:
        return self._data.get("refreshToken")

    @property
    def user(self) -> Optional[dict[str, Any]]:
        return self._data.get("user")

    def set_tokens(self, access_token: str, refresh_token: Optional[str] = None) -> None:
        self._data["accessToken"] = access_token
        if refresh_token:
            self._data["refreshToken"] = refresh_token
        self._save()

    def set_user(self, user: dict[str, Any]) -> None:
        self.set("user", user)

    def clear_auth(self) -> None:
        self.remove("accessToken", "refreshToken", "user")

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token and self.user)

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    @property
    def theme(self) -> str:
        theme = self._data.get("theme")
        return theme if theme in THEMES else "light"

    @theme.setter
    def theme(self, value: str) -> None:
        if value not in THEMES:
            raise ValueError(f"Unknown theme: {value}")
        self.set("theme", value)

    def toggle_theme(self) -> str:
        self.theme = "dark" if self.theme == "light" else "light"
        return self.theme

    @property
    def compact_mode(self) -> bool:
        return bool(self._data.get("compactMode", False))

    @compact_mode.setter
    def compact_mode(self, value: bool) -> None:
        self.set("compactMode", bool(value))
