"""User-facing messages: success and error notices plus confirmation prompts."""

from typing import Protocol

from trainingpulse.core.logging import get_logger

logger = get_logger(__name__)


class Notifier(Protocol):
    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def confirm(self, message: str) -> bool: ...


class LoggingNotifier:
    """Writes notices to the log. Confirmations answer with ``auto_confirm``."""

    def __init__(self, auto_confirm: bool = False):
        self.auto_confirm = auto_confirm

    def success(self, message: str) -> None:
        logger.info(message)

    def error(self, message: str) -> None:
        logger.error(message)

    def confirm(self, message: str) -> bool:
        logger.warning(f"Confirmation requested ({'accepted' if self.auto_confirm else 'declined'}): {message}")
        return self.auto_confirm
