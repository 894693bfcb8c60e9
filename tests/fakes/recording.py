"""Recording stand-ins for user-facing collaborators."""

from typing import List


class RecordingNotifier:
    """Notifier that records messages and answers confirmations with ``answer``."""

    def __init__(self, answer: bool = True):
        self.answer = answer
        self.successes: List[str] = []
        self.errors: List[str] = []
        self.confirmations: List[str] = []

    def success(self, message: str) -> None:
        self.successes.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)

    def confirm(self, message: str) -> bool:
        self.confirmations.append(message)
        return self.answer
