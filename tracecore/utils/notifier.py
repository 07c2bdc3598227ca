from __future__ import annotations
from typing import List, Protocol
import structlog

log = structlog.get_logger()

class Notifier(Protocol):
    def notify(self, message: str) -> None: ...

class LogNotifier:
    """Routes user-facing messages into the log stream."""
    def notify(self, message: str) -> None:
        log.info("notice", msg=message)

class RecordingNotifier:
    """Keeps every message; handy for tests and the CLI."""
    def __init__(self):
        self.messages: List[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)
