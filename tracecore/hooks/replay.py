from __future__ import annotations
import threading
from typing import Callable, Iterable, List, Protocol

from .events import KeyEvent

KeyCallback = Callable[[KeyEvent], None]

class EventSource(Protocol):
    """Anything that can deliver KeyEvents to subscribers."""
    def subscribe(self, callback: KeyCallback) -> None: ...
    def unsubscribe(self, callback: KeyCallback) -> None: ...

class Subscribers:
    """Small thread-safe callback registry shared by the concrete sources."""
    def __init__(self):
        self._lock = threading.RLock()
        self._callbacks: List[KeyCallback] = []

    def add(self, callback: KeyCallback) -> None:
        with self._lock:
            if callback not in self._callbacks:
                self._callbacks.append(callback)

    def remove(self, callback: KeyCallback) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def emit(self, ev: KeyEvent) -> None:
        with self._lock:
            targets = list(self._callbacks)
        for cb in targets:
            cb(ev)

    def __len__(self) -> int:
        with self._lock:
            return len(self._callbacks)

class ReplaySource:
    """Delivers a fixed list of KeyEvents on demand, in order."""
    def __init__(self, events: Iterable[KeyEvent] = ()):
        self.events: List[KeyEvent] = list(events)
        self.subscribers = Subscribers()

    def subscribe(self, callback: KeyCallback) -> None:
        self.subscribers.add(callback)

    def unsubscribe(self, callback: KeyCallback) -> None:
        self.subscribers.remove(callback)

    def replay(self) -> int:
        for ev in self.events:
            self.subscribers.emit(ev)
        return len(self.events)
