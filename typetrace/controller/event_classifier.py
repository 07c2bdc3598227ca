# typetrace/controller/event_classifier.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Set
import structlog

from tracecore.hooks.events import (
    BaseEvent, EventType, KeyEvent, KeyAction,
    TypedChar, Deletion, ShortcutInvoked, Action,
    DELETE_KEY, LINE_BREAK, MODIFIER_KEYS, NS_SYSTEM,
)

log = structlog.get_logger()

@dataclass
class ClassifierConfig:
    deletion_key: str = DELETE_KEY
    line_break: str = LINE_BREAK

def shortcut_signature(key: str, mods: Set[str]) -> str:
    return f"{'ctrl+' if 'ctrl' in mods else ''}{'meta+' if 'cmd' in mods else ''}{key}"

class EventClassifier:
    """
    Turns raw key signals into typed actions.
    - ctrl/cmd held: ShortcutInvoked in the system namespace
    - deletion key: Deletion of the char left of the cursor, or the line-break sentinel at column 0
    - single printable char: TypedChar
    Key releases, the modifier keys themselves and named keys (Enter, arrows...)
    classify to None.
    """
    def __init__(self, config: Optional[ClassifierConfig] = None, debug: bool = False):
        self.cfg = config or ClassifierConfig()
        self.debug = debug

    def classify(self, ev: BaseEvent) -> Optional[Action]:
        if ev.etype != EventType.KEY or not isinstance(ev, KeyEvent):
            return None
        if ev.action != KeyAction.DOWN:
            return None

        m: Set[str] = ev.mods
        k = ev.key
        if k in MODIFIER_KEYS:
            return None
        if "ctrl" in m or "cmd" in m:
            return self._emit(ShortcutInvoked(t_wall=ev.t_wall, signature=shortcut_signature(k, m), namespace=NS_SYSTEM))

        if k == self.cfg.deletion_key:
            return self._emit(Deletion(t_wall=ev.t_wall, char=self._deleted_char(ev)))

        if len(k) == 1 and k.isprintable():
            return self._emit(TypedChar(t_wall=ev.t_wall, char=k))

        return None

    def _deleted_char(self, ev: KeyEvent) -> Optional[str]:
        ctx = ev.context
        if ctx is None:
            return None
        if ctx.column <= 0:
            return self.cfg.line_break
        return ctx.char_before_cursor()

    def _emit(self, action: Action) -> Action:
        if self.debug:
            log.debug("classifier.emit", **action.to_record())
        return action
