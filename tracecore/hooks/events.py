from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional, Set, Dict, Any, Union
import time
from datetime import datetime

# --- timing helpers ---
def local_iso(ts: Optional[float] = None) -> str:
    """Local wall-clock ISO timestamp without offset, millisecond precision."""
    when = datetime.fromtimestamp(time.time() if ts is None else ts)
    return when.isoformat(timespec="milliseconds")

def wall_ts() -> float:
    return time.time()

# --- shared symbols ---
WORD_BOUNDARY = " "
LINE_BREAK = "⏎"          # stands for a deleted line join
DELETE_KEY = "Backspace"

# names a hook reports for the modifier keys themselves
MODIFIERS = ("shift", "ctrl", "alt", "cmd")
MODIFIER_KEYS = frozenset(
    [f"{mod}{side}" for mod in MODIFIERS for side in ("", "_l", "_r")] + ["alt_gr"]
)

NS_SYSTEM = "system"
NS_VIM = "vim"

# --- core enums ---
class EventType(Enum):
    """Top-level classifier for event routing."""
    KEY = auto()
    TYPED = auto()
    DELETED = auto()
    SHORTCUT = auto()

class KeyAction(Enum):
    DOWN = "down"
    UP = "up"

# --- edit context ---
@dataclass(frozen=True)
class EditContext:
    """Cursor column and line text captured before the key is applied."""
    column: int = 0
    line: str = ""

    def char_before_cursor(self) -> Optional[str]:
        if self.column <= 0:
            return None
        if self.column > len(self.line):
            return None
        return self.line[self.column - 1]

# --- base event ---
@dataclass(frozen=True)
class BaseEvent:
    """Common shape for all events."""
    etype: EventType = field(init=False)         # auto-set by subclasses
    t_wall: float = field(default_factory=wall_ts)

    def to_record(self) -> Dict[str, Any]:
        return {
            "etype": self.etype.name,
            "t_local": local_iso(self.t_wall),
            "t_wall": self.t_wall,
        }

# --- raw key event ---
@dataclass(frozen=True)
class KeyEvent(BaseEvent):
    """Raw keystroke signal as delivered by an event source."""
    key: str = ""
    action: KeyAction = KeyAction.DOWN
    mods: Set[str] = field(default_factory=set)  # {"ctrl","shift","alt","cmd"}
    context: Optional[EditContext] = None        # key-press only

    def __post_init__(self):
        object.__setattr__(self, "etype", EventType.KEY)

    def to_record(self) -> Dict[str, Any]:
        base = super().to_record()
        base.update({
            "key": self.key,
            "action": self.action.value,
            "mods": sorted(self.mods),
        })
        if self.context is not None:
            base["column"] = self.context.column
        return base

# --- classified actions ---
@dataclass(frozen=True)
class TypedChar(BaseEvent):
    """A single printable character typed without ctrl/cmd."""
    char: str = ""

    def __post_init__(self):
        object.__setattr__(self, "etype", EventType.TYPED)

    def to_record(self) -> Dict[str, Any]:
        base = super().to_record()
        base["char"] = self.char
        return base

@dataclass(frozen=True)
class Deletion(BaseEvent):
    """The deletion key; char is None when no edit context was available."""
    char: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "etype", EventType.DELETED)

    def to_record(self) -> Dict[str, Any]:
        base = super().to_record()
        base["char"] = self.char
        return base

@dataclass(frozen=True)
class ShortcutInvoked(BaseEvent):
    """Any key pressed while ctrl or cmd is held."""
    signature: str = ""
    namespace: str = NS_SYSTEM

    def __post_init__(self):
        object.__setattr__(self, "etype", EventType.SHORTCUT)

    def to_record(self) -> Dict[str, Any]:
        base = super().to_record()
        base.update({
            "signature": self.signature,
            "namespace": self.namespace,
        })
        return base

Action = Union[TypedChar, Deletion, ShortcutInvoked]
