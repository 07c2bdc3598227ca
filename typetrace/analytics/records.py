# typetrace/analytics/records.py
from __future__ import annotations
import json
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from tracecore.hooks.events import local_iso, NS_SYSTEM, NS_VIM

class RecordFormatError(ValueError):
    """Persisted day state that cannot be turned back into a DayRecord."""

# --- time helpers ---
def parse_local(stamp: str) -> float:
    return datetime.fromisoformat(stamp).timestamp()

def local_day(ts: float) -> str:
    return datetime.fromtimestamp(ts).strftime("%Y-%m-%d")

def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))

def minutes_between(start: str, end_ts: float) -> int:
    return round_half_up((end_ts - parse_local(start)) / 60.0)

# --- record parts ---
@dataclass
class Session:
    start: str
    end: Optional[str] = None
    duration_minutes: int = 0

    @property
    def is_open(self) -> bool:
        return self.end is None

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start, "end": self.end, "durationMinutes": self.duration_minutes}

@dataclass
class Totals:
    words_typed: int = 0
    chars_typed: int = 0
    words_deleted: int = 0
    chars_deleted: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wordsTyped": self.words_typed,
            "charsTyped": self.chars_typed,
            "wordsDeleted": self.words_deleted,
            "charsDeleted": self.chars_deleted,
        }

@dataclass
class SpeedSample:
    timestamp: str
    words_per_minute: float
    chars_per_minute: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "wordsPerMinute": self.words_per_minute,
            "charsPerMinute": self.chars_per_minute,
        }

def _empty_shortcuts() -> Dict[str, Dict[str, int]]:
    return {NS_VIM: {}, NS_SYSTEM: {}}

@dataclass
class DayRecord:
    """Everything tracked for one local calendar day."""
    date: str
    session_start: str
    session_end: Optional[str] = None
    sessions: List[Session] = field(default_factory=list)
    totals: Totals = field(default_factory=Totals)
    speed_history: List[SpeedSample] = field(default_factory=list)
    shortcut_usage: Dict[str, Dict[str, int]] = field(default_factory=_empty_shortcuts)
    key_frequency: Dict[str, int] = field(default_factory=dict)
    deleted_char_frequency: Dict[str, int] = field(default_factory=dict)
    focus_streaks: List[int] = field(default_factory=list)
    current_focus_streak: int = 0
    active_minutes: int = 0
    accuracy: float = 1.0
    vim_ratio: float = 0.0
    focus_index: float = 0.0
    restart_pending: bool = False

    @classmethod
    def fresh(cls, now: float) -> "DayRecord":
        stamp = local_iso(now)
        return cls(
            date=local_day(now),
            session_start=stamp,
            sessions=[Session(start=stamp)],
        )

    @property
    def day(self) -> date:
        return date.fromisoformat(self.date)

    def open_session(self) -> Optional[Session]:
        if self.sessions and self.sessions[-1].is_open:
            return self.sessions[-1]
        return None

    # -------- serialization --------

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "date": self.date,
            "sessionStart": self.session_start,
            "sessionEnd": self.session_end,
            "sessions": [s.to_dict() for s in self.sessions],
            "totals": self.totals.to_dict(),
            "speedHistory": [s.to_dict() for s in self.speed_history],
            "shortcutUsage": {
                NS_VIM: dict(self.shortcut_usage.get(NS_VIM, {})),
                NS_SYSTEM: dict(self.shortcut_usage.get(NS_SYSTEM, {})),
            },
            "keyFrequency": dict(self.key_frequency),
            "deletedCharFrequency": dict(self.deleted_char_frequency),
            "focusStreaks": list(self.focus_streaks),
            "currentFocusStreak": self.current_focus_streak,
            "activeMinutes": self.active_minutes,
            "accuracy": self.accuracy,
            "vimRatio": self.vim_ratio,
            "focusIndex": self.focus_index,
        }
        if self.restart_pending:
            out["restartPending"] = True
        return out

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    def to_bytes(self) -> bytes:
        return self.to_json().encode("utf-8")

    @classmethod
    def from_dict(cls, data: Any) -> "DayRecord":
        if not isinstance(data, dict):
            raise RecordFormatError("day record must be a JSON object")
        try:
            day = _req(data, "date", str)
            date.fromisoformat(day)
            totals = _req(data, "totals", dict)
            shortcuts = _req(data, "shortcutUsage", dict)
            return cls(
                date=day,
                session_start=_req(data, "sessionStart", str),
                session_end=_opt(data, "sessionEnd", str),
                sessions=[
                    Session(
                        start=_req(s, "start", str),
                        end=_opt(s, "end", str),
                        duration_minutes=_req(s, "durationMinutes", int),
                    )
                    for s in _req(data, "sessions", list)
                ],
                totals=Totals(
                    words_typed=_req(totals, "wordsTyped", int),
                    chars_typed=_req(totals, "charsTyped", int),
                    words_deleted=_req(totals, "wordsDeleted", int),
                    chars_deleted=_req(totals, "charsDeleted", int),
                ),
                speed_history=[
                    SpeedSample(
                        timestamp=_req(s, "timestamp", str),
                        words_per_minute=_req(s, "wordsPerMinute", (int, float)),
                        chars_per_minute=_req(s, "charsPerMinute", (int, float)),
                    )
                    for s in _req(data, "speedHistory", list)
                ],
                shortcut_usage={
                    NS_VIM: _counts(_req(shortcuts, NS_VIM, dict)),
                    NS_SYSTEM: _counts(_req(shortcuts, NS_SYSTEM, dict)),
                },
                key_frequency=_counts(_req(data, "keyFrequency", dict)),
                deleted_char_frequency=_counts(_req(data, "deletedCharFrequency", dict)),
                focus_streaks=[int(v) for v in _req(data, "focusStreaks", list)],
                current_focus_streak=_req(data, "currentFocusStreak", int),
                active_minutes=_req(data, "activeMinutes", int),
                accuracy=_req(data, "accuracy", (int, float)),
                vim_ratio=_req(data, "vimRatio", (int, float)),
                focus_index=_req(data, "focusIndex", (int, float)),
                restart_pending=bool(data.get("restartPending", False)),
            )
        except RecordFormatError:
            raise
        except (TypeError, ValueError, AttributeError) as e:
            raise RecordFormatError(str(e)) from e

def parse_record(raw: bytes | str) -> DayRecord:
    try:
        data = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        raise RecordFormatError(f"invalid JSON: {e}") from e
    return DayRecord.from_dict(data)

# --- validation helpers ---
def _req(data: Any, key: str, kind):
    if not isinstance(data, dict) or key not in data:
        raise RecordFormatError(f"missing field: {key}")
    value = data[key]
    if not isinstance(value, kind):
        raise RecordFormatError(f"field {key} has type {type(value).__name__}")
    return value

def _opt(data: Any, key: str, kind):
    value = data.get(key) if isinstance(data, dict) else None
    if value is None:
        return None
    if not isinstance(value, kind):
        raise RecordFormatError(f"field {key} has type {type(value).__name__}")
    return value

def _counts(raw: Dict[str, Any]) -> Dict[str, int]:
    out: Dict[str, int] = {}
    for k, v in raw.items():
        if not isinstance(v, (int, float)):
            raise RecordFormatError(f"count for {k!r} is not a number")
        out[str(k)] = int(v)
    return out
