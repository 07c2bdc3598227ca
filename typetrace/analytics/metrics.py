# typetrace/analytics/metrics.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import numpy as np

from tracecore.hooks.events import (
    TypedChar, Deletion, ShortcutInvoked, Action,
    WORD_BOUNDARY, NS_SYSTEM, NS_VIM, local_iso,
)
from typetrace.analytics.records import DayRecord, SpeedSample, Totals, minutes_between

@dataclass
class MetricsSnapshot:
    wpm: float
    cpm: float
    peak_cpm: float
    accuracy: float
    focus_index: float

def compute_accuracy(totals: Totals) -> float:
    # not clamped: more deletions than typed chars goes negative
    if totals.chars_typed > 0:
        return 1 - totals.chars_deleted / totals.chars_typed
    return 1.0

def compute_vim_ratio(record: DayRecord) -> float:
    vim_count = sum(record.shortcut_usage.get(NS_VIM, {}).values())
    sys_count = sum(record.shortcut_usage.get(NS_SYSTEM, {}).values())
    total = vim_count + sys_count + record.totals.chars_typed
    return vim_count / total if total > 0 else 0.0

def per_minute(count: int, active_minutes: int) -> int:
    """Rounded rate used by the reports; 0 without active minutes."""
    if active_minutes <= 0:
        return 0
    return int(np.floor(count / active_minutes + 0.5))

class MetricsEngine:
    """
    Running totals and one-minute rate sampling on the current DayRecord:
    - counters and frequency maps per classified action
    - a speed sample each time a full window has elapsed since the last one
    - accuracy / vimRatio recomputed after every event
    """
    def __init__(self, window_s: float = 60.0, started_at: Optional[float] = None):
        self.window_s = window_s
        self.last_snapshot: Optional[float] = started_at

    def observe(self, record: DayRecord, action: Action, now: float) -> None:
        if self.last_snapshot is None:
            self.last_snapshot = now

        if isinstance(action, TypedChar):
            record.totals.chars_typed += 1
            # words are counted on the boundary char only; a trailing word is never counted
            if action.char == WORD_BOUNDARY:
                record.totals.words_typed += 1
            _bump(record.key_frequency, action.char)
        elif isinstance(action, Deletion):
            record.totals.chars_deleted += 1
            if action.char:
                _bump(record.deleted_char_frequency, action.char)
        elif isinstance(action, ShortcutInvoked):
            _bump(record.shortcut_usage.setdefault(action.namespace, {}), action.signature)

        if now - self.last_snapshot >= self.window_s:
            self._commit_window(record, now)

        self.update_derived(record)

    def update_derived(self, record: DayRecord) -> None:
        record.accuracy = compute_accuracy(record.totals)
        record.vim_ratio = compute_vim_ratio(record)

    def _commit_window(self, record: DayRecord, now: float) -> None:
        record.active_minutes += 1
        record.current_focus_streak += 1

        minutes = max(record.active_minutes, 1)
        wpm = record.totals.words_typed / minutes
        cpm = record.totals.chars_typed / minutes
        record.speed_history.append(SpeedSample(timestamp=local_iso(now), words_per_minute=wpm, chars_per_minute=cpm))

        session_minutes = minutes_between(record.session_start, now)
        record.focus_index = (record.active_minutes * cpm) / max(session_minutes, 1)
        self.last_snapshot = now

    def snapshot(self, record: DayRecord) -> MetricsSnapshot:
        if record.speed_history:
            cpms = np.array([s.chars_per_minute for s in record.speed_history], dtype=float)
            peak = float(cpms.max())
        else:
            peak = 0.0
        minutes = max(record.active_minutes, 1)
        return MetricsSnapshot(
            wpm=record.totals.words_typed / minutes,
            cpm=record.totals.chars_typed / minutes,
            peak_cpm=peak,
            accuracy=record.accuracy,
            focus_index=record.focus_index,
        )

def _bump(counts, key: str) -> None:
    counts[key] = counts.get(key, 0) + 1
