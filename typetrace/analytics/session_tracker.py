from __future__ import annotations
from enum import Enum
from typing import Optional
import structlog

from tracecore.hooks.events import local_iso
from typetrace.analytics.records import DayRecord, Session, local_day, minutes_between, parse_local

log = structlog.get_logger()

class SessionState(Enum):
    NO_OPEN_SESSION = "no_open_session"
    OPEN_SESSION = "open_session"

class SessionTracker:
    """
    Session / focus-streak boundaries over a DayRecord.
    Timeouts are evaluated lazily when the next classified event arrives.
    """
    def __init__(self, idle_threshold_s: float = 120.0):
        self.idle_threshold_s = idle_threshold_s
        self.last_activity: Optional[float] = None

    def state(self, record: DayRecord) -> SessionState:
        if record.open_session() is not None:
            return SessionState.OPEN_SESSION
        return SessionState.NO_OPEN_SESSION

    def observe(self, record: DayRecord, now: float) -> bool:
        """
        Apply the boundary rules for one classified event at `now`.
        Returns True when a session opened while a restart was pending;
        the flag is cleared and the caller must start a fresh day.
        """
        opened = False
        if record.open_session() is None:
            self._open(record, now)
            opened = True
        elif self.last_activity is not None and (now - self.last_activity) > self.idle_threshold_s:
            idle_s = now - self.last_activity
            self._close(record, now)
            self._commit_streak(record)
            self._open(record, now)
            opened = True
            log.debug("session.split", idle_s=round(idle_s, 1), sessions=len(record.sessions))
        self.last_activity = now

        if opened and record.restart_pending:
            record.restart_pending = False
            return True
        return False

    def end_streak(self, record: DayRecord, now: float) -> None:
        """Manual end: commit the streak and close without opening a replacement."""
        self._commit_streak(record)
        self._close(record, now)
        record.session_end = local_iso(now)

    def close_day(self, record: DayRecord) -> None:
        """
        Close a day that is no longer current at its last known activity.
        Without activity since start or resume, the session ends where it began
        (or at the stored sessionEnd, if later that same day) and no empty
        streak is committed.
        """
        current = record.open_session()
        if current is None:
            return
        if self.last_activity is not None and local_day(self.last_activity) == record.date:
            self.end_streak(record, self.last_activity)
            return
        ended_at = parse_local(current.start)
        if record.session_end:
            stored = parse_local(record.session_end)
            if stored > ended_at and local_day(stored) == record.date:
                ended_at = stored
        if record.current_focus_streak:
            self._commit_streak(record)
        self._close(record, ended_at)
        record.session_end = local_iso(ended_at)

    def elapsed_minutes(self, record: DayRecord, now: float) -> float:
        """Closed durations plus the open session's running time."""
        total = 0.0
        for s in record.sessions:
            if s.is_open:
                total += max(0.0, (now - parse_local(s.start)) / 60.0)
            else:
                total += s.duration_minutes
        return total

    # -------- internal --------

    def _open(self, record: DayRecord, now: float) -> None:
        record.sessions.append(Session(start=local_iso(now)))

    def _close(self, record: DayRecord, now: float) -> None:
        current = record.open_session()
        if current is None:
            return
        current.end = local_iso(now)
        current.duration_minutes = minutes_between(current.start, now)

    def _commit_streak(self, record: DayRecord) -> None:
        record.focus_streaks.append(record.current_focus_streak)
        record.current_focus_streak = 0
