# tests/test_session_tracker.py
# What this covers:
#   - idle gaps > 120 s close the open session and commit the focus streak
#   - the first event after start never splits (nothing to compare against)
#   - manual streak end closes without reopening; the next event reopens
#   - restartPending is cleared and reported when a session opens

from datetime import datetime

from typetrace.analytics.records import DayRecord
from typetrace.analytics.session_tracker import SessionTracker, SessionState

T0 = datetime(2026, 3, 10, 9, 0, 0).timestamp()

def test_gap_over_threshold_splits_session():
    rec = DayRecord.fresh(T0)
    tr = SessionTracker(idle_threshold_s=120.0)
    tr.observe(rec, T0)
    rec.current_focus_streak = 4
    tr.observe(rec, T0 + 121)

    assert len(rec.sessions) == 2
    closed, opened = rec.sessions
    assert closed.end is not None
    assert closed.duration_minutes == 2
    assert opened.is_open and opened.duration_minutes == 0
    assert rec.focus_streaks == [4]
    assert rec.current_focus_streak == 0

def test_gap_at_threshold_does_not_split():
    rec = DayRecord.fresh(T0)
    tr = SessionTracker(idle_threshold_s=120.0)
    tr.observe(rec, T0)
    tr.observe(rec, T0 + 120)
    assert len(rec.sessions) == 1
    assert rec.focus_streaks == []

def test_first_event_after_start_is_vacuous():
    rec = DayRecord.fresh(T0)
    tr = SessionTracker()
    # long after start, but no earlier activity seen by this tracker
    tr.observe(rec, T0 + 3600)
    assert len(rec.sessions) == 1
    assert tr.last_activity == T0 + 3600

def test_end_streak_closes_without_replacement():
    rec = DayRecord.fresh(T0)
    tr = SessionTracker()
    tr.observe(rec, T0 + 10)
    rec.current_focus_streak = 3
    tr.end_streak(rec, T0 + 300)

    assert tr.state(rec) == SessionState.NO_OPEN_SESSION
    assert rec.sessions[-1].duration_minutes == 5
    assert rec.focus_streaks == [3]
    assert rec.session_end is not None

    # next event opens a fresh session without committing another streak
    tr.observe(rec, T0 + 320)
    assert tr.state(rec) == SessionState.OPEN_SESSION
    assert len(rec.sessions) == 2
    assert rec.focus_streaks == [3]

def test_restart_pending_is_reported_once():
    rec = DayRecord.fresh(T0)
    rec.sessions = []
    rec.restart_pending = True
    tr = SessionTracker()
    assert tr.observe(rec, T0) is True
    assert rec.restart_pending is False
    assert tr.observe(rec, T0 + 1) is False

def test_elapsed_minutes_monotonic_and_bounded():
    rec = DayRecord.fresh(T0)
    tr = SessionTracker()
    stamps = [T0, T0 + 30, T0 + 200, T0 + 260, T0 + 600, T0 + 615]
    seen = []
    for t in stamps:
        tr.observe(rec, t)
        seen.append(tr.elapsed_minutes(rec, t))
    assert seen == sorted(seen)
    # rounding of closed sessions can add at most half a minute each
    closed = sum(1 for s in rec.sessions if not s.is_open)
    assert seen[-1] <= (stamps[-1] - T0) / 60.0 + 0.5 * closed
    for earlier, later in zip(rec.sessions, rec.sessions[1:]):
        assert earlier.end <= later.start

def test_close_day_without_activity_uses_stored_session_end():
    rec = DayRecord.fresh(T0)
    rec.session_end = "2026-03-10T17:30:00.000"
    rec.current_focus_streak = 6
    SessionTracker().close_day(rec)

    assert rec.sessions[-1].end == "2026-03-10T17:30:00.000"
    assert rec.sessions[-1].duration_minutes == 510
    assert rec.focus_streaks == [6]
    assert rec.session_end == "2026-03-10T17:30:00.000"

def test_close_day_ignores_session_end_from_a_later_day():
    rec = DayRecord.fresh(T0)
    rec.session_end = "2026-03-11T00:05:00.000"
    SessionTracker().close_day(rec)
    assert rec.sessions[-1].end == rec.sessions[-1].start
    assert rec.focus_streaks == []

def test_close_day_after_activity_ends_at_last_event():
    rec = DayRecord.fresh(T0)
    tr = SessionTracker()
    tr.observe(rec, T0 + 600)
    tr.close_day(rec)
    assert rec.sessions[-1].duration_minutes == 10
    assert rec.focus_streaks == [0]
