from __future__ import annotations
import threading
import time
from queue import Queue, Empty
from typing import Callable, Optional
import structlog

from tracecore.hooks.events import Action, KeyEvent, local_iso, NS_VIM
from tracecore.hooks.replay import EventSource
from tracecore.utils.notifier import LogNotifier, Notifier
from tracecore.utils.queueing import safe_put
from typetrace.analytics.config import TrackerConfig
from typetrace.analytics.metrics import MetricsEngine, MetricsSnapshot
from typetrace.analytics.records import DayRecord, local_day
from typetrace.analytics.session_tracker import SessionTracker
from typetrace.controller.event_classifier import EventClassifier
from typetrace.controller.recovery import RecoveryManager, RecoveryResult
from typetrace.controller.rollup import RollupCascade, Store
from typetrace.policy.reset_guard import ResetGuard

log = structlog.get_logger()

Clock = Callable[[], float]

class _AutosaveTick:
    pass

AUTOSAVE = _AutosaveTick()

class TelemetryEngine:
    """
    Owns today's DayRecord and drives it from key events.

    Key events and autosave ticks are queued and applied one at a time on the
    consumer thread; direct calls (end_streak, wipe_all, purge_vim) take the
    same lock, so no two paths mutate the record at once.
    """
    def __init__(
        self,
        store: Store,
        source: Optional[EventSource] = None,
        clock: Clock = time.time,
        notifier: Optional[Notifier] = None,
        config: Optional[TrackerConfig] = None,
        on_event: Optional[Callable[[Action, int], None]] = None,
        event_time: bool = False,
    ):
        self.store = store
        self.source = source
        self.clock = clock
        self.notifier = notifier or LogNotifier()
        self.cfg = config or TrackerConfig()

        self.classifier = EventClassifier()
        self.cascade = RollupCascade(store, self.cfg)
        self.recovery = RecoveryManager(store, self.cascade, self.cfg)
        self.sessions = SessionTracker(self.cfg.idle_threshold_s)
        self.metrics = MetricsEngine(self.cfg.window_s)
        self.guard = ResetGuard(self.cfg.reset_phrase)

        self.record: Optional[DayRecord] = None
        self._lock = threading.RLock()
        self._q: Queue = Queue(maxsize=5000)
        self._stop_evt = threading.Event()
        self._consumer_thr: Optional[threading.Thread] = None
        self._timer_thr: Optional[threading.Thread] = None
        self._on_event = on_event
        # stamp actions with the event's own t_wall (recorded streams) instead of the clock
        self.event_time = event_time
        self._count = 0
        self._dropped = 0

    # -------- lifecycle --------

    def open(self) -> Optional[RecoveryResult]:
        """Recover or create today's record. Safe to call once before start()."""
        now = self.clock()
        with self._lock:
            result = self._io("recovery", self.recovery.recover, now)
            if result is None:
                # storage is unreachable; keep tracking in memory
                self.record = DayRecord.fresh(now)
            else:
                self.record = result.record
            self.sessions.last_activity = None
            self.metrics.last_snapshot = now
        return result

    def start(self) -> None:
        if self.record is None:
            self.open()
        self._stop_evt.clear()
        if self.source is not None:
            self.source.subscribe(self._enqueue)
        self._consumer_thr = threading.Thread(target=self._consume_loop, name="telemetry-consumer", daemon=True)
        self._consumer_thr.start()
        self._timer_thr = threading.Thread(target=self._timer_loop, name="telemetry-autosave", daemon=True)
        self._timer_thr.start()
        log.info("engine.start", date=self.record.date if self.record else None)

    def stop(self) -> None:
        if self.source is not None:
            self.source.unsubscribe(self._enqueue)
        self._stop_evt.set()
        for thr in (self._timer_thr, self._consumer_thr):
            if thr:
                thr.join(timeout=2.0)
        self._timer_thr = None
        self._consumer_thr = None
        # queued store writes are left to finish on their own
        self.autosave()
        log.info("engine.stop", events=self._count)

    @property
    def running(self) -> bool:
        return bool(self._consumer_thr and self._consumer_thr.is_alive())

    # -------- event path --------

    def handle(self, ev: KeyEvent) -> Optional[Action]:
        action = self.classifier.classify(ev)
        if action is None:
            return None
        self.apply(action, now=ev.t_wall if self.event_time else None)
        return action

    def apply(self, action: Action, now: Optional[float] = None) -> None:
        now = self.clock() if now is None else now
        with self._lock:
            if self.record is None:
                self.open()
            self._roll_if_new_day(now)
            if self.sessions.observe(self.record, now):
                self._restart_day(now)
            self.metrics.observe(self.record, action, now)
            self._count += 1
        if self._on_event:
            try:
                self._on_event(action, self._count)
            except Exception as e:
                log.warning("engine.on_event.error", err=str(e))

    # -------- commands --------

    def autosave(self) -> None:
        now = self.clock()
        with self._lock:
            if self.record is None:
                return
            self._roll_if_new_day(now)
            self.save(now)

    def save(self, now: Optional[float] = None) -> None:
        """Write the current blob, then the day's outputs and the rollup."""
        now = self.clock() if now is None else now
        with self._lock:
            if self.record is None:
                return
            self.record.session_end = local_iso(now)
            if self._io("save", self._write_current) is None:
                return
            self._io("rollup", self.cascade.write_daily_outputs, self.record)

    def end_streak(self) -> None:
        now = self.clock()
        with self._lock:
            if self.record is None:
                return
            self._roll_if_new_day(now)
            self.sessions.end_streak(self.record, now)
            log.info("engine.streak.end", date=self.record.date, totals=self.record.totals.to_dict())
            self.save(now)
        self.notifier.notify("Focus streak ended and saved.")

    def purge_vim(self) -> bool:
        with self._lock:
            if self.record is None:
                return False
            if not self.record.shortcut_usage.get(NS_VIM):
                self.notifier.notify("No vim data found.")
                return False
            self.record.shortcut_usage[NS_VIM] = {}
            self.record.vim_ratio = 0.0
            self._io("save", self._write_current)
        self.notifier.notify("Vim data removed.")
        return True

    def wipe_all(self, confirmation: Optional[str]) -> bool:
        verdict = self.guard.decide(confirmation)
        if not verdict.allowed:
            log.info("engine.wipe.aborted", reason=verdict.reason)
            self.notifier.notify("Reset aborted, no files deleted.")
            return False

        self.notifier.notify("Deleting all typing statistics...")
        base = self.cfg.base_dir
        now = self.clock()
        with self._lock:
            for path in self.store.list_under(base):
                self._io("wipe", self.store.delete, path)
            self._io("wipe", self.store.prune_empty_folders, base)
            self._io("wipe", self.store.ensure_folder, base)

            # no open session: the next activity opens one and starts the new day
            fresh = DayRecord.fresh(now)
            fresh.sessions = []
            fresh.restart_pending = True
            self.record = fresh
            self.sessions.last_activity = None
            self.metrics.last_snapshot = now
            self._io("save", self._write_current)
        log.info("engine.wipe.done", base=base)
        self.notifier.notify("Reset complete. A new day starts with the next activity.")
        return True

    def status(self) -> Optional[MetricsSnapshot]:
        with self._lock:
            if self.record is None:
                return None
            return self.metrics.snapshot(self.record)

    # -------- internal --------

    def _roll_if_new_day(self, now: float) -> None:
        if local_day(now) == self.record.date:
            return
        stale = self.record
        self.sessions.close_day(stale)
        log.info("engine.day.rollover", stale=stale.date, today=local_day(now))
        self._io("finalize", self.cascade.write_daily_outputs, stale)

        self.record = DayRecord.fresh(now)
        self.sessions.last_activity = None
        self.metrics.last_snapshot = now
        self._io("save", self._write_current)

    def _restart_day(self, now: float) -> None:
        log.info("engine.day.restart")
        self.record = DayRecord.fresh(now)
        self.sessions.last_activity = now
        self.metrics.last_snapshot = now
        self._io("save", self._write_current)

    def _write_current(self) -> bool:
        self.store.write(self.cascade.layout.current_path, self.record.to_bytes())
        return True

    def _io(self, what: str, fn, *args):
        try:
            result = fn(*args)
        except OSError as e:
            log.warning(f"engine.{what}.error", err=str(e))
            self.notifier.notify(f"Typing stats could not be saved ({what}): {e}")
            return None
        return True if result is None else result

    def _enqueue(self, ev: KeyEvent) -> None:
        if safe_put(self._q, ev):
            self._dropped += 1
            log.debug("engine.queue.dropped", total=self._dropped)

    def _timer_loop(self) -> None:
        while not self._stop_evt.wait(self.cfg.autosave_period_s):
            safe_put(self._q, AUTOSAVE)

    def _consume_loop(self) -> None:
        while not self._stop_evt.is_set():
            try:
                item = self._q.get(timeout=0.5)
            except Empty:
                continue
            try:
                if item is AUTOSAVE:
                    self.autosave()
                else:
                    self.handle(item)
            except Exception as e:
                log.warning("engine.consume.error", err=str(e))
            finally:
                self._q.task_done()
