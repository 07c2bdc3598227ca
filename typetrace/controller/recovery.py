from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional
import structlog

from typetrace.analytics.config import TrackerConfig
from typetrace.analytics.records import DayRecord, RecordFormatError, local_day, parse_record
from typetrace.controller.rollup import RollupCascade, Store

log = structlog.get_logger()

class RecoveryAction(Enum):
    CREATED = "created"        # nothing stored
    RESUMED = "resumed"        # stored record is today's
    ROLLED = "rolled"          # stale record finalized, new day started
    DISCARDED = "discarded"    # stored blob unreadable, replaced

@dataclass
class RecoveryResult:
    record: DayRecord
    action: RecoveryAction
    stale: Optional[DayRecord] = None

class RecoveryManager:
    """Reconciles the persisted current-day blob with today's date at startup."""
    def __init__(self, store: Store, cascade: RollupCascade, config: Optional[TrackerConfig] = None):
        self.store = store
        self.cascade = cascade
        self.cfg = config or TrackerConfig()

    @property
    def current_path(self) -> str:
        return self.cascade.layout.current_path

    def recover(self, now: float) -> RecoveryResult:
        self.store.ensure_folder(self.cfg.base_dir)
        for folder in self.cfg.tracked_folders:
            self.store.ensure_folder(folder)

        result = self._reconcile(now)
        # today's outputs exist from the first moment on
        self.cascade.write_daily_outputs(result.record)
        log.info("recovery.done", action=result.action.value, date=result.record.date)
        return result

    def _reconcile(self, now: float) -> RecoveryResult:
        today = local_day(now)
        raw = self.store.read(self.current_path)
        if raw is None:
            return RecoveryResult(self._fresh(now), RecoveryAction.CREATED)

        try:
            stored = parse_record(raw)
        except RecordFormatError as e:
            # that slot's data is lost; nothing unreadable gets finalized
            log.warning("recovery.discarded", path=self.current_path, err=str(e))
            return RecoveryResult(self._fresh(now), RecoveryAction.DISCARDED)

        if stored.date == today:
            return RecoveryResult(stored, RecoveryAction.RESUMED)

        log.info("recovery.rolled", stale=stored.date, today=today)
        self.cascade.write_daily_outputs(stored)
        return RecoveryResult(self._fresh(now), RecoveryAction.ROLLED, stale=stored)

    def _fresh(self, now: float) -> DayRecord:
        record = DayRecord.fresh(now)
        self.store.write(self.current_path, record.to_bytes())
        return record
