# typetrace/controller/rollup.py
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Protocol, Tuple
import structlog

from typetrace.analytics.aggregation import Aggregate, aggregate_month, aggregate_year
from typetrace.analytics.config import TrackerConfig
from typetrace.analytics.records import DayRecord, RecordFormatError, parse_record
from typetrace.report.markdown import month_name, render_day, render_month, render_year

log = structlog.get_logger()

class Store(Protocol):
    def read(self, path: str) -> Optional[bytes]: ...
    def write(self, path: str, data: bytes) -> None: ...
    def exists(self, path: str) -> bool: ...
    def ensure_folder(self, path: str) -> None: ...
    def delete(self, path: str) -> None: ...
    def list_under(self, path: str) -> List[str]: ...
    def prune_empty_folders(self, path: str) -> None: ...
    def flush(self) -> None: ...

@dataclass(frozen=True)
class OutputLayout:
    """Where every persisted artefact lives, relative to the store root."""
    base_dir: str

    @property
    def current_path(self) -> str:
        return f"{self.base_dir}/currentStats.json"

    def year_dir(self, year: int) -> str:
        return f"{self.base_dir}/{year}"

    def month_dir(self, year: int, month: int) -> str:
        return f"{self.year_dir(year)}/{month_name(month)}"

    def metadata_dir(self, year: int, month: int) -> str:
        return f"{self.month_dir(year, month)}/metadata"

    def daily_dir(self, year: int, month: int) -> str:
        return f"{self.month_dir(year, month)}/daily"

    def day_json(self, record: DayRecord) -> str:
        d = record.day
        return f"{self.metadata_dir(d.year, d.month)}/{record.date}.json"

    def day_report(self, record: DayRecord) -> str:
        d = record.day
        return f"{self.daily_dir(d.year, d.month)}/typing-stats-{record.date}.md"

    def month_report(self, year: int, month: int) -> str:
        return f"{self.month_dir(year, month)}/typing-stats-month-{month_name(month)}-{year}.md"

    def year_report(self, year: int) -> str:
        return f"{self.year_dir(year)}/typing-stats-year-{year}.md"

class RollupCascade:
    """
    Day -> month -> year recomputation. Aggregates are rebuilt from every day
    record currently stored for the range, so repeated runs over unchanged data
    produce identical reports.
    """
    def __init__(self, store: Store, config: Optional[TrackerConfig] = None):
        self.store = store
        self.cfg = config or TrackerConfig()
        self.layout = OutputLayout(self.cfg.base_dir)

    def ensure_day_folders(self, record: DayRecord) -> None:
        d = record.day
        self.store.ensure_folder(self.layout.year_dir(d.year))
        self.store.ensure_folder(self.layout.month_dir(d.year, d.month))
        self.store.ensure_folder(self.layout.metadata_dir(d.year, d.month))
        self.store.ensure_folder(self.layout.daily_dir(d.year, d.month))

    def write_daily_outputs(self, record: DayRecord) -> Tuple[Optional[Aggregate], Optional[Aggregate]]:
        self.ensure_day_folders(record)
        self.store.write(self.layout.day_json(record), record.to_bytes())
        self.store.write(self.layout.day_report(record), render_day(record).encode("utf-8"))
        d = record.day
        return self.refresh(d.year, d.month)

    def refresh(self, year: int, month: int) -> Tuple[Optional[Aggregate], Optional[Aggregate]]:
        monthly = self.refresh_month(year, month)
        yearly = self.refresh_year(year)
        return monthly, yearly

    def refresh_month(self, year: int, month: int) -> Optional[Aggregate]:
        paths = [p for p in self.store.list_under(self.layout.metadata_dir(year, month)) if p.endswith(".json")]
        records = self.load_days(paths)
        if not records:
            return None
        agg = aggregate_month(records, year, month, **self._agg_kw())
        self.store.write(self.layout.month_report(year, month), render_month(agg).encode("utf-8"))
        log.debug("rollup.month", year=year, month=month, days=len(records))
        return agg

    def refresh_year(self, year: int) -> Optional[Aggregate]:
        paths = [
            p for p in self.store.list_under(self.layout.year_dir(year))
            if "/metadata/" in p and p.endswith(".json")
        ]
        records = self.load_days(paths)
        if not records:
            return None
        agg = aggregate_year(records, year, **self._agg_kw())
        self.store.write(self.layout.year_report(year), render_year(agg).encode("utf-8"))
        log.debug("rollup.year", year=year, days=len(records))
        return agg

    def load_days(self, paths: List[str]) -> List[DayRecord]:
        out: List[DayRecord] = []
        for path in paths:
            raw = self.store.read(path)
            if raw is None:
                continue
            try:
                out.append(parse_record(raw))
            except RecordFormatError as e:
                log.warning("rollup.day.unreadable", path=path, err=str(e))
        return out

    def _agg_kw(self):
        return {"rest_weekday": self.cfg.rest_weekday, "top_deleted_limit": self.cfg.top_deleted_limit}
