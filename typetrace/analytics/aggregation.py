# typetrace/analytics/aggregation.py
from __future__ import annotations
import calendar
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Tuple
import numpy as np

from tracecore.hooks.events import WORD_BOUNDARY, LINE_BREAK, NS_SYSTEM, NS_VIM
from typetrace.analytics.metrics import compute_accuracy, per_minute
from typetrace.analytics.records import DayRecord

ALPHABET: Tuple[str, ...] = tuple("abcdefghijklmnopqrstuvwxyz")
SYMBOLS: Tuple[str, ...] = (
    " ", "ä", "ö", "ü", "à", "è", "é", "ç", ".", ",", ";", ":", "!", "?", "'", '"',
    "-", "_", "(", ")", "/", "+", "*", "@", "#", "§", "$", "%", "&", "=",
)

SPACE_LABEL = "Spacebar"
LINE_BREAK_LABEL = "Linebreak"

def symbol_label(symbol: str) -> str:
    if symbol == WORD_BOUNDARY:
        return SPACE_LABEL
    if symbol in ("\n", LINE_BREAK):
        return LINE_BREAK_LABEL
    return symbol

@dataclass(frozen=True)
class TableRow:
    position: int
    symbol: str
    label: str
    count: int

@dataclass(frozen=True)
class DayRow:
    date: str
    weekday: int           # Monday=0 .. Sunday=6
    has_record: bool
    chars_typed: int
    words_typed: int
    chars_per_minute: int
    words_per_minute: int
    rest_day: bool

@dataclass
class Aggregate:
    """Month or year summary; every field derives from the day records in range."""
    start: date
    end: date
    key_frequency: Dict[str, int] = field(default_factory=dict)
    deleted_frequency: Dict[str, int] = field(default_factory=dict)
    shortcuts: Dict[str, Dict[str, int]] = field(default_factory=dict)
    total_chars_typed: int = 0
    total_words_typed: int = 0
    active_day_count: int = 0
    average_accuracy: float = 0.0
    alphabet_table: List[TableRow] = field(default_factory=list)
    symbol_table: List[TableRow] = field(default_factory=list)
    system_shortcut_table: List[TableRow] = field(default_factory=list)
    vim_shortcut_table: List[TableRow] = field(default_factory=list)
    most_deleted: Optional[TableRow] = None
    top_deleted: List[TableRow] = field(default_factory=list)
    day_rows: List[DayRow] = field(default_factory=list)

    @property
    def record_count(self) -> int:
        return sum(1 for r in self.day_rows if r.has_record)

# --- ranges ---
def month_range(year: int, month: int) -> Tuple[date, date]:
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)

def year_range(year: int) -> Tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)

def days_between(start: date, end: date) -> Iterable[date]:
    d = start
    while d <= end:
        yield d
        d += timedelta(days=1)

# --- building blocks ---
def merge_counts(target: Dict[str, int], source: Dict[str, int]) -> None:
    for k, v in source.items():
        target[k] = target.get(k, 0) + v

def fixed_table(order: Iterable[str], counts: Dict[str, int]) -> List[TableRow]:
    return [
        TableRow(position=i + 1, symbol=s, label=symbol_label(s), count=counts.get(s, 0))
        for i, s in enumerate(order)
    ]

def ranked_table(counts: Dict[str, int], exclude: Iterable[str] = (), limit: Optional[int] = None) -> List[TableRow]:
    skip = set(exclude)
    # sorted() is stable: equal counts keep first-seen order
    ranked = sorted(((k, v) for k, v in counts.items() if k not in skip), key=lambda kv: -kv[1])
    if limit is not None:
        ranked = ranked[:limit]
    return [TableRow(position=i + 1, symbol=k, label=symbol_label(k), count=v) for i, (k, v) in enumerate(ranked)]

def most_deleted(counts: Dict[str, int]) -> Optional[TableRow]:
    best: Optional[Tuple[str, int]] = None
    for k, v in counts.items():
        if v > 0 and (best is None or v > best[1]):
            best = (k, v)
    if best is None:
        return None
    return TableRow(position=1, symbol=best[0], label=symbol_label(best[0]), count=best[1])

def day_row(d: date, record: Optional[DayRecord], rest_weekday: int) -> DayRow:
    wd = d.weekday()
    if record is None:
        return DayRow(date=d.isoformat(), weekday=wd, has_record=False, chars_typed=0, words_typed=0,
                      chars_per_minute=0, words_per_minute=0, rest_day=wd == rest_weekday)
    mins = record.active_minutes or 0
    return DayRow(
        date=d.isoformat(),
        weekday=wd,
        has_record=True,
        chars_typed=record.totals.chars_typed,
        words_typed=record.totals.words_typed,
        chars_per_minute=per_minute(record.totals.chars_typed, mins),
        words_per_minute=per_minute(record.totals.words_typed, mins),
        rest_day=wd == rest_weekday,
    )

# --- engine ---
def aggregate(
    records: Iterable[DayRecord],
    start: date,
    end: date,
    rest_weekday: int = 6,
    top_deleted_limit: int = 20,
) -> Aggregate:
    """
    Combine the day records falling in [start, end].
    Records outside the range are ignored; a repeated date keeps the last record seen.
    """
    by_date: Dict[str, DayRecord] = {}
    for rec in records:
        if start <= rec.day <= end:
            by_date[rec.date] = rec
    days = [by_date[k] for k in sorted(by_date)]

    agg = Aggregate(start=start, end=end, shortcuts={NS_SYSTEM: {}, NS_VIM: {}})
    accuracies: List[float] = []
    for rec in days:
        merge_counts(agg.key_frequency, rec.key_frequency)
        merge_counts(agg.deleted_frequency, rec.deleted_char_frequency)
        merge_counts(agg.shortcuts[NS_SYSTEM], rec.shortcut_usage.get(NS_SYSTEM, {}))
        merge_counts(agg.shortcuts[NS_VIM], rec.shortcut_usage.get(NS_VIM, {}))
        if rec.totals.chars_typed > 0:
            agg.active_day_count += 1
            agg.total_chars_typed += rec.totals.chars_typed
            agg.total_words_typed += rec.totals.words_typed
            accuracies.append(compute_accuracy(rec.totals))

    if accuracies:
        agg.average_accuracy = float(np.mean(np.array(accuracies, dtype=float)))

    agg.alphabet_table = fixed_table(ALPHABET, agg.key_frequency)
    agg.symbol_table = fixed_table(SYMBOLS, agg.key_frequency)
    agg.system_shortcut_table = ranked_table(agg.shortcuts[NS_SYSTEM])
    agg.vim_shortcut_table = ranked_table(agg.shortcuts[NS_VIM])
    agg.most_deleted = most_deleted(agg.deleted_frequency)
    agg.top_deleted = ranked_table(agg.deleted_frequency, exclude=(WORD_BOUNDARY,), limit=top_deleted_limit)
    agg.day_rows = [day_row(d, by_date.get(d.isoformat()), rest_weekday) for d in days_between(start, end)]
    return agg

def aggregate_month(records: Iterable[DayRecord], year: int, month: int, **kw) -> Aggregate:
    start, end = month_range(year, month)
    return aggregate(records, start, end, **kw)

def aggregate_year(records: Iterable[DayRecord], year: int, **kw) -> Aggregate:
    start, end = year_range(year)
    return aggregate(records, start, end, **kw)
