# tests/test_aggregation.py
# What this covers:
#   - active days and average accuracy only over days with typing
#   - fixed alphabet/symbol tables keep their order and zero-fill
#   - ranked tables: shortcuts, top deleted without space, stable ties
#   - day rows cover every calendar day; rest weekday flagged
#   - same input -> same aggregate

from datetime import date, datetime

import pytest

from tracecore.hooks.events import NS_SYSTEM, NS_VIM
from typetrace.analytics.aggregation import (
    ALPHABET, SYMBOLS, aggregate, aggregate_month, aggregate_year,
    ranked_table, most_deleted, month_range, symbol_label,
)
from typetrace.analytics.records import DayRecord

def _day(day, typed=0, deleted=0, keys=None, dels=None, system=None, minutes=0):
    rec = DayRecord.fresh(datetime.fromisoformat(f"{day}T10:00:00").timestamp())
    rec.totals.chars_typed = typed
    rec.totals.chars_deleted = deleted
    rec.totals.words_typed = typed // 5
    rec.key_frequency = dict(keys or {})
    rec.deleted_char_frequency = dict(dels or {})
    rec.shortcut_usage[NS_SYSTEM] = dict(system or {})
    rec.active_minutes = minutes
    # stored accuracy is ignored by aggregation
    rec.accuracy = 0.0
    return rec

def _april():
    return [
        _day("2026-04-02", typed=100, deleted=10, keys={"a": 60, " ": 40}, minutes=10),
        _day("2026-04-05", typed=200, deleted=0, keys={"b": 200}, minutes=20),
        _day("2026-04-20", typed=50, deleted=25, keys={"a": 50}, dels={" ": 30, "e": 3}, minutes=5),
        _day("2026-04-21"),
    ]

def test_active_days_and_average_accuracy():
    agg = aggregate_month(_april(), 2026, 4)
    assert len(agg.day_rows) == 30
    assert agg.record_count == 4
    assert agg.active_day_count == 3
    assert agg.total_chars_typed == 350
    assert agg.average_accuracy == pytest.approx((0.9 + 1.0 + 0.5) / 3)

def test_no_active_days_means_zero_average():
    agg = aggregate_month([_day("2026-04-21")], 2026, 4)
    assert agg.active_day_count == 0
    assert agg.average_accuracy == 0.0

def test_fixed_tables_zero_fill_in_order():
    agg = aggregate_month(_april(), 2026, 4)
    assert [r.symbol for r in agg.alphabet_table] == list(ALPHABET)
    assert agg.alphabet_table[0].count == 110
    assert agg.alphabet_table[1].count == 200
    assert agg.alphabet_table[25].count == 0
    assert [r.symbol for r in agg.symbol_table] == list(SYMBOLS)
    assert agg.symbol_table[0].label == "Spacebar"
    assert agg.symbol_table[0].count == 40

def test_top_deleted_excludes_space_but_most_deleted_does_not():
    agg = aggregate_month(_april(), 2026, 4)
    assert agg.most_deleted.symbol == " "
    assert agg.most_deleted.count == 30
    assert [r.symbol for r in agg.top_deleted] == ["e"]

def test_top_deleted_limit():
    dels = {chr(97 + i): 30 - i for i in range(26)}
    agg = aggregate_month([_day("2026-04-02", typed=1, dels=dels)], 2026, 4, top_deleted_limit=20)
    assert len(agg.top_deleted) == 20
    assert agg.top_deleted[0].symbol == "a"
    assert [r.position for r in agg.top_deleted] == list(range(1, 21))

def test_ranked_ties_keep_first_seen_order():
    rows = ranked_table({"ctrl+c": 2, "ctrl+v": 5, "ctrl+s": 2})
    assert [r.symbol for r in rows] == ["ctrl+v", "ctrl+c", "ctrl+s"]

def test_shortcut_tables_merge_across_days():
    recs = [
        _day("2026-04-02", system={"ctrl+s": 2}),
        _day("2026-04-03", system={"ctrl+s": 1, "ctrl+z": 4}),
    ]
    agg = aggregate_month(recs, 2026, 4)
    assert [(r.symbol, r.count) for r in agg.system_shortcut_table] == [("ctrl+z", 4), ("ctrl+s", 3)]
    assert agg.vim_shortcut_table == []
    assert agg.shortcuts[NS_VIM] == {}

def test_most_deleted_none_when_nothing_deleted():
    assert most_deleted({}) is None
    assert most_deleted({"a": 0}) is None

def test_day_rows_zero_fill_and_rest_day():
    agg = aggregate_month(_april(), 2026, 4)
    rows = {r.date: r for r in agg.day_rows}
    assert rows["2026-04-01"].has_record is False
    assert rows["2026-04-01"].chars_typed == 0
    assert rows["2026-04-05"].rest_day is True      # a Sunday
    assert rows["2026-04-05"].chars_per_minute == 10
    assert rows["2026-04-02"].rest_day is False
    assert rows["2026-04-20"].chars_per_minute == 10

def test_march_first_2026_is_rest_day():
    agg = aggregate_month([_day("2026-03-01", typed=5)], 2026, 3)
    assert agg.day_rows[0].date == "2026-03-01"
    assert agg.day_rows[0].rest_day is True

def test_records_outside_range_are_ignored_and_last_duplicate_wins():
    recs = [
        _day("2026-04-02", typed=10),
        _day("2026-05-01", typed=999),
        _day("2026-04-02", typed=20),
    ]
    agg = aggregate(recs, *month_range(2026, 4))
    assert agg.total_chars_typed == 20
    assert agg.active_day_count == 1

def test_year_aggregate_spans_all_days():
    agg = aggregate_year(_april(), 2026)
    assert agg.start == date(2026, 1, 1)
    assert len(agg.day_rows) == 365
    assert agg.active_day_count == 3

def test_aggregation_is_deterministic():
    assert aggregate_month(_april(), 2026, 4) == aggregate_month(_april(), 2026, 4)

def test_symbol_labels():
    assert symbol_label(" ") == "Spacebar"
    assert symbol_label("⏎") == "Linebreak"
    assert symbol_label("x") == "x"
