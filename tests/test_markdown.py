# tests/test_markdown.py
# What this covers:
#   - daily note front matter links to its month
#   - month report: tables, day links, highlighted rest days
#   - deletion section wording when space is the top deleted symbol

from datetime import datetime

from typetrace.analytics.aggregation import aggregate_month, aggregate_year
from typetrace.analytics.records import DayRecord
from typetrace.report.markdown import render_day, render_month, render_year, month_name

def _rec(day, typed, dels=None):
    rec = DayRecord.fresh(datetime.fromisoformat(f"{day}T09:00:00").timestamp())
    rec.totals.chars_typed = typed
    rec.key_frequency = {"a": typed}
    rec.deleted_char_frequency = dict(dels or {})
    rec.active_minutes = 2
    return rec

def test_month_name():
    assert month_name(3) == "March"

def test_render_day():
    rec = _rec("2026-03-10", 20)
    rec.focus_streaks = [4]
    rec.current_focus_streak = 7
    text = render_day(rec)
    assert text.startswith("---\ntype: typing-stats-daily\n")
    assert 'monthRef: "[[typing-stats-month-March-2026]]"' in text
    assert "- Chars per min: 10" in text
    assert "(longest 7 min)" in text

def test_render_month_tables_and_rest_day():
    agg = aggregate_month([_rec("2026-03-01", 5), _rec("2026-03-02", 8, {"e": 2})], 2026, 3)
    text = render_month(agg)
    assert "# Typing stats March 2026" in text
    assert 'yearRef: "[[typing-stats-year-2026]]"' in text
    assert "| 1. | `a` | 13 |" in text
    assert "| 1. | `Spacebar` | 0 |" in text
    # Sunday with a record is highlighted
    assert "| ==Sunday== | ==[[typing-stats-2026-03-01]]== |" in text
    assert "| Monday | [[typing-stats-2026-03-02]] |" in text
    # days without a record are plain and unlinked
    assert "| Tuesday | 2026-03-03 | 0 | 0 | 0 | 0 |" in text
    assert "- Symbol: `e`" in text

def test_space_as_most_deleted_symbol():
    agg = aggregate_month([_rec("2026-03-02", 8, {" ": 9, "x": 1})], 2026, 3)
    text = render_month(agg)
    assert "> The most deleted symbol was a space." in text
    assert "| `x` | 1 |" in text
    assert "| `Spacebar` | 9 |" not in text

def test_render_year_does_not_link_days():
    agg = aggregate_year([_rec("2026-03-02", 8)], 2026)
    text = render_year(agg)
    assert text.startswith("---\ntype: typing-stats-yearly\n")
    assert "[[typing-stats-2026-03-02]]" not in text
    assert "| Monday | 2026-03-02 | 8 |" in text
