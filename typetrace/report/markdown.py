# typetrace/report/markdown.py
from __future__ import annotations
import calendar
from typing import List

from tracecore.hooks.events import WORD_BOUNDARY
from typetrace.analytics.aggregation import Aggregate, TableRow, DayRow
from typetrace.analytics.metrics import per_minute
from typetrace.analytics.records import DayRecord

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

def month_name(month: int) -> str:
    return calendar.month_name[month]

def day_link(day: str) -> str:
    return f"[[typing-stats-{day}]]"

def _pct(value: float) -> str:
    return f"{value * 100:.1f}%"

def _position_table(header: str, rows: List[TableRow]) -> str:
    lines = [f"| Position | {header} | Count |", "|---|---|---|"]
    lines += [f"| {r.position}. | `{r.label}` | {r.count} |" for r in rows]
    return "\n".join(lines)

def deletion_section(agg: Aggregate) -> str:
    top = ["| Symbol | Count |", "|---|---|"]
    top += [f"| `{r.label}` | {r.count} |" for r in agg.top_deleted]
    lines = ["### Deletions", ""]
    if agg.most_deleted is not None and agg.most_deleted.symbol == WORD_BOUNDARY:
        lines += ["> The most deleted symbol was a space.", ""]
    else:
        label = agg.most_deleted.label if agg.most_deleted else "none"
        count = agg.most_deleted.count if agg.most_deleted else 0
        lines += ["**Most deleted symbol:**", "", f"- Symbol: `{label}`", f"- Count: {count}", ""]
    lines += ["### Top deleted symbols (without space)", ""]
    lines += top
    lines.append("")
    return "\n".join(lines)

def _day_row(row: DayRow, link: bool) -> str:
    cells = [
        WEEKDAYS[row.weekday],
        day_link(row.date) if (link and row.has_record) else row.date,
        str(row.chars_typed),
        str(row.words_typed),
        str(row.chars_per_minute),
        str(row.words_per_minute),
    ]
    if row.rest_day and row.has_record:
        cells = [f"=={c}==" for c in cells]
    return "| " + " | ".join(cells) + " |"

def _body(title: str, summary_title: str, agg: Aggregate, link_days: bool) -> List[str]:
    return [
        f"# {title}",
        "",
        f"## {summary_title}",
        "",
        f"- Characters: {agg.total_chars_typed}",
        f"- Words: {agg.total_words_typed}",
        f"- Active days: {agg.active_day_count}",
        f"- Average accuracy: {_pct(agg.average_accuracy)}",
        "",
        "## Characters",
        "### Alphabet",
        _position_table("Symbol", agg.alphabet_table),
        "",
        "### Symbols",
        _position_table("Symbol", agg.symbol_table),
        "",
        "## Shortcuts",
        "### System",
        _position_table("Shortcut", agg.system_shortcut_table),
        "",
        "### Vim",
        _position_table("Shortcut", agg.vim_shortcut_table),
        "",
        "## Deletions",
        deletion_section(agg),
        "",
        "## Days",
        "| Weekday | Date | Characters | Words | Chars per min | Words per min |",
        "|---|---|---|---|---|---|",
        *[_day_row(r, link_days) for r in agg.day_rows],
        "",
    ]

def render_day(record: DayRecord) -> str:
    d = record.day
    mins = record.active_minutes or 0
    return "\n".join([
        "---",
        "type: typing-stats-daily",
        f"date: {record.date}",
        f'monthRef: "[[typing-stats-month-{month_name(d.month)}-{d.year}]]"',
        "---",
        "",
        f"# Typing stats {record.date}",
        "",
        f"- Characters: {record.totals.chars_typed}",
        f"- Words: {record.totals.words_typed}",
        f"- Accuracy: {_pct(record.accuracy)}",
        f"- Chars per min: {per_minute(record.totals.chars_typed, mins)}",
        f"- Words per min: {per_minute(record.totals.words_typed, mins)}",
        f"- Active minutes: {record.active_minutes}",
        f"- Focus streaks: {len(record.focus_streaks)} (longest {max(record.focus_streaks + [record.current_focus_streak])} min)",
        "",
    ])

def render_month(agg: Aggregate) -> str:
    year, month = agg.start.year, agg.start.month
    name = month_name(month)
    return "\n".join([
        "---",
        "type: typing-stats-monthly",
        f'yearRef: "[[typing-stats-year-{year}]]"',
        "---",
        "",
        *_body(f"Typing stats {name} {year}", "Month totals", agg, link_days=True),
    ])

def render_year(agg: Aggregate) -> str:
    year = agg.start.year
    return "\n".join([
        "---",
        "type: typing-stats-yearly",
        "---",
        "",
        *_body(f"Typing stats {year}", "Year totals", agg, link_days=False),
    ])
