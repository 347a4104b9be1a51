"""Bucketed call and message reports for one chat export.

Each graph report builds a ``Graph`` in a single pass over the export and
renders it as ANSI bars with a one-line statistics header.  Used by both the
CLI (dm_summary.py) and the web service (app.py).
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable

import numpy as np

import config
from durations import MS_PER_MINUTE, Duration, format_milliseconds
from events import ChatExport, from_local_ms, load_export
from graph import Graph, average_reducer, sum_reducer
from raster import CallGrid, RasterConfig, build_call_grid, render_call_image
from splitter import add_interval, bucket_index
from text_render import format_count, render_graph, render_header, strip_ansi

logger = logging.getLogger(__name__)

QUARTER_HOUR_MS = 15 * MS_PER_MINUTE
TEN_MINUTES_MS = 10 * MS_PER_MINUTE


@dataclass
class ReportResult:
    """Rendered output of one report.

    ``graph`` and ``header`` are None for the plain listings.
    """

    name: str
    title: str
    lines: list[str] = field(default_factory=list)
    graph: Graph | None = None
    header: str | None = None

    def render(self) -> str:
        parts = [f"# {self.title}"]
        if self.header:
            parts.append(self.header)
        parts.extend(self.lines)
        return "\n".join(parts)


# ---------------------------------------------------------------------------
# Bucket labels
# ---------------------------------------------------------------------------

def quarter_hour_label(index: int) -> str:
    """``HHhMMm`` start of a 15-minute bucket."""
    return f"{index // 4:02}h{(index % 4) * 15:02}m"


def ten_minute_label(index: int) -> str:
    """``HHhMMm`` start of a 10-minute bucket."""
    return f"{index // 6:02}h{(index % 6) * 10:02}m"


def month_label(index: int) -> str:
    """Abbreviated month name, January at index 0."""
    return calendar.month_abbr[index + 1]


def weekday_label(index: int) -> str:
    """Abbreviated weekday name, Monday at index 0."""
    return calendar.day_abbr[index]


def _series_name(export: ChatExport) -> str:
    """Single-series name for the calendar graphs."""
    return export.channel_name or "calls"


def _warn_rejected(name: str, rejected: int) -> None:
    """Log contributions the graph refused, if any."""
    if rejected:
        logger.warning("%s: %d contributions were rejected by the graph", name, rejected)


def _graph_result(name: str, title: str, graph: Graph, bucket_width: str,
                  fmt: Callable[[Any], str] = format_count) -> ReportResult:
    """Wrap a populated graph as a report with bars and a stats header."""
    return ReportResult(
        name=name,
        title=title,
        lines=render_graph(graph).split("\n"),
        graph=graph,
        header=render_header(graph, bucket_width, fmt),
    )


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

def top_call_lengths(export: ChatExport, width: int = config.BAR_WIDTH,
                     count: int = config.TOP_CALLS) -> ReportResult:
    """List the longest calls, longest first, in full duration form."""
    lengths = sorted((call.duration_ms for call in export.calls), reverse=True)
    lines = [f"total calls: {len(lengths)}"]
    for rank, length in enumerate(lengths[:count], 1):
        lines.append(f"{rank}: length = {Duration(length)!r}")
    return ReportResult("top-calls", f"Top {count} Call Lengths", lines)


def total_call_length(export: ChatExport, width: int = config.BAR_WIDTH) -> ReportResult:
    """Sum of every call length, in compact form."""
    total = Duration.sum(call.duration_ms for call in export.calls)
    return ReportResult("total-calls", "Total Call Lengths", [f"total length = {total}"])


# ---------------------------------------------------------------------------
# Time-of-day graphs
# ---------------------------------------------------------------------------

def call_start_time_of_day_graph(export: ChatExport,
                                 width: int = config.BAR_WIDTH) -> ReportResult:
    """Count calls by the quarter hour they started in."""
    graph = Graph(export.authors, config.CALL_START_DAY_START, quarter_hour_label,
                  sum_reducer, width, size=24 * 4)
    rejected = 0
    for call in export.calls_at_least(config.MIN_CALL_MS):
        if not graph.add(call.author, bucket_index(call.start_ms, QUARTER_HOUR_MS), 1):
            rejected += 1
    _warn_rejected("call-start", rejected)
    return _graph_result(
        "call-start",
        "Call Start Time of Day Graph (min = 15s, 15m groupings)",
        graph,
        "15m",
    )


def text_time_of_day_graph(export: ChatExport,
                           width: int = config.BAR_WIDTH) -> ReportResult:
    """Count text messages by the ten-minute slot they were sent in."""
    graph = Graph(export.authors, config.TEXT_DAY_START, ten_minute_label,
                  sum_reducer, width, size=24 * 6)
    rejected = 0
    for text in export.texts:
        if not graph.add(text.author, bucket_index(text.timestamp_ms, TEN_MINUTES_MS), 1):
            rejected += 1
    _warn_rejected("text-time", rejected)
    return _graph_result("text-time", "Text Time of Day Graph (10m groupings)", graph, "10m")


def call_graph(export: ChatExport, width: int = config.BAR_WIDTH) -> ReportResult:
    """Total call time per ten-minute slot, splitting calls across slots."""
    graph = Graph(export.authors, config.TEXT_DAY_START, ten_minute_label,
                  sum_reducer, width, size=24 * 6)
    rejected = 0
    for call in export.calls_at_least(config.MIN_CALL_MS):
        rejected += add_interval(graph, call.author, call.start_ms, call.end_ms,
                                 TEN_MINUTES_MS)
    _warn_rejected("call-graph", rejected)
    return _graph_result(
        "call-graph",
        "Call Graph (10m groupings, min = 15s)",
        graph,
        "10m",
        format_milliseconds,
    )


# ---------------------------------------------------------------------------
# Calendar graphs
# ---------------------------------------------------------------------------

def call_duration_by_month_graph(export: ChatExport,
                                 width: int = config.BAR_WIDTH) -> ReportResult:
    """Average call length for each calendar month."""
    series = _series_name(export)
    graph = Graph([series], 0, month_label, average_reducer, width, size=12)
    for call in export.calls_at_least(config.MIN_CALL_MS):
        month = from_local_ms(call.start_ms).month - 1
        graph.add(series, month, Duration(call.duration_ms))
    return _graph_result(
        "call-month",
        "Call Duration by Month Graph (min = 15s)",
        graph,
        "1 month",
        format_milliseconds,
    )


def call_duration_by_day_of_week_graph(export: ChatExport,
                                       width: int = config.BAR_WIDTH) -> ReportResult:
    """Average call length for each day of the week, Monday first."""
    series = _series_name(export)
    graph = Graph([series], 0, weekday_label, average_reducer, width, size=7)
    for call in export.calls_at_least(config.MIN_CALL_MS):
        graph.add(series, from_local_ms(call.start_ms).weekday(), Duration(call.duration_ms))
    return _graph_result(
        "call-weekday",
        "Call Duration by Day of Week Graph (min = 15s)",
        graph,
        "1 day",
        format_milliseconds,
    )


def _week_start(moment: datetime) -> datetime:
    """Midnight of the Monday of *moment*'s week."""
    day = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    return day - timedelta(days=day.weekday())


def call_duration_by_week_graph(export: ChatExport,
                                width: int = config.BAR_WIDTH) -> ReportResult:
    """Total call time per week, from the week of the first call onward.

    The graph grows one bucket per week as later calls are added, so weeks
    without calls still show up as empty bars.
    """
    calls = list(export.calls_at_least(config.MIN_CALL_MS))
    first_week = _week_start(from_local_ms(min((c.start_ms for c in calls), default=0)))

    def label(index: int) -> str:
        return (first_week + timedelta(weeks=index)).date().isoformat()

    graph = Graph(export.authors, 0, label, sum_reducer, width)
    rejected = 0
    for call in calls:
        week = (_week_start(from_local_ms(call.start_ms)) - first_week).days // 7
        if not graph.add(call.author, week, Duration(call.duration_ms)):
            rejected += 1
    _warn_rejected("call-week", rejected)
    return _graph_result(
        "call-week",
        "Call Duration by Week Graph (min = 15s)",
        graph,
        "1 week",
        format_milliseconds,
    )


# ---------------------------------------------------------------------------
# Registry and entry points
# ---------------------------------------------------------------------------

REPORTS: dict[str, Callable[..., ReportResult]] = {
    "top-calls": top_call_lengths,
    "total-calls": total_call_length,
    "call-start": call_start_time_of_day_graph,
    "text-time": text_time_of_day_graph,
    "call-month": call_duration_by_month_graph,
    "call-weekday": call_duration_by_day_of_week_graph,
    "call-week": call_duration_by_week_graph,
    "call-graph": call_graph,
}

DEFAULT_REPORTS = ("top-calls", "total-calls", "call-graph")


def run_text_reports(
    export: ChatExport,
    names: list[str] | tuple[str, ...] = DEFAULT_REPORTS,
    width: int = config.BAR_WIDTH,
) -> list[ReportResult]:
    """Run the named reports in order.

    Raises:
        KeyError: If a name is not in ``REPORTS``.
    """
    unknown = [name for name in names if name not in REPORTS]
    if unknown:
        raise KeyError(f"Unknown report(s): {', '.join(unknown)}")
    return [REPORTS[name](export, width) for name in names]


def call_image(
    export: ChatExport,
    raster: RasterConfig | None = None,
    workers: int = 1,
) -> tuple[CallGrid, np.ndarray]:
    """Build the fine-grained call grid and its RGBA image."""
    raster = raster or RasterConfig()
    grid = build_call_grid(export.authors, export.calls, raster)
    return grid, render_call_image(grid, raster, workers)


def build_report_payload(path: str, width: int = config.BAR_WIDTH,
                         utc_offset_minutes: int | None = None) -> dict[str, Any]:
    """One-call entry point: load the export and render every text report.

    Returns:
        Dict with keys generated_at, channel (id, name, authors, counts) and
        reports, a mapping of report name to title, header and ANSI-free text.

    Raises:
        FileNotFoundError: If the export does not exist.
        json.JSONDecodeError: If the export is not valid JSON.
        ValueError: If the JSON is not an export object.
    """
    export = load_export(path, utc_offset_minutes)
    results = run_text_reports(export, list(REPORTS), width)
    return {
        "generated_at": datetime.now().isoformat(),
        "channel": {
            "id": export.channel_id,
            "name": export.channel_name,
            "authors": export.authors,
            "messages": len(export.texts),
            "calls": len(export.calls),
        },
        "reports": {
            result.name: {
                "title": result.title,
                "header": result.header,
                "text": strip_ansi("\n".join(result.lines)),
            }
            for result in results
        },
    }
