"""ANSI terminal rendering of a ``Graph`` as per-bucket bar lines."""

from __future__ import annotations

import re
from typing import Callable, Sequence

from graph import Graph

FULL_CHAR = "#"
EMPTY_CHAR = "-"
RESET = "\x1b[0m"

# Bright green, yellow, blue, magenta, cyan.
_BASE_COLOR = 92
_COLOR_COUNT = 5

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def author_color(slot: int) -> str:
    """Escape sequence for the author in registry position *slot*."""
    return f"\x1b[{_BASE_COLOR + slot % _COLOR_COUNT}m"


def strip_ansi(text: str) -> str:
    """Remove color escape sequences, e.g. for JSON output."""
    return _ANSI_RE.sub("", text)


def progress_bar(
    width: int,
    maximum: int,
    quantities: Sequence[int],
    full_char: str = FULL_CHAR,
    empty_char: str = EMPTY_CHAR,
) -> str:
    """Build a bracketed bar with one colored segment per author.

    Each author fills ``width * quantity // maximum`` cells; the rest of
    the bar is padded with *empty_char*.  A zero *maximum* (no data at all)
    produces an empty bar.

    Args:
        width: Bar width in cells, excluding the brackets.
        maximum: Largest bucket total in the graph; scales every bar.
        quantities: Reduced value per author, in registry order.
        full_char: Glyph for filled cells.
        empty_char: Glyph for unfilled cells.

    Returns:
        The bar string including ANSI color codes.
    """
    parts = ["["]
    filled = 0
    for slot, quantity in enumerate(quantities):
        cells = width * quantity // maximum if maximum > 0 else 0
        filled += cells
        parts.append(f"{author_color(slot)}{full_char * cells}{RESET}")
    parts.append(empty_char * max(width - filled, 0))
    parts.append("]")
    return "".join(parts)


def render_legend(authors: Sequence[str]) -> list[str]:
    """``Legend:`` followed by each author's name in its bar color."""
    lines = ["Legend:"]
    for slot, author in enumerate(authors):
        lines.append(f"{author_color(slot)}{author}{RESET}")
    return lines


def render_graph(graph: Graph) -> str:
    """Render the legend and one ``<label> | [bar]`` line per bucket.

    Buckets are listed from ``graph.start_index`` to the end and then from
    the first bucket, so a day can start at e.g. 05:30.
    """
    maximum = graph.maximum()
    lines = render_legend(graph.authors)
    for _, label, reduced in graph.rows():
        lines.append(f"{label} | {progress_bar(graph.width, maximum, reduced)}")
    return "\n".join(lines)


def format_count(value: int | float) -> str:
    """Thousands separators; floats get two decimals."""
    if isinstance(value, float):
        return f"{value:,.2f}"
    return f"{value:,}"


def render_header(
    graph: Graph,
    bucket_width: str,
    fmt: Callable[[int | float], str] = format_count,
) -> str:
    """One-line summary of the bucket totals.

    Args:
        graph: The populated graph.
        bucket_width: Human-readable bucket size, e.g. ``"10m"``.
        fmt: Formats a raw value (count or milliseconds) for display.  Mean
            and standard deviation are passed as floats.
    """
    stats = graph.stats()
    return (
        f"sum = {fmt(stats.total)}, mean = {fmt(stats.mean)}, "
        f"sd = {fmt(stats.std_dev)}, bucket = {bucket_width}, "
        f"min = {fmt(stats.minimum)}, max = {fmt(stats.maximum)}"
    )
