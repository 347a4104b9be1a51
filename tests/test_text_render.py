"""Tests for text_render.py bars, graph rendering and header."""

from __future__ import annotations

from durations import MS_PER_MINUTE, format_milliseconds
from graph import Graph, average_reducer, sum_reducer
from text_render import (
    RESET,
    author_color,
    format_count,
    progress_bar,
    render_graph,
    render_header,
    strip_ansi,
)


def _graph(size=4, start=0, authors=("alice", "bob"), width=10, reducer=sum_reducer):
    return Graph(list(authors), start, lambda i: f"b{i}", reducer, width, size=size)


# ── progress_bar ──────────────────────────────


class TestProgressBar:
    def test_segments_per_author(self):
        bar = progress_bar(10, 10, [3, 2])
        assert bar == (
            f"[{author_color(0)}###{RESET}{author_color(1)}##{RESET}-----]"
        )

    def test_fill_floors(self):
        assert strip_ansi(progress_bar(10, 3, [1])) == "[###-------]"

    def test_full_bar(self):
        assert strip_ansi(progress_bar(8, 4, [2, 2])) == "[########]"

    def test_zero_maximum_is_empty(self):
        assert strip_ansi(progress_bar(6, 0, [0, 0])) == "[------]"

    def test_custom_glyphs(self):
        assert strip_ansi(progress_bar(4, 4, [2], full_char="=", empty_char=" ")) == "[==  ]"

    def test_width_always_respected(self):
        for quantities in ([0], [1, 1, 1], [5, 0, 5]):
            assert len(strip_ansi(progress_bar(20, 10, quantities))) == 22


class TestAuthorColor:
    def test_bright_colors_cycle(self):
        assert author_color(0) == "\x1b[92m"
        assert author_color(4) == "\x1b[96m"
        assert author_color(5) == author_color(0)


# ── render_graph ──────────────────────────────


class TestRenderGraph:
    def test_legend_first(self):
        lines = render_graph(_graph()).split("\n")
        assert lines[0] == "Legend:"
        assert lines[1] == f"{author_color(0)}alice{RESET}"
        assert lines[2] == f"{author_color(1)}bob{RESET}"

    def test_one_line_per_bucket_in_rotated_order(self):
        lines = strip_ansi(render_graph(_graph(start=2))).split("\n")[3:]
        assert [line.split(" | ")[0] for line in lines] == ["b2", "b3", "b0", "b1"]

    def test_bars_scaled_to_largest_bucket(self):
        graph = _graph()
        graph.add("alice", 0, 4)
        graph.add("bob", 0, 1)
        graph.add("alice", 1, 5)
        graph.add("bob", 3, 10)
        lines = strip_ansi(render_graph(graph)).split("\n")[3:]
        assert lines == [
            "b0 | [#####-----]",
            "b1 | [#####-----]",
            "b2 | [----------]",
            "b3 | [##########]",
        ]

    def test_empty_graph_renders_empty_bars(self):
        lines = strip_ansi(render_graph(_graph())).split("\n")[3:]
        assert lines == [f"b{i} | [----------]" for i in range(4)]

    def test_average_reducer_bars(self):
        graph = _graph(authors=("alice",), reducer=average_reducer)
        graph.add("alice", 0, 10)
        graph.add("alice", 0, 0)
        graph.add("alice", 1, 10)
        lines = strip_ansi(render_graph(graph)).split("\n")[2:]
        assert lines[0] == "b0 | [#####-----]"
        assert lines[1] == "b1 | [##########]"


# ── render_header ─────────────────────────────


class TestRenderHeader:
    def test_counts(self):
        graph = _graph(size=5, authors=("alice",))
        for i in range(5):
            graph.add("alice", i, i + 1)
        assert render_header(graph, "1h") == (
            "sum = 15, mean = 3.00, sd = 1.41, bucket = 1h, min = 1, max = 5"
        )

    def test_empty_graph(self):
        assert render_header(_graph(size=None), "10m") == (
            "sum = 0, mean = 0.00, sd = 0.00, bucket = 10m, min = 0, max = 0"
        )

    def test_durations(self):
        graph = _graph(size=2, authors=("alice",))
        graph.add("alice", 0, 10 * MS_PER_MINUTE)
        header = render_header(graph, "10m", format_milliseconds)
        assert header == (
            "sum = 10m00s000ms, mean = 05m00s000ms, sd = 05m00s000ms, "
            "bucket = 10m, min = 000ms, max = 10m00s000ms"
        )

    def test_format_count_thousands(self):
        assert format_count(1234567) == "1,234,567"
        assert format_count(0.5) == "0.50"
