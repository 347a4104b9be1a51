"""Tests for splitter.py interval apportioning."""

from __future__ import annotations

from collections import Counter

import pytest

from durations import MS_PER_DAY, MS_PER_MINUTE, Duration
from graph import Graph, sum_reducer
from splitter import add_interval, bucket_count, bucket_index, split_interval

TEN_MIN = 10 * MS_PER_MINUTE
DAY = MS_PER_DAY


def _clock(hours: int, minutes: int = 0, seconds: int = 0, day: int = 0) -> int:
    return day * DAY + ((hours * 60 + minutes) * 60 + seconds) * 1000


# ── Validation ────────────────────────────────


class TestBucketCount:
    def test_ten_minute_day(self):
        assert bucket_count(TEN_MIN) == 144

    def test_must_divide_cycle(self):
        with pytest.raises(ValueError):
            bucket_count(7 * MS_PER_MINUTE)

    @pytest.mark.parametrize("width", [0, -TEN_MIN])
    def test_must_be_positive(self, width):
        with pytest.raises(ValueError):
            bucket_count(width)

    def test_bucket_index_folds_days(self):
        assert bucket_index(_clock(0, 25, day=3), TEN_MIN) == 2


# ── Scenarios ─────────────────────────────────


class TestSplitInterval:
    def test_call_across_one_boundary(self):
        parts = split_interval(_clock(0, 5), _clock(0, 17), TEN_MIN)
        assert parts == [(0, 5 * MS_PER_MINUTE), (1, 7 * MS_PER_MINUTE)]
        assert sum(ms for _, ms in parts) == 12 * MS_PER_MINUTE

    def test_call_across_midnight(self):
        parts = split_interval(_clock(23, 50), _clock(0, 10, day=1), TEN_MIN)
        assert parts == [(143, TEN_MIN), (0, TEN_MIN)]

    def test_single_bucket(self):
        parts = split_interval(_clock(4, 1), _clock(4, 8, 30), TEN_MIN)
        assert parts == [(24, 7 * MS_PER_MINUTE + 30_000)]

    def test_start_on_boundary_fills_whole_head(self):
        parts = split_interval(_clock(1, 0), _clock(1, 25), TEN_MIN)
        assert parts == [(6, TEN_MIN), (7, TEN_MIN), (8, 5 * MS_PER_MINUTE)]

    def test_exactly_one_bucket_from_boundary(self):
        assert split_interval(_clock(1, 0), _clock(1, 10), TEN_MIN) == [(6, TEN_MIN)]

    def test_zero_duration(self):
        assert split_interval(_clock(3, 33), _clock(3, 33), TEN_MIN) == [(21, 0)]

    def test_negative_duration_clamped(self):
        assert split_interval(_clock(3, 33), _clock(2, 0), TEN_MIN) == [(21, 0)]

    def test_invalid_width_raises(self):
        with pytest.raises(ValueError):
            split_interval(0, 1000, 7 * MS_PER_MINUTE)

    def test_custom_cycle(self):
        hour = 60 * MS_PER_MINUTE
        parts = split_interval(_clock(0, 55), _clock(1, 15), TEN_MIN, cycle_ms=hour)
        assert parts == [(5, 5 * MS_PER_MINUTE), (0, TEN_MIN), (1, 5 * MS_PER_MINUTE)]


class TestConservation:
    @pytest.mark.parametrize("width_minutes", [1, 10, 15, 60])
    @pytest.mark.parametrize(
        "start, duration",
        [
            (_clock(0, 0), 0),
            (_clock(0, 0), 1),
            (_clock(7, 3, 17), 45 * MS_PER_MINUTE + 123),
            (_clock(23, 59, 59), 2_000),
            (_clock(13, 20), DAY),
            (_clock(18, 45, 1), 3 * DAY + 17 * MS_PER_MINUTE),
        ],
    )
    def test_parts_sum_to_duration(self, width_minutes, start, duration):
        parts = split_interval(start, start + duration, width_minutes * MS_PER_MINUTE)
        assert sum(ms for _, ms in parts) == duration

    def test_multi_wrap_touches_every_bucket(self):
        start = _clock(0, 5)
        duration = 2 * DAY + 30 * MS_PER_MINUTE
        parts = split_interval(start, start + duration, TEN_MIN)
        assert {index for index, _ in parts} == set(range(144))
        per_bucket = Counter()
        for index, ms in parts:
            per_bucket[index] += ms
        # Bucket 0: 5 min head plus two full wraps.
        assert per_bucket[0] == 5 * MS_PER_MINUTE + 2 * TEN_MIN
        assert per_bucket[50] == 2 * TEN_MIN
        assert sum(per_bucket.values()) == duration

    def test_indices_stay_in_range(self):
        start = _clock(22, 0)
        parts = split_interval(start, start + 5 * DAY, TEN_MIN)
        assert all(0 <= index < 144 for index, _ in parts)


# ── Feeding a Graph ───────────────────────────


class TestAddInterval:
    def _graph(self):
        return Graph(["alice", "bob"], 0, str, sum_reducer, 50, size=144)

    def test_fragments_land_in_buckets(self):
        graph = self._graph()
        rejected = add_interval(graph, "alice", _clock(0, 5), _clock(0, 17), TEN_MIN)
        assert rejected == 0
        assert graph.reduced(0) == [5 * MS_PER_MINUTE, 0]
        assert graph.reduced(1) == [7 * MS_PER_MINUTE, 0]
        assert graph.data[0][0] == [Duration(5 * MS_PER_MINUTE)]

    def test_wraparound_accumulates(self):
        graph = self._graph()
        add_interval(graph, "bob", _clock(23, 50), _clock(0, 10, day=1), TEN_MIN)
        add_interval(graph, "bob", _clock(0, 0), _clock(0, 4), TEN_MIN)
        assert graph.reduced(143) == [0, TEN_MIN]
        assert graph.reduced(0) == [0, TEN_MIN + 4 * MS_PER_MINUTE]

    def test_multi_day_interval_accumulates(self):
        graph = self._graph()
        add_interval(graph, "alice", _clock(6, 0), _clock(6, 0, day=2), TEN_MIN)
        assert graph.totals() == [2 * TEN_MIN] * 144

    def test_unknown_author_counts_rejections(self):
        graph = self._graph()
        rejected = add_interval(graph, "mallory", _clock(0, 5), _clock(0, 17), TEN_MIN)
        assert rejected == 2
        assert graph.totals() == [0] * 144

    def test_custom_wrap(self):
        graph = self._graph()
        add_interval(graph, "alice", _clock(0, 0), _clock(0, 3), TEN_MIN, wrap=int)
        assert graph.data[0][0] == [3 * MS_PER_MINUTE]
