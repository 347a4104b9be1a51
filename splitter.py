"""Apportion a time interval across the buckets of a repeating cycle.

The cycle (usually one day) is divided into ``cycle_ms // bucket_ms``
buckets.  An interval contributes its head (from its start to the end of the
first bucket), then whole or partial buckets until its duration is used up,
wrapping back to bucket 0 past the end of the cycle.
"""

from __future__ import annotations

from typing import Callable

from durations import MS_PER_DAY, Duration
from graph import Graph


def bucket_count(bucket_ms: int, cycle_ms: int = MS_PER_DAY) -> int:
    """Number of buckets in a cycle, validating the bucket width.

    Raises:
        ValueError: If *bucket_ms* is not positive or does not evenly divide
            *cycle_ms*.
    """
    if bucket_ms <= 0:
        raise ValueError(f"bucket width must be positive, got {bucket_ms}")
    if cycle_ms % bucket_ms:
        raise ValueError(
            f"bucket width {bucket_ms}ms does not divide cycle length {cycle_ms}ms"
        )
    return cycle_ms // bucket_ms


def bucket_index(instant_ms: int, bucket_ms: int, cycle_ms: int = MS_PER_DAY) -> int:
    """Bucket containing *instant_ms* once folded into the cycle."""
    return (instant_ms % cycle_ms) // bucket_ms


def split_interval(
    start_ms: int,
    end_ms: int,
    bucket_ms: int,
    cycle_ms: int = MS_PER_DAY,
) -> list[tuple[int, int]]:
    """Split ``[start_ms, end_ms)`` into ``(bucket_index, milliseconds)`` parts.

    Args:
        start_ms: Interval start, local wall-clock milliseconds.
        end_ms: Interval end.  An end before the start is treated as a
            zero-length interval.
        bucket_ms: Bucket width.
        cycle_ms: Length of the repeating cycle.  Defaults to one day.

    Returns:
        Ordered list of parts.  The first part is always the start bucket
        (with 0 for an empty interval); the parts sum to the interval length.
        Intervals longer than the cycle revisit buckets, so callers must
        accumulate rather than overwrite.

    Raises:
        ValueError: If *bucket_ms* is invalid for *cycle_ms*.
    """
    count = bucket_count(bucket_ms, cycle_ms)
    duration = max(end_ms - start_ms, 0)
    offset = start_ms % cycle_ms
    index = offset // bucket_ms
    head = (index + 1) * bucket_ms - offset

    parts = [(index, min(head, duration))]
    remaining = duration - head
    while remaining > 0:
        index = (index + 1) % count
        parts.append((index, min(remaining, bucket_ms)))
        remaining -= bucket_ms
    return parts


def add_interval(
    graph: Graph,
    author: str,
    start_ms: int,
    end_ms: int,
    bucket_ms: int,
    cycle_ms: int = MS_PER_DAY,
    wrap: Callable[[int], object] = Duration,
) -> int:
    """Feed every part of an interval into *graph* for *author*.

    Args:
        wrap: Converts each part's milliseconds into the graph's value type.

    Returns:
        Number of parts the graph rejected (unknown author or out-of-range
        bucket on a fixed-size graph).
    """
    rejected = 0
    for index, part_ms in split_interval(start_ms, end_ms, bucket_ms, cycle_ms):
        if not graph.add(author, index, wrap(part_ms)):
            rejected += 1
    return rejected
