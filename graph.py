"""Circular bucket aggregation for per-author time-of-day style graphs.

A ``Graph`` keeps every raw contribution per (bucket, author) cell and only
reduces them when rendering, so the same data can be summed or averaged.

Usage::

    graph = Graph(["alice", "bob"], start_index=33, label=ten_minute_label,
                  reducer=sum_reducer, width=50, size=144)
    graph.add("alice", 0, Duration(300_000))
    stats = graph.stats()
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, Sequence


# ---------------------------------------------------------------------------
# Reducers
# ---------------------------------------------------------------------------

class Reducer:
    """Collapse a list of raw cell values (ints or Durations) into one int."""

    name = "reducer"

    def __call__(self, values: Sequence[Any]) -> int:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{self.name} reducer>"


class SumReducer(Reducer):
    name = "sum"

    def __call__(self, values: Sequence[Any]) -> int:
        return sum(int(v) for v in values)


class AverageReducer(Reducer):
    name = "average"

    def __call__(self, values: Sequence[Any]) -> int:
        if not values:
            return 0
        return sum(int(v) for v in values) // len(values)


sum_reducer = SumReducer()
average_reducer = AverageReducer()


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GraphStats:
    """Summary statistics over the per-bucket reduced totals."""

    count: int
    total: int
    minimum: int
    maximum: int
    mean: float
    std_dev: float


def bucket_statistics(totals: Sequence[int]) -> GraphStats:
    """Compute sum/min/max/mean and population standard deviation.

    The variance is accumulated exactly as ``sum((n*x - S)**2) / n**3`` on
    Python ints, so no float rounding happens before the final division.

    Args:
        totals: Reduced total for each bucket.

    Returns:
        A ``GraphStats``.  An empty sequence gives all-zero statistics.
    """
    n = len(totals)
    if n == 0:
        return GraphStats(0, 0, 0, 0, 0.0, 0.0)

    total = sum(totals)
    squared = sum((n * x - total) ** 2 for x in totals)
    return GraphStats(
        count=n,
        total=total,
        minimum=min(totals),
        maximum=max(totals),
        mean=total / n,
        std_dev=math.sqrt(squared / n**3),
    )


# ---------------------------------------------------------------------------
# Graph
# ---------------------------------------------------------------------------

class Graph:
    """Per-author value lists over a rotatable sequence of buckets.

    Args:
        authors: Ordered author identities.  Position fixes the column and
            color slot used when rendering.
        start_index: Bucket at which rendering starts before wrapping.
        label: Called with a bucket index to produce its label.
        reducer: Strategy used to collapse each cell's values.
        width: Rendered bar width in characters.
        size: Fixed bucket count.  ``None`` makes the graph grow to fit the
            largest index added.
    """

    def __init__(
        self,
        authors: Iterable[str],
        start_index: int,
        label: Callable[[int], str],
        reducer: Reducer = sum_reducer,
        width: int = 50,
        size: int | None = None,
    ) -> None:
        self.authors: tuple[str, ...] = tuple(authors)
        self._author_index = {author: i for i, author in enumerate(self.authors)}
        self.start_index = start_index
        self.label = label
        self.reducer = reducer
        self.width = width
        self.fixed_size = size
        self.labels: list[str] = []
        self.data: list[list[list[Any]]] = []
        if size is not None:
            self._grow_to(size - 1)

    def __len__(self) -> int:
        return len(self.data)

    @property
    def growable(self) -> bool:
        return self.fixed_size is None

    def _grow_to(self, index: int) -> None:
        for i in range(len(self.data), index + 1):
            self.labels.append(self.label(i))
            self.data.append([[] for _ in self.authors])

    def add(self, author: str, index: int, value: Any) -> bool:
        """Append *value* to the (bucket *index*, *author*) cell.

        Returns:
            False without touching any data when the author is unknown, the
            index is negative, or the index is past the end of a fixed-size
            graph.  True otherwise.
        """
        author_index = self._author_index.get(author)
        if author_index is None or index < 0:
            return False
        if index >= len(self.data):
            if not self.growable:
                return False
            self._grow_to(index)
        self.data[index][author_index].append(value)
        return True

    # -- reductions --------------------------------------------------------

    def reduced(self, index: int) -> list[int]:
        """Reduced value for every author in bucket *index*."""
        return [self.reducer(cell) for cell in self.data[index]]

    def bucket_total(self, index: int) -> int:
        """Sum of the reduced author values in one bucket."""
        return sum(self.reduced(index))

    def totals(self) -> list[int]:
        return [self.bucket_total(i) for i in range(len(self.data))]

    def maximum(self) -> int:
        """Largest bucket total, 0 for an empty graph."""
        return max(self.totals(), default=0)

    def stats(self) -> GraphStats:
        return bucket_statistics(self.totals())

    def author_totals(self) -> dict[str, int]:
        """Reduce each author's whole row (every value across all buckets)."""
        result = {}
        for i, author in enumerate(self.authors):
            row = [value for bucket in self.data for value in bucket[i]]
            result[author] = self.reducer(row)
        return result

    def rotated_indices(self) -> list[int]:
        """Bucket indices from ``start_index`` to the end, then from 0."""
        n = len(self.data)
        if n == 0:
            return []
        start = self.start_index % n
        return list(range(start, n)) + list(range(0, start))

    def rows(self) -> Iterator[tuple[int, str, list[int]]]:
        """Yield ``(index, label, reduced_values)`` in rotated order."""
        for index in self.rotated_indices():
            yield index, self.labels[index], self.reduced(index)
