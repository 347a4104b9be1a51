"""Millisecond-precision durations for call lengths and bucket totals.

A ``Duration`` is an immutable, non-negative integer number of milliseconds.
It decomposes into days/hours/minutes/seconds/milliseconds only for display,
so arithmetic never loses precision.
"""

from __future__ import annotations

from datetime import timedelta
from functools import total_ordering
from typing import Iterable

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE
MS_PER_DAY = 24 * MS_PER_HOUR


@total_ordering
class Duration:
    """Immutable non-negative time quantity stored as whole milliseconds.

    ``str()`` gives the compact form, which starts at the most significant
    nonzero unit.  ``repr()`` gives the full form with all five units, used
    by the itemized top-N listings.
    """

    __slots__ = ("_ms",)

    ZERO: Duration

    def __init__(self, milliseconds: int = 0) -> None:
        object.__setattr__(self, "_ms", max(int(milliseconds), 0))

    def __setattr__(self, name, value):
        raise AttributeError("Duration is immutable")

    # -- constructors ------------------------------------------------------

    @classmethod
    def from_milliseconds(cls, milliseconds: int) -> Duration:
        """Same as calling the constructor; negatives clamp to zero."""
        return cls(milliseconds)

    @classmethod
    def from_timedelta(cls, delta: timedelta) -> Duration:
        """Convert a timedelta, clamping negative deltas to zero."""
        return cls(delta // timedelta(milliseconds=1))

    @classmethod
    def from_components(
        cls,
        days: int = 0,
        hours: int = 0,
        minutes: int = 0,
        seconds: int = 0,
        milliseconds: int = 0,
    ) -> Duration:
        return cls(
            days * MS_PER_DAY
            + hours * MS_PER_HOUR
            + minutes * MS_PER_MINUTE
            + seconds * MS_PER_SECOND
            + milliseconds
        )

    @classmethod
    def sum(cls, durations: Iterable[Duration | int]) -> Duration:
        """Total an iterable of durations (or raw millisecond ints)."""
        return cls(sum(int(d) for d in durations))

    # -- conversions -------------------------------------------------------

    def to_milliseconds(self) -> int:
        """Whole milliseconds."""
        return self._ms

    def __int__(self) -> int:
        return self._ms

    def __index__(self) -> int:
        return self._ms

    def components(self) -> tuple[int, int, int, int, int]:
        """Split into (days, hours, minutes, seconds, milliseconds).

        Reassembling the parts with ``from_components`` always yields the
        same millisecond count.
        """
        days, rest = divmod(self._ms, MS_PER_DAY)
        hours, rest = divmod(rest, MS_PER_HOUR)
        minutes, rest = divmod(rest, MS_PER_MINUTE)
        seconds, milliseconds = divmod(rest, MS_PER_SECOND)
        return days, hours, minutes, seconds, milliseconds

    def to_timedelta(self) -> timedelta:
        """Equivalent datetime.timedelta."""
        return timedelta(milliseconds=self._ms)

    # -- arithmetic --------------------------------------------------------

    def __add__(self, other):
        if isinstance(other, (Duration, int)):
            return Duration(self._ms + int(other))
        return NotImplemented

    __radd__ = __add__

    def __mul__(self, factor):
        if isinstance(factor, int) and not isinstance(factor, Duration):
            return Duration(self._ms * factor)
        return NotImplemented

    __rmul__ = __mul__

    def __floordiv__(self, divisor):
        if isinstance(divisor, int) and not isinstance(divisor, Duration):
            # An empty bucket averages to zero rather than raising.
            if divisor == 0:
                return Duration.ZERO
            return Duration(self._ms // divisor)
        return NotImplemented

    __truediv__ = __floordiv__

    def scale(self, factor: int) -> Duration:
        """Multiply by an integer factor."""
        return self * factor

    def divide(self, divisor: int) -> Duration:
        """Floor-divide by *divisor*; dividing by zero gives ZERO."""
        return self // divisor

    # -- comparison --------------------------------------------------------

    def __eq__(self, other):
        if isinstance(other, Duration):
            return self._ms == other._ms
        if isinstance(other, int):
            return self._ms == other
        return NotImplemented

    def __lt__(self, other):
        if isinstance(other, (Duration, int)):
            return self._ms < int(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._ms)

    def __bool__(self) -> bool:
        return self._ms > 0

    # -- display -----------------------------------------------------------

    def full(self) -> str:
        """All five units, e.g. 0d00h20m00s000ms."""
        days, hours, minutes, seconds, ms = self.components()
        return f"{days}d{hours:02}h{minutes:02}m{seconds:02}s{ms:03}ms"

    def __str__(self) -> str:
        days, hours, minutes, seconds, ms = self.components()
        if days:
            return self.full()
        if hours:
            return f"{hours:02}h{minutes:02}m{seconds:02}s{ms:03}ms"
        if minutes:
            return f"{minutes:02}m{seconds:02}s{ms:03}ms"
        if seconds:
            return f"{seconds:02}s{ms:03}ms"
        return f"{ms:03}ms"

    def __repr__(self) -> str:
        return self.full()

    def __reduce__(self):
        return (Duration, (self._ms,))


Duration.ZERO = Duration(0)


def format_milliseconds(milliseconds: int | float) -> str:
    """Compact rendering of a raw millisecond value (floats are truncated)."""
    return str(Duration(int(milliseconds)))
