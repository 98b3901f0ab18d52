"""Elapsed-time checks for timed derivation.

Timing follows the CPU time of the deriving thread, with the wall clock as a
safety rail: a duration is never reported elapsed before it has passed on the
wall clock, and always reported elapsed once twice the duration has passed on
the wall clock, whatever the CPU clock says. Some systems account CPU time
poorly (throttled or suspended threads), hence the upper bound.
"""
from __future__ import annotations

import datetime
import time
from typing import Union

from tempokdf.core.cputime import cpu_time
from tempokdf.core.exceptions import InvalidArgumentError

Duration = Union[int, float, datetime.timedelta]


def to_seconds(duration: Duration) -> float:
    """Normalize a duration given as seconds or a timedelta to float seconds."""
    if isinstance(duration, datetime.timedelta):
        return duration.total_seconds()
    if isinstance(duration, bool) or not isinstance(duration, (int, float)):
        raise InvalidArgumentError(f"invalid duration: {duration!r}")
    return float(duration)


class Timer:
    def __init__(self):
        self._wall = time.perf_counter()
        self._user = cpu_time()

    def wall_elapsed(self) -> float:
        return time.perf_counter() - self._wall

    def cpu_elapsed(self) -> float:
        return cpu_time() - self._user

    def elapsed(self, duration: Duration) -> bool:
        """Return True once `duration` has elapsed since the timer started."""
        d = to_seconds(duration)
        wall = self.wall_elapsed()
        if wall < d:
            return False
        if wall >= 2 * d:
            return True
        return self.cpu_elapsed() >= d
