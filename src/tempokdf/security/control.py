"""Time-bounded control loop behind PBKDF2.derive() and PBKDF2.search().

The iteration count grows exponentially: the loop starts with
INITIAL_ITERATIONS and each following step adds iters >> precision more, so
the growth rate is 1/2**precision. Precision ranges from 0 (100% growth) to
MAX_PRECISION (0.1% growth). The expected overshoot of a growing batch is
duration * r / (r + 2), and the requested duration is shortened by that much
so the average total time lands on the request.

Higher precision gives more accurate timing but calls the search predicate
more often. The default of 4 (6.25%) covers 2**32 iterations in 252 steps
with a timing error of about 3%.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Optional, Tuple

from tempokdf.core.exceptions import InvalidArgumentError
from tempokdf.core.timer import Duration, Timer, to_seconds

DEFAULT_PRECISION = 4
MAX_PRECISION = 10
INITIAL_ITERATIONS = 1024

logger = logging.getLogger(__name__)


def adjusted_duration(seconds: float, precision: int) -> float:
    """Shorten `seconds` by the average overshoot of the batch growth."""
    r = 1.0 / (1 << precision)
    return seconds - seconds * r / (r + 2)


def _check_precision(precision: int) -> int:
    if isinstance(precision, bool) or not isinstance(precision, int):
        raise InvalidArgumentError(f"invalid derivation precision: {precision!r}")
    if not 0 <= precision <= MAX_PRECISION:
        raise InvalidArgumentError(f"invalid derivation precision: {precision}")
    return precision


def _run(kdf, seconds: float, precision: int, predicate: Callable[[bytes], Any], outcome: Dict) -> None:
    timer = Timer()
    key = kdf.next(INITIAL_ITERATIONS)
    while True:
        status = predicate(key)
        if status:
            reason = "predicate"
            break
        if timer.elapsed(seconds):
            reason = "time limit"
            break
        key = kdf.next(kdf.iters >> precision)
    outcome["key"] = key
    outcome["status"] = status
    logger.debug(
        "derivation stopped on %s after %d iterations (wall %.3fs, cpu %.3fs)",
        reason,
        kdf.iters,
        timer.wall_elapsed(),
        timer.cpu_elapsed(),
    )


def derive_controlled(
    kdf,
    duration: Duration,
    precision: int,
    predicate: Callable[[bytes], Any],
) -> Tuple[Optional[bytes], Any]:
    """Run `kdf` from zero iterations until `predicate` stops it or time runs out.

    The loop runs on its own thread so per-thread CPU time measures nothing
    but the derivation; the caller blocks until it finishes. Returns the last
    key and the last predicate status. Exceptions raised on the worker thread
    are re-raised here.
    """
    precision = _check_precision(precision)
    seconds = to_seconds(duration)
    target = adjusted_duration(seconds, precision)
    kdf.reset()
    logger.debug(
        "timed derivation: requested %.3fs, target %.3fs, precision %d",
        seconds,
        target,
        precision,
    )

    outcome: Dict[str, Any] = {}

    def worker() -> None:
        try:
            _run(kdf, target, precision, predicate, outcome)
        except BaseException as e:
            outcome["error"] = e

    thread = threading.Thread(target=worker, name="tempokdf-derive")
    thread.start()
    thread.join()

    if "error" in outcome:
        raise outcome["error"]
    return outcome["key"], outcome["status"]
