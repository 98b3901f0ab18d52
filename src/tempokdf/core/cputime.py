"""CPU-time source for timed key derivation.

cpu_time() reports the user CPU time (in seconds) consumed by the calling
thread. Platforms that reject the per-thread query fall back to the CPU time
of the whole process. The choice is made once per process, on first use.

Windows has no resource module; time.thread_time() is used there instead.
"""
from __future__ import annotations

import logging
import sys
import threading
import time
from typing import Callable, Optional, Tuple

from tempokdf.core.exceptions import CPUTimeError

if sys.platform == "win32":
    resource = None
else:
    import resource


logger = logging.getLogger(__name__)

_lock = threading.Lock()
_reader: Optional[Callable[[], float]] = None
_scope: Optional[str] = None


def _rusage_reader(who: int) -> Callable[[], float]:
    def read() -> float:
        try:
            return resource.getrusage(who).ru_utime
        except (OSError, ValueError) as e:
            raise CPUTimeError(f"getrusage failed: {e}") from e

    return read


def _thread_time() -> float:
    try:
        return time.thread_time()
    except OSError as e:
        raise CPUTimeError(f"thread_time failed: {e}") from e


def _select_source() -> Tuple[Callable[[], float], str]:
    if resource is None:
        return _thread_time, "thread"

    who = getattr(resource, "RUSAGE_THREAD", None)
    if who is not None:
        try:
            resource.getrusage(who)
        except ValueError:
            # EINVAL: kernel does not support per-thread usage
            pass
        except OSError as e:
            raise CPUTimeError(f"getrusage failed: {e}") from e
        else:
            return _rusage_reader(who), "thread"
    return _rusage_reader(resource.RUSAGE_SELF), "process"


def _source() -> Callable[[], float]:
    global _reader, _scope
    if _reader is None:
        with _lock:
            if _reader is None:
                reader, scope = _select_source()
                _scope = scope
                _reader = reader
                logger.debug("using %s CPU time for derivation timing", scope)
    return _reader


def cpu_time() -> float:
    """Return user CPU time of the current thread (or process) in seconds."""
    return _source()()


def cpu_time_scope() -> str:
    """Return "thread" or "process" depending on what cpu_time() measures."""
    _source()
    return _scope
