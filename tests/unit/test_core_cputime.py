"""Unit tests for the CPU-time source."""

import hashlib
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from tempokdf.core import cputime
from tempokdf.core.exceptions import CPUTimeError


class FakeResource:
    RUSAGE_SELF = 0

    def __init__(self, thread=True, reject_thread=False, fail=False):
        if thread:
            self.RUSAGE_THREAD = 1
        self.reject_thread = reject_thread
        self.fail = fail
        self.calls = []

    def getrusage(self, who):
        self.calls.append(who)
        if who == getattr(self, "RUSAGE_THREAD", None) and self.reject_thread:
            raise ValueError("invalid who parameter")
        if self.fail and len(self.calls) > 1:
            raise OSError("getrusage broke")
        return SimpleNamespace(ru_utime=1.5 + who)


@pytest.fixture(autouse=True)
def fresh_source(monkeypatch):
    """Forget any previously selected source."""
    monkeypatch.setattr(cputime, "_reader", None)
    monkeypatch.setattr(cputime, "_scope", None)


# ==============================================================================
# Tests: Source selection
# ==============================================================================

def test_prefers_thread_usage(monkeypatch):
    fake = FakeResource()
    monkeypatch.setattr(cputime, "resource", fake)
    assert cputime.cpu_time_scope() == "thread"
    assert cputime.cpu_time() == 2.5


def test_falls_back_when_thread_rejected(monkeypatch):
    fake = FakeResource(reject_thread=True)
    monkeypatch.setattr(cputime, "resource", fake)
    assert cputime.cpu_time_scope() == "process"
    assert cputime.cpu_time() == 1.5


def test_falls_back_without_thread_constant(monkeypatch):
    fake = FakeResource(thread=False)
    monkeypatch.setattr(cputime, "resource", fake)
    assert cputime.cpu_time_scope() == "process"


def test_uses_thread_time_without_resource(monkeypatch):
    monkeypatch.setattr(cputime, "resource", None)
    with patch("tempokdf.core.cputime.time.thread_time", return_value=4.25):
        assert cputime.cpu_time_scope() == "thread"
        assert cputime.cpu_time() == 4.25


def test_selection_happens_once(monkeypatch):
    fake = FakeResource()
    monkeypatch.setattr(cputime, "resource", fake)
    cputime.cpu_time()
    cputime.cpu_time()
    cputime.cpu_time_scope()
    # one probe during selection, then one read per cpu_time()
    assert len(fake.calls) == 3


# ==============================================================================
# Tests: Failures
# ==============================================================================

def test_read_failure_is_fatal(monkeypatch):
    fake = FakeResource(fail=True)
    monkeypatch.setattr(cputime, "resource", fake)
    with pytest.raises(CPUTimeError, match="getrusage failed"):
        cputime.cpu_time()


def test_thread_time_failure_is_fatal(monkeypatch):
    monkeypatch.setattr(cputime, "resource", None)
    with patch("tempokdf.core.cputime.time.thread_time", side_effect=OSError("nope")):
        with pytest.raises(CPUTimeError):
            cputime.cpu_time()


# ==============================================================================
# Tests: Real clock
# ==============================================================================

def test_real_clock_advances_with_work():
    start = cputime.cpu_time()
    x = b"seed"
    for _ in range(200_000):
        x = hashlib.sha256(x).digest()
    assert cputime.cpu_time() > start
    assert cputime.cpu_time_scope() in ("thread", "process")
