# gotspec/runtime/monitor.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""
Elapsed-time accounting per named operation.

A Times collector is passed explicitly into match, step and walk calls
instead of living as a process-wide singleton. Collection never changes
results; a disabled collector records nothing.
"""

import threading
import time
from contextlib import contextmanager
from typing import Dict, Iterator, Optional


class Times:
    """Collects total elapsed milliseconds and call counts per operation name.

    Class Invariants:
    1. Totals only grow between resets
    2. A disabled collector records nothing

    Threading/Concurrency Guarantees:
    1. Totals are guarded by a lock; summary() is safe during collection
    2. tick/tock clocks are per thread, so concurrent walks do not clobber
       each other's start times

    Performance Characteristics:
    1. O(1) tick/tock
    2. O(n) summary where n is the number of operation names
    """

    def __init__(self, enabled: bool = False) -> None:
        self._enabled = enabled
        self._totals: Dict[str, Dict[str, float]] = {}
        self._totals_lock = threading.Lock()
        self._clocks = threading.local()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False

    def _thread_clocks(self) -> Dict[str, float]:
        clocks = getattr(self._clocks, "started", None)
        if clocks is None:
            clocks = {}
            self._clocks.started = clocks
        return clocks

    def tick(self, what: str) -> None:
        """Start the clock for an operation on the current thread."""
        if not self._enabled:
            return
        self._thread_clocks()[what] = time.perf_counter()

    def tock(self, what: str) -> None:
        """Stop the clock for an operation and add the elapsed time to its total.

        A tock without a matching tick on the same thread is ignored.
        """
        if not self._enabled:
            return
        started = self._thread_clocks().pop(what, None)
        if started is None:
            return
        self.record(what, (time.perf_counter() - started) * 1000.0)

    def record(self, what: str, ms: float) -> None:
        """Add one observation of ms milliseconds to an operation's total."""
        with self._totals_lock:
            entry = self._totals.get(what)
            if entry is None:
                entry = {"ms": 0.0, "n": 0}
                self._totals[what] = entry
            entry["ms"] += ms
            entry["n"] += 1

    @contextmanager
    def timing(self, what: str) -> Iterator[None]:
        """Time the enclosed block under the given operation name.

        Nested and concurrent blocks with the same name are timed
        independently.
        """
        if not self._enabled:
            yield
            return
        started = time.perf_counter()
        try:
            yield
        finally:
            self.record(what, (time.perf_counter() - started) * 1000.0)

    def summary(self) -> Dict[str, Dict[str, float]]:
        """Return a copy of the totals: {name: {"ms": total, "n": count}}."""
        with self._totals_lock:
            return {what: dict(entry) for what, entry in self._totals.items()}

    def reset(self) -> None:
        with self._totals_lock:
            self._totals = {}


class _NoopTimes(Times):
    """A collector that can never be enabled."""

    def enable(self) -> None:
        pass


NOOP_TIMES = _NoopTimes()


def resolve_times(times: Optional[Times]) -> Times:
    return NOOP_TIMES if times is None else times
