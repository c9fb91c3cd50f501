"""Utility helpers for mutarith."""

import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator


class Timer:
    """High-resolution timer for benchmarking."""

    def __init__(self):
        self.start_ns = 0
        self.end_ns = 0

    def __enter__(self):
        self.start_ns = time.perf_counter_ns()
        return self

    def __exit__(self, *exc):
        self.end_ns = time.perf_counter_ns()

    @property
    def elapsed_ns(self) -> int:
        return self.end_ns - self.start_ns

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed_ns / 1_000_000.0


@dataclass
class AllocationTally:
    """Allocations of one kind observed inside a ``count_allocations`` block."""
    kind: type
    start: int
    end: int = -1

    @property
    def count(self) -> int:
        end = self.end if self.end >= 0 else self.kind.allocation_count()
        return end - self.start


@contextmanager
def count_allocations(kind: type) -> Iterator[AllocationTally]:
    """
    Count instances of ``kind`` created inside the block.

    ``kind`` must expose an ``allocation_count()`` classmethod, as
    :class:`~mutarith.backends.bigint.BigInt` does.

    Usage:
        >>> with count_allocations(BigInt) as tally:
        ...     operate(Operation.ADD, acc, 1)
        >>> tally.count
        0
    """
    tally = AllocationTally(kind, kind.allocation_count())
    try:
        yield tally
    finally:
        tally.end = kind.allocation_count()


def format_ns(ns: float) -> str:
    """Format nanoseconds into a human-readable string."""
    if ns < 1_000:
        return f"{ns:.0f} ns"
    elif ns < 1_000_000:
        return f"{ns / 1_000:.1f} µs"
    elif ns < 1_000_000_000:
        return f"{ns / 1_000_000:.2f} ms"
    else:
        return f"{ns / 1_000_000_000:.3f} s"
