"""
Accumulation Benchmarks
=======================

Compares plain accumulation (one new object per term) against in-place
accumulation through the dispatch layer, for BigInt and numpy arrays.

Usage:
    python benchmarks/bench_accumulate.py
"""

import gc
import statistics
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import numpy as np

from mutarith import BigInt, Operation, buffer_for, buffered_operate, operate
from mutarith.utils.helpers import Timer, count_allocations, format_ns

ITERATIONS = 30
WARMUP = 5
TERMS = 2_000


@dataclass
class AccumulationResult:
    name: str
    functional_ns: List[int] = field(default_factory=list)
    inplace_ns: List[int] = field(default_factory=list)
    functional_allocations: int = 0
    inplace_allocations: int = 0
    correct: bool = True

    @property
    def speedup(self) -> float:
        inplace = statistics.median(self.inplace_ns)
        return statistics.median(self.functional_ns) / inplace if inplace else float('inf')


def time_function(func: Callable, args: tuple, iterations: int, warmup: int) -> List[int]:
    """Time a function call over multiple iterations, returning list of ns times."""
    for _ in range(warmup):
        func(*args)

    times = []
    for _ in range(iterations):
        gc.disable()
        with Timer() as t:
            func(*args)
        gc.enable()
        times.append(t.elapsed_ns)
    return times


# -- BigInt --------------------------------------------------------------------

def bigint_dot_functional(xs, ys):
    acc = BigInt(0)
    for x, y in zip(xs, ys):
        acc = acc + x * y
    return acc


def bigint_dot_inplace(xs, ys):
    acc = BigInt(0)
    buf = buffer_for(Operation.ADD_MUL, acc, xs[0], ys[0])
    for x, y in zip(xs, ys):
        acc = buffered_operate(buf, Operation.ADD_MUL, acc, x, y)
    return acc


# -- ndarray -------------------------------------------------------------------

def array_sum_functional(rows):
    acc = np.zeros_like(rows[0])
    for row in rows:
        acc = acc + row
    return acc


def array_sum_inplace(rows):
    acc = np.zeros_like(rows[0])
    for row in rows:
        acc = operate(Operation.ADD, acc, row)
    return acc


def run_bigint(iterations: int = ITERATIONS, warmup: int = WARMUP) -> AccumulationResult:
    xs = [BigInt(3 ** 40 + i) for i in range(TERMS)]
    ys = [BigInt(7 ** 30 - i) for i in range(TERMS)]
    result = AccumulationResult(name='bigint dot product')

    with count_allocations(BigInt) as tally:
        expected = bigint_dot_functional(xs, ys)
    result.functional_allocations = tally.count
    with count_allocations(BigInt) as tally:
        actual = bigint_dot_inplace(xs, ys)
    result.inplace_allocations = tally.count
    result.correct = expected == actual

    result.functional_ns = time_function(bigint_dot_functional, (xs, ys), iterations, warmup)
    result.inplace_ns = time_function(bigint_dot_inplace, (xs, ys), iterations, warmup)
    return result


def run_array(iterations: int = ITERATIONS, warmup: int = WARMUP) -> AccumulationResult:
    rng = np.random.default_rng(0)
    rows = [rng.standard_normal(1_000) for _ in range(TERMS // 10)]
    result = AccumulationResult(name='ndarray sum')
    result.correct = bool(np.allclose(array_sum_functional(rows), array_sum_inplace(rows)))
    result.functional_ns = time_function(array_sum_functional, (rows,), iterations, warmup)
    result.inplace_ns = time_function(array_sum_inplace, (rows,), iterations, warmup)
    return result


def main() -> Dict[str, Any]:
    results = [run_bigint(), run_array()]
    print(f"\n{'=' * 60}")
    print("  In-place vs functional accumulation")
    print(f"{'=' * 60}")
    for r in results:
        correct = "OK" if r.correct else "MISMATCH"
        print(
            f"  {r.name:<20} functional={format_ns(statistics.median(r.functional_ns))}, "
            f"in-place={format_ns(statistics.median(r.inplace_ns))}, "
            f"speedup={r.speedup:.2f}x [{correct}]"
        )
        if r.functional_allocations or r.inplace_allocations:
            print(
                f"  {'':<20} allocations: functional={r.functional_allocations}, "
                f"in-place={r.inplace_allocations}"
            )
    return {r.name: r.speedup for r in results}


if __name__ == '__main__':
    main()
