"""
Integration tests: generic arithmetic code over mutable and immutable types.

The same helper functions run unchanged on ints, floats, fractions,
BigInt and numpy arrays, and must produce exactly what plain evaluation
produces while leaving their inputs untouched.

Validates:
  - x - x, 0 * x and x - 2x + x are zero
  - cubes built by repeated in-place multiplication
  - dot products accumulated with a reused buffer
  - round-trip accumulation from zero
"""

import copy
from fractions import Fraction

import numpy as np
import pytest
from numpy.testing import assert_array_equal
from mutarith import (
    BigInt,
    MutableDispatcher,
    Operation,
    buffer_for,
    buffered_operate,
    copy_if_mutable,
    operate,
    zero,
)
from mutarith.utils.helpers import count_allocations


def _values():
    return [5, 2.5, Fraction(3, 2), BigInt(5), BigInt(2 ** 80), np.array([1, 2, 3])]


def _ids():
    return ['int', 'float', 'fraction', 'bigint', 'bigint-large', 'ndarray']


def _is_zero(x) -> bool:
    return bool(np.all(x == 0))


def _assert_equal(actual, expected):
    assert_array_equal(np.asarray(actual, dtype=object), np.asarray(expected, dtype=object))


def cube(x):
    acc = copy_if_mutable(x)
    acc = operate(Operation.MUL, acc, x)
    return operate(Operation.MUL, acc, x)


def dot(xs, ys):
    acc = 0
    buf = None
    for x, y in zip(xs, ys):
        if buf is None:
            buf = buffer_for(Operation.ADD_MUL, acc, x, y)
        acc = buffered_operate(buf, Operation.ADD_MUL, acc, x, y)
    return acc


@pytest.mark.parametrize('x', _values(), ids=_ids())
class TestScalarSuite:
    def test_x_minus_x(self, x):
        before = copy.deepcopy(x)
        assert _is_zero(operate(Operation.SUB, copy_if_mutable(x), x))
        _assert_equal(x, before)

    def test_zero_times_x(self, x):
        before = copy.deepcopy(x)
        assert _is_zero(operate(Operation.MUL, 0, x))
        _assert_equal(x, before)

    def test_x_minus_2x_plus_x(self, x):
        before = copy.deepcopy(x)
        acc = copy_if_mutable(x)
        acc = operate(Operation.SUB_MUL, acc, 2, x)
        acc = operate(Operation.ADD, acc, x)
        assert _is_zero(acc)
        _assert_equal(x, before)

    def test_cube(self, x):
        before = copy.deepcopy(x)
        _assert_equal(cube(x), x * x * x)
        _assert_equal(x, before)

    def test_cube_of_shifted(self, x):
        shifted = operate(Operation.ADD, copy_if_mutable(x), 1)
        _assert_equal(cube(shifted), (x + 1) * (x + 1) * (x + 1))

    def test_dot_with_mixed_terms(self, x):
        ints = [1, 2]
        terms = [10, 20 + x]
        _assert_equal(dot(ints, terms), 10 + 40 + 2 * x)

    def test_accumulate_from_zero(self, x):
        acc = zero(x)
        for term in (1, 2, 3):
            acc = operate(Operation.ADD, acc, term)
        _assert_equal(acc, zero(x) + 6)


class TestAllocationBehaviour:
    def test_bigint_dot_reuses_buffer(self):
        xs = [BigInt(i) for i in range(1, 6)]
        ys = [BigInt(2 * i) for i in range(1, 6)]
        acc = BigInt(0)
        buf = buffer_for(Operation.ADD_MUL, acc, xs[0], ys[0])
        with count_allocations(BigInt) as tally:
            for x, y in zip(xs, ys):
                acc = buffered_operate(buf, Operation.ADD_MUL, acc, x, y)
        assert acc == sum(2 * i * i for i in range(1, 6))
        assert tally.count == 0

    def test_functional_loop_allocates_per_step(self):
        acc = BigInt(0)
        with count_allocations(BigInt) as tally:
            for term in (1, 2, 3):
                acc = acc + term
        assert tally.count == 3

    def test_dispatcher_stats(self):
        dispatcher = MutableDispatcher()
        acc = BigInt(0)
        for term in (1, 2, 3):
            acc = dispatcher.operate(Operation.ADD, acc, term)
        dispatcher.operate(Operation.ADD, 1, 2)
        stats = dispatcher.get_stats()
        assert stats['mutations'] == 3
        assert stats['fallbacks'] == 1
