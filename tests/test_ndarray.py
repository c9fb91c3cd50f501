"""
Tests for the numpy array backend.

Validates:
  - In-place elementwise arithmetic when dtype and shape allow it
  - Fallback when the result would widen the dtype or grow the shape
  - Fused add-mul buffering and aliasing
"""

import numpy as np
import pytest
from numpy.testing import assert_array_equal
from mutarith import (
    ArrayType,
    Operation,
    buffer_for,
    buffered_operate,
    mutable_operate,
    mutable_operate_to,
    operate,
    operate_to,
    zero,
    one,
)
from mutarith.errors import MutationNotSupportedError
from mutarith.mutability import NOT_MUTABLE, mutability_of
from mutarith.promotion import Unresolved, promote_operation, type_of


class TestArrayType:
    def test_of(self):
        t = ArrayType.of(np.zeros((2, 3), dtype=np.float32))
        assert t.dtype == np.float32
        assert t.shape == (2, 3)

    def test_empty(self):
        arr = ArrayType(np.dtype('int64'), (4,)).empty()
        assert arr.shape == (4,) and arr.dtype == np.int64


class TestInPlace:
    def test_add_in_place(self):
        a = np.array([1.0, 2.0, 3.0])
        result = operate(Operation.ADD, a, np.array([1.0, 1.0, 1.0]))
        assert result is a
        assert_array_equal(a, [2.0, 3.0, 4.0])

    def test_broadcast_into_larger_output(self):
        grid = np.zeros((2, 3))
        row = np.array([1.0, 2.0, 3.0])
        assert operate(Operation.ADD, grid, row) is grid
        assert_array_equal(grid, [[1, 2, 3], [1, 2, 3]])

    def test_mul_alias(self):
        a = np.array([2, 3, 4])
        mutable_operate_to(a, Operation.MUL, a, a)
        assert_array_equal(a, [4, 9, 16])

    def test_identities(self):
        a = np.array([5.0, -2.0])
        mutable_operate(Operation.ZERO, a)
        assert_array_equal(a, [0.0, 0.0])
        mutable_operate(Operation.ONE, a)
        assert_array_equal(a, [1.0, 1.0])

    def test_functional_identities(self):
        a = np.array([5, 6])
        assert_array_equal(zero(a), [0, 0])
        assert_array_equal(one(a), [1, 1])


class TestFallback:
    def test_widening_dtype(self):
        a = np.array([1, 2, 3])
        result = operate(Operation.ADD, a, np.array([0.5, 0.5, 0.5]))
        assert result is not a
        assert_array_equal(a, [1, 2, 3])
        assert_array_equal(result, [1.5, 2.5, 3.5])

    def test_growing_shape(self):
        row = np.array([1.0, 2.0, 3.0])
        result = operate(Operation.ADD, row, np.zeros((2, 3)))
        assert result.shape == (2, 3)
        assert_array_equal(row, [1.0, 2.0, 3.0])

    def test_scalar_operand(self):
        a = np.array([1.0, 2.0])
        result = operate(Operation.MUL, a, 2.0)
        assert result is not a
        assert_array_equal(result, [2.0, 4.0])

    def test_refused_when_required(self):
        with pytest.raises(MutationNotSupportedError):
            mutable_operate(Operation.ADD, np.array([1, 2]), np.array([0.5, 0.5]))


@pytest.mark.filterwarnings("ignore::PendingDeprecationWarning")
class TestMatrixSubclass:
    def setup_method(self):
        self.a = np.matrix([[1, 2], [3, 4]])
        self.b = np.matrix([[5, 6], [7, 8]])

    def test_keyed_by_class(self):
        assert type_of(self.a) is np.matrix
        assert mutability_of(self.a, Operation.MUL, self.a, self.b) is NOT_MUTABLE

    def test_mul_is_matrix_product(self):
        before = self.a.copy()
        result = operate(Operation.MUL, self.a, self.b)
        assert_array_equal(result, [[19, 22], [43, 50]])
        assert_array_equal(self.a, before)

    def test_add_mul_is_matrix_product(self):
        c = np.matrix([[1, 0], [0, 1]])
        result = operate(Operation.ADD_MUL, c, self.a, self.b)
        assert_array_equal(result, c + self.a * self.b)
        assert_array_equal(c, [[1, 0], [0, 1]])

    def test_refused_when_required(self):
        with pytest.raises(MutationNotSupportedError):
            mutable_operate(Operation.MUL, self.a, self.b)


class TestMaskedArray:
    def test_falls_back(self):
        a = np.ma.array([1.0, 2.0, 3.0], mask=[False, True, False])
        result = operate(Operation.ADD, a, np.ma.array([1.0, 1.0, 1.0]))
        assert result is not a
        assert isinstance(result, np.ma.MaskedArray)
        assert result.mask.tolist() == [False, True, False]


class TestReadOnly:
    def test_broadcast_view(self):
        view = np.broadcast_to(np.arange(3.0), (3,))
        result = operate(Operation.ADD, view, np.ones(3))
        assert_array_equal(result, [1.0, 2.0, 3.0])
        assert_array_equal(view, [0.0, 1.0, 2.0])

    def test_unwriteable_flag(self):
        a = np.array([1.0, 2.0])
        a.flags.writeable = False
        assert type_of(a) is np.ndarray
        assert mutability_of(a, Operation.ADD, a, a) is NOT_MUTABLE
        result = operate(Operation.ADD_MUL, a, a, a)
        assert result is not a
        assert_array_equal(result, [2.0, 6.0])

    def test_read_only_argument(self):
        out = np.zeros(2)
        frozen = np.array([1.0, 2.0])
        frozen.flags.writeable = False
        result = operate_to(out, Operation.ADD, frozen, frozen)
        assert_array_equal(result, [2.0, 4.0])


class TestZeroDimensional:
    def test_matches_plain_evaluation(self):
        a, b = np.array(2.0), np.array(3.0)
        result = operate(Operation.ADD, a, b)
        assert type(result) is type(a + b)
        assert result == 5.0
        assert a == 2.0

    def test_not_mutable(self):
        a = np.array(2.0)
        assert mutability_of(a, Operation.MUL, a, a) is NOT_MUTABLE

    def test_rule_leaves_scalar_shape_unresolved(self):
        t = ArrayType(np.dtype('float64'), ())
        assert promote_operation(Operation.ADD, t, t) is Unresolved


class TestFusedAddMul:
    def test_aliasing(self):
        a = np.array([1.0, 2.0, 3.0])
        expected = a + a * a
        mutable_operate_to(a, Operation.ADD_MUL, a, a, a)
        assert_array_equal(a, expected)

    def test_buffer_for_shape(self):
        acc = np.zeros((2, 3))
        buf = buffer_for(Operation.ADD_MUL, acc, np.ones(3), np.ones((2, 1)))
        assert buf.shape == (2, 3)

    def test_buffered_loop(self):
        xs = [np.array([1.0, 2.0]), np.array([3.0, 4.0]), np.array([5.0, 6.0])]
        acc = np.zeros(2)
        buf = buffer_for(Operation.ADD_MUL, acc, xs[0], xs[0])
        for x in xs:
            acc = buffered_operate(buf, Operation.ADD_MUL, acc, x, x)
        assert_array_equal(acc, sum(x * x for x in xs))

    def test_sub_mul(self):
        a = np.array([10, 10])
        operate(Operation.SUB_MUL, a, np.array([1, 2]), np.array([3, 4]))
        assert_array_equal(a, [7, 2])
