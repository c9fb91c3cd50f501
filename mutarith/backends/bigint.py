"""
BigInt: reference mutable backend
=================================

An arbitrary-precision integer whose handle can be overwritten in place.

Python's ``int`` is immutable, so every ``a + b`` produces a new object.
``BigInt`` is a handle around an integer magnitude: the mutating primitives
registered here rewrite the handle's contents instead of producing a new
handle, which is the storage a caller keeps across an accumulation loop:

    >>> acc = BigInt(0)
    >>> for term in (1, 2, 3):
    ...     operate(Operation.ADD, acc, term)
    >>> acc
    BigInt(6)

Every primitive computes its right-hand side completely before writing the
output, so the output may alias any argument. ``ADD_MUL`` and ``SUB_MUL``
need the product before the sum and are therefore buffered: the product is
formed in the buffer, then combined with ``a``, which may be the output.

Handles count their allocations so tests and benchmarks can verify that an
in-place loop allocates nothing.
"""

import functools
import operator
from typing import Any, Optional, Union

from ..dispatch import implements, implements_buffered
from ..mutability import declare_mutable
from ..operations import Operation, one, zero
from ..promotion import promotion_rule
from .builtin import ARITHMETIC

IntLike = Union['BigInt', int]


@declare_mutable
@functools.total_ordering
class BigInt:
    """Mutable arbitrary-precision integer."""

    __slots__ = ('_value',)
    __hash__ = None

    _allocations = 0

    def __init__(self, value: Any = 0):
        if isinstance(value, BigInt):
            value = value._value
        # operator.index rejects floats, Fractions and Decimals instead of truncating.
        self._value = operator.index(value)
        BigInt._allocations += 1

    @classmethod
    def allocation_count(cls) -> int:
        """Number of handles created since import."""
        return cls._allocations

    # -- in-place primitives ----------------------------------------------

    def set(self, value: IntLike) -> 'BigInt':
        """Overwrite this handle with ``value``."""
        self._value = _as_int(value)
        return self

    def add_from(self, a: IntLike, b: IntLike) -> 'BigInt':
        """``self := a + b``"""
        self._value = _as_int(a) + _as_int(b)
        return self

    def sub_from(self, a: IntLike, b: IntLike) -> 'BigInt':
        """``self := a - b``"""
        self._value = _as_int(a) - _as_int(b)
        return self

    def mul_from(self, a: IntLike, b: IntLike) -> 'BigInt':
        """``self := a * b``"""
        self._value = _as_int(a) * _as_int(b)
        return self

    # -- functional arithmetic ----------------------------------------------

    def __add__(self, other):
        if not _is_int_like(other):
            return NotImplemented
        return BigInt(self._value + _as_int(other))

    def __radd__(self, other):
        if not _is_int_like(other):
            return NotImplemented
        return BigInt(_as_int(other) + self._value)

    def __sub__(self, other):
        if not _is_int_like(other):
            return NotImplemented
        return BigInt(self._value - _as_int(other))

    def __rsub__(self, other):
        if not _is_int_like(other):
            return NotImplemented
        return BigInt(_as_int(other) - self._value)

    def __mul__(self, other):
        if not _is_int_like(other):
            return NotImplemented
        return BigInt(self._value * _as_int(other))

    def __rmul__(self, other):
        if not _is_int_like(other):
            return NotImplemented
        return BigInt(_as_int(other) * self._value)

    def __pow__(self, exponent: int):
        if not isinstance(exponent, int) or exponent < 0:
            return NotImplemented
        return BigInt(self._value ** exponent)

    def __neg__(self):
        return BigInt(-self._value)

    def __pos__(self):
        return BigInt(self._value)

    def __abs__(self):
        return BigInt(abs(self._value))

    # -- comparisons and conversions ----------------------------------------

    def __eq__(self, other):
        if not _is_int_like(other):
            return NotImplemented
        return self._value == _as_int(other)

    def __lt__(self, other):
        if not _is_int_like(other):
            return NotImplemented
        return self._value < _as_int(other)

    def __int__(self) -> int:
        return self._value

    def __index__(self) -> int:
        return self._value

    def __float__(self) -> float:
        return float(self._value)

    def __bool__(self) -> bool:
        return self._value != 0

    def __copy__(self) -> 'BigInt':
        return BigInt(self._value)

    def __deepcopy__(self, memo) -> 'BigInt':
        return BigInt(self._value)

    def __repr__(self):
        return f'BigInt({self._value})'

    def __str__(self):
        return str(self._value)


def _is_int_like(value: Any) -> bool:
    return isinstance(value, (BigInt, int))


def _as_int(value: IntLike) -> int:
    if isinstance(value, BigInt):
        return value._value
    return int(value)


# ---------------------------------------------------------------------------
# Functional identities
# ---------------------------------------------------------------------------

@zero.register(BigInt)
def _(x: BigInt) -> BigInt:
    return BigInt(0)


@one.register(BigInt)
def _(x: BigInt) -> BigInt:
    return BigInt(1)


# ---------------------------------------------------------------------------
# Promotion
# ---------------------------------------------------------------------------

@promotion_rule(*ARITHMETIC)
def _bigint_arithmetic(*arg_types: Any) -> Optional[type]:
    if BigInt in arg_types and all(t in (BigInt, int, bool) for t in arg_types):
        return BigInt
    return None


# ---------------------------------------------------------------------------
# Mutating primitives
# ---------------------------------------------------------------------------

@implements(Operation.ZERO, BigInt)
def _zero(output: BigInt, x: BigInt):
    output.set(0)


@implements(Operation.ONE, BigInt)
def _one(output: BigInt, x: BigInt):
    output.set(1)


@implements(Operation.ADD, BigInt)
def _add(output: BigInt, a: IntLike, b: IntLike):
    output.add_from(a, b)


@implements(Operation.SUB, BigInt)
def _sub(output: BigInt, a: IntLike, b: IntLike):
    output.sub_from(a, b)


@implements(Operation.MUL, BigInt)
def _mul(output: BigInt, a: IntLike, b: IntLike):
    output.mul_from(a, b)


def _scratch(output: BigInt, *args) -> BigInt:
    return BigInt()


@implements_buffered(Operation.ADD_MUL, BigInt, buffer_factory=_scratch)
def _add_mul(buffer: BigInt, output: BigInt, a: IntLike, b: IntLike, c: IntLike):
    buffer.mul_from(b, c)
    output.add_from(a, buffer)


@implements_buffered(Operation.SUB_MUL, BigInt, buffer_factory=_scratch)
def _sub_mul(buffer: BigInt, output: BigInt, a: IntLike, b: IntLike, c: IntLike):
    buffer.mul_from(b, c)
    output.sub_from(a, buffer)
