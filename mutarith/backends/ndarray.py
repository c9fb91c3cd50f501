"""
numpy arrays as mutable operands.

An ``ndarray``'s class says nothing about its dtype or shape, yet both
decide whether it can hold a result: ``int64 + float64`` cannot be written
into an ``int64`` array, and ``(3,) + (2, 3)`` cannot be written into a
``(3,)`` array. Arrays are therefore described to the registry by an
:class:`ArrayType` descriptor carrying both.

Arithmetic is elementwise, with numpy's broadcasting and type promotion.
Primitives use ufuncs with ``out=``; numpy handles overlap between ``out``
and the inputs, so the output may alias any argument.

Only writeable, non-scalar, plain ``ndarray`` instances get an
:class:`ArrayType` key; subclasses, read-only views and 0-d arrays are keyed
by their class and always fall back.

Only array-with-array combinations are resolved. Mixing an array with a
Python scalar resolves to nothing and falls back to plain evaluation, since
numpy's scalar promotion depends on the scalar's value.
"""

from dataclasses import dataclass
from typing import Any, Optional, Tuple

import numpy as np

from ..dispatch import implements, implements_buffered
from ..mutability import declare_mutable
from ..operations import Operation, one, zero
from ..promotion import promotion_rule, type_of
from .builtin import ARITHMETIC


@declare_mutable
@dataclass(frozen=True)
class ArrayType:
    """Type key of an ndarray: its dtype and shape."""
    dtype: np.dtype
    shape: Tuple[int, ...]

    @classmethod
    def of(cls, array: np.ndarray) -> 'ArrayType':
        return cls(array.dtype, tuple(array.shape))

    def empty(self) -> np.ndarray:
        return np.empty(self.shape, dtype=self.dtype)

    def __repr__(self):
        dims = ', '.join(str(n) for n in self.shape)
        return f'ArrayType({self.dtype}, ({dims}))'


@type_of.register(np.ndarray)
def _(value: np.ndarray) -> Any:
    # Subclasses (np.matrix, masked arrays) redefine the operators, read-only
    # arrays cannot be written, and 0-d arithmetic returns numpy scalars.
    # All of them keep their plain class, which is not declared mutable.
    if type(value) is not np.ndarray or not value.flags.writeable or value.ndim == 0:
        return type(value)
    return ArrayType.of(value)


@zero.register(np.ndarray)
def _(x: np.ndarray) -> np.ndarray:
    return np.zeros_like(x)


@one.register(np.ndarray)
def _(x: np.ndarray) -> np.ndarray:
    return np.ones_like(x)


@promotion_rule(*ARITHMETIC)
def _elementwise(*arg_types: Any) -> Optional[ArrayType]:
    if not all(isinstance(t, ArrayType) for t in arg_types):
        return None
    try:
        shape = np.broadcast_shapes(*(t.shape for t in arg_types))
    except ValueError:
        return None
    if shape == ():
        return None
    dtype = np.result_type(*(t.dtype for t in arg_types))
    return ArrayType(dtype, tuple(shape))


@implements(Operation.ZERO, ArrayType)
def _zero(output: np.ndarray, x: np.ndarray):
    output.fill(0)


@implements(Operation.ONE, ArrayType)
def _one(output: np.ndarray, x: np.ndarray):
    output.fill(1)


@implements(Operation.ADD, ArrayType)
def _add(output: np.ndarray, a: np.ndarray, b: np.ndarray):
    np.add(a, b, out=output)


@implements(Operation.SUB, ArrayType)
def _sub(output: np.ndarray, a: np.ndarray, b: np.ndarray):
    np.subtract(a, b, out=output)


@implements(Operation.MUL, ArrayType)
def _mul(output: np.ndarray, a: np.ndarray, b: np.ndarray):
    np.multiply(a, b, out=output)


def _product_buffer(output: np.ndarray, a: np.ndarray, b: np.ndarray, c: np.ndarray) -> np.ndarray:
    shape = np.broadcast_shapes(b.shape, c.shape)
    return np.empty(shape, dtype=np.result_type(b.dtype, c.dtype))


@implements_buffered(Operation.ADD_MUL, ArrayType, buffer_factory=_product_buffer)
def _add_mul(buffer: np.ndarray, output: np.ndarray, a: np.ndarray, b: np.ndarray, c: np.ndarray):
    np.multiply(b, c, out=buffer)
    np.add(a, buffer, out=output)


@implements_buffered(Operation.SUB_MUL, ArrayType, buffer_factory=_product_buffer)
def _sub_mul(buffer: np.ndarray, output: np.ndarray, a: np.ndarray, b: np.ndarray, c: np.ndarray):
    np.multiply(b, c, out=buffer)
    np.subtract(a, buffer, out=output)
