"""
Operations
==========

Closed set of operation tags understood by the dispatch layer.

An operation is a stateless tag with a label and an arity. Calling a tag
evaluates it functionally, which is exactly what the dispatch layer does
when an operand cannot be mutated:

    >>> Operation.ADD(3, 4)
    7
    >>> Operation.ADD_MUL(2, 3, 4)
    14

Keeping the set closed (instead of accepting arbitrary callables) keeps
the promotion registry and the mutability oracle total and auditable.
"""

import functools
import operator
from enum import Enum
from typing import Any, Callable, Dict, Union


@functools.singledispatch
def zero(x: Any) -> Any:
    """Additive identity of the same type as ``x``."""
    return type(x)(0)


@functools.singledispatch
def one(x: Any) -> Any:
    """Multiplicative identity of the same type as ``x``."""
    return type(x)(1)


def add_mul(a: Any, b: Any, c: Any) -> Any:
    """Return ``a + b * c``."""
    return a + b * c


def sub_mul(a: Any, b: Any, c: Any) -> Any:
    """Return ``a - b * c``."""
    return a - b * c


class Operation(Enum):
    ZERO = ('zero', 1)
    ONE = ('one', 1)
    ADD = ('add', 2)
    SUB = ('sub', 2)
    MUL = ('mul', 2)
    ADD_MUL = ('add_mul', 3)
    SUB_MUL = ('sub_mul', 3)

    def __init__(self, label: str, arity: int):
        self.label = label
        self.arity = arity

    def __call__(self, *args):
        self.check_arity(args)
        return _FUNCTIONAL[self](*args)

    def check_arity(self, args: tuple):
        if len(args) != self.arity:
            raise TypeError(
                f"{self.label} expects {self.arity} argument(s), got {len(args)}"
            )

    def __repr__(self):
        return f"Operation.{self.name}"


_FUNCTIONAL: Dict[Operation, Callable[..., Any]] = {
    Operation.ZERO: zero,
    Operation.ONE: one,
    Operation.ADD: operator.add,
    Operation.SUB: operator.sub,
    Operation.MUL: operator.mul,
    Operation.ADD_MUL: add_mul,
    Operation.SUB_MUL: sub_mul,
}

_BY_LABEL = {op.label: op for op in Operation}

_BY_CALLABLE = {
    operator.add: Operation.ADD,
    operator.sub: Operation.SUB,
    operator.mul: Operation.MUL,
    add_mul: Operation.ADD_MUL,
    sub_mul: Operation.SUB_MUL,
    zero: Operation.ZERO,
    one: Operation.ONE,
}


def as_operation(op: Union[Operation, str, Callable]) -> Operation:
    """
    Normalise ``op`` into an :class:`Operation`.

    Accepts a tag, a label such as ``"add_mul"``, or one of the plain
    functions the tags stand for (``operator.add``, ``operator.sub``,
    ``operator.mul``, :func:`add_mul`, :func:`sub_mul`, :func:`zero`,
    :func:`one`).
    """
    if isinstance(op, Operation):
        return op
    if isinstance(op, str):
        try:
            return _BY_LABEL[op]
        except KeyError:
            raise TypeError(f"Unknown operation label {op!r}") from None
    try:
        return _BY_CALLABLE[op]
    except (KeyError, TypeError):
        raise TypeError(f"{op!r} is not a supported operation") from None
