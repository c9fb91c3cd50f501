"""
Mutability Oracle
=================

Decides whether the storage of an operand of type ``T`` may be reused to
hold ``op(*args)``.

Two conditions must both hold:
  1. ``T``'s kind was declared mutable with :func:`declare_mutable`
     (a static, per-kind capability independent of the operation)
  2. The promotion registry predicts exactly ``T`` for ``op`` over the
     argument types

The second check runs on every query. A kind declared mutable is therefore
never mutated by an operation that would change the result type, e.g. an
integer accumulator receiving a float term.
"""

import logging
from enum import Enum, auto
from typing import Any, Optional, Set

from .promotion import PromotionRegistry, get_registry, kind_of, type_of

logger = logging.getLogger(__name__)


class MutabilityVerdict(Enum):
    IS_MUTABLE = auto()
    NOT_MUTABLE = auto()


IS_MUTABLE = MutabilityVerdict.IS_MUTABLE
NOT_MUTABLE = MutabilityVerdict.NOT_MUTABLE

_MUTABLE_KINDS: Set[type] = set()


def declare_mutable(kind: type) -> type:
    """
    Declare that values of ``kind`` can be modified in place.

    Usable as a class decorator:
        @declare_mutable
        class BigInt:
            ...
    """
    if not isinstance(kind, type):
        raise TypeError(f"declare_mutable expects a class, got {kind!r}")
    _MUTABLE_KINDS.add(kind)
    logger.debug(f"Declared {kind.__qualname__} mutable")
    return kind


def is_mutable_type(type_key: Any) -> bool:
    """Whether the kind of ``type_key`` was declared mutable."""
    return kind_of(type_key) in _MUTABLE_KINDS


def mutability(
    type_key: Any,
    op,
    *arg_types: Any,
    registry: Optional[PromotionRegistry] = None,
) -> MutabilityVerdict:
    """
    Return ``IS_MUTABLE`` if an object described by ``type_key`` can be
    modified to be equal to ``op(*args)`` for arguments of ``arg_types``.
    """
    if not is_mutable_type(type_key):
        return NOT_MUTABLE
    registry = registry or get_registry()
    if registry.resolve(op, *arg_types) == type_key:
        return IS_MUTABLE
    return NOT_MUTABLE


def mutability_of(
    x: Any,
    op,
    *args: Any,
    registry: Optional[PromotionRegistry] = None,
) -> MutabilityVerdict:
    """Value form of :func:`mutability`."""
    return mutability(
        type_of(x), op, *(type_of(a) for a in args), registry=registry,
    )
