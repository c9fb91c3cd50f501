"""
Type Resolution Registry
========================

Predicts the type of ``op(*args)`` from the types of ``args`` alone,
without evaluating anything.

A *type key* is usually a Python class. Backends whose Python class is too
coarse to predict results (a numpy array's class says nothing about its
dtype or shape) describe their values with a hashable descriptor returned
by :func:`type_of`. The *kind* of a type key is the key itself when it is
a class, otherwise the class of the descriptor; capability declarations
and mutating primitives are keyed by kind.

Resolution order for ``resolve(op, *arg_types)``:
  1. Exact table entry for ``(op, arg_types)``
  2. Rules registered for ``op``, in registration order
  3. :class:`Unresolved`

Resolution is total: a combination nobody can predict resolves to
:class:`Unresolved`, which equals no operand type, so the oracle refuses
to mutate and the dispatcher falls back to functional evaluation.
"""

import functools
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Tuple

from .errors import RegistrationError
from .operations import Operation, as_operation

logger = logging.getLogger(__name__)

PromotionRule = Callable[..., Optional[Any]]


class Unresolved:
    """Result type of a combination the registry cannot predict."""

    def __init__(self):
        raise TypeError("Unresolved is a sentinel and cannot be instantiated")


@functools.singledispatch
def type_of(value: Any) -> Any:
    """Type key used to describe ``value`` to the registry and the oracle."""
    return type(value)


def kind_of(type_key: Any) -> type:
    """Class that capability declarations and primitives are keyed by."""
    if isinstance(type_key, type):
        return type_key
    return type(type_key)


class PromotionRegistry:
    """
    Maps ``(operation, argument types)`` to the result type.

    Usage:
        >>> registry = PromotionRegistry()
        >>> registry.register(Operation.ADD, int, int, result=int)
        >>> registry.resolve(Operation.ADD, int, int)
        <class 'int'>
        >>> registry.resolve(Operation.ADD, int, str) is Unresolved
        True
    """

    def __init__(self):
        self._table: Dict[Tuple[Operation, Tuple[Any, ...]], Any] = {}
        self._rules: Dict[Operation, List[PromotionRule]] = defaultdict(list)

    def register(self, op, *arg_types: Any, result: Any):
        """Register the exact result type of ``op`` over ``arg_types``."""
        op = as_operation(op)
        if len(arg_types) != op.arity:
            raise RegistrationError(
                f"{op.label} takes {op.arity} argument type(s), got {len(arg_types)}"
            )
        key = (op, tuple(arg_types))
        existing = self._table.get(key)
        if existing is not None and existing != result:
            raise RegistrationError(
                f"{op.label}{_format_types(arg_types)} already resolves to "
                f"{_type_name(existing)}, cannot also resolve to {_type_name(result)}"
            )
        self._table[key] = result
        logger.debug(f"Registered {op.label}{_format_types(arg_types)} -> {_type_name(result)}")

    def register_rule(self, rule: PromotionRule, *ops):
        """
        Register a rule consulted for each operation in ``ops``.

        The rule receives the argument type keys and returns the result
        type, or ``None`` when it does not apply.
        """
        if not ops:
            raise RegistrationError("A promotion rule needs at least one operation")
        for op in ops:
            self._rules[as_operation(op)].append(rule)
        return rule

    def resolve(self, op, *arg_types: Any) -> Any:
        """Predicted type of ``op(*args)`` for arguments of ``arg_types``."""
        op = as_operation(op)
        if len(arg_types) != op.arity:
            return Unresolved
        try:
            return self._table[(op, arg_types)]
        except KeyError:
            pass
        except TypeError:
            # Unhashable descriptor: only rules can answer.
            pass
        for rule in self._rules.get(op, ()):
            result = rule(*arg_types)
            if result is not None:
                return result
        return Unresolved

    def rules_for(self, op) -> List[PromotionRule]:
        return list(self._rules.get(as_operation(op), ()))


def _type_name(type_key: Any) -> str:
    return getattr(type_key, '__name__', repr(type_key))


def _format_types(arg_types) -> str:
    return '(' + ', '.join(_type_name(t) for t in arg_types) + ')'


# ---------------------------------------------------------------------------
# Module-level convenience API
# ---------------------------------------------------------------------------

_default_registry = PromotionRegistry()


def get_registry() -> PromotionRegistry:
    """The registry backends register into and dispatchers resolve against."""
    return _default_registry


def promote_operation(op, *arg_types: Any) -> Any:
    """
    Return the type returned by ``operate(op, *args)`` when the arguments
    have type keys ``arg_types``.
    """
    return _default_registry.resolve(op, *arg_types)


def register_promotion(op, *arg_types: Any, result: Any):
    """Register an exact promotion entry in the default registry."""
    _default_registry.register(op, *arg_types, result=result)


def promotion_rule(*ops):
    """
    Decorator registering a promotion rule in the default registry.

    Usage:
        @promotion_rule(Operation.ADD, Operation.MUL)
        def _bigint(*arg_types):
            if BigInt in arg_types:
                return BigInt
            return None
    """
    def decorator(rule: PromotionRule) -> PromotionRule:
        return _default_registry.register_rule(rule, *ops)
    return decorator
