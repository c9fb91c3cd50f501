"""
Promotion rules for Python's immutable numbers.

None of these types is declared mutable, so every dispatch on them falls
back to plain evaluation. The rules still matter: they keep the registry
total over the numeric tower, and they stop a mutable accumulator from
being overwritten by a result of a wider type.
"""

from decimal import Decimal
from fractions import Fraction
from typing import Any, Optional

from ..operations import Operation
from ..promotion import promotion_rule

ARITHMETIC = (
    Operation.ADD,
    Operation.SUB,
    Operation.MUL,
    Operation.ADD_MUL,
    Operation.SUB_MUL,
)

# bool < int < Fraction < float < complex
_TOWER_RANK = {bool: 0, int: 1, Fraction: 2, float: 3, complex: 4}


@promotion_rule(Operation.ZERO, Operation.ONE)
def _identity_type(arg_type: Any) -> Any:
    return arg_type


@promotion_rule(*ARITHMETIC)
def _numeric_tower(*arg_types: Any) -> Optional[type]:
    if not all(t in _TOWER_RANK for t in arg_types):
        return None
    widest = max(arg_types, key=_TOWER_RANK.__getitem__)
    # Arithmetic on bools yields ints.
    return int if widest is bool else widest


@promotion_rule(*ARITHMETIC)
def _decimal(*arg_types: Any) -> Optional[type]:
    if Decimal in arg_types and all(t in (Decimal, int, bool) for t in arg_types):
        return Decimal
    return None
