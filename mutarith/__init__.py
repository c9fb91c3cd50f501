"""
mutarith: Mutable Arithmetic Dispatch for Python
================================================

Lets numeric code ask for ``op(*args)`` while allowing the first argument
(or an explicit output, or a scratch buffer) to be overwritten when that is
safe for the operand type, and falling back to plain evaluation otherwise.
Code accumulating large sums over mutable representations (big integers,
arrays) then avoids one allocation per elementary operation, while behaving
exactly as before for immutable numbers.

Core Components:
    - operations: closed set of operation tags, callable for plain evaluation
    - promotion: predicts result types without evaluating anything
    - mutability: decides whether an operand's storage may hold a result
    - dispatch: the operate / mutable_operate family of entry points
    - backends: BigInt reference backend, numpy arrays, builtin numbers

Usage:
    >>> import mutarith as ma
    >>> ma.operate(ma.Operation.ADD, 3, 4)
    7
    >>> acc = ma.BigInt(0)
    >>> for term in (1, 2, 3):
    ...     ma.operate(ma.Operation.ADD, acc, term)
    >>> acc
    BigInt(6)
"""

__version__ = "0.3.0"

from mutarith.errors import (
    MutArithError,
    MutationNotImplementedError,
    MutationNotSupportedError,
    RegistrationError,
)
from mutarith.operations import Operation, add_mul, as_operation, one, sub_mul, zero
from mutarith.promotion import (
    PromotionRegistry,
    Unresolved,
    get_registry,
    kind_of,
    promote_operation,
    promotion_rule,
    register_promotion,
    type_of,
)
from mutarith.mutability import (
    IS_MUTABLE,
    NOT_MUTABLE,
    MutabilityVerdict,
    declare_mutable,
    is_mutable_type,
    mutability,
    mutability_of,
)
from mutarith.dispatch import (
    ImplementationTable,
    MutableDispatcher,
    buffer_for,
    buffered_operate,
    buffered_operate_to,
    copy_if_mutable,
    get_dispatcher,
    get_implementations,
    implements,
    implements_buffered,
    mutable_buffered_operate,
    mutable_buffered_operate_to,
    mutable_operate,
    mutable_operate_to,
    operate,
    operate_to,
)

# Backends register into the default registry and implementation table.
from mutarith.backends import ArrayType, BigInt
