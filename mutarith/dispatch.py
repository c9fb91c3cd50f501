"""
Dispatch Lattice
================

Eight entry points over three independent choices:

  ======================  ===============================  =================================
  target / buffering      accepts a fresh value            requires mutation
  ======================  ===============================  =================================
  args[0], no buffer      operate(op, *args)               mutable_operate(op, *args)
  output, no buffer       operate_to(out, op, *args)       mutable_operate_to(out, op, *args)
  args[0], buffer         buffered_operate(buf, op, ...)   mutable_buffered_operate(buf, op, ...)
  output, buffer          buffered_operate_to(buf, out,    mutable_buffered_operate_to(buf, out,
                          op, *args)                       op, *args)
  ======================  ===============================  =================================

Generic code calls the left column and never branches on whether a type
supports mutation: each entry point asks the oracle and either returns
``op(*args)`` or calls the matching primitive in the right column. The
right column is what backends implement; calling it when the oracle says
``NOT_MUTABLE`` raises :class:`MutationNotSupportedError`.

Multi-step operations (``ADD_MUL`` needs the product before the sum) are
written as buffered primitives. An unbuffered request for such an
operation allocates one buffer through the registered buffer factory and
delegates; callers holding a reusable buffer should use the buffered entry
points directly.

Usage:
    >>> acc = BigInt(0)
    >>> for term in (1, 2, 3):
    ...     acc = operate(Operation.ADD, acc, term)
    >>> acc
    BigInt(6)
"""

import copy
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from .errors import (
    MutationNotImplementedError,
    MutationNotSupportedError,
    RegistrationError,
)
from .mutability import NOT_MUTABLE, MutabilityVerdict, is_mutable_type, mutability
from .operations import Operation, as_operation
from .promotion import PromotionRegistry, get_registry, kind_of, type_of

logger = logging.getLogger(__name__)


@dataclass
class Primitive:
    """A mutating implementation of one operation for one kind."""
    operation: Operation
    kind: type
    func: Callable
    buffered: bool = False
    buffer_factory: Optional[Callable] = None

    def __call__(self, *args):
        return self.func(*args)


class ImplementationTable:
    """
    Mutating primitives keyed by ``(operation, kind)``.

    Unbuffered primitives are called as ``func(output, *args)``; buffered
    ones as ``func(buffer, output, *args)``. A buffer factory is called as
    ``factory(output, *args)`` and returns fresh scratch storage.
    """

    def __init__(self):
        self._unbuffered: Dict[Tuple[Operation, type], Primitive] = {}
        self._buffered: Dict[Tuple[Operation, type], Primitive] = {}

    def register(
        self,
        op,
        kind: type,
        func: Callable,
        buffered: bool = False,
        buffer_factory: Optional[Callable] = None,
    ) -> Primitive:
        op = as_operation(op)
        if not is_mutable_type(kind):
            raise RegistrationError(
                f"Cannot register a mutating {op.label} for {kind.__qualname__}: "
                f"the type was not declared mutable"
            )
        leading = 2 if buffered else 1
        _check_signature(func, op, leading + op.arity)
        if buffer_factory is not None:
            _check_signature(buffer_factory, op, 1 + op.arity)

        table = self._buffered if buffered else self._unbuffered
        key = (op, kind)
        if key in table:
            raise RegistrationError(
                f"A {'buffered ' if buffered else ''}{op.label} primitive is "
                f"already registered for {kind.__qualname__}"
            )
        primitive = Primitive(op, kind, func, buffered, buffer_factory)
        table[key] = primitive
        logger.debug(
            f"Registered {'buffered ' if buffered else ''}{op.label} "
            f"primitive for {kind.__qualname__}"
        )
        return primitive

    def unbuffered(self, op: Operation, kind: type) -> Optional[Primitive]:
        return self._unbuffered.get((op, kind))

    def buffered(self, op: Operation, kind: type) -> Optional[Primitive]:
        return self._buffered.get((op, kind))

    def has_any(self, op: Operation, kind: type) -> bool:
        key = (op, kind)
        return key in self._unbuffered or key in self._buffered


def _check_signature(func: Callable, op: Operation, n_positional: int):
    try:
        inspect.signature(func).bind(*range(n_positional))
    except TypeError:
        raise RegistrationError(
            f"{getattr(func, '__qualname__', func)!r} cannot be called with "
            f"{n_positional} positional arguments as {op.label} requires"
        ) from None
    except ValueError:
        # Builtins without an introspectable signature are accepted as is.
        pass


@dataclass
class DispatchStats:
    mutations: int = 0
    buffered_mutations: int = 0
    fallbacks: int = 0
    buffers_allocated: int = 0
    contract_violations: int = 0

    def as_dict(self) -> Dict[str, int]:
        return dict(self.__dict__)


class MutableDispatcher:
    """
    Routes arithmetic requests to mutating primitives or plain evaluation.

    Usage:
        >>> dispatcher = MutableDispatcher()
        >>> dispatcher.operate(Operation.ADD, 3, 4)       # immutable: fresh value
        7
        >>> x = BigInt(2)
        >>> dispatcher.operate(Operation.ADD_MUL, x, 3, 4) is x
        True
        >>> x
        BigInt(14)
    """

    def __init__(
        self,
        registry: Optional[PromotionRegistry] = None,
        implementations: Optional[ImplementationTable] = None,
        enable_logging: bool = False,
        collect_stats: bool = True,
    ):
        self.registry = registry or get_registry()
        self.implementations = implementations or _default_implementations
        self.collect_stats = collect_stats
        self.stats = DispatchStats()

        if enable_logging:
            logging.basicConfig(level=logging.DEBUG)

    # ------------------------------------------------------------------
    # Oracle
    # ------------------------------------------------------------------

    def mutability(self, output: Any, op, *args: Any) -> MutabilityVerdict:
        """Whether ``output`` can be modified to equal ``op(*args)``."""
        return mutability(
            type_of(output), op, *(type_of(a) for a in args), registry=self.registry,
        )

    # ------------------------------------------------------------------
    # Accepts a fresh value
    # ------------------------------------------------------------------

    def operate_to(self, output: Any, op, *args: Any) -> Any:
        """Return the value of ``op(*args)``, possibly modifying ``output``."""
        op = as_operation(op)
        if self.mutability(output, op, *args) is NOT_MUTABLE:
            return self._fallback(op, args)
        return self._mutate_to(output, op, args)

    def operate(self, op, *args: Any) -> Any:
        """Return the value of ``op(*args)``, possibly modifying ``args[0]``."""
        op = as_operation(op)
        op.check_arity(args)
        return self.operate_to(args[0], op, *args)

    def buffered_operate_to(self, buffer: Any, output: Any, op, *args: Any) -> Any:
        """Return the value of ``op(*args)``, possibly modifying ``buffer`` and ``output``."""
        op = as_operation(op)
        if self.mutability(output, op, *args) is NOT_MUTABLE:
            return self._fallback(op, args)
        return self._buffered_mutate_to(buffer, output, op, args)

    def buffered_operate(self, buffer: Any, op, *args: Any) -> Any:
        """Return the value of ``op(*args)``, possibly modifying ``buffer`` and ``args[0]``."""
        op = as_operation(op)
        op.check_arity(args)
        return self.buffered_operate_to(buffer, args[0], op, *args)

    # ------------------------------------------------------------------
    # Requires mutation
    # ------------------------------------------------------------------

    def mutable_operate_to(self, output: Any, op, *args: Any) -> Any:
        """
        Modify ``output`` to be equal to ``op(*args)`` and return it.

        Can only be called if ``mutability(output, op, *args)`` is
        ``IS_MUTABLE``.
        """
        op = as_operation(op)
        self._require_mutable('mutable_operate_to', output, op, args)
        return self._mutate_to(output, op, args)

    def mutable_operate(self, op, *args: Any) -> Any:
        """Modify ``args[0]`` to be equal to ``op(*args)`` and return it."""
        op = as_operation(op)
        op.check_arity(args)
        return self.mutable_operate_to(args[0], op, *args)

    def mutable_buffered_operate_to(self, buffer: Any, output: Any, op, *args: Any) -> Any:
        """
        Modify ``output`` to be equal to ``op(*args)``, possibly modifying
        ``buffer``, and return it.
        """
        op = as_operation(op)
        self._require_mutable('mutable_buffered_operate_to', output, op, args)
        return self._buffered_mutate_to(buffer, output, op, args)

    def mutable_buffered_operate(self, buffer: Any, op, *args: Any) -> Any:
        """Modify ``args[0]`` to be equal to ``op(*args)``, possibly modifying ``buffer``."""
        op = as_operation(op)
        op.check_arity(args)
        return self.mutable_buffered_operate_to(buffer, args[0], op, *args)

    # ------------------------------------------------------------------
    # Buffers and copies
    # ------------------------------------------------------------------

    def buffer_for(self, op, *args: Any) -> Any:
        """
        Scratch buffer for repeated ``buffered_operate(buffer, op, *args)``
        calls, or ``None`` when such a call would not use one.
        """
        op = as_operation(op)
        op.check_arity(args)
        output = args[0]
        if self.mutability(output, op, *args) is NOT_MUTABLE:
            return None
        primitive = self.implementations.buffered(op, kind_of(type_of(output)))
        if primitive is None or primitive.buffer_factory is None:
            return None
        return primitive.buffer_factory(output, *args)

    def copy_if_mutable(self, x: Any) -> Any:
        """A copy of ``x`` if it may be mutated by this layer, else ``x`` itself."""
        if is_mutable_type(type_of(x)):
            return copy.copy(x)
        return x

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def get_stats(self) -> Dict[str, int]:
        return self.stats.as_dict()

    def reset_stats(self):
        self.stats = DispatchStats()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fallback(self, op: Operation, args: tuple) -> Any:
        if self.collect_stats:
            self.stats.fallbacks += 1
        return op(*args)

    def _require_mutable(self, entry: str, output: Any, op: Operation, args: tuple):
        op.check_arity(args)
        if self.mutability(output, op, *args) is NOT_MUTABLE:
            if self.collect_stats:
                self.stats.contract_violations += 1
            logger.debug(f"{entry} refused: {type(output).__name__} cannot hold {op.label}")
            raise MutationNotSupportedError(
                f"Cannot call `{entry}({output!r}, {op.label}, "
                f"{', '.join(repr(a) for a in args)})` as `{output!r}` cannot be "
                f"modified to equal the result of the operation. Use `operate` or "
                f"`operate_to` instead, which return the value of the result "
                f"(possibly modifying the first argument), to write generic code "
                f"that also works when the type cannot be modified."
            )

    def _mutate_to(self, output: Any, op: Operation, args: tuple) -> Any:
        kind = kind_of(type_of(output))
        primitive = self.implementations.unbuffered(op, kind)
        if primitive is not None:
            primitive(output, *args)
            if self.collect_stats:
                self.stats.mutations += 1
            return output

        primitive = self.implementations.buffered(op, kind)
        if primitive is not None and primitive.buffer_factory is not None:
            buffer = primitive.buffer_factory(output, *args)
            if self.collect_stats:
                self.stats.buffers_allocated += 1
            logger.debug(f"Allocated a {op.label} buffer for {kind.__qualname__}")
            primitive(buffer, output, *args)
            if self.collect_stats:
                self.stats.buffered_mutations += 1
            return output

        raise MutationNotImplementedError(
            f"`mutable_operate_to` for {op.label} on {kind.__qualname__} is not "
            f"implemented yet."
        )

    def _buffered_mutate_to(self, buffer: Any, output: Any, op: Operation, args: tuple) -> Any:
        kind = kind_of(type_of(output))
        primitive = self.implementations.buffered(op, kind)
        if primitive is not None:
            primitive(buffer, output, *args)
            if self.collect_stats:
                self.stats.buffered_mutations += 1
            return output

        primitive = self.implementations.unbuffered(op, kind)
        if primitive is not None:
            primitive(output, *args)
            if self.collect_stats:
                self.stats.mutations += 1
            return output

        raise MutationNotImplementedError(
            f"`mutable_buffered_operate_to` for {op.label} on {kind.__qualname__} "
            f"is not implemented yet."
        )


# ---------------------------------------------------------------------------
# Module-level convenience API
# ---------------------------------------------------------------------------

_default_implementations = ImplementationTable()


def get_implementations() -> ImplementationTable:
    return _default_implementations


def implements(op, kind: type) -> Callable:
    """
    Decorator registering an unbuffered primitive ``func(output, *args)``.

    Usage:
        @implements(Operation.ADD, BigInt)
        def _add(output, a, b):
            ...
    """
    def decorator(func: Callable) -> Callable:
        _default_implementations.register(op, kind, func)
        return func
    return decorator


def implements_buffered(op, kind: type, buffer_factory: Optional[Callable] = None) -> Callable:
    """
    Decorator registering a buffered primitive ``func(buffer, output, *args)``.

    ``buffer_factory(output, *args)`` allocates the scratch storage used when
    the operation is requested without a buffer.
    """
    def decorator(func: Callable) -> Callable:
        _default_implementations.register(
            op, kind, func, buffered=True, buffer_factory=buffer_factory,
        )
        return func
    return decorator


_default_dispatcher = MutableDispatcher()


def get_dispatcher() -> MutableDispatcher:
    return _default_dispatcher


def operate(op, *args: Any) -> Any:
    """Return the value of ``op(*args)``, possibly modifying ``args[0]``."""
    return _default_dispatcher.operate(op, *args)


def operate_to(output: Any, op, *args: Any) -> Any:
    """Return the value of ``op(*args)``, possibly modifying ``output``."""
    return _default_dispatcher.operate_to(output, op, *args)


def buffered_operate(buffer: Any, op, *args: Any) -> Any:
    """Return the value of ``op(*args)``, possibly modifying ``buffer`` and ``args[0]``."""
    return _default_dispatcher.buffered_operate(buffer, op, *args)


def buffered_operate_to(buffer: Any, output: Any, op, *args: Any) -> Any:
    """Return the value of ``op(*args)``, possibly modifying ``buffer`` and ``output``."""
    return _default_dispatcher.buffered_operate_to(buffer, output, op, *args)


def mutable_operate(op, *args: Any) -> Any:
    """Modify ``args[0]`` to be equal to ``op(*args)``."""
    return _default_dispatcher.mutable_operate(op, *args)


def mutable_operate_to(output: Any, op, *args: Any) -> Any:
    """Modify ``output`` to be equal to ``op(*args)``."""
    return _default_dispatcher.mutable_operate_to(output, op, *args)


def mutable_buffered_operate(buffer: Any, op, *args: Any) -> Any:
    """Modify ``args[0]`` to be equal to ``op(*args)``, possibly modifying ``buffer``."""
    return _default_dispatcher.mutable_buffered_operate(buffer, op, *args)


def mutable_buffered_operate_to(buffer: Any, output: Any, op, *args: Any) -> Any:
    """Modify ``output`` to be equal to ``op(*args)``, possibly modifying ``buffer``."""
    return _default_dispatcher.mutable_buffered_operate_to(buffer, output, op, *args)


def buffer_for(op, *args: Any) -> Any:
    """Scratch buffer for repeated buffered calls, or ``None``."""
    return _default_dispatcher.buffer_for(op, *args)


def copy_if_mutable(x: Any) -> Any:
    """A copy of ``x`` if it may be mutated by this layer, else ``x`` itself."""
    return _default_dispatcher.copy_if_mutable(x)
