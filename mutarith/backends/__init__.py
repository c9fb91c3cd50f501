"""
Bundled backends
================

Importing this package registers promotion rules and mutating primitives:

    - builtin: numeric tower for Python's immutable numbers (never mutated)
    - bigint: BigInt, the reference mutable arbitrary-precision integer
    - ndarray: numpy arrays, described by dtype and shape
"""

from mutarith.backends import builtin
from mutarith.backends.bigint import BigInt
from mutarith.backends.ndarray import ArrayType
