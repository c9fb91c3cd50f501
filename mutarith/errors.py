"""Exceptions raised by the mutable arithmetic dispatch layer."""


class MutArithError(Exception):
    """Base class for all mutarith errors."""


class MutationNotSupportedError(MutArithError, TypeError):
    """
    A mutating primitive was called on an output that cannot hold the result.

    This is a usage error: generic code should call ``operate`` or
    ``operate_to``, which fall back to returning a fresh value.
    """


class MutationNotImplementedError(MutArithError, NotImplementedError):
    """The output type is mutable for the operation but no primitive is registered."""


class RegistrationError(MutArithError, ValueError):
    """A promotion rule or mutating primitive was registered inconsistently."""
