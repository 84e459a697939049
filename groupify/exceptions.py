"""Exceptions raised by the grouping core."""


class GroupifyException(Exception):
    """Base exception for all grouping errors.

    Catching this class catches every error the grouping core raises on purpose.
    """

    pass


class InvalidArgumentError(GroupifyException, ValueError):
    """Raised when a caller supplies an unusable argument.

    Examples: a non-positive group count, an empty participant set when more
    than one group is requested, duplicate participant ids.
    """

    pass


class InvariantViolationError(GroupifyException, RuntimeError):
    """Raised when a produced Solution is not a complete, non-overlapping partition."""

    pass
