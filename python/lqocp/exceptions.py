"""
lqocp Exception Classes
=======================

Custom exceptions for lqocp error handling.

Programmer errors (wrong shapes, calls out of order, unsupported operations)
are raised immediately. Solver non-convergence is never raised: it is
reported through :class:`lqocp.result.Status` on the returned result.
"""


class LqocpError(Exception):
    """Base exception for all lqocp errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NumericalError(LqocpError):
    """
    Raised when numerical issues are encountered.

    This may indicate ill-conditioning or an indefinite Hessian.
    """

    def __init__(self, message: str = "Numerical error encountered") -> None:
        super().__init__(message)


class DimensionError(LqocpError):
    """
    Raised when matrix/vector dimensions are incompatible.
    """

    def __init__(self, message: str) -> None:
        super().__init__(f"Dimension mismatch: {message}")


class InvalidInputError(LqocpError):
    """
    Raised when input data is invalid.

    Examples: NaN values, negative horizon, unknown settings key.
    """

    def __init__(self, message: str) -> None:
        super().__init__(f"Invalid input: {message}")


class UnsupportedOperationError(LqocpError):
    """
    Raised for operations that exist in the interface but are not implemented.

    Examples: Gramians of continuous-time systems, output computation on
    state manifolds, feedback-gain extraction from the QP solution.
    """

    def __init__(self, message: str) -> None:
        super().__init__(f"Unsupported operation: {message}")


class UninitializedHorizonError(LqocpError):
    """
    Raised when a horizon-dependent operation runs before the horizon is set.

    This always signals a call-ordering bug in the caller.
    """

    def __init__(
        self,
        message: str = "Time horizon not set, please set it first",
    ) -> None:
        super().__init__(message)
