"""
Calculation Errors

Typed failures raised by the calculation engine. Every expected failure
derives from CalculationError so callers can catch them in one place and
still tell the kinds apart.
"""

from typing import Optional


class CalculationError(Exception):
    """Base class for all expected calculation failures."""

    kind = "calculation_error"


class ExpressionSyntaxError(CalculationError, SyntaxError):
    """
    Raised when an arithmetic expression cannot be tokenized or parsed.

    Attributes:
        message: Short description (e.g. "illegal character")
        token: The offending character or token, if any
        position: Index of the offending token in the normalized expression
    """

    kind = "syntax_error"

    def __init__(
        self, message: str, token: Optional[str] = None, position: Optional[int] = None
    ):
        super().__init__(message)
        self.message = message
        self.token = token
        self.position = position

    def __str__(self) -> str:
        if self.token is None:
            return self.message
        if self.position is None:
            return f"{self.message}: {self.token!r}"
        return f"{self.message}: {self.token!r} at position {self.position}"


class DomainError(CalculationError, ValueError):
    """Raised when inputs are outside the domain of a formula."""

    kind = "domain_error"


class SolverFailure(CalculationError, ArithmeticError):
    """
    Raised when the root finder cannot produce a valid root.

    The last iterate is kept for diagnostics only; it is not a result.
    """

    kind = "solver_failure"

    def __init__(self, message: str, estimate: float, iterations: int):
        super().__init__(message)
        self.message = message
        self.estimate = estimate
        self.iterations = iterations

    def __str__(self) -> str:
        return (
            f"{self.message} (last estimate {self.estimate!r} "
            f"after {self.iterations} iterations)"
        )


class DivergenceFailure(SolverFailure):
    """An iterate left the configured bounds or became non-finite."""

    kind = "divergence"


class StationaryDerivativeFailure(SolverFailure):
    """The derivative vanished before convergence."""

    kind = "stationary_derivative"


class NonConvergenceFailure(SolverFailure):
    """The iteration cap was reached without meeting the tolerance."""

    kind = "non_convergence"
