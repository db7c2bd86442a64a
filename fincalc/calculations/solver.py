"""
Newton-Raphson Root Finding

Generic scalar root finder shared by rate solving and IRR. The function
being solved returns its value and derivative together so callers can
compute both in one pass.
"""

import logging
import math
from typing import Callable, Tuple

from fincalc.calculations.errors import (
    DivergenceFailure,
    NonConvergenceFailure,
    StationaryDerivativeFailure,
)

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 1000
TOLERANCE = 1e-6
DEFAULT_GUESS = 0.1
MIN_RATE = -0.99
MAX_RATE = 10.0
MIN_DERIVATIVE = 1e-12

ValueAndDerivative = Callable[[float], Tuple[float, float]]


def with_derivative(
    function: Callable[[float], float], derivative: Callable[[float], float]
) -> ValueAndDerivative:
    """Combine a function and its analytic derivative."""

    def evaluate(x: float) -> Tuple[float, float]:
        return function(x), derivative(x)

    return evaluate


def with_numeric_derivative(
    function: Callable[[float], float], step: float = 1e-6
) -> ValueAndDerivative:
    """Pair a function with a central-difference derivative."""

    def evaluate(x: float) -> Tuple[float, float]:
        slope = (function(x + step) - function(x - step)) / (2 * step)
        return function(x), slope

    return evaluate


def newton_raphson(
    function: ValueAndDerivative,
    guess: float = DEFAULT_GUESS,
    max_iterations: int = MAX_ITERATIONS,
    tolerance: float = TOLERANCE,
    lower_bound: float = MIN_RATE,
    upper_bound: float = MAX_RATE,
    min_derivative: float = MIN_DERIVATIVE,
) -> float:
    """
    Find a root of function using Newton-Raphson iteration.

    Args:
        function: Callable returning (f(x), f'(x))
        guess: Starting point (default 0.1 = 10%)
        max_iterations: Iteration cap
        tolerance: Stop when successive iterates differ by less than this
        lower_bound: Iterates below this are treated as divergence
        upper_bound: Iterates above this are treated as divergence
        min_derivative: Derivatives smaller than this in magnitude are
            treated as zero

    Returns:
        The root (unscaled)

    Raises:
        DivergenceFailure: An iterate left [lower_bound, upper_bound]
        StationaryDerivativeFailure: f'(x) vanished before convergence
        NonConvergenceFailure: max_iterations reached
    """
    x = guess

    for iteration in range(1, max_iterations + 1):
        value, slope = function(x)

        if not math.isfinite(value) or not math.isfinite(slope):
            logger.debug(f"Non-finite evaluation at x={x} (iteration {iteration})")
            raise DivergenceFailure("function is not finite", x, iteration)

        if abs(slope) < min_derivative:
            logger.debug(f"Derivative vanished at x={x} (iteration {iteration})")
            raise StationaryDerivativeFailure("derivative too small", x, iteration)

        next_x = x - value / slope

        if not math.isfinite(next_x) or not lower_bound <= next_x <= upper_bound:
            logger.debug(f"Iterate {next_x} out of bounds (iteration {iteration})")
            raise DivergenceFailure(
                f"iterate outside [{lower_bound}, {upper_bound}]", next_x, iteration
            )

        if abs(next_x - x) < tolerance:
            logger.debug(f"Converged to {next_x} in {iteration} iterations")
            return next_x

        x = next_x

    logger.debug(f"No convergence after {max_iterations} iterations, last x={x}")
    raise NonConvergenceFailure("did not converge", x, max_iterations)
