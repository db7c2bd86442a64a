"""
IRR and NPV Calculations

Implements IRR using Newton-Raphson method over periodic cash flows.
Periods need not be sorted, contiguous or unique.
"""

import logging
import math
import numbers
from dataclasses import dataclass
from typing import Iterable, List, Tuple, Union

import numpy as np

from fincalc.calculations.errors import DomainError
from fincalc.calculations.solver import (
    DEFAULT_GUESS,
    MAX_ITERATIONS,
    MAX_RATE,
    MIN_RATE,
    TOLERANCE,
    newton_raphson,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CashFlow:
    """A signed amount received (positive) or paid (negative) at a period."""

    period: int
    amount: float

    def __post_init__(self):
        if isinstance(self.period, bool) or not isinstance(self.period, numbers.Real):
            raise TypeError(f"period must be a number, got {self.period!r}")
        if self.period < 0:
            raise DomainError(f"period must be >= 0, got {self.period}")
        if not float(self.period).is_integer():
            raise DomainError(f"period must be a whole number, got {self.period}")


CashFlowLike = Union[CashFlow, float, Tuple[int, float]]


def as_cash_flows(cash_flows: Iterable[CashFlowLike]) -> List[CashFlow]:
    """
    Normalize cash flow input.

    Accepts CashFlow objects, (period, amount) pairs, or bare amounts
    (period = position in the sequence).
    """
    result = []
    for index, item in enumerate(cash_flows):
        if isinstance(item, CashFlow):
            result.append(item)
        elif isinstance(item, numbers.Real) and not isinstance(item, bool):
            result.append(CashFlow(index, float(item)))
        elif isinstance(item, (tuple, list)) and len(item) == 2:
            result.append(CashFlow(item[0], float(item[1])))
        else:
            raise TypeError(f"Unsupported cash flow: {item!r}")
    return result


def _arrays(cash_flows: Iterable[CashFlowLike]) -> Tuple[np.ndarray, np.ndarray]:
    flows = as_cash_flows(cash_flows)
    periods = np.array([cf.period for cf in flows], dtype=float)
    amounts = np.array([cf.amount for cf in flows], dtype=float)
    return periods, amounts


def _check_rate(rate: float) -> None:
    if rate <= -1:
        raise DomainError("discount rate must be greater than -100%")


def calculate_npv(cash_flows: Iterable[CashFlowLike], discount_rate: float) -> float:
    """
    Calculate NPV (Net Present Value) of cash flows.

    Args:
        cash_flows: Cash flows (negative = outflow, positive = inflow)
        discount_rate: Discount rate per period (e.g., 0.10 for 10%)

    Returns:
        NPV value

    Raises:
        DomainError: If the rate is at or below -100% or the NPV overflows
    """
    _check_rate(discount_rate)
    periods, amounts = _arrays(cash_flows)
    with np.errstate(all="ignore"):
        npv = float(np.sum(amounts / np.power(1 + discount_rate, periods)))
    if not math.isfinite(npv):
        raise DomainError(f"NPV is not finite at discount rate {discount_rate}")
    return npv


def _npv_function(periods: np.ndarray, amounts: np.ndarray):
    def evaluate(rate: float) -> Tuple[float, float]:
        with np.errstate(all="ignore"):
            present_values = amounts / np.power(1 + rate, periods)
            npv = np.sum(present_values)
            dnpv = -np.sum(periods * present_values) / (1 + rate)
        return float(npv), float(dnpv)

    return evaluate


def npv_with_derivative(
    cash_flows: Iterable[CashFlowLike], rate: float
) -> Tuple[float, float]:
    """Calculate NPV and its derivative with respect to rate in one pass."""
    _check_rate(rate)
    return _npv_function(*_arrays(cash_flows))(rate)


def compute_irr(
    cash_flows: Iterable[CashFlowLike],
    guess: float = DEFAULT_GUESS,
    max_iterations: int = MAX_ITERATIONS,
    tolerance: float = TOLERANCE,
    lower_bound: float = MIN_RATE,
    upper_bound: float = MAX_RATE,
) -> float:
    """
    Calculate IRR (Internal Rate of Return) using Newton-Raphson method.

    Args:
        cash_flows: Periodic cash flows
        guess: Initial guess for rate (default 0.1 = 10%)
        max_iterations: Iteration cap
        tolerance: Convergence tolerance on the rate
        lower_bound: Lowest acceptable rate (default -99%)
        upper_bound: Highest acceptable rate (default 1000%)

    Returns:
        IRR as a percentage (e.g., 15.0 for 15%)

    Raises:
        DomainError: Fewer than 2 cash flows, or no sign change
        SolverFailure: Iteration diverged, stalled or did not converge
    """
    periods, amounts = _arrays(cash_flows)

    if len(amounts) < 2:
        raise DomainError("At least 2 cash flows required")

    if not (amounts > 0).any() or not (amounts < 0).any():
        raise DomainError("Cash flows must contain both positive and negative values")

    rate = newton_raphson(
        _npv_function(periods, amounts),
        guess=guess,
        max_iterations=max_iterations,
        tolerance=tolerance,
        lower_bound=lower_bound,
        upper_bound=upper_bound,
    )
    logger.debug(f"IRR of {len(amounts)} cash flows: {rate:.6%}")
    return rate * 100


def calculate_profit(cash_flows: Iterable[CashFlowLike]) -> float:
    """Calculate profit (total inflows minus total outflows)."""
    return sum(cf.amount for cf in as_cash_flows(cash_flows))


def calculate_multiple(cash_flows: Iterable[CashFlowLike]) -> float:
    """
    Calculate equity multiple.

    Args:
        cash_flows: Cash flows (investments are negative)

    Returns:
        Multiple (e.g., 2.0 = 2.0x return)
    """
    flows = as_cash_flows(cash_flows)
    total_inflows = sum(cf.amount for cf in flows if cf.amount > 0)
    total_outflows = abs(sum(cf.amount for cf in flows if cf.amount < 0))

    if total_outflows == 0:
        raise DomainError("No investment (outflows) found")

    return total_inflows / total_outflows


def summarize_cash_flows(cash_flows: Iterable[CashFlowLike]) -> dict:
    """Total investment, total return, profit and multiple for display."""
    flows = as_cash_flows(cash_flows)
    total_investment = abs(sum(cf.amount for cf in flows if cf.amount < 0))
    total_return = sum(cf.amount for cf in flows if cf.amount > 0)
    return {
        "periods": len(flows),
        "total_investment": total_investment,
        "total_return": total_return,
        "profit": total_return - total_investment,
        "multiple": total_return / total_investment if total_investment else None,
    }
