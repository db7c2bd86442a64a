"""
Time Value of Money Calculations

Compound interest and annuity formulas, plus a solver that fills in
whichever of rate, periods, present value, payment or future value is
unknown.

Conventions:
    - rate is a decimal per period (0.05 for 5%); use percent_to_rate()
      for user input entered as a percentage
    - PV, PMT and FV share one sign convention: FV = PV(1+r)^n + PMT·s(n)·k
    - k = 1 for payments at period end, 1 + r for payments at period start
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

import numpy as np

from fincalc.calculations.errors import DomainError
from fincalc.calculations.solver import newton_raphson

logger = logging.getLogger(__name__)


class PaymentTiming(str, Enum):
    """When annuity payments fall within each period."""

    BEGIN = "begin"  # annuity due
    END = "end"  # ordinary annuity


class UnknownField(str, Enum):
    """The single compound-interest variable to solve for."""

    RATE = "rate"
    PERIODS = "periods"
    PRESENT_VALUE = "present_value"
    PAYMENT = "payment"
    FUTURE_VALUE = "future_value"


@dataclass
class CompoundParameters:
    """Inputs for one compound interest / annuity calculation."""

    rate: float = 0.0
    periods: float = 0.0
    present_value: float = 0.0
    payment: float = 0.0
    future_value: float = 0.0
    timing: PaymentTiming = PaymentTiming.END


def percent_to_rate(percent: float) -> float:
    """Convert a percentage (5 for 5%) to a decimal rate (0.05)."""
    return percent / 100


def _pow(base: float, exponent: float) -> float:
    with np.errstate(all="ignore"):
        return float(np.power(np.float64(base), np.float64(exponent)))


def _adjustment(rate: float, timing: PaymentTiming) -> float:
    return 1 + rate if timing == PaymentTiming.BEGIN else 1.0


def _finite(value: float, what: str) -> float:
    if not math.isfinite(value):
        raise DomainError(f"{what} is not finite ({value})")
    return value


def _require(name: str, value: float) -> None:
    if value == 0 or not math.isfinite(value):
        raise DomainError(f"{name} must be non-zero and finite")


def _require_rate(rate: float) -> None:
    _require("rate", rate)
    if rate <= -1:
        raise DomainError("rate must be greater than -100%")


def compound_future_value(present_value: float, rate: float, periods: float) -> float:
    """
    FV = PV × (1 + r)^n

    Args:
        present_value: Starting amount
        rate: Rate per period as decimal
        periods: Number of periods

    Returns:
        Future value
    """
    return _finite(present_value * _pow(1 + rate, periods), "future value")


def compound_present_value(future_value: float, rate: float, periods: float) -> float:
    """PV = FV / (1 + r)^n"""
    growth = _pow(1 + rate, periods)
    if growth == 0:
        raise DomainError("discount factor is zero")
    return _finite(future_value / growth, "present value")


def annuity_future_value(
    payment: float,
    rate: float,
    periods: float,
    timing: PaymentTiming = PaymentTiming.END,
) -> float:
    """FV = PMT × [((1 + r)^n - 1) / r] × k"""
    _require_rate(rate)
    factor = (_pow(1 + rate, periods) - 1) / rate
    return _finite(payment * factor * _adjustment(rate, timing), "annuity future value")


def annuity_present_value(
    payment: float,
    rate: float,
    periods: float,
    timing: PaymentTiming = PaymentTiming.END,
) -> float:
    """PV = PMT × [(1 - (1 + r)^-n) / r] × k"""
    _require_rate(rate)
    factor = (1 - _pow(1 + rate, -periods)) / rate
    return _finite(payment * factor * _adjustment(rate, timing), "annuity present value")


def calculate_future_value(
    rate: float,
    periods: float,
    present_value: float,
    payment: float,
    timing: PaymentTiming = PaymentTiming.END,
) -> float:
    """Future value of a lump sum plus an optional annuity."""
    value = compound_future_value(present_value, rate, periods)
    if payment != 0:
        value += annuity_future_value(payment, rate, periods, timing)
    return _finite(value, "future value")


def calculate_present_value(
    rate: float,
    periods: float,
    payment: float,
    future_value: float,
    timing: PaymentTiming = PaymentTiming.END,
) -> float:
    """Present value: discounted FV less the present value of the annuity."""
    value = compound_present_value(future_value, rate, periods)
    if payment != 0:
        value -= annuity_present_value(payment, rate, periods, timing)
    return _finite(value, "present value")


def calculate_payment(
    rate: float,
    periods: float,
    present_value: float,
    future_value: float,
    timing: PaymentTiming = PaymentTiming.END,
) -> float:
    """
    Periodic payment that amortizes PV down to FV.

    PMT = (PV - FV / (1 + r)^n) / (annuity factor × k)
    """
    _require_rate(rate)
    factor = (1 - _pow(1 + rate, -periods)) / rate
    denominator = factor * _adjustment(rate, timing)
    if denominator == 0:
        raise DomainError("annuity factor is zero")
    discounted = compound_present_value(future_value, rate, periods)
    return _finite((present_value - discounted) / denominator, "payment")


def _rate_equation(
    periods: float,
    present_value: float,
    payment: float,
    future_value: float,
    timing: PaymentTiming,
):
    """
    f(r) = PV(1+r)^n + PMT·[((1+r)^n - 1)/r]·k - FV, with df/dr.

    At r = 0 the annuity factor and its slope take their limits n and
    n(n-1)/2.
    """
    n = periods
    dk = 1.0 if timing == PaymentTiming.BEGIN else 0.0

    def evaluate(r: float) -> Tuple[float, float]:
        growth = _pow(1 + r, n)
        growth_slope = n * _pow(1 + r, n - 1)
        k = _adjustment(r, timing)

        if r == 0:
            factor = n
            factor_slope = n * (n - 1) / 2
        else:
            factor = (growth - 1) / r
            factor_slope = growth_slope / r - (growth - 1) / (r * r)

        value = present_value * growth + payment * factor * k - future_value
        slope = present_value * growth_slope + payment * (factor_slope * k + factor * dk)
        return value, slope

    return evaluate


def solve_rate(
    periods: float,
    present_value: float,
    payment: float,
    future_value: float,
    timing: PaymentTiming = PaymentTiming.END,
    **solver_options,
) -> float:
    """
    Solve for the periodic rate with Newton-Raphson.

    Args:
        periods: Number of periods (non-zero)
        present_value: Present value
        payment: Periodic payment (0 for a lump sum)
        future_value: Target future value
        timing: Payment timing
        **solver_options: Passed to newton_raphson (guess, tolerance, ...)

    Returns:
        Rate as a percentage (5.0 for 5%)

    Raises:
        DomainError: periods is zero or not finite
        SolverFailure: Iteration diverged, stalled or did not converge
    """
    _require("periods", periods)
    equation = _rate_equation(periods, present_value, payment, future_value, timing)
    rate = newton_raphson(equation, **solver_options)
    return rate * 100


def _log_ratio(numerator: float, denominator: float, rate: float) -> float:
    if denominator == 0:
        raise DomainError("cannot solve periods: zero denominator")
    ratio = numerator / denominator
    if ratio <= 0:
        raise DomainError("cannot solve periods: values have opposite signs")
    growth = math.log1p(rate)
    if growth == 0:
        raise DomainError("rate must be non-zero")
    return math.log(ratio) / growth


def solve_periods(
    rate: float,
    present_value: float,
    payment: float,
    future_value: float,
    timing: PaymentTiming = PaymentTiming.END,
) -> float:
    """
    Solve for the number of periods.

    With no payment this is exact: n = ln(FV/PV) / ln(1+r).

    With a payment it uses n = ln((FV·r + PMT) / (PV·r + PMT)) / ln(1+r),
    which is exact for end-of-period payments and an approximation for
    payments at the start of the period (timing is not applied).
    """
    _require_rate(rate)
    if payment == 0:
        return _finite(_log_ratio(future_value, present_value, rate), "periods")
    if timing == PaymentTiming.BEGIN:
        logger.debug("Solving periods for annuity due with end-of-period approximation")
    return _finite(
        _log_ratio(future_value * rate + payment, present_value * rate + payment, rate),
        "periods",
    )


def solve_compound(
    unknown: Union[UnknownField, str],
    rate: float = 0.0,
    periods: float = 0.0,
    present_value: float = 0.0,
    payment: float = 0.0,
    future_value: float = 0.0,
    timing: Union[PaymentTiming, str] = PaymentTiming.END,
    **solver_options,
) -> float:
    """
    Solve a compound interest / annuity problem for one unknown.

    Args:
        unknown: Field to solve for
        rate: Rate per period as decimal (ignored when solving for rate)
        periods: Number of periods (ignored when solving for periods)
        present_value: Present value
        payment: Periodic payment. When solving for payment, 0 means there is
            no annuity and the result is 0; any other value is replaced by
            the amount that amortizes PV down to FV.
        future_value: Future value
        timing: Payment timing
        **solver_options: Passed to newton_raphson when solving for rate

    Returns:
        The unknown. Rates are returned as a percentage.

    Raises:
        DomainError: Missing rate/periods or a non-finite result
        SolverFailure: Rate iteration failed
    """
    unknown = UnknownField(unknown)
    timing = PaymentTiming(timing)

    if unknown != UnknownField.RATE:
        _require_rate(rate)
    if unknown != UnknownField.PERIODS:
        _require("periods", periods)

    logger.debug(f"Solving compound problem for {unknown.value}")

    if unknown == UnknownField.RATE:
        return solve_rate(
            periods, present_value, payment, future_value, timing, **solver_options
        )
    if unknown == UnknownField.PERIODS:
        return solve_periods(rate, present_value, payment, future_value, timing)
    if unknown == UnknownField.PRESENT_VALUE:
        return calculate_present_value(rate, periods, payment, future_value, timing)
    if unknown == UnknownField.PAYMENT:
        if payment == 0:
            return 0.0
        return calculate_payment(rate, periods, present_value, future_value, timing)
    return calculate_future_value(rate, periods, present_value, payment, timing)


def solve_parameters(
    params: CompoundParameters, unknown: Union[UnknownField, str], **solver_options
) -> float:
    """Solve a CompoundParameters set for one unknown. See solve_compound()."""
    return solve_compound(
        unknown,
        rate=params.rate,
        periods=params.periods,
        present_value=params.present_value,
        payment=params.payment,
        future_value=params.future_value,
        timing=params.timing,
        **solver_options,
    )
