"""
Chart Series Generation

Sampled sequences for charting: balance growth over time, NPV against
discount rate, and cumulative cash flow. Each call builds a new list.
"""

import math
from dataclasses import dataclass
from itertools import accumulate
from typing import Iterable, List, Optional, Tuple

import numpy as np

from fincalc.calculations.errors import DomainError
from fincalc.calculations.irr import CashFlowLike, as_cash_flows, calculate_npv
from fincalc.calculations.tvm import (
    CompoundParameters,
    PaymentTiming,
    calculate_future_value,
)

NPV_MIN_RATE = -0.10
NPV_MAX_RATE = 0.30
NPV_RATE_STEP = 0.01


@dataclass(frozen=True)
class Sample:
    """One chart point."""

    x: float
    y: float


def growth_series(
    params: Optional[CompoundParameters] = None,
    *,
    rate: float = 0.0,
    periods: float = 0.0,
    present_value: float = 0.0,
    payment: float = 0.0,
    timing: PaymentTiming = PaymentTiming.END,
) -> List[Sample]:
    """
    Future value after each period from 0 to periods inclusive.

    Accepts either a CompoundParameters (future_value is ignored) or the
    individual keyword arguments. Non-integer periods are truncated.

    Returns:
        Samples with x = period, y = future value at that period
    """
    if params is not None:
        rate, periods = params.rate, params.periods
        present_value, payment, timing = params.present_value, params.payment, params.timing

    if not math.isfinite(periods) or periods < 0:
        raise DomainError("periods must be a finite, non-negative number")

    return [
        Sample(float(i), calculate_future_value(rate, i, present_value, payment, timing))
        for i in range(int(periods) + 1)
    ]


def npv_curve(
    cash_flows: Iterable[CashFlowLike],
    rate_range: Tuple[float, float] = (NPV_MIN_RATE, NPV_MAX_RATE),
    step: float = NPV_RATE_STEP,
) -> List[Sample]:
    """
    NPV at each discount rate in an inclusive range.

    Args:
        cash_flows: Cash flows to discount
        rate_range: (lowest, highest) rate as decimals (default -10% to 30%)
        step: Rate increment as decimal (default 1%)

    Returns:
        Samples with x = rate as a percentage, y = NPV
    """
    low, high = rate_range
    if step <= 0:
        raise DomainError("step must be positive")
    if high < low:
        raise DomainError("rate range is inverted")
    if low <= -1:
        raise DomainError("discount rate must be greater than -100%")

    flows = as_cash_flows(cash_flows)
    # Index-based grid; the upper bound is included
    count = int(math.floor((high - low) / step + 1e-9)) + 1
    rates = np.round(low + step * np.arange(count), 10)

    return [
        Sample(round(float(r) * 100, 8), calculate_npv(flows, float(r))) for r in rates
    ]


def cumulative_series(cash_flows: Iterable[CashFlowLike]) -> List[Sample]:
    """
    Running total of cash flow amounts in input order.

    Returns:
        One sample per cash flow, x = its period, y = running total
    """
    flows = as_cash_flows(cash_flows)
    totals = accumulate(cf.amount for cf in flows)
    return [Sample(float(cf.period), total) for cf, total in zip(flows, totals)]
