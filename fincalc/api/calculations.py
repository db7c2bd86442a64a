"""
Calculation API endpoints.

These endpoints accept raw inputs from the calculator UI and return
numbers and chart series. Failures come back as a machine-readable error
kind; wording for the user is left to the UI.
"""

import logging
import math
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from fincalc.calculations import irr, series, tvm
from fincalc.calculations.errors import CalculationError, SolverFailure
from fincalc.calculations.expression import evaluate
from fincalc.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_SERIES_PERIODS = 1000


def _failure_detail(exc: CalculationError) -> dict:
    detail = {"error": exc.kind, "message": str(exc)}
    if isinstance(exc, SolverFailure):
        detail["estimate"] = exc.estimate if math.isfinite(exc.estimate) else None
        detail["iterations"] = exc.iterations
    return detail


def _http_error(exc: CalculationError) -> HTTPException:
    """Translate a calculation failure into an HTTP error."""
    status_code = 422 if isinstance(exc, SolverFailure) else 400
    logger.warning(f"Calculation rejected ({exc.kind}): {exc}")
    return HTTPException(status_code=status_code, detail=_failure_detail(exc))


class SamplePoint(BaseModel):
    """One chart point."""

    x: float
    y: float


def _points(samples: List[series.Sample]) -> List[SamplePoint]:
    return [SamplePoint(x=s.x, y=s.y) for s in samples]


class ExpressionInput(BaseModel):
    """Input for expression evaluation."""

    expression: str


class ExpressionResponse(BaseModel):
    """Evaluated expression. result is null when the value is not finite."""

    result: Optional[float] = None
    finite: bool


@router.post("/evaluate", response_model=ExpressionResponse)
async def evaluate_expression(inputs: ExpressionInput):
    """Evaluate a calculator expression."""
    try:
        value = evaluate(inputs.expression)
    except CalculationError as e:
        raise _http_error(e) from e

    finite = math.isfinite(value)
    return ExpressionResponse(result=value if finite else None, finite=finite)


class CompoundInput(BaseModel):
    """Input for a compound interest / annuity calculation."""

    unknown: tvm.UnknownField
    rate_percent: float = 0.0
    periods: float = 0.0
    present_value: float = 0.0
    payment: float = 0.0
    future_value: float = 0.0
    timing: tvm.PaymentTiming = tvm.PaymentTiming.END
    include_series: bool = True


class CompoundResponse(BaseModel):
    """Solved unknown plus the growth chart for the completed inputs."""

    unknown: tvm.UnknownField
    result: float
    series: List[SamplePoint] = []


@router.post("/compound", response_model=CompoundResponse)
async def calculate_compound(inputs: CompoundInput):
    """Solve for the unknown compound interest field."""
    settings = get_settings()

    params = tvm.CompoundParameters(
        rate=tvm.percent_to_rate(inputs.rate_percent),
        periods=inputs.periods,
        present_value=inputs.present_value,
        payment=inputs.payment,
        future_value=inputs.future_value,
        timing=inputs.timing,
    )

    try:
        options = {}
        if inputs.unknown == tvm.UnknownField.RATE:
            options = settings.solver_options()
        result = tvm.solve_parameters(params, inputs.unknown, **options)

        samples = []
        if inputs.include_series:
            if inputs.unknown == tvm.UnknownField.RATE:
                params.rate = tvm.percent_to_rate(result)
            else:
                setattr(params, inputs.unknown.value, result)
            if 0 <= params.periods <= MAX_SERIES_PERIODS:
                samples = series.growth_series(params)
    except CalculationError as e:
        raise _http_error(e) from e

    return CompoundResponse(unknown=inputs.unknown, result=result, series=_points(samples))


class CashFlowInput(BaseModel):
    """A single cash flow."""

    period: int = Field(ge=0)
    amount: float


class IRRInput(BaseModel):
    """Input for IRR calculation."""

    cash_flows: List[CashFlowInput]


class FailureDetail(BaseModel):
    """Why a solve failed, in the same shape as an HTTP error detail."""

    error: str
    message: str
    estimate: Optional[float] = None
    iterations: Optional[int] = None


class IRRResponse(BaseModel):
    """
    Response with IRR calculation and chart data.

    The charts and summary do not depend on the IRR: when the solver fails,
    irr and npv_at_irr are null and failure says why.
    """

    irr: Optional[float] = None
    npv_at_irr: Optional[float] = None
    failure: Optional[FailureDetail] = None
    total_investment: float
    total_return: float
    profit: float
    multiple: Optional[float] = None
    npv_curve: List[SamplePoint]
    cumulative: List[SamplePoint]


@router.post("/irr", response_model=IRRResponse)
async def calculate_irr_endpoint(inputs: IRRInput):
    """Calculate IRR for given cash flows."""
    settings = get_settings()
    flows = [irr.CashFlow(cf.period, cf.amount) for cf in inputs.cash_flows]

    try:
        summary = irr.summarize_cash_flows(flows)
        curve = series.npv_curve(
            flows,
            (settings.npv_min_rate, settings.npv_max_rate),
            settings.npv_rate_step,
        )
        cumulative = series.cumulative_series(flows)
    except CalculationError as e:
        raise _http_error(e) from e

    irr_val = npv_at_irr = failure = None
    try:
        irr_val = irr.compute_irr(flows, **settings.solver_options())
        npv_at_irr = irr.calculate_npv(flows, irr_val / 100)
    except SolverFailure as e:
        logger.warning(f"IRR not found ({e.kind}): {e}")
        failure = FailureDetail(**_failure_detail(e))
    except CalculationError as e:
        raise _http_error(e) from e

    return IRRResponse(
        irr=irr_val,
        npv_at_irr=npv_at_irr,
        failure=failure,
        total_investment=summary["total_investment"],
        total_return=summary["total_return"],
        profit=summary["profit"],
        multiple=summary["multiple"],
        npv_curve=_points(curve),
        cumulative=_points(cumulative),
    )
