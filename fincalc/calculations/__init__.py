"""
Financial Calculation Engine

Safe expression evaluation, time-value-of-money formulas, Newton-Raphson
root finding, IRR/NPV and chart series. All functions are pure and safe
to call concurrently.
"""

from fincalc.calculations import errors, expression, irr, series, solver, tvm

__all__ = ["errors", "expression", "irr", "series", "solver", "tvm"]
