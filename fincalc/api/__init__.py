"""
API routes for the calculator.
"""

from fastapi import APIRouter

from fincalc.api import calculations

router = APIRouter()

router.include_router(calculations.router, prefix="/calculate", tags=["calculations"])
