"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fincalc.calculations.irr import CashFlow


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks integration tests")


@pytest.fixture(scope="session")
def anyio_backend():
    """Backend for async tests."""
    return "asyncio"


@pytest.fixture
def project_cash_flows():
    """Five-year project: 100k outlay, growing annual returns."""
    return [
        CashFlow(0, -100000),
        CashFlow(1, 25000),
        CashFlow(2, 30000),
        CashFlow(3, 35000),
        CashFlow(4, 40000),
        CashFlow(5, 45000),
    ]
