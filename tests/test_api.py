"""
Tests for calculation API endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from fincalc.main import app


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestEvaluateEndpoint:
    """Test /api/calculate/evaluate."""

    def test_evaluate(self, client):
        response = client.post("/api/calculate/evaluate", json={"expression": "(2+3)×4"})
        assert response.status_code == 200
        assert response.json() == {"result": 20.0, "finite": True}

    def test_division_by_zero(self, client):
        response = client.post("/api/calculate/evaluate", json={"expression": "1/0"})
        assert response.status_code == 200
        assert response.json() == {"result": None, "finite": False}

    def test_syntax_error(self, client):
        response = client.post("/api/calculate/evaluate", json={"expression": "2+&"})
        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["error"] == "syntax_error"
        assert "illegal character" in detail["message"]

    def test_deeply_nested(self, client):
        response = client.post(
            "/api/calculate/evaluate", json={"expression": "(" * 1200 + "1" + ")" * 1200}
        )
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "syntax_error"


class TestCompoundEndpoint:
    """Test /api/calculate/compound."""

    def test_future_value(self, client):
        response = client.post(
            "/api/calculate/compound",
            json={
                "unknown": "future_value",
                "rate_percent": 5,
                "periods": 10,
                "present_value": 1000,
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert abs(data["result"] - 1628.89) < 0.01
        assert len(data["series"]) == 11
        assert data["series"][-1]["y"] == pytest.approx(data["result"])

    def test_rate_is_percentage(self, client):
        response = client.post(
            "/api/calculate/compound",
            json={
                "unknown": "rate",
                "periods": 10,
                "present_value": 1000,
                "future_value": 1628.894627,
            },
        )
        assert response.status_code == 200
        assert abs(response.json()["result"] - 5.0) < 1e-4

    def test_missing_periods(self, client):
        response = client.post(
            "/api/calculate/compound",
            json={"unknown": "rate", "periods": 0, "present_value": 1000},
        )
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "domain_error"

    def test_solver_failure(self, client):
        response = client.post(
            "/api/calculate/compound",
            json={
                "unknown": "rate",
                "periods": 10,
                "present_value": -1000,
                "future_value": 1628.89,
            },
        )
        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["error"] == "divergence"
        assert "estimate" in detail

    def test_invalid_unknown(self, client):
        response = client.post(
            "/api/calculate/compound", json={"unknown": "interest", "periods": 1}
        )
        assert response.status_code == 422


class TestIRREndpoint:
    """Test /api/calculate/irr."""

    def test_irr(self, client):
        flows = [
            {"period": 0, "amount": -100000},
            {"period": 1, "amount": 25000},
            {"period": 2, "amount": 30000},
            {"period": 3, "amount": 35000},
            {"period": 4, "amount": 40000},
            {"period": 5, "amount": 45000},
        ]
        response = client.post("/api/calculate/irr", json={"cash_flows": flows})
        assert response.status_code == 200
        data = response.json()
        assert 19.5 < data["irr"] < 20.0
        assert abs(data["npv_at_irr"]) < 1e-4
        assert data["profit"] == 75000
        assert data["multiple"] == 1.75
        assert len(data["npv_curve"]) == 41
        assert data["cumulative"][-1]["y"] == 75000
        assert data["failure"] is None

    def test_charts_without_irr(self, client):
        """The NPV curve and cumulative series survive a failed IRR solve."""
        flows = [{"period": 0, "amount": -1}, {"period": 1, "amount": 1000}]
        response = client.post("/api/calculate/irr", json={"cash_flows": flows})
        assert response.status_code == 200
        data = response.json()
        assert data["irr"] is None
        assert data["npv_at_irr"] is None
        assert data["failure"]["error"] == "divergence"
        assert len(data["npv_curve"]) == 41
        assert [p["y"] for p in data["cumulative"]] == [-1, 999]
        assert data["profit"] == 999

    def test_single_cash_flow(self, client):
        response = client.post(
            "/api/calculate/irr", json={"cash_flows": [{"period": 0, "amount": -100}]}
        )
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "domain_error"

    def test_fractional_period(self, client):
        response = client.post(
            "/api/calculate/irr",
            json={"cash_flows": [{"period": 0, "amount": -100}, {"period": 1.5, "amount": 110}]},
        )
        assert response.status_code == 422

    def test_negative_period(self, client):
        response = client.post(
            "/api/calculate/irr",
            json={"cash_flows": [{"period": -1, "amount": -100}, {"period": 1, "amount": 110}]},
        )
        assert response.status_code == 422
