"""HTTP-level tests for /api/cash-flow-forecast/projections."""

import pytest
from factories import add_period
from fastapi import FastAPI
from fastapi.testclient import TestClient

from findash.api.dependencies import CommonDependencies, get_common_deps
from findash.api.handlers import register_exception_handlers
from findash.api.routers import forecast_router


def _build_client(deps: CommonDependencies) -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(forecast_router, prefix="/api")

    async def override_deps():
        return deps

    app.dependency_overrides[get_common_deps] = override_deps
    return TestClient(app)


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
async def test_projections_summary(deps, token):
    await add_period(deps.db, "2024-01-01", 1000)
    await add_period(deps.db, "2024-02-01", -200)
    await add_period(deps.db, "2024-03-01", 300)

    resp = _build_client(deps).get("/api/cash-flow-forecast/projections", headers=_auth(token))
    assert resp.status_code == 200
    data = resp.json()["data"]

    summary = data["summary"]
    assert summary["total_periods"] == 3
    assert summary["periods_with_shortfall"] == 1
    assert summary["lowest_balance"] == -200
    assert summary["highest_balance"] == 1000
    assert summary["average_ending_balance"] == pytest.approx(366.67, abs=0.01)

    assert [p["has_shortfall"] for p in data["projections"]] == [False, True, False]
    assert [p["trend"] for p in data["projections"]] == ["neutral", "down", "up"]
    assert data["data_quality"] == []


@pytest.mark.asyncio
async def test_months_limits_periods(deps, token):
    for month in range(1, 10):
        await add_period(deps.db, f"2024-{month:02d}-01", 100 * month)

    client = _build_client(deps)
    default = client.get("/api/cash-flow-forecast/projections", headers=_auth(token)).json()["data"]
    assert default["summary"]["total_periods"] == 6

    two = client.get("/api/cash-flow-forecast/projections?months=2", headers=_auth(token)).json()["data"]
    assert [p["period_label"] for p in two["projections"]] == ["Month 1", "Month 2"]


@pytest.mark.asyncio
async def test_default_months_follows_setting(deps, token):
    await deps.settings.set("default_projection_months", 3)
    for month in range(1, 6):
        await add_period(deps.db, f"2024-{month:02d}-01", 100)

    data = _build_client(deps).get("/api/cash-flow-forecast/projections", headers=_auth(token)).json()["data"]
    assert data["summary"]["total_periods"] == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("months", ["0", "121", "abc"])
async def test_invalid_months(deps, token, months):
    resp = _build_client(deps).get(f"/api/cash-flow-forecast/projections?months={months}", headers=_auth(token))
    assert resp.status_code == 400
    payload = resp.json()
    assert payload["success"] is False
    assert "months" in payload["error"]


@pytest.mark.asyncio
async def test_no_periods(deps, token):
    data = _build_client(deps).get("/api/cash-flow-forecast/projections", headers=_auth(token)).json()["data"]
    assert data["projections"] == []
    assert data["summary"]["average_ending_balance"] == 0


@pytest.mark.asyncio
async def test_ending_mismatch_is_reported(deps, token):
    await add_period(deps.db, "2024-01-01", 500, beginning_balance=100, net_cash_change=100)

    data = _build_client(deps).get("/api/cash-flow-forecast/projections", headers=_auth(token)).json()["data"]
    assert data["projections"][0]["ending_cash_position"] == 500
    assert [w["code"] for w in data["data_quality"]] == ["ending_position_mismatch"]
