"""HTTP-level tests for /api/audit-logs."""

import pytest
from factories import OTHER_USER, USER
from fastapi import FastAPI
from fastapi.testclient import TestClient

from findash.api.dependencies import CommonDependencies, get_common_deps
from findash.api.handlers import register_exception_handlers
from findash.api.routers import audit_router


def _build_client(deps: CommonDependencies) -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(audit_router, prefix="/api")

    async def override_deps():
        return deps

    app.dependency_overrides[get_common_deps] = override_deps
    return TestClient(app)


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
async def test_lists_own_entries(deps, token):
    await deps.db.log_audit(USER, "accounts_payable", "ap-1", "update", {"status": "pending"}, {"status": "paid"})
    await deps.db.log_audit(OTHER_USER, "accounts_payable", "ap-2", "update")

    resp = _build_client(deps).get("/api/audit-logs?table_name=accounts_payable", headers=_auth(token))
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["success"] is True
    assert payload["total"] == 1
    assert payload["data"][0]["record_id"] == "ap-1"
    assert payload["data"][0]["new_values"] == {"status": "paid"}


@pytest.mark.asyncio
async def test_filters_and_limit(deps, token):
    for i in range(3):
        await deps.db.log_audit(USER, "accounts_receivable", f"ar-{i}", "create")
    await deps.db.log_audit(USER, "accounts_receivable", "ar-0", "delete")

    client = _build_client(deps)
    deletes = client.get("/api/audit-logs?action=delete", headers=_auth(token)).json()
    assert deletes["total"] == 1

    limited = client.get("/api/audit-logs?limit=2", headers=_auth(token)).json()
    assert limited["total"] == 2

    future = client.get("/api/audit-logs?start_date=2099-01-01", headers=_auth(token)).json()
    assert future["data"] == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "query",
    ["start_date=not-a-date", "end_date=2024-13-01", "action=drop", "limit=0", "offset=-1",
     "start_date=2024-02-01&end_date=2024-01-01"],
)
async def test_invalid_filters(deps, token, query):
    resp = _build_client(deps).get(f"/api/audit-logs?{query}", headers=_auth(token))
    assert resp.status_code == 400
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_requires_token(deps):
    resp = _build_client(deps).get("/api/audit-logs")
    assert resp.status_code == 401
