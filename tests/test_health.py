"""
Health and metrics endpoint tests - fast feedback on API availability.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from app.db.session import get_db


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    """GET /api/v1/health returns 200 and status ok."""
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "app": "Storefront API"}


@pytest.mark.asyncio
async def test_ready(client: AsyncClient):
    response = await client.get("/api/v1/health/ready")
    assert response.status_code == 200
    assert response.json()["status"] == "ready"


class _DeadSession:
    async def execute(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))


@pytest.mark.asyncio
async def test_ready_reports_unavailable_database(client: AsyncClient):
    from app.main import app

    async def dead_db():
        yield _DeadSession()

    app.dependency_overrides[get_db] = dead_db
    response = await client.get("/api/v1/health/ready")
    assert response.status_code == 503
    assert response.json() == {"status": "unavailable"}


@pytest.mark.asyncio
async def test_metrics_exposes_checkout_counters(client: AsyncClient):
    response = await client.get("/metrics/")
    assert response.status_code == 200
    assert "storefront_unreconciled_charges_total" in response.text
