"""Health Probes: verifies liveness, readiness and the catalog report."""

from praxis.infrastructure import database


async def test_liveness(client):
    res = await client.get("/api/v1/health/")
    assert res.status_code == 200
    assert res.json()["service"] == "praxis-api"


async def test_readiness_with_database(client):
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 200
    assert res.json()["checks"]["database"] == "healthy"


async def test_readiness_reports_empty_catalog(client):
    body = (await client.get("/api/v1/health/ready")).json()
    assert body["checks"]["catalog"] == "empty"
    assert body["catalog"] == {"component_types": 0, "products_on_sale": 0}


async def test_readiness_counts_catalog(client, seeded_catalog, seeded_products):
    body = (await client.get("/api/v1/health/ready")).json()
    assert body["checks"]["catalog"] == "ready"
    assert body["catalog"] == {"component_types": 5, "products_on_sale": 2}


async def test_not_ready_without_database(client, monkeypatch):
    monkeypatch.setattr(database, "db_manager", None)
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 503
    assert res.json()["reason"] == "database_unavailable"
