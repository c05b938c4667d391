"""Health & Readiness: is the process up, and can the shop take orders.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if database is unreachable (readiness)
    - An empty catalog does not fail readiness; it is reported so a fresh
      deployment without seed data is visible

Design Decisions:
    - Separate liveness/readiness: liveness restarts the container,
      readiness removes it from the load balancer
    - db_manager read through the module at call time so it is the instance
      set up by the lifespan (or patched in tests)
"""

import logging
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from praxis.infrastructure import database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Liveness: 200 while the process is up."""
    return {"status": "healthy", "service": "praxis-api", "version": "1.0.0"}


@router.get("/ready")
async def readiness_check():
    """Readiness: database reachable; catalog size reported alongside."""
    manager = database.db_manager
    if manager is None or not await manager.health_check():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )

    counts = await manager.catalog_counts()
    catalog = "ready" if counts["component_types"] or counts["products_on_sale"] else "empty"
    if catalog == "empty":
        logger.warning("Catalog is empty: nothing can be configured or ordered")
    return {
        "status": "ready",
        "checks": {"database": "healthy", "catalog": catalog},
        "catalog": counts,
    }
