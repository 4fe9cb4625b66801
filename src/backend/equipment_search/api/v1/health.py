"""
Health Check API Endpoint
GET /api/v1/health - Storage, dictionary and catalog index status
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/health", tags=["Health"])


# Dependency injection placeholder (overridden in main.py)
def get_container_dep() -> Any:
    """Dependency injection placeholder for the service container - overridden in main.py"""
    raise RuntimeError("Service container dependency not initialized")


class HealthResponse(BaseModel):
    """Response model for system health check"""
    status: str
    services: Dict[str, bool]
    dictionary_entries: int
    catalog_items: int


@router.get("", response_model=HealthResponse)
async def get_health(container: Any = Depends(get_container_dep)) -> HealthResponse:
    """
    Report service health.

    PostgreSQL connectivity is required; the dictionary and the catalog
    index only degrade search quality, so their absence is reported as
    "degraded" rather than "unhealthy".

    Example:
        GET /api/v1/health

        Response:
        {
            "status": "healthy",
            "services": {
                "postgresql": true,
                "parameter_dictionary": true,
                "catalog_index": true,
                "vector_search": false
            },
            "dictionary_entries": 57,
            "catalog_items": 1830
        }
    """
    postgres_ok = await container.db_manager.verify_connectivity()
    dictionary_loaded = container.dictionary_service.is_loaded
    catalog_index = container.catalog_index.index

    services = {
        "postgresql": postgres_ok,
        "parameter_dictionary": dictionary_loaded,
        "catalog_index": catalog_index is not None,
        "vector_search": container.search_engine.vector_enabled,
    }

    if not postgres_ok:
        status = "unhealthy"
    elif not dictionary_loaded or catalog_index is None:
        status = "degraded"
    else:
        status = "healthy"

    if status != "healthy":
        logger.warning(f"Health check: {status} ({services})")

    return HealthResponse(
        status=status,
        services=services,
        dictionary_entries=len(container.dictionary_service.entries) if dictionary_loaded else 0,
        catalog_items=catalog_index.total_items if catalog_index is not None else 0,
    )
