"""
Equipment Search API Endpoints
POST /api/v1/search - Hybrid catalog search
GET /api/v1/search/parameters - Searchable parameters for a category
"""

import logging
from typing import Any, Dict, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ValidationError

from ...models.parameter_dictionary import ParameterValue
from ...models.search import CatalogSearchResult
from ...services.catalog.catalog_service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/search", tags=["search"])


# Dependency injection placeholder (overridden in main.py)
def get_catalog_service_dep() -> CatalogService:
    """Dependency injection placeholder for catalog service - overridden in main.py"""
    raise RuntimeError("Catalog service dependency not initialized")


class SearchRequest(BaseModel):
    """
    Search request body.

    Loosely typed: empty strings and string or invalid limits are cleaned up
    by CatalogService before the query is validated.
    """
    text: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    brand: Optional[str] = None
    region: Optional[str] = None
    parameters: Optional[Dict[str, Optional[ParameterValue]]] = None
    limit: Optional[Union[int, str]] = None
    offset: Optional[Union[int, str]] = None


class ParametersHintResponse(BaseModel):
    category: str
    hint: Optional[str] = None


@router.post("", response_model=CatalogSearchResult, response_model_exclude_none=True)
async def search_equipment(
    request: SearchRequest,
    catalog_service: CatalogService = Depends(get_catalog_service_dep)
) -> Any:
    """
    Search the equipment catalog.

    Example:
        POST /api/v1/search
        {
            "text": "экскаватор",
            "category": "Экскаваторы",
            "parameters": {"Мощность_min": "100 л.с."},
            "limit": 10
        }

        Response:
        {
            "items": [...],
            "total": 42,
            "usedStrategy": "mixed",
            "normalization": {"total": 1, "normalized": 1, ...}
        }
    """
    try:
        return await catalog_service.search_equipment(request.model_dump(exclude_none=True))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.error(f"Search failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Search failed")


@router.get("/parameters", response_model=ParametersHintResponse)
async def get_parameters_hint(
    category: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1, le=50),
    catalog_service: CatalogService = Depends(get_catalog_service_dep)
) -> ParametersHintResponse:
    """Human-readable list of parameters the category can be filtered by"""
    return ParametersHintResponse(
        category=category,
        hint=catalog_service.get_category_parameters_hint(category, limit),
    )
