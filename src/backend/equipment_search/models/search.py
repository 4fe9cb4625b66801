"""
Search Data Models

Query, result and per-strategy container models used across the search
pipeline. Field aliases keep the JSON surface in camelCase (usedStrategy,
mainParameters) while Python code uses snake_case.
"""

import json
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .parameter_dictionary import ParameterValue, QueryNormalizationStats


class SearchStrategyName(str, Enum):
    """Result source labels reported in CatalogSearchResult.used_strategy"""
    FTS = "fts"
    VECTOR_STRICT = "vector_strict"
    VECTOR_RELAXED = "vector_relaxed"
    MIXED = "mixed"
    FALLBACK = "fallback"
    NONE = "none"


class SearchQuery(BaseModel):
    """
    Structured catalog query.

    Parameters are raw (pre-normalization) and their keys may carry _min/_max
    suffixes. The pipeline never mutates a query: every stage derives a copy
    with model_copy(update=...).
    """
    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    brand: Optional[str] = None
    region: Optional[str] = None
    parameters: Optional[Dict[str, Optional[ParameterValue]]] = None
    limit: int = Field(default=10, ge=1)
    offset: int = Field(default=0, ge=0)

    def has_text(self) -> bool:
        return bool(self.text and self.text.strip())

    def has_filters(self) -> bool:
        """True when any category, brand, region or parameter filter is set"""
        return bool(
            (self.category and self.category.strip())
            or (self.brand and self.brand.strip())
            or (self.region and self.region.strip())
            or self.parameters
        )


class VectorSearchFilters(BaseModel):
    """Filters forwarded to the vector search boundary"""
    category: Optional[str] = None
    brand: Optional[str] = None
    region: Optional[str] = None
    parameters: Optional[Dict[str, Optional[ParameterValue]]] = None


class EquipmentSummary(BaseModel):
    """Single catalog record as returned by the storage boundary"""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    category: str = ""
    brand: str = ""
    price: Optional[Union[float, str]] = None
    main_parameters: Dict[str, Any] = Field(default_factory=dict, alias="mainParameters")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @field_validator("price", mode="before")
    @classmethod
    def _coerce_price(cls, value: Any) -> Any:
        # NUMERIC columns arrive as Decimal
        if isinstance(value, Decimal):
            return float(value)
        return value

    @field_validator("main_parameters", mode="before")
    @classmethod
    def _decode_parameters(cls, value: Any) -> Any:
        # asyncpg hands jsonb back as text unless a codec is registered
        if value is None:
            return {}
        if isinstance(value, (str, bytes)):
            try:
                decoded = json.loads(value)
            except ValueError:
                return {}
            return decoded if isinstance(decoded, dict) else {}
        return value


class CategoryInfo(BaseModel):
    name: str
    count: int


class CatalogSuggestions(BaseModel):
    """Hints returned alongside an empty result"""
    model_config = ConfigDict(populate_by_name=True)

    similar_categories: Optional[List[str]] = Field(default=None, alias="similarCategories")
    popular_categories: Optional[List[CategoryInfo]] = Field(default=None, alias="popularCategories")
    available_brands: Optional[List[str]] = Field(default=None, alias="availableBrands")
    example_queries: Optional[List[str]] = Field(default=None, alias="exampleQueries")


class CatalogSearchResult(BaseModel):
    """Outcome of one SearchEngine.search() call"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    items: List[EquipmentSummary] = Field(default_factory=list)
    total: int = 0
    used_strategy: SearchStrategyName = Field(alias="usedStrategy")
    message: Optional[str] = None
    suggestions: Optional[CatalogSuggestions] = None
    normalization: Optional[QueryNormalizationStats] = None


class StrategySearchResult(BaseModel):
    """
    Ranked result list produced by one retrieval source.

    Attributes:
        strategy_name: Source label (fts, vector_strict, vector_relaxed)
        items: Records in rank order (index 0 = best)
    """
    strategy_name: SearchStrategyName
    items: List[EquipmentSummary] = Field(default_factory=list)


class QueryNormalizationResult(BaseModel):
    """Derived query with canonical parameters plus normalization counts"""
    normalized_query: SearchQuery
    stats: QueryNormalizationStats
