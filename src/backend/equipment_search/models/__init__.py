"""Models package - search queries, results and parameter dictionary structures"""

from .parameter_dictionary import (
    ParamType,
    ParameterValue,
    ParameterDictionaryEntry,
    NormalizationResult,
    QueryNormalizationStats,
)

from .search import (
    SearchStrategyName,
    SearchQuery,
    VectorSearchFilters,
    EquipmentSummary,
    CategoryInfo,
    CatalogSuggestions,
    CatalogSearchResult,
    StrategySearchResult,
    QueryNormalizationResult,
)

__all__ = [
    "ParamType",
    "ParameterValue",
    "ParameterDictionaryEntry",
    "NormalizationResult",
    "QueryNormalizationStats",
    "SearchStrategyName",
    "SearchQuery",
    "VectorSearchFilters",
    "EquipmentSummary",
    "CategoryInfo",
    "CatalogSuggestions",
    "CatalogSearchResult",
    "StrategySearchResult",
    "QueryNormalizationResult",
]
