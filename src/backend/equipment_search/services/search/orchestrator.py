"""
Search Engine

Coordinates the hybrid equipment search:
- Normalizes query parameters to canonical keys
- Runs full-text and strict vector search concurrently
- Re-runs vector search with soft filters relaxed when strict results are thin
- Falls back to text-only full-text search when every stage is empty
- Fuses ranked lists with weighted RRF and counts the full matching set
"""

import asyncio
import logging
import os
import uuid
from typing import Any, Dict, List, Optional, Tuple

from langsmith import traceable

from ...models.parameter_dictionary import QueryNormalizationStats
from ...models.search import (
    CatalogSearchResult,
    EquipmentSummary,
    SearchQuery,
    SearchStrategyName,
    StrategySearchResult,
    VectorSearchFilters,
)
from ...utils.logging_context import log_context, log_performance
from .consolidator import ResultConsolidator

logger = logging.getLogger(__name__)

DEFAULT_RELAXED_THRESHOLD = 3

FALLBACK_MESSAGE = (
    "По заданным фильтрам ничего не найдено. "
    "Показаны результаты только по тексту запроса."
)
NOT_FOUND_MESSAGE = "По вашему запросу ничего не найдено. Попробуйте изменить формулировку или фильтры."


class SearchEngine:
    """
    Hybrid search over the equipment catalog.

    Collaborators are injected by the composition root; only the repository
    is mandatory. Without an embedding provider (or with vector search
    disabled) the engine runs full-text search only; without a normalizer
    and dictionary service, parameters are passed through unchanged.
    """

    def __init__(
        self,
        repository: Any,
        consolidator: Optional[ResultConsolidator] = None,
        embedding_provider: Optional[Any] = None,
        query_normalizer: Optional[Any] = None,
        dictionary_service: Optional[Any] = None,
        catalog_index: Optional[Any] = None,
        config: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize search engine.

        Args:
            repository: EquipmentRepository
            consolidator: ResultConsolidator (default weights when omitted)
            embedding_provider: EmbeddingProvider for query vectors
            query_normalizer: QueryParameterNormalizer
            dictionary_service: ParameterDictionaryService backing the normalizer
            catalog_index: CatalogIndexService for empty-result suggestions
            config: "search" section of search_config.json
                Example:
                {
                    "enable_vector_search": true,
                    "relaxed_threshold": 3
                }
        """
        config = config or {}
        self.repository = repository
        self.consolidator = consolidator or ResultConsolidator()
        self.embedding_provider = embedding_provider
        self.query_normalizer = query_normalizer
        self.dictionary_service = dictionary_service
        self.catalog_index = catalog_index

        enable_vector = config.get("enable_vector_search")
        if enable_vector is None:
            enable_vector = os.getenv("ENABLE_VECTOR_SEARCH", "false").lower() == "true"
        self.vector_enabled = bool(enable_vector)
        self.relaxed_threshold = config.get("relaxed_threshold", DEFAULT_RELAXED_THRESHOLD)

        self._dictionary_ready: Optional[bool] = None

        logger.info(
            f"SearchEngine initialized (vector={'on' if self.vector_enabled else 'off'}, "
            f"normalization={'on' if self._normalization_configured else 'off'}, "
            f"relaxed_threshold={self.relaxed_threshold})"
        )

    @property
    def _normalization_configured(self) -> bool:
        return self.query_normalizer is not None and self.dictionary_service is not None

    @traceable(name="equipment_search", run_type="retriever")
    async def search(self, query: SearchQuery) -> CatalogSearchResult:
        """
        Execute the full search cascade.

        Args:
            query: Structured query with raw parameters

        Returns:
            CatalogSearchResult with fused items, total and the strategy label

        Raises:
            Exception: Whatever the full-text search raised; every other stage
                degrades instead of raising
        """
        search_id = uuid.uuid4().hex[:12]

        with log_context(search_id=search_id):
            with log_performance("equipment_search", threshold_ms=1000):
                return await self._search(query)

    async def _search(self, query: SearchQuery) -> CatalogSearchResult:
        limit = query.limit
        offset = query.offset

        normalized_query, normalization_stats = await self._normalize(query)

        logger.info(
            f"Search: text={normalized_query.text!r}, category={normalized_query.category!r}, "
            f"brand={normalized_query.brand!r}, region={normalized_query.region!r}, "
            f"parameters={normalized_query.parameters}, limit={limit}, offset={offset}"
        )

        # Stage 1: full-text and strict vector concurrently
        use_vector = (
            self.vector_enabled
            and self.embedding_provider is not None
            and normalized_query.has_text()
        )

        tasks = [self.repository.full_text_search(normalized_query, limit, offset)]
        if use_vector:
            tasks.append(self._strict_vector_search(normalized_query, limit, offset))

        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        fts_outcome = outcomes[0]
        if isinstance(fts_outcome, BaseException):
            logger.error(f"Full-text search failed: {fts_outcome}", exc_info=fts_outcome)
            raise fts_outcome
        fts_items: List[EquipmentSummary] = fts_outcome

        embedding: Optional[List[float]] = None
        strict_items: List[EquipmentSummary] = []
        if use_vector:
            vector_outcome = outcomes[1]
            if isinstance(vector_outcome, BaseException):
                logger.error(f"Strict vector search failed: {vector_outcome}", exc_info=vector_outcome)
            else:
                embedding, strict_items = vector_outcome

        # Stage 2: relaxed vector search keeps region and parameters
        relaxed_items: List[EquipmentSummary] = []
        if (
            embedding is not None
            and len(fts_items) + len(strict_items) < self.relaxed_threshold
            and normalized_query.has_filters()
        ):
            relaxed_items = await self._relaxed_vector_search(normalized_query, embedding, limit, offset)

        logger.info(
            f"Stage results: fts={len(fts_items)}, vector_strict={len(strict_items)}, "
            f"vector_relaxed={len(relaxed_items)}"
        )

        # Stage 3: nothing anywhere
        if not fts_items and not strict_items and not relaxed_items:
            return await self._empty_result(normalized_query, normalization_stats)

        strategy_results = [
            StrategySearchResult(strategy_name=SearchStrategyName.FTS, items=fts_items),
            StrategySearchResult(strategy_name=SearchStrategyName.VECTOR_STRICT, items=strict_items),
            StrategySearchResult(strategy_name=SearchStrategyName.VECTOR_RELAXED, items=relaxed_items),
        ]
        items = self.consolidator.consolidate(strategy_results, limit)

        total = await self._count(normalized_query, fallback=len(items))

        return CatalogSearchResult(
            items=items,
            total=total,
            used_strategy=self._strategy_label(strategy_results),
            normalization=normalization_stats,
        )

    async def _normalize(self, query: SearchQuery) -> Tuple[SearchQuery, Optional[QueryNormalizationStats]]:
        if not self._normalization_configured or not query.parameters:
            return query, None

        if not await self._ensure_dictionary():
            return query, None

        try:
            result = self.query_normalizer.normalize_query(query)
        except Exception as e:
            logger.error(f"Parameter normalization failed, using raw parameters: {e}", exc_info=True)
            return query, None

        stats = result.stats
        if stats.unresolved:
            logger.info(
                f"Normalization: {stats.normalized}/{stats.total} parameters resolved "
                f"(confidence {stats.confidence:.2f})"
            )
        return result.normalized_query, stats

    async def _ensure_dictionary(self) -> bool:
        """Load the dictionary once; a failure disables normalization for this engine"""
        if self._dictionary_ready is not None:
            return self._dictionary_ready

        try:
            await self.dictionary_service.load_dictionary()
            ready = True
        except Exception as e:
            logger.error(f"Parameter dictionary unavailable, normalization disabled: {e}", exc_info=True)
            ready = False

        if self._dictionary_ready is None:
            self._dictionary_ready = ready
        return self._dictionary_ready

    async def _strict_vector_search(
        self,
        query: SearchQuery,
        limit: int,
        offset: int
    ) -> Tuple[Optional[List[float]], List[EquipmentSummary]]:
        """Embed the text once and search with every filter; never raises"""
        try:
            embedding = await self.embedding_provider.embed(query.text.strip())
        except Exception as e:
            logger.error(f"Embedding failed: {e}", exc_info=True)
            return None, []

        if not embedding:
            logger.warning("No embedding produced, continuing with full-text results only")
            return None, []

        filters = VectorSearchFilters(
            category=query.category,
            brand=query.brand,
            region=query.region,
            parameters=query.parameters,
        )

        try:
            items = await self.repository.vector_search_with_embedding(
                query.text, embedding, limit, filters, offset
            )
        except Exception as e:
            logger.error(f"Strict vector search failed: {e}", exc_info=True)
            items = []

        return embedding, items

    async def _relaxed_vector_search(
        self,
        query: SearchQuery,
        embedding: List[float],
        limit: int,
        offset: int
    ) -> List[EquipmentSummary]:
        # Only category and brand are soft; region and parameters stay hard filters
        filters = VectorSearchFilters(
            region=query.region,
            parameters=query.parameters,
        )

        try:
            with log_context(stage="vector_relaxed"):
                return await self.repository.vector_search_with_embedding(
                    query.text, embedding, limit, filters, offset
                )
        except Exception as e:
            logger.error(f"Relaxed vector search failed: {e}", exc_info=True)
            return []

    async def _empty_result(
        self,
        query: SearchQuery,
        normalization_stats: Optional[QueryNormalizationStats]
    ) -> CatalogSearchResult:
        if query.has_text():
            fallback_query = query.model_copy(
                update={"category": None, "brand": None, "parameters": None}
            )
            logger.info("All stages empty, retrying full-text search on text only")

            items = await self.repository.full_text_search(fallback_query, query.limit, query.offset)
            if items:
                total = await self._count(fallback_query, fallback=len(items))
                return CatalogSearchResult(
                    items=[item.model_copy(deep=True) for item in items],
                    total=total,
                    used_strategy=SearchStrategyName.FALLBACK,
                    message=FALLBACK_MESSAGE,
                    normalization=normalization_stats,
                )

        return CatalogSearchResult(
            items=[],
            total=0,
            used_strategy=SearchStrategyName.NONE,
            message=NOT_FOUND_MESSAGE,
            suggestions=await self._build_suggestions(query),
            normalization=normalization_stats,
        )

    async def _build_suggestions(self, query: SearchQuery):
        if self.catalog_index is None:
            return None
        try:
            return await self.catalog_index.build_suggestions(query)
        except Exception as e:
            logger.error(f"Failed to build catalog suggestions: {e}", exc_info=True)
            return None

    async def _count(self, query: SearchQuery, fallback: int) -> int:
        # The count uses the full-text predicate, so items found only by vector
        # stages are not in it; total never drops below the returned page.
        try:
            return max(await self.repository.count_equipment(query), fallback)
        except Exception as e:
            logger.error(f"Count query failed, using page size as total: {e}", exc_info=True)
            return fallback

    def _strategy_label(self, strategy_results: List[StrategySearchResult]) -> SearchStrategyName:
        contributing = [r.strategy_name for r in strategy_results if r.items]
        if len(contributing) > 1:
            return SearchStrategyName.MIXED
        if contributing:
            return contributing[0]
        return SearchStrategyName.FTS

    def get_category_parameters_hint(self, category: str, limit: int = 10) -> Optional[str]:
        """Searchable parameters for a category, or None while the dictionary is not loaded"""
        if self.dictionary_service is None or not self.dictionary_service.is_loaded:
            return None
        return self.dictionary_service.get_category_parameters_hint(category, limit)
