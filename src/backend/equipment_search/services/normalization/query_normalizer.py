"""
Query Parameter Normalizer

Applies ParameterNormalizerService to a whole SearchQuery, keeping range
suffixes intact: {"Мощность_min": "100 л.с."} becomes
{"engine_power_kw_min": 73.6}.
"""

import logging
from typing import Any, Dict, List, Optional

from ...models.parameter_dictionary import ParameterValue, QueryNormalizationStats
from ...models.search import QueryNormalizationResult, SearchQuery
from ..search.query_builder import MAX_SUFFIX, MIN_SUFFIX, SQLConditionBuilder, split_range_suffix
from .parameter_normalizer import ParameterNormalizerService

logger = logging.getLogger(__name__)


class QueryParameterNormalizer:
    """Normalizes the parameters of a SearchQuery into canonical keys"""

    def __init__(self, normalizer: ParameterNormalizerService):
        self.normalizer = normalizer

    def normalize_query(self, query: SearchQuery) -> QueryNormalizationResult:
        """
        Derive a query whose parameters use canonical keys and units.

        Parameters are partitioned into plain, _min and _max groups; each group
        is normalized on its own and the suffix is re-appended to the canonical
        key. Unresolved entries are left out of the derived query.

        Args:
            query: Query with raw parameters; never modified

        Returns:
            QueryNormalizationResult with the derived query and summed counts
        """
        if not query.parameters:
            return QueryNormalizationResult(
                normalized_query=query.model_copy(deep=True),
                stats=QueryNormalizationStats(),
            )

        groups: Dict[str, Dict[str, Any]] = {"": {}, MIN_SUFFIX: {}, MAX_SUFFIX: {}}
        for key, value in query.parameters.items():
            base_key, suffix = split_range_suffix(key)
            groups[suffix][base_key] = value

        normalized_parameters: Dict[str, ParameterValue] = {}
        total = 0
        normalized_count = 0
        unresolved_count = 0
        lossy_count = 0

        for suffix, raw_group in groups.items():
            if not raw_group:
                continue

            result = self.normalizer.normalize(raw_group)
            for canonical_key, value in result.normalized.items():
                normalized_parameters[f"{canonical_key}{suffix}"] = value

            normalized_count += result.converted
            unresolved_count += result.total - result.converted
            lossy_count += len(result.lossy_keys)
            total += result.total

            if result.unresolved:
                logger.info(
                    f"Dropping unresolved parameters{' (' + suffix + ')' if suffix else ''}: "
                    f"{list(result.unresolved.keys())}"
                )

        stats = QueryNormalizationStats(
            total=total,
            normalized=normalized_count,
            unresolved=unresolved_count,
            lossy=lossy_count,
            confidence=normalized_count / total if total > 0 else 1.0,
        )

        logger.debug(
            f"Query parameters normalized: {normalized_count}/{total} "
            f"(confidence {stats.confidence:.2f})"
        )

        return QueryNormalizationResult(
            normalized_query=query.model_copy(update={"parameters": normalized_parameters}, deep=True),
            stats=stats,
        )

    def build_sql_conditions(
        self,
        normalized_parameters: Optional[Dict[str, Any]],
        builder: Optional[SQLConditionBuilder] = None
    ) -> List[str]:
        """
        Render predicates for already-normalized parameters.

        When a builder is supplied, conditions are appended to it and its
        rendered conditions returned, so the caller can take the bound values
        from builder.render().
        """
        target = builder if builder is not None else SQLConditionBuilder()
        target.add_parameter_conditions(normalized_parameters, self.normalizer.dictionary_service)
        conditions, _ = target.render()
        return conditions
