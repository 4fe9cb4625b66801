"""
Result Consolidator

Fuses ranked result lists from several retrieval sources with weighted
Reciprocal Rank Fusion:

    score(item) = sum over sources of weight(source) / (k + rank + 1)

- Deduplicates equipment by id (first occurrence keeps the record details)
- Ties keep discovery order (source order, then rank)
- Returns copies, so callers never alias repository records
"""

import logging
from typing import Dict, List, Optional, Sequence

from ...models.search import EquipmentSummary, SearchStrategyName, StrategySearchResult

logger = logging.getLogger(__name__)

DEFAULT_RRF_K = 60

DEFAULT_STRATEGY_WEIGHTS: Dict[str, float] = {
    SearchStrategyName.FTS.value: 1.0,
    SearchStrategyName.VECTOR_STRICT.value: 1.0,
    SearchStrategyName.VECTOR_RELAXED.value: 0.5,
}


class ResultConsolidator:
    """Weighted RRF over StrategySearchResult lists"""

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize consolidator with configuration.

        Args:
            config: "fusion" section of search_config.json
                Example:
                {
                    "rrf_k": 60,
                    "strategy_weights": {"fts": 1.0, "vector_strict": 1.0, "vector_relaxed": 0.5}
                }
        """
        config = config or {}
        self.rrf_k = config.get("rrf_k", DEFAULT_RRF_K)
        self.strategy_weights = {**DEFAULT_STRATEGY_WEIGHTS, **config.get("strategy_weights", {})}

        logger.info(f"ResultConsolidator initialized with k={self.rrf_k}, weights: {self.strategy_weights}")

    def weight_for(self, strategy_name: SearchStrategyName) -> float:
        return self.strategy_weights.get(strategy_name.value, 1.0)

    def consolidate(self, strategy_results: Sequence[StrategySearchResult], limit: int) -> List[EquipmentSummary]:
        """
        Fuse ranked lists into a single list.

        Args:
            strategy_results: Source results in discovery order (fts, strict, relaxed)
            limit: Maximum number of items returned

        Returns:
            Copies of the fused items, best first
        """
        scores: Dict[str, float] = {}
        records: Dict[str, EquipmentSummary] = {}
        discovery: List[str] = []

        for result in strategy_results:
            weight = self.weight_for(result.strategy_name)
            for rank, item in enumerate(result.items):
                if item.id not in records:
                    records[item.id] = item
                    discovery.append(item.id)
                    scores[item.id] = 0.0
                scores[item.id] += weight / (self.rrf_k + rank + 1)

        # sorted() is stable: equal scores stay in discovery order
        ordered = sorted(discovery, key=lambda item_id: scores[item_id], reverse=True)

        logger.debug(
            f"Fused {len(discovery)} unique items from "
            f"{[r.strategy_name.value for r in strategy_results]}"
        )

        return [records[item_id].model_copy(deep=True) for item_id in ordered[:max(limit, 0)]]
