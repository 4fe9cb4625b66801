"""
Catalog Index Service

Cached catalog statistics (category, brand and region counts) used to build
suggestions when a search returns nothing: similar category names, the most
populated categories and the available brands.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from rapidfuzz.distance import Levenshtein

from ...models.search import CatalogSuggestions, CategoryInfo, SearchQuery

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogIndex:
    categories: List[CategoryInfo]
    brands: List[CategoryInfo]
    regions: List[CategoryInfo]
    total_items: int
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class CatalogIndexService:
    """
    Holds the latest CatalogIndex snapshot.

    The index is built on demand (ensure_index) and optionally refreshed in
    the background while the application runs.
    """

    def __init__(self, repository: Any, config: Optional[Dict[str, Any]] = None):
        """
        Initialize catalog index service.

        Args:
            repository: EquipmentRepository providing the fetch_*_counts queries
            config: "catalog" section of search_config.json
        """
        config = config or {}
        self.repository = repository
        self.refresh_interval = config.get("refresh_interval_seconds", 300)
        self.similar_limit = config.get("similar_categories_limit", 5)
        self.max_distance = config.get("similar_categories_max_distance", 3)
        self.popular_limit = config.get("popular_categories_limit", 10)
        self.brands_limit = config.get("available_brands_limit", 10)
        self.example_queries: List[str] = list(config.get("example_queries", []))

        self._index: Optional[CatalogIndex] = None
        self._refresh_task: Optional[asyncio.Task] = None

    @property
    def index(self) -> Optional[CatalogIndex]:
        return self._index

    async def build_index(self) -> CatalogIndex:
        """
        Rebuild the index from storage.

        Raises:
            Exception: Any storage error, after logging it
        """
        try:
            categories, brands, regions, total = await asyncio.gather(
                self.repository.fetch_category_counts(),
                self.repository.fetch_brand_counts(),
                self.repository.fetch_region_counts(),
                self.repository.fetch_total_count(),
            )
        except Exception as e:
            logger.error(f"Failed to build catalog index: {e}", exc_info=True)
            raise

        self._index = CatalogIndex(
            categories=list(categories),
            brands=list(brands),
            regions=list(regions),
            total_items=total,
        )
        logger.info(
            f"Catalog index built: {total} items, {len(self._index.categories)} categories, "
            f"{len(self._index.brands)} brands"
        )
        return self._index

    async def ensure_index(self) -> CatalogIndex:
        if self._index is not None:
            return self._index
        return await self.build_index()

    def start_auto_refresh(self) -> None:
        """Schedule periodic rebuilds on the running event loop"""
        if self._refresh_task is not None and not self._refresh_task.done():
            return
        self._refresh_task = asyncio.create_task(self._refresh_loop())

    async def stop_auto_refresh(self) -> None:
        task = self._refresh_task
        self._refresh_task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _refresh_loop(self) -> None:
        while True:
            try:
                await self.build_index()
            except Exception:
                # Already logged; keep serving the previous snapshot
                pass
            await asyncio.sleep(self.refresh_interval)

    def find_similar_categories(self, query: str, limit: Optional[int] = None) -> List[str]:
        """
        Category names resembling query.

        Substring matches (either direction) come first; the remaining slots
        are filled with names within the configured Levenshtein distance.
        """
        if self._index is None:
            return []

        limit = self.similar_limit if limit is None else limit
        query_lower = (query or "").strip().lower()
        if not query_lower or limit <= 0:
            return []

        substring_matches = [
            c.name for c in self._index.categories
            if c.name.lower() in query_lower or query_lower in c.name.lower()
        ][:limit]

        if len(substring_matches) >= limit:
            return substring_matches

        fuzzy_matches = [
            c.name for c in self._index.categories
            if c.name not in substring_matches
            and Levenshtein.distance(c.name.lower(), query_lower) <= self.max_distance
        ][:limit - len(substring_matches)]

        return substring_matches + fuzzy_matches

    def get_popular_categories(self, limit: Optional[int] = None) -> List[CategoryInfo]:
        if self._index is None:
            return []
        limit = self.popular_limit if limit is None else limit
        return [CategoryInfo(name=c.name, count=c.count) for c in self._index.categories[:limit]]

    def get_popular_brands(self, limit: Optional[int] = None) -> List[str]:
        if self._index is None:
            return []
        limit = self.brands_limit if limit is None else limit
        return [b.name for b in self._index.brands[:limit]]

    def category_exists(self, category: str) -> bool:
        if self._index is None:
            return False
        category_lower = (category or "").strip().lower()
        return any(c.name.lower() == category_lower for c in self._index.categories)

    async def build_suggestions(self, query: SearchQuery) -> CatalogSuggestions:
        """
        Suggestions for an empty result.

        Similar categories only when the query named a category, available
        brands only when it named a brand.
        """
        await self.ensure_index()

        similar = None
        if query.category and query.category.strip():
            similar = self.find_similar_categories(query.category) or None

        brands = None
        if query.brand and query.brand.strip():
            brands = self.get_popular_brands() or None

        return CatalogSuggestions(
            similar_categories=similar,
            popular_categories=self.get_popular_categories() or None,
            available_brands=brands,
            example_queries=self.example_queries or None,
        )
