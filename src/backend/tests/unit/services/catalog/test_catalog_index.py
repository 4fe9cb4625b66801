"""
Unit tests for CatalogIndexService
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from equipment_search.models.search import CategoryInfo, SearchQuery
from equipment_search.services.catalog.catalog_index import CatalogIndexService

CONFIG = {
    "refresh_interval_seconds": 300,
    "similar_categories_limit": 3,
    "similar_categories_max_distance": 3,
    "popular_categories_limit": 2,
    "available_brands_limit": 2,
    "example_queries": ["экскаватор Caterpillar", "кран 25 тонн"],
}


@pytest.fixture
def catalog_repository():
    repository = MagicMock()
    repository.fetch_category_counts = AsyncMock(return_value=[
        CategoryInfo(name="Экскаваторы", count=120),
        CategoryInfo(name="Мини-экскаваторы", count=60),
        CategoryInfo(name="Краны", count=45),
        CategoryInfo(name="Катки", count=12),
    ])
    repository.fetch_brand_counts = AsyncMock(return_value=[
        CategoryInfo(name="Caterpillar", count=80),
        CategoryInfo(name="Komatsu", count=50),
        CategoryInfo(name="JCB", count=30),
    ])
    repository.fetch_region_counts = AsyncMock(return_value=[CategoryInfo(name="Москва", count=300)])
    repository.fetch_total_count = AsyncMock(return_value=1830)
    return repository


@pytest.fixture
def index_service(catalog_repository):
    return CatalogIndexService(catalog_repository, CONFIG)


@pytest.mark.unit
class TestBuildIndex:

    @pytest.mark.asyncio
    async def test_build(self, index_service):
        index = await index_service.build_index()

        assert index.total_items == 1830
        assert [c.name for c in index.brands] == ["Caterpillar", "Komatsu", "JCB"]
        assert index_service.index is index

    @pytest.mark.asyncio
    async def test_ensure_index_builds_once(self, index_service, catalog_repository):
        await index_service.ensure_index()
        await index_service.ensure_index()

        catalog_repository.fetch_total_count.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_build_failure_keeps_previous_snapshot(self, index_service, catalog_repository):
        previous = await index_service.build_index()
        catalog_repository.fetch_brand_counts.side_effect = ConnectionError("database unavailable")

        with pytest.raises(ConnectionError):
            await index_service.build_index()

        assert index_service.index is previous

    @pytest.mark.asyncio
    async def test_auto_refresh_start_stop(self, catalog_repository):
        service = CatalogIndexService(catalog_repository, {"refresh_interval_seconds": 3600})

        service.start_auto_refresh()
        for _ in range(100):
            if service.index is not None:
                break
            await asyncio.sleep(0.01)
        await service.stop_auto_refresh()

        assert service.index is not None
        await service.stop_auto_refresh()


@pytest.mark.unit
class TestLookups:

    def test_empty_without_index(self, index_service):
        assert index_service.find_similar_categories("Экскаваторы") == []
        assert index_service.get_popular_categories() == []
        assert index_service.get_popular_brands() == []
        assert index_service.category_exists("Краны") is False

    @pytest.mark.asyncio
    async def test_substring_matches_first(self, index_service):
        await index_service.build_index()

        assert index_service.find_similar_categories("экскаватор") == ["Экскаваторы", "Мини-экскаваторы"]

    @pytest.mark.asyncio
    async def test_typo_matches_by_edit_distance(self, index_service):
        await index_service.build_index()

        assert index_service.find_similar_categories("Крааны") == ["Краны"]
        assert index_service.find_similar_categories("Бульдозеры") == []

    @pytest.mark.asyncio
    async def test_popular_and_exists(self, index_service):
        await index_service.build_index()

        assert [c.name for c in index_service.get_popular_categories()] == ["Экскаваторы", "Мини-экскаваторы"]
        assert index_service.get_popular_brands() == ["Caterpillar", "Komatsu"]
        assert index_service.category_exists(" краны ")
        assert not index_service.category_exists("Бульдозеры")


@pytest.mark.unit
class TestBuildSuggestions:

    @pytest.mark.asyncio
    async def test_category_and_brand_query(self, index_service):
        suggestions = await index_service.build_suggestions(SearchQuery(category="Кроны", brand="Volvo"))

        assert suggestions.similar_categories == ["Краны"]
        assert suggestions.available_brands == ["Caterpillar", "Komatsu"]
        assert [c.name for c in suggestions.popular_categories] == ["Экскаваторы", "Мини-экскаваторы"]
        assert suggestions.example_queries == CONFIG["example_queries"]

    @pytest.mark.asyncio
    async def test_text_only_query(self, index_service):
        suggestions = await index_service.build_suggestions(SearchQuery(text="луноход"))

        assert suggestions.similar_categories is None
        assert suggestions.available_brands is None
        assert suggestions.popular_categories is not None

    @pytest.mark.asyncio
    async def test_camel_case_dump(self, index_service):
        suggestions = await index_service.build_suggestions(SearchQuery(brand="Volvo"))

        dumped = suggestions.model_dump(by_alias=True, exclude_none=True)
        assert set(dumped) == {"popularCategories", "availableBrands", "exampleQueries"}
