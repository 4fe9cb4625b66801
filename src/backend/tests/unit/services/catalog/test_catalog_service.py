"""
Unit tests for CatalogService
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from equipment_search.models.search import CatalogSearchResult, SearchStrategyName
from equipment_search.services.catalog.catalog_service import PRICE_ON_REQUEST, CatalogService, format_rub


@pytest.fixture
def search_engine():
    engine = MagicMock()
    engine.search = AsyncMock(return_value=CatalogSearchResult(used_strategy=SearchStrategyName.NONE))
    engine.get_category_parameters_hint = MagicMock(return_value="Мощность двигателя (kw)")
    return engine


@pytest.fixture
def catalog_service(search_engine):
    return CatalogService(search_engine, default_limit=10)


@pytest.mark.unit
class TestCleanQuery:

    def test_empty_strings_become_none(self, catalog_service):
        query = catalog_service.clean_query({"text": "  ", "category": "", "brand": "JCB", "region": " "})

        assert query.text is None
        assert query.category is None
        assert query.region is None
        assert query.brand == "JCB"

    @pytest.mark.parametrize("limit, expected", [
        (None, 10), (0, 10), (-3, 10), ("abc", 10), (True, 10), ("25", 25), (7, 7),
    ])
    def test_limit(self, catalog_service, limit, expected):
        assert catalog_service.clean_query({"limit": limit}).limit == expected

    @pytest.mark.parametrize("offset, expected", [
        (None, 0), (-5, 0), ("x", 0), ("20", 20), (40, 40),
    ])
    def test_offset(self, catalog_service, offset, expected):
        assert catalog_service.clean_query({"offset": offset}).offset == expected

    def test_empty_parameters_become_none(self, catalog_service):
        assert catalog_service.clean_query({"parameters": {}}).parameters is None

    def test_input_not_modified(self, catalog_service):
        raw = {"text": "", "limit": 0}

        catalog_service.clean_query(raw)

        assert raw == {"text": "", "limit": 0}


@pytest.mark.unit
class TestSearchEquipment:

    @pytest.mark.asyncio
    async def test_delegates_cleaned_query(self, catalog_service, search_engine):
        result = await catalog_service.search_equipment({"text": "экскаватор", "brand": "", "limit": "5"})

        query = search_engine.search.call_args.args[0]
        assert query.text == "экскаватор"
        assert query.brand is None
        assert query.limit == 5
        assert result.used_strategy == SearchStrategyName.NONE

    def test_parameters_hint(self, catalog_service, search_engine):
        assert catalog_service.get_category_parameters_hint("engine", 5) == "Мощность двигателя (kw)"
        search_engine.get_category_parameters_hint.assert_called_once_with("engine", 5)


@pytest.mark.unit
class TestFormatSummary:

    def test_format_rub(self):
        assert format_rub(1250000) == "1\u00a0250\u00a0000"
        assert format_rub(1250.5) == "1\u00a0250,5"
        assert format_rub(99.99) == "99,99"
        assert format_rub(0) == "0"

    def test_full_summary(self, catalog_service, item_factory):
        item = item_factory(
            "1", name="Экскаватор CAT 320", brand="Caterpillar", category="Экскаваторы",
            price=8500000, main_parameters={"Мощность": "121 кВт", "Масса": "22 т", "Ковш": "1.2 м³", "Год": 2019},
        )

        summary = catalog_service.format_summary(item)

        assert summary == (
            "Экскаватор CAT 320 (Caterpillar, Экскаваторы) — 8\u00a0500\u00a0000 ₽"
            " | Мощность: 121 кВт, Масса: 22 т, Ковш: 1.2 м³"
        )

    def test_price_on_request_without_parameters(self, catalog_service, item_factory):
        item = item_factory("2", name="Каток HAMM", brand="HAMM", category="Катки")

        assert catalog_service.format_summary(item) == f"Каток HAMM (HAMM, Катки) — {PRICE_ON_REQUEST}"

    def test_text_price_kept(self, catalog_service, item_factory):
        item = item_factory("3", name="Кран", brand="XCMG", category="Краны", price="договорная")

        assert catalog_service.format_summary(item).endswith("— договорная")
