"""
Unit tests for QueryParameterNormalizer
"""

import pytest

from equipment_search.models.search import SearchQuery
from equipment_search.services.normalization.parameter_normalizer import ParameterNormalizerService
from equipment_search.services.normalization.query_normalizer import QueryParameterNormalizer
from equipment_search.services.search.query_builder import SQLConditionBuilder


@pytest.fixture
def query_normalizer(dictionary_service):
    return QueryParameterNormalizer(ParameterNormalizerService(dictionary_service))


@pytest.mark.unit
class TestNormalizeQuery:

    @pytest.mark.asyncio
    async def test_range_suffix_preserved(self, query_normalizer):
        query = SearchQuery(text="экскаватор", parameters={"Мощность_min": "100 л.с."})

        result = query_normalizer.normalize_query(query)

        assert list(result.normalized_query.parameters) == ["engine_power_kw_min"]
        assert result.normalized_query.parameters["engine_power_kw_min"] == pytest.approx(73.6)

    @pytest.mark.asyncio
    async def test_min_and_max_for_same_parameter(self, query_normalizer):
        query = SearchQuery(parameters={"Вес_min": "10 т", "Вес_max": "25000 кг", "Топливо": "дизельный"})

        params = query_normalizer.normalize_query(query).normalized_query.parameters

        assert params["operating_weight_t_min"] == 10
        assert params["operating_weight_t_max"] == pytest.approx(25)
        assert params["fuel_type"] == "diesel"

    @pytest.mark.asyncio
    async def test_unresolved_dropped_and_counted(self, query_normalizer):
        query = SearchQuery(parameters={
            "Мощность_min": "100 кВт",
            "Глубина копания_max": "6 м",
            "Вес": "5 т/ч",
        })

        result = query_normalizer.normalize_query(query)

        assert set(result.normalized_query.parameters) == {"engine_power_kw_min", "operating_weight_t"}
        assert result.stats.total == 3
        assert result.stats.normalized == 2
        assert result.stats.unresolved == 1
        assert result.stats.lossy == 1
        assert result.stats.confidence == pytest.approx(2 / 3)

    @pytest.mark.asyncio
    async def test_stats_count_inputs_not_canonical_keys(self, query_normalizer):
        query = SearchQuery(parameters={"Мощность": "100 л.с.", "engine_power_kw": 80})

        result = query_normalizer.normalize_query(query)

        assert result.normalized_query.parameters == {"engine_power_kw": 80}
        assert result.stats.total == 2
        assert result.stats.normalized == 2
        assert result.stats.confidence == 1.0

    @pytest.mark.asyncio
    async def test_original_query_untouched(self, query_normalizer):
        raw = {"Мощность_min": "100 л.с."}
        query = SearchQuery(text="погрузчик", brand="JCB", parameters=raw)

        result = query_normalizer.normalize_query(query)

        assert query.parameters == {"Мощность_min": "100 л.с."}
        assert result.normalized_query is not query
        assert result.normalized_query.text == "погрузчик"
        assert result.normalized_query.brand == "JCB"

    @pytest.mark.asyncio
    async def test_no_parameters(self, query_normalizer):
        query = SearchQuery(text="кран")

        result = query_normalizer.normalize_query(query)

        assert result.normalized_query == query
        assert result.stats.total == 0
        assert result.stats.confidence == 1.0

    @pytest.mark.asyncio
    async def test_all_unresolved_leaves_empty_parameters(self, query_normalizer):
        result = query_normalizer.normalize_query(SearchQuery(parameters={"Непонятно": "1"}))

        assert result.normalized_query.parameters == {}
        assert result.stats.confidence == 0.0


@pytest.mark.unit
class TestBuildSqlConditions:

    @pytest.mark.asyncio
    async def test_conditions_for_normalized_parameters(self, query_normalizer):
        conditions = query_normalizer.build_sql_conditions({
            "engine_power_kw_min": 73.6,
            "fuel_type": "diesel",
        })

        assert conditions == [
            "CAST((e.normalized_parameters ->> :p0) AS numeric) >= CAST(:p1 AS numeric)",
            "(e.normalized_parameters ->> :p2) = CAST(:p3 AS text)",
        ]

    @pytest.mark.asyncio
    async def test_shared_builder_exposes_bound_values(self, query_normalizer):
        builder = SQLConditionBuilder()
        builder.add("e.category ILIKE {0}", "%экскаватор%")

        conditions = query_normalizer.build_sql_conditions({"has_air_conditioning": True}, builder)
        _, params = builder.render()

        assert len(conditions) == 2
        assert params == {"p0": "%экскаватор%", "p1": "has_air_conditioning", "p2": "true"}

    @pytest.mark.asyncio
    async def test_invalid_key_dropped(self, query_normalizer):
        conditions = query_normalizer.build_sql_conditions({
            "'; DROP TABLE equipment; --": 1,
            "bucket_volume_min": 1,
        })

        assert len(conditions) == 1
