"""
Unit tests for ServiceContainer wiring and lifecycle
"""

from unittest.mock import AsyncMock

import pytest

from equipment_search.container import ServiceContainer
from equipment_search.services.config.configuration_service import ConfigurationService


@pytest.fixture
def container(db_factory, mock_embedding_provider):
    db_manager, _ = db_factory(rows=[])
    db_manager.close = AsyncMock()
    return ServiceContainer(ConfigurationService(), db_manager, embedding_provider=mock_embedding_provider)


@pytest.mark.unit
class TestServiceContainer:

    def test_single_dictionary_instance_is_shared(self, container):
        dictionary_service = container.dictionary_service

        assert container.repository.dictionary_service is dictionary_service
        assert container.parameter_normalizer.dictionary_service is dictionary_service
        assert container.query_normalizer.normalizer is container.parameter_normalizer
        assert container.search_engine.dictionary_service is dictionary_service
        assert container.search_engine.catalog_index is container.catalog_index
        assert container.catalog_service.search_engine is container.search_engine

    def test_configuration_applied(self, container):
        assert container.consolidator.rrf_k == 60
        assert container.search_engine.relaxed_threshold == 3
        assert container.catalog_service.default_limit == 10
        assert container.catalog_index.example_queries

    @pytest.mark.asyncio
    async def test_startup_and_shutdown(self, container):
        await container.startup(auto_refresh_catalog=False)

        container.db_manager.init_db.assert_called_once()
        assert container.dictionary_service.is_loaded

        await container.shutdown()
        container.db_manager.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_dictionary_preload_failure_is_not_fatal(self, container):
        container.db_manager.session.side_effect = RuntimeError("PostgreSQL not initialized")

        await container.startup(auto_refresh_catalog=False)

        assert not container.dictionary_service.is_loaded
