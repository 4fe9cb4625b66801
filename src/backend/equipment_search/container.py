"""
Service Container

Composition root: builds every search collaborator exactly once and wires
them together. The parameter dictionary service is a single explicit
instance shared by the repository, the normalizers and the search engine.
"""

import logging
from typing import Optional

from .database.database import PostgreSQLManager
from .database.equipment_repository import EquipmentRepository, ParameterDictionaryRepository
from .services.catalog.catalog_index import CatalogIndexService
from .services.catalog.catalog_service import CatalogService
from .services.config.configuration_service import ConfigurationService
from .services.embeddings.embedding_provider import EmbeddingProvider
from .services.normalization.parameter_dictionary import ParameterDictionaryService
from .services.normalization.parameter_normalizer import ParameterNormalizerService
from .services.normalization.query_normalizer import QueryParameterNormalizer
from .services.search.consolidator import ResultConsolidator
from .services.search.orchestrator import SearchEngine

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Holds the wired service graph for one application instance"""

    def __init__(
        self,
        config_service: ConfigurationService,
        db_manager: PostgreSQLManager,
        embedding_provider: Optional[EmbeddingProvider] = None
    ):
        """
        Wire services.

        Args:
            config_service: Source of search_config.json sections
            db_manager: PostgreSQL manager (init_db() is called in startup())
            embedding_provider: Overrides the provider built from the environment
        """
        self.config_service = config_service
        self.db_manager = db_manager

        engine_config = config_service.get_engine_config()
        embedding_config = config_service.get_embedding_config()

        self.dictionary_service = ParameterDictionaryService(ParameterDictionaryRepository(db_manager))
        self.repository = EquipmentRepository(db_manager, dictionary_service=self.dictionary_service)
        self.parameter_normalizer = ParameterNormalizerService(self.dictionary_service)
        self.query_normalizer = QueryParameterNormalizer(self.parameter_normalizer)
        self.consolidator = ResultConsolidator(config_service.get_fusion_config())
        self.catalog_index = CatalogIndexService(self.repository, config_service.get_catalog_config())

        self.embedding_provider = embedding_provider or EmbeddingProvider(
            timeout_seconds=embedding_config.get("timeout_seconds", 30),
            slow_request_ms=embedding_config.get("slow_request_ms", 5000),
        )

        self.search_engine = SearchEngine(
            repository=self.repository,
            consolidator=self.consolidator,
            embedding_provider=self.embedding_provider,
            query_normalizer=self.query_normalizer,
            dictionary_service=self.dictionary_service,
            catalog_index=self.catalog_index,
            config=engine_config,
        )
        self.catalog_service = CatalogService(
            self.search_engine,
            default_limit=config_service.get_default_limit(),
        )

    async def startup(self, auto_refresh_catalog: bool = True) -> None:
        """Connect storage, preload the dictionary and start catalog refresh"""
        self.db_manager.init_db()
        logger.info("✓ PostgreSQL initialized")

        try:
            await self.dictionary_service.load_dictionary()
            logger.info("✓ Parameter dictionary loaded")
        except Exception as e:
            # The engine retries once on first search and disables normalization on failure
            logger.error(f"Parameter dictionary preload failed: {e}", exc_info=True)

        if auto_refresh_catalog:
            self.catalog_index.start_auto_refresh()
            logger.info("✓ Catalog index refresh scheduled")

    async def shutdown(self) -> None:
        try:
            await self.catalog_index.stop_auto_refresh()
        except Exception as e:
            logger.error(f"Error stopping catalog index refresh: {e}")

        try:
            await self.db_manager.close()
            logger.info("✓ PostgreSQL closed")
        except Exception as e:
            logger.error(f"Error closing PostgreSQL: {e}")
