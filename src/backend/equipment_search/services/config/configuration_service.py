"""
Configuration Service
Centralized configuration management with caching and validation
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

SEARCH_CONFIG = "search_config"


class ConfigurationService:
    """
    Centralized service for loading and caching search configuration

    Loads configurations from JSON files in the config directory with:
    - LRU caching
    - Hot-reload capability
    - Section accessors with defaults for optional keys
    """

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize ConfigurationService

        Args:
            config_dir: Path to configuration directory. If None, uses equipment_search/config
        """
        if config_dir is None:
            self.config_dir = Path(__file__).parent.parent.parent / "config"
        else:
            self.config_dir = Path(config_dir)

        logger.info(f"ConfigurationService initialized with config_dir: {self.config_dir}")

    @lru_cache(maxsize=32)
    def load_config(self, config_name: str) -> Dict[str, Any]:
        """
        Load configuration from JSON file with caching

        Args:
            config_name: Name of config file (without .json extension)

        Returns:
            Dict containing configuration data

        Raises:
            FileNotFoundError: If config file not found
            json.JSONDecodeError: If config file is invalid JSON
        """
        config_path = self.config_dir / f"{config_name}.json"

        if not config_path.exists():
            logger.error(f"Config file not found: {config_name}.json")
            raise FileNotFoundError(f"Config file not found: {config_path}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in {config_name}.json: {e}")
            raise

        logger.info(f"Loaded config: {config_name} (version: {config.get('version', 'N/A')})")
        return config

    def reload_config(self, config_name: str) -> Dict[str, Any]:
        """
        Force reload of configuration (clears cache)

        Args:
            config_name: Name of config file to reload

        Returns:
            Freshly loaded configuration
        """
        self.load_config.cache_clear()
        logger.info(f"Cache cleared, reloading config: {config_name}")
        return self.load_config(config_name)

    def get_search_config(self) -> Dict[str, Any]:
        """Get the whole search configuration"""
        return self.load_config(SEARCH_CONFIG)

    def get_engine_config(self) -> Dict[str, Any]:
        """SearchEngine settings (vector toggle, relaxed-stage threshold)"""
        return self.get_search_config().get("search", {})

    def get_fusion_config(self) -> Dict[str, Any]:
        """RRF settings (k, per-strategy weights)"""
        return self.get_search_config().get("fusion", {})

    def get_embedding_config(self) -> Dict[str, Any]:
        """Embedding client settings (timeouts, slow-request threshold)"""
        return self.get_search_config().get("embeddings", {})

    def get_catalog_config(self) -> Dict[str, Any]:
        """Catalog index and suggestion settings"""
        return self.get_search_config().get("catalog", {})

    def get_example_queries(self) -> List[str]:
        return list(self.get_catalog_config().get("example_queries", []))

    def get_default_limit(self) -> int:
        return int(self.get_engine_config().get("default_limit", 10))

    def validate_config(self, config_name: str) -> bool:
        """
        Validate configuration file

        Args:
            config_name: Name of config to validate

        Returns:
            True if valid, False otherwise
        """
        try:
            config = self.load_config(config_name)
        except Exception as e:
            logger.error(f"Config validation failed for {config_name}: {e}")
            return False

        if "version" not in config:
            logger.warning(f"Config {config_name} missing version field")

        if config_name == SEARCH_CONFIG:
            weights = config.get("fusion", {}).get("strategy_weights", {})
            for name, weight in weights.items():
                if not isinstance(weight, (int, float)) or isinstance(weight, bool) or weight < 0:
                    logger.error(f"Invalid fusion weight for {name}: {weight!r}")
                    return False

            rrf_k = config.get("fusion", {}).get("rrf_k", 60)
            if not isinstance(rrf_k, int) or isinstance(rrf_k, bool) or rrf_k < 0:
                logger.error(f"Invalid rrf_k: {rrf_k!r}")
                return False

        logger.info(f"Config {config_name} validated successfully")
        return True


# Global singleton instance
_config_service: Optional[ConfigurationService] = None


def get_config_service() -> ConfigurationService:
    """
    Get global ConfigurationService singleton instance

    Returns:
        ConfigurationService instance
    """
    global _config_service
    if _config_service is None:
        _config_service = ConfigurationService()
    return _config_service


def init_config_service(config_dir: Optional[str] = None) -> ConfigurationService:
    """
    Initialize global ConfigurationService with custom config directory

    Args:
        config_dir: Path to configuration directory

    Returns:
        ConfigurationService instance
    """
    global _config_service
    _config_service = ConfigurationService(config_dir)
    logger.info("Global ConfigurationService initialized")
    return _config_service
