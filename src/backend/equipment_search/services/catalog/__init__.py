"""Catalog domain services - query cleanup, summaries and empty-result suggestions"""

from .catalog_index import CatalogIndex, CatalogIndexService
from .catalog_service import CatalogService

__all__ = ["CatalogIndex", "CatalogIndexService", "CatalogService"]
