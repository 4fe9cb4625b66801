"""Embedding clients and the catalog embedding backfill"""

from .embedding_backfill import EmbeddingBackfill, EmbeddingBackfillError
from .embedding_provider import EmbeddingProvider

__all__ = ["EmbeddingBackfill", "EmbeddingBackfillError", "EmbeddingProvider"]
