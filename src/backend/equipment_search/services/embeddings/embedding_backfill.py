"""
Embedding Backfill

Offline job filling the active embedding column for catalog records that
have none yet. Records are read in batches of EMBED_BATCH_SIZE (default 10),
embedded one by one and written back until no record is left.

Run with:
    python -m equipment_search.services.embeddings.embedding_backfill
"""

import asyncio
import logging
import os
from typing import Optional

from .embedding_provider import EmbeddingProvider

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10


class EmbeddingBackfillError(Exception):
    """Raised when a record cannot be embedded; the job stops there"""


class EmbeddingBackfill:
    """
    Batch runner over EquipmentRepository.find_without_embedding().

    A failed embedding aborts the run: the record would be selected again on
    the next batch, so skipping it would loop forever.
    """

    def __init__(self, repository, embedding_provider: EmbeddingProvider, batch_size: int = DEFAULT_BATCH_SIZE):
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.repository = repository
        self.embedding_provider = embedding_provider
        self.batch_size = batch_size

    async def run(self, max_batches: Optional[int] = None) -> int:
        """
        Embed records until none is missing or max_batches is reached.

        Returns:
            Number of records written

        Raises:
            EmbeddingBackfillError: If the provider returns no vector
            ValueError: If a vector does not fit the active column
        """
        column, dim = self.repository.get_embedding_config()
        logger.info(
            f"Embedding backfill started: column={column} ({dim}), "
            f"model={self.embedding_provider.model}, batch_size={self.batch_size}"
        )

        processed = 0
        batches = 0

        while max_batches is None or batches < max_batches:
            items = await self.repository.find_without_embedding(self.batch_size)
            if not items:
                break

            logger.info(f"Embedding batch of {len(items)} records")
            for item in items:
                embedding = await self.embedding_provider.embed(item["text_to_embed"])
                if embedding is None:
                    raise EmbeddingBackfillError(f"No embedding returned for record {item['id']}")

                await self.repository.update_embedding(item["id"], embedding)
                processed += 1

            batches += 1

        logger.info(f"Embedding backfill finished: {processed} records written")
        return processed


async def main() -> int:
    from ...database.database import PostgreSQLManager
    from ...database.equipment_repository import EquipmentRepository
    from ...main import configure_logging
    from ..config.configuration_service import get_config_service

    configure_logging()

    embedding_config = get_config_service().get_embedding_config()
    batch_size = int(os.getenv("EMBED_BATCH_SIZE") or embedding_config.get("batch_size", DEFAULT_BATCH_SIZE))

    db_manager = PostgreSQLManager()
    db_manager.init_db()
    try:
        provider = EmbeddingProvider(timeout_seconds=embedding_config.get("timeout_seconds", 30))
        backfill = EmbeddingBackfill(EquipmentRepository(db_manager), provider, batch_size=batch_size)
        return await backfill.run()
    finally:
        await db_manager.close()


if __name__ == "__main__":
    asyncio.run(main())
