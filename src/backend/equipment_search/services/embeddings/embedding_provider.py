"""
Embedding Provider

Computes query embeddings through an OpenAI-compatible /v1/embeddings
endpoint: a local Ollama server by default, OpenAI when
LLM_EMBEDDINGS_PROVIDER=openai.
"""

import logging
import os
import time
from typing import List, Optional

from langsmith import traceable
from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

OLLAMA_DEFAULT_BASE_URL = "http://127.0.0.1:11434"
OLLAMA_DEFAULT_MODEL = "nomic-embed-text"
OPENAI_DEFAULT_MODEL = "text-embedding-3-small"


class EmbeddingProvider:
    """
    Async embedding client.

    embed() never raises: any transport or response problem is logged and
    reported as None so the caller can fall back to full-text search.
    """

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        timeout_seconds: float = 30.0,
        slow_request_ms: float = 5000.0
    ):
        """
        Initialize provider.

        Args:
            client: Preconfigured AsyncOpenAI client (tests, custom endpoints)
            provider: "openai" or "ollama"; defaults to LLM_EMBEDDINGS_PROVIDER
            model: Embedding model; defaults to EMBED_MODEL or the provider default
            timeout_seconds: Request timeout
            slow_request_ms: Requests slower than this are logged as warnings
        """
        self.provider = (provider or os.getenv("LLM_EMBEDDINGS_PROVIDER") or "ollama").strip().lower()
        default_model = OPENAI_DEFAULT_MODEL if self.provider == "openai" else OLLAMA_DEFAULT_MODEL
        self.model = model or os.getenv("EMBED_MODEL") or default_model
        self.slow_request_ms = slow_request_ms

        if client is not None:
            self.client = client
        elif self.provider == "openai":
            self.client = AsyncOpenAI(
                api_key=os.getenv("OPENAI_API_KEY") or os.getenv("LLM_API_KEY"),
                base_url=os.getenv("LLM_BASE_URL") or None,
                timeout=timeout_seconds,
            )
        else:
            base_url = (os.getenv("OLLAMA_BASE_URL") or OLLAMA_DEFAULT_BASE_URL).rstrip("/")
            self.client = AsyncOpenAI(
                # Ollama ignores the key but the SDK requires one
                api_key=os.getenv("LLM_API_KEY") or "ollama",
                base_url=f"{base_url}/v1",
                timeout=timeout_seconds,
            )

        logger.info(f"EmbeddingProvider initialized: provider={self.provider}, model={self.model}")

    @traceable(name="query_embedding", run_type="embedding")
    async def embed(self, text: str, model: Optional[str] = None) -> Optional[List[float]]:
        """
        Embed a single text.

        Args:
            text: Text to embed
            model: Overrides the configured model

        Returns:
            Embedding vector, or None when the text is empty or the call fails
        """
        if not text or not text.strip():
            return None

        start_time = time.time()
        try:
            response = await self.client.embeddings.create(
                model=model or self.model,
                input=text.strip(),
            )
        except Exception as e:
            logger.error(f"Failed to generate embedding: {e}")
            return None

        duration_ms = (time.time() - start_time) * 1000
        if duration_ms > self.slow_request_ms:
            logger.warning(f"Slow embedding request: {duration_ms:.0f}ms")

        if not response.data:
            logger.error("Embedding response contained no data")
            return None

        embedding = list(response.data[0].embedding)
        logger.debug(f"Generated embedding vector of length {len(embedding)} in {duration_ms:.0f}ms")
        return embedding
