"""
Unit tests for EmbeddingProvider
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from equipment_search.services.embeddings.embedding_provider import (
    OLLAMA_DEFAULT_MODEL,
    OPENAI_DEFAULT_MODEL,
    EmbeddingProvider,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("LLM_EMBEDDINGS_PROVIDER", "EMBED_MODEL", "OLLAMA_BASE_URL", "LLM_BASE_URL", "LLM_API_KEY"):
        monkeypatch.delenv(name, raising=False)


@pytest.mark.unit
class TestConfiguration:

    def test_defaults_to_ollama(self, mock_openai_client):
        provider = EmbeddingProvider(client=mock_openai_client)

        assert provider.provider == "ollama"
        assert provider.model == OLLAMA_DEFAULT_MODEL

    def test_openai_from_environment(self, mock_openai_client, monkeypatch):
        monkeypatch.setenv("LLM_EMBEDDINGS_PROVIDER", "OpenAI")

        provider = EmbeddingProvider(client=mock_openai_client)

        assert provider.provider == "openai"
        assert provider.model == OPENAI_DEFAULT_MODEL

    def test_model_override(self, mock_openai_client, monkeypatch):
        monkeypatch.setenv("EMBED_MODEL", "bge-m3")

        assert EmbeddingProvider(client=mock_openai_client).model == "bge-m3"
        assert EmbeddingProvider(client=mock_openai_client, model="custom").model == "custom"

    def test_ollama_client_uses_v1_endpoint(self, monkeypatch):
        monkeypatch.setenv("OLLAMA_BASE_URL", "http://ollama:11434/")

        provider = EmbeddingProvider(provider="ollama")

        assert str(provider.client.base_url).rstrip("/") == "http://ollama:11434/v1"


@pytest.mark.unit
class TestEmbed:

    @pytest.mark.asyncio
    async def test_returns_vector(self, mock_openai_client, embedding):
        provider = EmbeddingProvider(client=mock_openai_client, model="nomic-embed-text")

        result = await provider.embed("  экскаватор гусеничный ")

        assert result == embedding
        mock_openai_client.embeddings.create.assert_awaited_once_with(
            model="nomic-embed-text", input="экскаватор гусеничный"
        )

    @pytest.mark.asyncio
    async def test_model_argument_overrides(self, mock_openai_client):
        provider = EmbeddingProvider(client=mock_openai_client)

        await provider.embed("кран", model="text-embedding-3-large")

        assert mock_openai_client.embeddings.create.call_args.kwargs["model"] == "text-embedding-3-large"

    @pytest.mark.asyncio
    async def test_empty_text_skips_request(self, mock_openai_client):
        provider = EmbeddingProvider(client=mock_openai_client)

        assert await provider.embed("   ") is None
        assert await provider.embed("") is None
        mock_openai_client.embeddings.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_request_failure_returns_none(self, mock_openai_client):
        mock_openai_client.embeddings.create.side_effect = ConnectionError("ollama is down")
        provider = EmbeddingProvider(client=mock_openai_client)

        assert await provider.embed("кран") is None

    @pytest.mark.asyncio
    async def test_empty_response_returns_none(self):
        client = MagicMock()
        response = MagicMock()
        response.data = []
        client.embeddings.create = AsyncMock(return_value=response)

        assert await EmbeddingProvider(client=client).embed("кран") is None
