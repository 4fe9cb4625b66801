"""
Unit test fixtures

Fixtures for unit tests that mock external dependencies.
Unit tests should be fast (< 100ms) and isolated.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

EMBEDDING_DIM = 768


def make_db_manager(rows=None, scalar=None):
    """
    Mock PostgreSQLManager whose session() yields an async context manager.

    Returns:
        (db_manager, session) so tests can inspect session.execute calls
    """
    result = MagicMock()
    result.mappings.return_value.all.return_value = list(rows or [])
    result.scalar.return_value = scalar

    session = MagicMock()
    session.execute = AsyncMock(return_value=result)
    session.commit = AsyncMock()

    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=session)
    context.__aexit__ = AsyncMock(return_value=False)

    db_manager = MagicMock()
    db_manager.session.return_value = context
    return db_manager, session


@pytest.fixture
def mock_db():
    """Mock PostgreSQL manager with an empty result set"""
    return make_db_manager()


@pytest.fixture
def embedding():
    return [0.01] * EMBEDDING_DIM


@pytest.fixture
def mock_repository():
    """Mock EquipmentRepository returning nothing"""
    repository = MagicMock()
    repository.full_text_search = AsyncMock(return_value=[])
    repository.vector_search_with_embedding = AsyncMock(return_value=[])
    repository.count_equipment = AsyncMock(return_value=0)
    return repository


@pytest.fixture
def mock_embedding_provider(embedding):
    """Mock EmbeddingProvider returning a fixed vector"""
    provider = MagicMock()
    provider.embed = AsyncMock(return_value=embedding)
    return provider


@pytest.fixture
def mock_openai_client(embedding):
    """Mock AsyncOpenAI client for embedding calls"""
    client = MagicMock()

    mock_response = MagicMock()
    mock_response.data = [MagicMock()]
    mock_response.data[0].embedding = embedding

    client.embeddings.create = AsyncMock(return_value=mock_response)
    return client


@pytest.fixture
def db_factory():
    """Factory for mock PostgreSQL managers: db_factory(rows=[...], scalar=3)"""
    return make_db_manager
