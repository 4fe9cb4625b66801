"""
Database package for the equipment catalog.

Provides PostgreSQL (SQLAlchemy asyncio + asyncpg) management and the
repositories reading equipment rows and the parameter dictionary.
"""

from .database import (
    PostgreSQLManager,
    postgresql_manager,
)
from .equipment_repository import (
    EquipmentRepository,
    ParameterDictionaryRepository,
)

__all__ = [
    "PostgreSQLManager",
    "postgresql_manager",
    "EquipmentRepository",
    "ParameterDictionaryRepository",
]
