"""
Pytest configuration and shared fixtures
Provides common test fixtures for all test modules
"""

import sys
from pathlib import Path
from typing import List
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

# Add backend directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from equipment_search.models.parameter_dictionary import ParameterDictionaryEntry, ParamType
from equipment_search.models.search import EquipmentSummary
from equipment_search.services.normalization.parameter_dictionary import ParameterDictionaryService


def make_entry(key: str, param_type: ParamType, **kwargs) -> ParameterDictionaryEntry:
    kwargs.setdefault("sql_expression", f"normalized_parameters->>'{key}'")
    return ParameterDictionaryEntry(key=key, param_type=param_type, **kwargs)


def make_item(item_id: str, name: str = None, **kwargs) -> EquipmentSummary:
    return EquipmentSummary(id=item_id, name=name or f"Equipment {item_id}", **kwargs)


@pytest.fixture
def dictionary_entries() -> List[ParameterDictionaryEntry]:
    """
    Small canonical dictionary covering every parameter type.

    "мощность" is an alias of both engine_power_kw (priority 10) and
    generator_power_kw (priority 70).
    """
    return [
        make_entry(
            "engine_power_kw", ParamType.NUMBER,
            label_ru="Мощность двигателя", category="engine", unit="kw",
            min_value=1, max_value=2000, priority=10,
            aliases=("мощность", "мощность двигателя", "engine power"),
        ),
        make_entry(
            "operating_weight_t", ParamType.NUMBER,
            label_ru="Эксплуатационная масса", category="weight", unit="t",
            priority=20, aliases=("масса", "вес", "эксплуатационная масса"),
        ),
        make_entry(
            "bucket_volume", ParamType.NUMBER,
            label_ru="Объём ковша", category="bucket", unit="m3",
            priority=30, aliases=("объем ковша", "объём ковша"),
        ),
        make_entry(
            "fuel_type", ParamType.ENUM,
            label_ru="Тип двигателя", category="engine",
            enum_values={"diesel": "Дизельный", "electric": "Электрический", "gasoline": "Бензиновый"},
            priority=40, aliases=("тип двигателя", "топливо"),
        ),
        make_entry(
            "has_air_conditioning", ParamType.BOOLEAN,
            label_ru="Кондиционер", category="cabin",
            priority=60, aliases=("кондиционер",),
        ),
        make_entry(
            "generator_power_kw", ParamType.NUMBER,
            label_ru="Мощность генератора", category="generator", unit="kw",
            priority=70, aliases=("мощность", "мощность генератора"),
        ),
        make_entry(
            "color", ParamType.STRING,
            label_ru="Цвет", category="appearance",
            priority=90, aliases=("цвет",),
        ),
    ]


@pytest.fixture
def dictionary_store(dictionary_entries):
    """Dictionary store double returning the sample entries"""
    store = AsyncMock()
    store.fetch_entries = AsyncMock(return_value=list(dictionary_entries))
    return store


@pytest_asyncio.fixture
async def dictionary_service(dictionary_store) -> ParameterDictionaryService:
    """Loaded ParameterDictionaryService over the sample entries"""
    service = ParameterDictionaryService(dictionary_store)
    await service.load_dictionary()
    return service


@pytest.fixture
def item_factory():
    """Factory for EquipmentSummary records: item_factory("1", brand="CAT")"""
    return make_item


@pytest.fixture
def entry_factory():
    """Factory for ParameterDictionaryEntry: entry_factory("key", ParamType.NUMBER, ...)"""
    return make_entry
