"""
Normalization Package

Translates raw, multi-language parameter names and unit-tagged values into
canonical dictionary keys:
- UnitParser: numeric extraction and unit conversion
- EnumMapper: enum label -> canonical code
- ParameterDictionaryService: dictionary snapshot and key resolution
- ParameterNormalizerService: raw map -> canonical map
- QueryParameterNormalizer: SearchQuery-level normalization with _min/_max
"""

from .unit_parser import UnitParser, ParsedValue
from .enum_mapper import EnumMapper
from .parameter_dictionary import (
    DictionaryNotLoadedError,
    DictionarySnapshot,
    ParameterDictionaryService,
)
from .parameter_normalizer import ParameterNormalizerService
from .query_normalizer import QueryParameterNormalizer

__all__ = [
    "UnitParser",
    "ParsedValue",
    "EnumMapper",
    "DictionaryNotLoadedError",
    "DictionarySnapshot",
    "ParameterDictionaryService",
    "ParameterNormalizerService",
    "QueryParameterNormalizer",
]
