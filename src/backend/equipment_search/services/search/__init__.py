"""
Search Package

Hybrid equipment search:
- SQLConditionBuilder: bound-parameter WHERE predicates shared by all queries
- ResultConsolidator: weighted Reciprocal Rank Fusion
- SearchEngine: normalization, concurrent FTS + vector retrieval, relaxed
  and text-only fallbacks
"""

from .query_builder import SQLConditionBuilder, validate_parameter_key
from .consolidator import ResultConsolidator
from .orchestrator import SearchEngine

__all__ = [
    "SQLConditionBuilder",
    "validate_parameter_key",
    "ResultConsolidator",
    "SearchEngine",
]
