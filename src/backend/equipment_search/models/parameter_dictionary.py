"""
Parameter Dictionary Data Models

Canonical parameter catalog entries and the results produced by the
normalization pipeline. Shared by the dictionary service, the normalizers
and the storage boundary to avoid circular imports.
"""

import json
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

# Scalar value carried through normalization and SQL condition building.
# bool must be checked before int/float wherever numeric handling matters.
ParameterValue = Union[bool, int, float, str]

DEFAULT_PRIORITY = 100


class ParamType(str, Enum):
    """Declared value type of a dictionary parameter"""
    NUMBER = "number"
    ENUM = "enum"
    BOOLEAN = "boolean"
    STRING = "string"


class ParameterDictionaryEntry(BaseModel):
    """
    Single canonical parameter definition.

    Attributes:
        key: Canonical key, globally unique (e.g. "engine_power_kw")
        label_ru: Localized display label
        category: Dictionary category (e.g. "engine", "dimensions")
        param_type: Value type used to pick the normalization routine
        unit: Canonical unit for number parameters (e.g. "kw", "t")
        min_value / max_value: Advisory bounds, never enforced
        enum_values: Canonical code -> localized label (enum parameters only)
        aliases: Raw names/labels resolving to this key, in declaration order
        priority: Lower is more important; breaks alias ties
        sql_expression: Storage path, e.g. "normalized_parameters->>'engine_power_kw'"
    """
    model_config = ConfigDict(frozen=True)

    key: str
    label_ru: str = ""
    label_en: Optional[str] = None
    description_ru: Optional[str] = None
    category: str = ""
    param_type: ParamType
    unit: Optional[str] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    enum_values: Optional[Dict[str, str]] = None
    aliases: Tuple[str, ...] = ()
    priority: int = DEFAULT_PRIORITY
    sql_expression: str = ""
    is_searchable: Optional[bool] = None
    is_filterable: Optional[bool] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ParameterDictionaryEntry":
        """
        Build an entry from a parameter_dictionary storage row.

        Handles the loose shapes the driver may hand back: numeric columns as
        strings/Decimals, JSON columns as already-decoded objects or raw text,
        NULL priority.
        """
        aliases = _decode_json(row.get("aliases"))
        enum_values = _decode_json(row.get("enum_values"))
        priority = row.get("priority")

        return cls(
            key=row["key"],
            label_ru=row.get("label_ru") or "",
            label_en=row.get("label_en"),
            description_ru=row.get("description_ru"),
            category=row.get("category") or "",
            param_type=ParamType(row["param_type"]),
            unit=row.get("unit") or None,
            min_value=_to_float(row.get("min_value")),
            max_value=_to_float(row.get("max_value")),
            enum_values=(
                {str(k): str(v) for k, v in enum_values.items()}
                if isinstance(enum_values, dict) and enum_values else None
            ),
            aliases=tuple(str(a) for a in aliases) if isinstance(aliases, list) else (),
            priority=int(priority) if priority is not None else DEFAULT_PRIORITY,
            sql_expression=row.get("sql_expression") or "",
            is_searchable=row.get("is_searchable"),
            is_filterable=row.get("is_filterable"),
        )


class NormalizationResult(BaseModel):
    """
    Output of normalizing one raw key/value map.

    lossy_keys lists canonical keys whose value carried a recognised unit that
    the conversion table could not translate, so it was passed through as-is.

    total counts non-null input entries and converted those that normalized;
    they differ from the dict sizes when raw keys collapse onto one canonical key.
    """
    normalized: Dict[str, ParameterValue] = Field(default_factory=dict)
    unresolved: Dict[str, Any] = Field(default_factory=dict)
    confidence: float = 1.0
    lossy_keys: List[str] = Field(default_factory=list)
    total: int = 0
    converted: int = 0


class QueryNormalizationStats(BaseModel):
    """Aggregate counts across the plain, _min and _max parameter groups"""
    total: int = 0
    normalized: int = 0
    unresolved: int = 0
    lossy: int = 0
    confidence: float = 1.0


def _to_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _decode_json(value: Any) -> Any:
    if isinstance(value, (str, bytes)):
        try:
            return json.loads(value)
        except ValueError:
            return None
    return value
