"""
SQL Condition Builder

Centralizes construction of the WHERE predicates shared by the full-text,
count and vector queries. Every caller-supplied value, JSON attribute names
included, leaves this module as a bound parameter (:p0, :p1, ...); templates
only ever contain trusted SQL text.

Example:
    >>> builder = SQLConditionBuilder()
    >>> builder.add("e.brand = {0}", "Caterpillar")
    >>> builder.add_parameter_conditions({"engine_power_kw_min": 100})
    >>> conditions, params = builder.render()
    >>> conditions
    ['e.brand = :p0', 'CAST((e.normalized_parameters ->> :p1) AS numeric) >= CAST(:p2 AS numeric)']
"""

import logging
import math
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

# ASCII letters, digits, underscore and the Cyrillic blocks (base, supplement,
# extended A-D).
PARAMETER_KEY_PATTERN = re.compile(
    r"[A-Za-z0-9_"
    r"\u0400-\u052F\u1C80-\u1C8F\u2DE0-\u2DFF\uA640-\uA69F\U0001E030-\U0001E08F"
    r"]{1,99}"
)

_QUOTED_FIELD_PATTERN = re.compile(r"'([^']+)'")

MIN_SUFFIX = "_min"
MAX_SUFFIX = "_max"

DEFAULT_PARAMETERS_COLUMN = "e.normalized_parameters"


def validate_parameter_key(key: Any) -> bool:
    """True if key is safe to use as a parameter name"""
    return isinstance(key, str) and PARAMETER_KEY_PATTERN.fullmatch(key) is not None


def is_numeric_value(value: Any) -> bool:
    """Finite int/float; bool is never numeric"""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def split_range_suffix(key: str) -> Tuple[str, str]:
    """
    Split "engine_power_kw_min" into ("engine_power_kw", "_min").

    The suffix is removed by slicing, so an inner "_min" is never touched.
    """
    for suffix in (MIN_SUFFIX, MAX_SUFFIX):
        if key.endswith(suffix) and len(key) > len(suffix):
            return key[:-len(suffix)], suffix
    return key, ""


def resolve_storage_field(key: str, dictionary_service: Optional[Any] = None) -> str:
    """
    JSON attribute name holding a canonical parameter.

    Uses the quoted field from the sql_expression of the entry with exactly
    this canonical key when a loaded dictionary service is available,
    otherwise the key itself.
    """
    if dictionary_service is None or not getattr(dictionary_service, "is_loaded", False):
        return key

    entry = dictionary_service.get_by_key(key)
    if entry is None or not entry.sql_expression:
        return key

    match = _QUOTED_FIELD_PATTERN.search(entry.sql_expression)
    if not match:
        return key

    field = match.group(1)
    if not validate_parameter_key(field):
        logger.warning(f"[Security] Ignoring sql_expression field {field!r} for {key}")
        return key
    return field


class SQLConditionBuilder:
    """
    Accumulates predicate templates with their values and renders them with
    named placeholders in a single pass.

    Templates use positional format fields ({0}, {1}, ...) for the values
    passed alongside them.
    """

    def __init__(self, prefix: str = "p", column: str = DEFAULT_PARAMETERS_COLUMN):
        """
        Args:
            prefix: Bind-name prefix; rendered names are prefix + running index
            column: JSONB column holding normalized parameters
        """
        self.prefix = prefix
        self.column = column
        self._parts: List[Tuple[str, Tuple[Any, ...]]] = []

    def __len__(self) -> int:
        return len(self._parts)

    def add(self, template: str, *values: Any) -> "SQLConditionBuilder":
        self._parts.append((template, values))
        return self

    def add_parameter_conditions(
        self,
        parameters: Optional[Mapping[str, Any]],
        dictionary_service: Optional[Any] = None
    ) -> "SQLConditionBuilder":
        """
        Add one predicate per normalized parameter.

        _min -> numeric >=, _max -> numeric <=, plain numbers -> numeric =,
        everything else -> text =. Invalid keys are dropped with a warning;
        non-numeric range values and None values are skipped.
        """
        for key, value in (parameters or {}).items():
            if not validate_parameter_key(key):
                logger.warning(f"[Security] Invalid parameter key rejected: {key!r}")
                continue
            if value is None:
                continue

            base_key, suffix = split_range_suffix(key)
            field = resolve_storage_field(base_key, dictionary_service)
            attribute = f"({self.column} ->> {{0}})"

            if suffix:
                if not is_numeric_value(value):
                    logger.debug(f"Skipping non-numeric range value {key}={value!r}")
                    continue
                operator = ">=" if suffix == MIN_SUFFIX else "<="
                self.add(f"CAST({attribute} AS numeric) {operator} CAST({{1}} AS numeric)", field, value)
            elif is_numeric_value(value):
                self.add(f"CAST({attribute} AS numeric) = CAST({{1}} AS numeric)", field, value)
            else:
                self.add(f"{attribute} = CAST({{1}} AS text)", field, _text_value(value))

        return self

    def render(self) -> Tuple[List[str], Dict[str, Any]]:
        """
        Returns:
            (conditions, params) where conditions reference :<prefix><n> names
            present in params
        """
        conditions: List[str] = []
        params: Dict[str, Any] = {}
        index = 0

        for template, values in self._parts:
            names = []
            for value in values:
                name = f"{self.prefix}{index}"
                index += 1
                params[name] = value
                names.append(f":{name}")
            conditions.append(template.format(*names))

        return conditions, params


def build_where_clause(conditions: Sequence[str]) -> str:
    if not conditions:
        return ""
    return "WHERE " + " AND ".join(conditions)


def _text_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
