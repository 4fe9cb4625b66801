"""
Parameter Normalizer Service

Turns a raw parameter map ({"Мощность": "132 л.с.", "Тип двигателя": "Дизельный"})
into canonical keys with typed, unit-consistent values
({"engine_power_kw": 97.152, "fuel_type": "diesel"}).

Keys that cannot be resolved, or values that cannot be normalized for the
resolved type, are reported under `unresolved` with their original key.
"""

import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ...models.parameter_dictionary import (
    NormalizationResult,
    ParameterDictionaryEntry,
    ParameterValue,
    ParamType,
)
from .enum_mapper import EnumMapper
from .parameter_dictionary import ParameterDictionaryService
from .unit_parser import UnitParser

logger = logging.getLogger(__name__)

TRUE_VALUES = frozenset({"true", "1", "да", "yes"})
FALSE_VALUES = frozenset({"false", "0", "нет", "no"})


class ParameterNormalizerService:
    """Normalizes raw parameter maps against the canonical dictionary"""

    def __init__(
        self,
        dictionary_service: ParameterDictionaryService,
        unit_parser: Optional[UnitParser] = None,
        enum_mapper: Optional[EnumMapper] = None
    ):
        self.dictionary_service = dictionary_service
        self.unit_parser = unit_parser or UnitParser()
        self.enum_mapper = enum_mapper or EnumMapper()

    def normalize(self, raw_parameters: Optional[Mapping[str, Any]]) -> NormalizationResult:
        """
        Normalize a raw key/value map.

        Args:
            raw_parameters: Raw parameters; None values are skipped entirely

        Returns:
            NormalizationResult. confidence is converted / non-null input count
            (1.0 for an empty map). Two raw keys resolving to the same canonical
            key collapse to the value seen last.

        Raises:
            DictionaryNotLoadedError: If the dictionary has not been loaded
        """
        normalized: Dict[str, ParameterValue] = {}
        unresolved: Dict[str, Any] = {}
        lossy_keys: List[str] = []
        total = 0
        converted = 0

        for raw_key, raw_value in (raw_parameters or {}).items():
            if raw_value is None:
                continue
            total += 1

            entry = self.dictionary_service.find_canonical_key(raw_key)
            if entry is None:
                logger.debug(f"Unresolved parameter key: '{raw_key}'")
                unresolved[raw_key] = raw_value
                continue

            value, lossy = self._normalize_value(raw_value, entry)
            if value is None:
                logger.debug(
                    f"Could not normalize '{raw_key}'={raw_value!r} as {entry.param_type.value}"
                )
                unresolved[raw_key] = raw_value
                continue

            if entry.key in normalized:
                logger.debug(f"Parameter '{raw_key}' overrides earlier value for {entry.key}")

            normalized[entry.key] = value
            converted += 1
            if lossy and entry.key not in lossy_keys:
                lossy_keys.append(entry.key)

        confidence = converted / total if total > 0 else 1.0

        return NormalizationResult(
            normalized=normalized,
            unresolved=unresolved,
            confidence=confidence,
            lossy_keys=lossy_keys,
            total=total,
            converted=converted,
        )

    def get_normalization_stats(self, raw_parameters: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """Counts for a raw map without exposing the normalized values"""
        result = self.normalize(raw_parameters)
        return {
            "total": result.total,
            "normalized": result.converted,
            "unresolved": result.total - result.converted,
            "lossy": len(result.lossy_keys),
            "confidence": result.confidence,
        }

    def _normalize_value(
        self,
        raw_value: Any,
        entry: ParameterDictionaryEntry
    ) -> Tuple[Optional[ParameterValue], bool]:
        param_type = entry.param_type

        if param_type == ParamType.NUMBER:
            parsed = self.unit_parser.parse_value_detailed(raw_value, entry.unit)
            if parsed is None:
                return None, False
            self._check_bounds(parsed.value, entry)
            return parsed.value, parsed.lossy

        if param_type == ParamType.ENUM:
            return self.enum_mapper.map_enum_value(str(raw_value), entry), False

        if param_type == ParamType.BOOLEAN:
            return self._normalize_boolean(raw_value), False

        return self._normalize_string(raw_value), False

    def _normalize_boolean(self, raw_value: Any) -> Optional[bool]:
        if isinstance(raw_value, bool):
            return raw_value

        lowered = str(raw_value).strip().lower()
        if lowered in TRUE_VALUES:
            return True
        if lowered in FALSE_VALUES:
            return False
        return None

    def _normalize_string(self, raw_value: Any) -> Optional[str]:
        if isinstance(raw_value, bool):
            return "true" if raw_value else "false"

        if isinstance(raw_value, str):
            stripped = raw_value.strip()
            return stripped or None

        if isinstance(raw_value, (dict, list, tuple)):
            if not raw_value:
                return None
            return json.dumps(raw_value, ensure_ascii=False)

        return str(raw_value)

    def _check_bounds(self, value: float, entry: ParameterDictionaryEntry) -> None:
        # Bounds are advisory: out-of-range values are kept.
        if entry.min_value is not None and value < entry.min_value:
            logger.debug(f"{entry.key}={value} is below min_value {entry.min_value}")
        if entry.max_value is not None and value > entry.max_value:
            logger.debug(f"{entry.key}={value} is above max_value {entry.max_value}")
