"""
Unit Parser

Extracts a numeric value from a raw parameter string, detects the unit it was
written in and converts it to the unit declared by the parameter dictionary.

Examples:
    >>> UnitParser().parse_value("132 л.с.", "kw")
    97.152
    >>> UnitParser().parse_value("20 тонн", "t")
    20.0
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

UNKNOWN_UNIT = "unknown"

_NUMBER_PATTERN = re.compile(r"\d+(?:[.,]\d+)?|[.,]\d+")

# Letters of both supported scripts; a unit token must not touch one.
_LETTERS = "a-zа-яё"

# (unit code, token alternatives) per dimension. Dimensions are scanned in
# this order and, inside a dimension, longer tokens precede the shorter
# tokens they contain.
_UNIT_TOKENS: List[Tuple[str, List[Tuple[str, List[str]]]]] = [
    ("mass", [
        ("t", [r"тонн[а-яё]*", r"tonnes?", r"tons?", r"тн", r"т", r"t"]),
        ("kg", [r"килограмм[а-яё]*", r"кг", r"kg"]),
        ("g", [r"грамм[а-яё]*", r"г", r"g"]),
    ]),
    ("power", [
        ("hp", [r"л\.\s?с\.?", r"лс", r"hp"]),
        ("kw", [r"киловатт[а-яё]*", r"квт", r"кw", r"kw"]),
        ("w", [r"ватт[а-яё]*", r"вт", r"w"]),
    ]),
    ("length", [
        ("km", [r"км", r"km"]),
        ("mm", [r"мм", r"mm"]),
        ("cm", [r"см", r"cm"]),
        ("m", [r"метр[а-яё]*", r"м", r"m"]),
    ]),
    ("volume", [
        ("m3", [r"куб\.?\s?м\.?", r"м³", r"м3", r"m³", r"m3"]),
        ("l", [r"литр[а-яё]*", r"litres?", r"liters?", r"л", r"l"]),
    ]),
    ("throughput", [
        ("tph", [r"т/ч", r"t/h", r"tph"]),
        ("m3h", [r"м³/ч", r"м3/ч", r"m³/h", r"m3/h", r"m3h"]),
    ]),
    ("speed", [
        ("mps", [r"м/с", r"m/s", r"mps"]),
        ("kmh", [r"км/ч", r"km/h", r"kmh"]),
    ]),
    ("frequency", [
        ("hz", [r"гц", r"hz"]),
        ("rpm", [r"об/мин", r"rpm"]),
    ]),
]


def _compile_tokens() -> List[Tuple[str, re.Pattern]]:
    compiled = []
    for _dimension, units in _UNIT_TOKENS:
        for unit, tokens in units:
            alternatives = "|".join(tokens)
            # A token may not be glued to a letter on either side, nor be the
            # head of a compound unit ("т/ч", "м/с", "м³", "м3").
            pattern = re.compile(
                rf"(?<![{_LETTERS}])(?:{alternatives})(?![{_LETTERS}0-9/³²])"
            )
            compiled.append((unit, pattern))
    return compiled


_UNIT_PATTERNS = _compile_tokens()

KNOWN_UNITS = frozenset(unit for _, units in _UNIT_TOKENS for unit, _ in units)

# One-directional multipliers: value_in_to = value_in_from * factor
CONVERSIONS: Dict[str, Dict[str, float]] = {
    # Mass
    "t": {"kg": 1000, "g": 1000000},
    "kg": {"t": 0.001, "g": 1000},
    "g": {"kg": 0.001, "t": 0.000001},

    # Power
    "hp": {"kw": 0.736, "w": 736},
    "kw": {"hp": 1.36, "w": 1000},
    "w": {"kw": 0.001, "hp": 0.00136},

    # Length
    "km": {"m": 1000, "cm": 100000, "mm": 1000000},
    "m": {"km": 0.001, "cm": 100, "mm": 1000},
    "cm": {"m": 0.01, "mm": 10, "km": 0.00001},
    "mm": {"m": 0.001, "cm": 0.1, "km": 0.000001},

    # Volume
    "m3": {"l": 1000},
    "l": {"m3": 0.001},
}


@dataclass(frozen=True)
class ParsedValue:
    """
    Detailed parse outcome.

    lossy is set when the source unit was recognised but the conversion table
    has no entry towards the target unit, so the number was passed through.
    """
    value: float
    source_unit: str
    target_unit: str
    converted: bool
    lossy: bool


class UnitParser:
    """Parses unit-tagged numeric strings and converts between compatible units"""

    def parse_value(self, raw: Union[str, int, float, None], target_unit: Optional[str]) -> Optional[float]:
        """
        Parse a raw value and convert it to target_unit.

        Never raises; returns None when no number can be extracted.
        """
        parsed = self.parse_value_detailed(raw, target_unit)
        return parsed.value if parsed is not None else None

    def parse_value_detailed(
        self,
        raw: Union[str, int, float, None],
        target_unit: Optional[str]
    ) -> Optional[ParsedValue]:
        target = self.normalize_unit(target_unit)

        if isinstance(raw, bool) or raw is None:
            return None

        if isinstance(raw, (int, float)):
            if isinstance(raw, float) and not math.isfinite(raw):
                return None
            return ParsedValue(
                value=raw,
                source_unit=UNKNOWN_UNIT,
                target_unit=target,
                converted=False,
                lossy=False,
            )

        text = str(raw).strip()
        match = _NUMBER_PATTERN.search(text)
        if not match:
            return None

        try:
            number = float(match.group(0).replace(",", "."))
        except ValueError:
            return None
        if not math.isfinite(number):
            return None

        source = self.detect_unit(text)
        value, converted, lossy = self._convert(number, source, target)

        if lossy:
            logger.debug(
                f"No conversion from '{source}' to '{target}' for {raw!r}, "
                f"passing {number} through unconverted"
            )

        return ParsedValue(
            value=value,
            source_unit=source,
            target_unit=target,
            converted=converted,
            lossy=lossy,
        )

    def detect_unit(self, text: str) -> str:
        """Return the unit code found in text, or "unknown" """
        lowered = text.lower()
        for unit, pattern in _UNIT_PATTERNS:
            if pattern.search(lowered):
                return unit
        return UNKNOWN_UNIT

    def normalize_unit(self, unit: Optional[str]) -> str:
        """
        Map a declared dictionary unit to a unit code.

        Accepts codes ("kw") as well as written forms ("кВт", "т").
        """
        if not unit:
            return ""
        lowered = unit.strip().lower()
        if lowered in KNOWN_UNITS:
            return lowered
        detected = self.detect_unit(lowered)
        return detected if detected != UNKNOWN_UNIT else lowered

    def convert_unit(self, value: float, from_unit: str, to_unit: str) -> float:
        converted, _, _ = self._convert(value, from_unit, to_unit)
        return converted

    def _convert(self, value: float, from_unit: str, to_unit: str) -> Tuple[float, bool, bool]:
        if from_unit == to_unit or from_unit == UNKNOWN_UNIT or not to_unit:
            return value, False, False

        factor = CONVERSIONS.get(from_unit, {}).get(to_unit)
        if factor is None:
            return value, False, True

        return value * factor, True, False
