"""
Enum Mapper

Maps a raw enumeration label (e.g. "Дизельный") to the canonical code declared
in a dictionary entry's enum_values (e.g. "diesel").
"""

import logging
from typing import Optional

from ...models.parameter_dictionary import ParameterDictionaryEntry, ParamType

logger = logging.getLogger(__name__)


class EnumMapper:
    """Resolves raw enum labels against a parameter's declared value set"""

    def map_enum_value(self, raw: str, entry: ParameterDictionaryEntry) -> Optional[str]:
        """
        Map raw to a canonical enum code.

        Resolution order:
        1. Canonical code match ("diesel" -> "diesel")
        2. Exact localized label match ("дизельный" -> "diesel")
        3. Substring match in either direction against the labels; the first
           label in declaration order wins

        Args:
            raw: Raw value as supplied by the caller
            entry: Dictionary entry of type enum

        Returns:
            Canonical code or None if nothing matches
        """
        if entry.param_type != ParamType.ENUM or not entry.enum_values:
            return None

        normalized = str(raw).strip().lower()
        if not normalized:
            return None

        for code in entry.enum_values:
            if code.lower() == normalized:
                return code

        labels = [
            (code, label.strip().lower())
            for code, label in entry.enum_values.items()
            if isinstance(label, str) and label.strip()
        ]

        for code, label in labels:
            if label == normalized:
                return code

        for code, label in labels:
            if label in normalized or normalized in label:
                logger.debug(f"Enum '{raw}' matched label '{label}' of {entry.key} by substring")
                return code

        return None
