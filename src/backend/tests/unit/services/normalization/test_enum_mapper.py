"""
Unit tests for EnumMapper
"""

import pytest

from equipment_search.models.parameter_dictionary import ParamType
from equipment_search.services.normalization.enum_mapper import EnumMapper


@pytest.fixture
def fuel_entry(entry_factory):
    return entry_factory(
        "fuel_type", ParamType.ENUM,
        enum_values={"diesel": "Дизельный", "electric": "Электрический", "gasoline": "Бензиновый"},
    )


@pytest.mark.unit
class TestEnumMapper:

    def test_canonical_code(self, fuel_entry):
        assert EnumMapper().map_enum_value("diesel", fuel_entry) == "diesel"
        assert EnumMapper().map_enum_value("DIESEL", fuel_entry) == "diesel"

    def test_exact_label_case_insensitive(self, fuel_entry):
        assert EnumMapper().map_enum_value("дизельный", fuel_entry) == "diesel"
        assert EnumMapper().map_enum_value("  Бензиновый ", fuel_entry) == "gasoline"

    def test_substring_match(self, fuel_entry):
        assert EnumMapper().map_enum_value("Дизельный двигатель", fuel_entry) == "diesel"
        assert EnumMapper().map_enum_value("электрич", fuel_entry) == "electric"

    def test_exact_label_beats_earlier_substring(self, entry_factory):
        entry = entry_factory(
            "drive_type", ParamType.ENUM,
            enum_values={"full": "Полный привод", "wheel": "привод"},
        )
        # "привод" is a substring of the first label but equals the second
        assert EnumMapper().map_enum_value("Привод", entry) == "wheel"

    def test_unknown_value(self, fuel_entry):
        assert EnumMapper().map_enum_value("водородный", fuel_entry) is None
        assert EnumMapper().map_enum_value("   ", fuel_entry) is None

    def test_non_enum_entry(self, entry_factory):
        entry = entry_factory("color", ParamType.STRING)
        assert EnumMapper().map_enum_value("красный", entry) is None

    def test_enum_entry_without_values(self, entry_factory):
        entry = entry_factory("fuel_type", ParamType.ENUM)
        assert EnumMapper().map_enum_value("diesel", entry) is None
