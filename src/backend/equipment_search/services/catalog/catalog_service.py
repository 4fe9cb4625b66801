"""
Catalog Service

Domain entry point used by the HTTP layer. Cleans incoming queries (empty
strings, bad limits) before handing them to the SearchEngine and renders
short one-line summaries of equipment records.
"""

import logging
from typing import Any, Dict, Optional

from ...models.search import CatalogSearchResult, EquipmentSummary, SearchQuery

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
PRICE_ON_REQUEST = "цена по запросу"

_TEXT_FIELDS = ("text", "category", "subcategory", "brand", "region")


def format_rub(amount: float) -> str:
    """ru-RU number format: 1 250 000 and 1 250,5 (no-break space grouping)"""
    formatted = f"{amount:,.2f}"
    if formatted.endswith(".00"):
        formatted = formatted[:-3]
    elif formatted.endswith("0"):
        formatted = formatted[:-1]
    return formatted.replace(",", "\u00a0").replace(".", ",")


class CatalogService:
    """Thin domain layer over SearchEngine; knows nothing about SQL or HTTP"""

    def __init__(self, search_engine: Any, default_limit: int = DEFAULT_LIMIT):
        self.search_engine = search_engine
        self.default_limit = default_limit

    def clean_query(self, raw: Dict[str, Any]) -> SearchQuery:
        """
        Build a SearchQuery from loosely-typed input.

        Empty strings become None; limit falls back to the default when
        missing, non-numeric or non-positive; a negative offset becomes 0.
        """
        data = dict(raw)

        for name in _TEXT_FIELDS:
            value = data.get(name)
            if isinstance(value, str) and not value.strip():
                data[name] = None

        data["limit"] = self._coerce_limit(data.get("limit"))

        offset = data.get("offset")
        try:
            offset = int(offset) if offset is not None else 0
        except (TypeError, ValueError):
            offset = 0
        data["offset"] = max(offset, 0)

        if not data.get("parameters"):
            data["parameters"] = None

        return SearchQuery.model_validate(data)

    def _coerce_limit(self, value: Any) -> int:
        if isinstance(value, bool) or value is None:
            return self.default_limit
        try:
            limit = int(value)
        except (TypeError, ValueError):
            return self.default_limit
        return limit if limit > 0 else self.default_limit

    async def search_equipment(self, raw_query: Dict[str, Any]) -> CatalogSearchResult:
        query = self.clean_query(raw_query)
        return await self.search_engine.search(query)

    def get_category_parameters_hint(self, category: str, limit: int = 10) -> Optional[str]:
        return self.search_engine.get_category_parameters_hint(category, limit)

    def format_summary(self, item: EquipmentSummary) -> str:
        """
        One-line summary: "name (brand, category) — price | k: v, k: v, k: v".

        At most three parameters are shown; the parameter part is omitted when
        the record has none.
        """
        params_preview = ", ".join(
            f"{key}: {value}" for key, value in list(item.main_parameters.items())[:3]
        )

        if item.price is None:
            price = PRICE_ON_REQUEST
        elif isinstance(item.price, (int, float)):
            price = f"{format_rub(item.price)} ₽"
        else:
            price = item.price

        summary = f"{item.name} ({item.brand}, {item.category}) — {price}"
        if params_preview:
            summary += f" | {params_preview}"
        return summary
