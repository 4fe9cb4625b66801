"""
Equipment Repository

Data-access layer for the equipment catalog. All SQL, full-text search and
pgvector similarity queries live here; every filter goes through
SQLConditionBuilder so caller input only ever reaches PostgreSQL as bound
parameters.
"""

import logging
import math
import os
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import text

from ..models.parameter_dictionary import ParameterDictionaryEntry
from ..models.search import CategoryInfo, EquipmentSummary, SearchQuery, VectorSearchFilters
from ..services.search.query_builder import (
    SQLConditionBuilder,
    build_where_clause,
    validate_parameter_key as _validate_parameter_key,
)

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10

OPENAI_EMBEDDING_COLUMN = ("embedding_openai", 1536)
DEFAULT_EMBEDDING_COLUMN = ("embedding", 768)

_SUMMARY_COLUMNS = """
    e.id::text AS id,
    e.name,
    e.category,
    e.brand,
    e.price,
    e.main_parameters AS "mainParameters"
"""

_ACTIVE_FROM = """
    FROM equipment e
    INNER JOIN brands b ON e.brand = b.name AND b.is_active = true
"""


def _safe_limit(limit: Any) -> int:
    if isinstance(limit, int) and not isinstance(limit, bool) and limit > 0:
        return limit
    return DEFAULT_LIMIT


def _safe_offset(offset: Any) -> int:
    if isinstance(offset, int) and not isinstance(offset, bool) and offset >= 0:
        return offset
    return 0


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _vector_literal(embedding: Sequence[float]) -> str:
    return "[" + ",".join(repr(float(v)) for v in embedding) + "]"


class EquipmentRepository:
    """
    Storage boundary for equipment search.

    Args:
        db_manager: PostgreSQLManager (anything exposing session())
        dictionary_service: Optional ParameterDictionaryService used to map
            canonical keys to their storage field
        embeddings_provider: Overrides LLM_EMBEDDINGS_PROVIDER when set
    """

    def __init__(
        self,
        db_manager: Any,
        dictionary_service: Optional[Any] = None,
        embeddings_provider: Optional[str] = None
    ):
        self.db_manager = db_manager
        self.dictionary_service = dictionary_service
        self.embeddings_provider = embeddings_provider

    def get_embedding_config(self) -> Tuple[str, int]:
        """
        Active embedding column and its dimension.

        OpenAI embeddings live in embedding_openai (1536), everything else
        (Ollama and local models) in embedding (768).
        """
        provider = (self.embeddings_provider or os.getenv("LLM_EMBEDDINGS_PROVIDER") or "").strip().lower()
        if provider == "openai":
            return OPENAI_EMBEDDING_COLUMN
        return DEFAULT_EMBEDDING_COLUMN

    def validate_parameter_key(self, key: Any) -> bool:
        return _validate_parameter_key(key)

    def validate_embedding(self, embedding: Any, expected_dim: int) -> bool:
        if not isinstance(embedding, (list, tuple)):
            logger.warning(f"[Security] Embedding must be a list, got {type(embedding).__name__}")
            return False
        if len(embedding) != expected_dim:
            logger.warning(
                f"[Security] Invalid embedding dimension: expected {expected_dim}, got {len(embedding)}"
            )
            return False
        for index, value in enumerate(embedding):
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                logger.warning(f"[Security] Invalid embedding value at index {index}: {value!r}")
                return False
        return True

    def _build_filters(
        self,
        builder: SQLConditionBuilder,
        category: Optional[str],
        brand: Optional[str],
        region: Optional[str],
        parameters: Optional[Dict[str, Any]]
    ) -> None:
        category = _clean(category)
        brand = _clean(brand)
        region = _clean(region)

        if category:
            builder.add("e.category ILIKE {0}", f"%{category}%")
        if brand:
            builder.add("e.brand = {0}", brand)
        if region:
            builder.add("e.region = {0}", region)
        if parameters:
            builder.add_parameter_conditions(parameters, self.dictionary_service)

    def _build_query_conditions(self, query: SearchQuery) -> Tuple[List[str], Dict[str, Any], bool]:
        builder = SQLConditionBuilder()
        builder.add("e.is_active = true")

        has_text = query.has_text()
        if has_text:
            builder.add("e.search_vector @@ plainto_tsquery('russian', :text)")

        self._build_filters(builder, query.category, query.brand, query.region, query.parameters)

        conditions, params = builder.render()
        if has_text:
            params["text"] = query.text.strip()
        return conditions, params, has_text

    async def _fetch_all(self, sql: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        async with self.db_manager.session() as session:
            result = await session.execute(text(sql), params)
            return [dict(row) for row in result.mappings().all()]

    async def _fetch_scalar(self, sql: str, params: Optional[Dict[str, Any]] = None) -> Any:
        async with self.db_manager.session() as session:
            result = await session.execute(text(sql), params or {})
            return result.scalar()

    async def full_text_search(self, query: SearchQuery, limit: int, offset: int = 0) -> List[EquipmentSummary]:
        """
        Full-text search with structured filters, best ts_rank first.

        Args:
            query: Query (parameters already normalized)
            limit: Page size; non-positive values fall back to 10
            offset: Page offset; negative values fall back to 0

        Returns:
            Matching equipment summaries
        """
        conditions, params, has_text = self._build_query_conditions(query)

        rank_expression = (
            "ts_rank(e.search_vector, plainto_tsquery('russian', :text))" if has_text else "0::float4"
        )
        params["limit"] = _safe_limit(limit)
        params["offset"] = _safe_offset(offset)

        sql = f"""
            SELECT {_SUMMARY_COLUMNS}
            {_ACTIVE_FROM}
            {build_where_clause(conditions)}
            ORDER BY {rank_expression} DESC, e.name ASC
            LIMIT :limit OFFSET :offset
        """

        logger.debug(f"FTS conditions: {conditions} params: {params}")
        rows = await self._fetch_all(sql, params)
        return [EquipmentSummary.model_validate(row) for row in rows]

    async def count_equipment(self, query: SearchQuery) -> int:
        """Number of active records matching the same predicates as full_text_search()"""
        conditions, params, _ = self._build_query_conditions(query)

        sql = f"""
            SELECT COUNT(*) AS total
            {_ACTIVE_FROM}
            {build_where_clause(conditions)}
        """

        total = await self._fetch_scalar(sql, params)
        return int(total or 0)

    async def vector_search_with_embedding(
        self,
        query_text: str,
        embedding: Sequence[float],
        limit: int,
        filters: Optional[VectorSearchFilters] = None,
        offset: int = 0
    ) -> List[EquipmentSummary]:
        """
        pgvector cosine-distance search with optional filters.

        Never raises: an invalid embedding or a database error is logged and
        yields an empty list.

        Args:
            query_text: Text the embedding was computed from (logging only)
            embedding: Query vector; must match the active column dimension
            limit: Page size
            filters: Category / brand / region / normalized parameters
            offset: Page offset
        """
        column, dim = self.get_embedding_config()

        if not self.validate_embedding(embedding, dim):
            logger.error("[Security] Invalid embedding provided, aborting vector search")
            return []

        filters = filters or VectorSearchFilters()

        builder = SQLConditionBuilder()
        builder.add(f"e.{column} IS NOT NULL")
        builder.add("e.is_active = true")
        self._build_filters(builder, filters.category, filters.brand, filters.region, filters.parameters)
        conditions, params = builder.render()

        params["embedding"] = _vector_literal(embedding)
        params["limit"] = _safe_limit(limit)
        params["offset"] = _safe_offset(offset)

        vector_literal = "CAST(CAST(:embedding AS text) AS vector)"
        sql = f"""
            SELECT {_SUMMARY_COLUMNS},
                1 - (e.{column} <=> {vector_literal}) AS similarity
            {_ACTIVE_FROM}
            {build_where_clause(conditions)}
            ORDER BY e.{column} <=> {vector_literal}
            LIMIT :limit OFFSET :offset
        """

        try:
            logger.debug(f"Vector search for '{query_text}' conditions: {conditions}")
            rows = await self._fetch_all(sql, params)
            return [EquipmentSummary.model_validate(row) for row in rows]
        except Exception as e:
            logger.warning(f"Vector search with embedding failed: {e}")
            return []

    async def fetch_category_counts(self) -> List[CategoryInfo]:
        """Active categories with at least one active item, most populated first"""
        sql = """
            SELECT c.name, COUNT(e.id) AS count
            FROM categories c
            INNER JOIN equipment e ON e.category = c.name AND e.is_active = true
            INNER JOIN brands b ON e.brand = b.name AND b.is_active = true
            WHERE c.is_active = true
            GROUP BY c.id, c.name
            HAVING COUNT(e.id) > 0
            ORDER BY count DESC, c.name
        """
        rows = await self._fetch_all(sql, {})
        return [CategoryInfo(name=row["name"], count=int(row["count"])) for row in rows]

    async def fetch_brand_counts(self) -> List[CategoryInfo]:
        sql = """
            SELECT b.name, COUNT(e.id) AS count
            FROM brands b
            LEFT JOIN equipment e ON e.brand = b.name AND e.is_active = true
            WHERE b.is_active = true
            GROUP BY b.id, b.name
            ORDER BY count DESC, b.name
        """
        rows = await self._fetch_all(sql, {})
        return [CategoryInfo(name=row["name"], count=int(row["count"])) for row in rows]

    async def fetch_region_counts(self) -> List[CategoryInfo]:
        sql = """
            SELECT region AS name, COUNT(*) AS count
            FROM equipment
            WHERE is_active = true AND region IS NOT NULL AND region != ''
            GROUP BY region
            ORDER BY count DESC
        """
        rows = await self._fetch_all(sql, {})
        return [CategoryInfo(name=row["name"], count=int(row["count"])) for row in rows]

    async def fetch_total_count(self) -> int:
        sql = f"""
            SELECT COUNT(*) AS total
            {_ACTIVE_FROM}
            WHERE e.is_active = true
        """
        total = await self._fetch_scalar(sql)
        return int(total or 0)

    async def find_without_embedding(self, limit: int) -> List[Dict[str, str]]:
        """
        Active records whose active embedding column is still NULL.

        Returns:
            [{"id": ..., "text_to_embed": ...}] in id order, text built from
            name, category, brand, region and description
        """
        column, _ = self.get_embedding_config()

        sql = f"""
            SELECT
                e.id::text AS id,
                trim(concat_ws(' ', e.name, e.category, e.brand, e.region, e.description)) AS text_to_embed
            {_ACTIVE_FROM}
            WHERE e.{column} IS NULL
              AND e.is_active = true
            ORDER BY e.id
            LIMIT :limit
        """

        rows = await self._fetch_all(sql, {"limit": _safe_limit(limit)})
        return [{"id": str(row["id"]), "text_to_embed": row["text_to_embed"] or ""} for row in rows]

    async def update_embedding(self, equipment_id: str, embedding: Sequence[float]) -> None:
        """
        Store one record's embedding in the active column.

        Raises:
            ValueError: If the vector does not match the column dimension or
                contains non-finite values
        """
        column, dim = self.get_embedding_config()

        if not self.validate_embedding(embedding, dim):
            raise ValueError(f"Invalid embedding for id {equipment_id}: must be {dim} finite numbers")

        record_id: Any = int(equipment_id) if str(equipment_id).isdigit() else equipment_id
        sql = f"""
            UPDATE equipment
            SET {column} = CAST(CAST(:embedding AS text) AS vector)
            WHERE id = :id
        """

        async with self.db_manager.session() as session:
            await session.execute(text(sql), {"id": record_id, "embedding": _vector_literal(embedding)})
            await session.commit()


class ParameterDictionaryRepository:
    """Loads the parameter_dictionary table for ParameterDictionaryService"""

    def __init__(self, db_manager: Any):
        self.db_manager = db_manager

    async def fetch_entries(self) -> List[ParameterDictionaryEntry]:
        sql = """
            SELECT
                key,
                label_ru,
                description_ru,
                category,
                param_type,
                unit,
                min_value,
                max_value,
                enum_values,
                aliases,
                sql_expression,
                priority
            FROM parameter_dictionary
            ORDER BY priority, key
        """

        async with self.db_manager.session() as session:
            result = await session.execute(text(sql))
            rows = result.mappings().all()

        entries = []
        for row in rows:
            try:
                entries.append(ParameterDictionaryEntry.from_row(row))
            except (KeyError, ValueError) as e:
                logger.warning(f"Skipping malformed dictionary row {row.get('key')!r}: {e}")

        logger.info(f"Fetched {len(entries)} parameter dictionary entries")
        return entries
