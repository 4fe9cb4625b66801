"""
Parameter Dictionary Service

Loads the canonical parameter dictionary once per service instance, keeps it
as an immutable snapshot with key/alias indexes and resolves raw parameter
names to canonical entries.

Resolution priority for find_canonical_key():
1. Exact canonical key
2. Exact alias
3. Partial alias match in either direction, lowest priority wins
"""

import asyncio
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Protocol, Tuple

from ...models.parameter_dictionary import ParameterDictionaryEntry

logger = logging.getLogger(__name__)

SEARCHABLE_PRIORITY_CUTOFF = 50


class DictionaryNotLoadedError(RuntimeError):
    """Raised when the dictionary is queried before load_dictionary() completed"""


class DictionaryStore(Protocol):
    """Source of dictionary entries, ordered by (priority, key)"""

    async def fetch_entries(self) -> List[ParameterDictionaryEntry]:
        ...


@dataclass(frozen=True)
class DictionarySnapshot:
    """
    Immutable dictionary state shared by concurrent readers.

    Attributes:
        entries: Entries ordered by (priority, key)
        key_index: lower-cased key -> entry
        alias_index: lower-cased alias -> entry; on overlap the entry seen
            first (lowest priority) owns the alias
    """
    entries: Tuple[ParameterDictionaryEntry, ...]
    key_index: Mapping[str, ParameterDictionaryEntry]
    alias_index: Mapping[str, ParameterDictionaryEntry]

    @classmethod
    def build(cls, entries: Iterable[ParameterDictionaryEntry]) -> "DictionarySnapshot":
        ordered = tuple(sorted(entries, key=lambda e: (e.priority, e.key)))

        key_index = {}
        alias_index = {}
        for entry in ordered:
            key_index.setdefault(entry.key.strip().lower(), entry)
            for alias in entry.aliases:
                normalized_alias = alias.strip().lower()
                if normalized_alias:
                    alias_index.setdefault(normalized_alias, entry)

        return cls(
            entries=ordered,
            key_index=MappingProxyType(key_index),
            alias_index=MappingProxyType(alias_index),
        )


class ParameterDictionaryService:
    """
    Canonical parameter catalog with memoized loading.

    Constructed once by the composition root and injected into every consumer
    (normalizers, repository, search engine). A reload builds a fresh snapshot
    and swaps the single reference, so in-flight readers never observe a
    half-built index.
    """

    def __init__(self, store: DictionaryStore):
        """
        Initialize service.

        Args:
            store: Dictionary source (ParameterDictionaryRepository in production)
        """
        self._store = store
        self._snapshot: Optional[DictionarySnapshot] = None
        self._load_task: Optional[asyncio.Task] = None

    @property
    def is_loaded(self) -> bool:
        return self._snapshot is not None

    @property
    def entries(self) -> Tuple[ParameterDictionaryEntry, ...]:
        return self._require_snapshot().entries

    async def load_dictionary(self) -> None:
        """
        Load the dictionary if it is not loaded yet.

        Concurrent first-time callers share one in-flight load. A failed load
        is re-raised to every waiter and may be retried by a later call.
        """
        if self._snapshot is not None:
            return

        if self._load_task is None:
            self._load_task = asyncio.ensure_future(self._load())

        task = self._load_task
        try:
            await asyncio.shield(task)
        except Exception:
            if self._load_task is task and task.done():
                self._load_task = None
            raise

    async def reload_dictionary(self) -> None:
        """Fetch the dictionary again and atomically replace the snapshot"""
        snapshot = await self._fetch_snapshot()
        self._snapshot = snapshot
        logger.info(f"Parameter dictionary reloaded: {len(snapshot.entries)} entries")

    async def _load(self) -> None:
        snapshot = await self._fetch_snapshot()
        if self._snapshot is None:
            self._snapshot = snapshot
        logger.info(
            f"Parameter dictionary loaded: {len(snapshot.entries)} entries, "
            f"{len(snapshot.alias_index)} aliases"
        )

    async def _fetch_snapshot(self) -> DictionarySnapshot:
        entries = await self._store.fetch_entries()
        return DictionarySnapshot.build(entries)

    def _require_snapshot(self) -> DictionarySnapshot:
        snapshot = self._snapshot
        if snapshot is None:
            raise DictionaryNotLoadedError(
                "Parameter dictionary is not loaded. Call load_dictionary() first."
            )
        return snapshot

    def find_canonical_key(self, raw_key: str) -> Optional[ParameterDictionaryEntry]:
        """
        Resolve a raw parameter name to exactly one dictionary entry.

        Args:
            raw_key: Raw name, e.g. "Мощность", "engine_power_kw", "мощность двигателя"

        Returns:
            Matching entry or None

        Raises:
            DictionaryNotLoadedError: If the dictionary has not been loaded
        """
        snapshot = self._require_snapshot()

        normalized_key = (raw_key or "").strip().lower()
        if not normalized_key:
            return None

        entry = snapshot.key_index.get(normalized_key)
        if entry is not None:
            return entry

        entry = snapshot.alias_index.get(normalized_key)
        if entry is not None:
            return entry

        best_match: Optional[ParameterDictionaryEntry] = None
        for candidate in snapshot.entries:
            if best_match is not None and candidate.priority >= best_match.priority:
                continue
            for alias in candidate.aliases:
                alias_lower = alias.strip().lower()
                if not alias_lower:
                    continue
                if alias_lower in normalized_key or normalized_key in alias_lower:
                    best_match = candidate
                    break

        if best_match is not None:
            logger.debug(f"Partial alias match: '{raw_key}' -> {best_match.key}")

        return best_match

    def get_by_key(self, key: str) -> Optional[ParameterDictionaryEntry]:
        """Exact canonical key lookup, no alias or partial fallback"""
        snapshot = self._require_snapshot()
        return snapshot.key_index.get((key or "").strip().lower())

    def get_searchable_parameters(self, limit: int = 10) -> List[ParameterDictionaryEntry]:
        """
        Parameters suitable as search filters.

        Args:
            limit: Maximum number of entries

        Returns:
            Entries with priority below 50, most important first
        """
        snapshot = self._require_snapshot()
        searchable = [e for e in snapshot.entries if e.priority < SEARCHABLE_PRIORITY_CUTOFF]
        searchable.sort(key=lambda e: e.priority)
        return searchable[:max(limit, 0)]

    def get_category_parameters_hint(self, category: str, limit: int = 10) -> Optional[str]:
        """
        Human-readable list of parameters a user can filter a category by.

        Entries whose dictionary category matches are preferred; otherwise the
        global searchable set is used.
        """
        searchable = self.get_searchable_parameters(limit=len(self.entries))
        category_lower = (category or "").strip().lower()

        matching = [e for e in searchable if category_lower and e.category.lower() == category_lower]
        selected = (matching or searchable)[:max(limit, 0)]
        if not selected:
            return None

        parts = []
        for entry in selected:
            label = entry.label_ru or entry.key
            parts.append(f"{label} ({entry.unit})" if entry.unit else label)

        return ", ".join(parts)
