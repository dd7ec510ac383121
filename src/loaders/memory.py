"""
In-memory stores with the same contracts as the Supabase ones.

Used by `--dry-run` and by the test suite.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional, Union

from src.normalization.errors import RepositoryError
from src.normalization.models import DictionaryMapping
from src.normalization.unknowns import (
    DEFAULT_MAX_CONTEXTS,
    UnknownTerm,
    UnknownTermStatus,
    unknown_key,
)
from src.transformers.textile import Textile


class InMemoryTextileRepository:
    """Textiles keyed by source_url; saving twice updates the one entry."""

    def __init__(self):
        self.rows: dict[str, Textile] = {}
        self.save_count = 0

    async def save(self, textile: Textile) -> None:
        now = datetime.now(timezone.utc)
        existing = self.rows.get(textile.source_url)
        stored = textile.model_copy(deep=True)
        if existing is not None:
            # Upsert keeps the original identity
            stored.id = existing.id
            stored.created_at = existing.created_at
        else:
            stored.created_at = now
        stored.updated_at = now
        self.rows[textile.source_url] = stored
        self.save_count += 1

    async def find_by_source_url(self, source_url: str) -> Optional[Textile]:
        return self.rows.get(source_url)

    async def find_all(self, limit: Optional[int] = None) -> list[Textile]:
        items = sorted(self.rows.values(), key=lambda t: t.created_at, reverse=True)
        return items[:limit] if limit else items

    async def count(self) -> int:
        return len(self.rows)


class InMemoryDictionaryStore:
    """Ordered list of mappings; list order is lookup order."""

    def __init__(self, mappings: Iterable[DictionaryMapping] = ()):
        self.mappings: list[DictionaryMapping] = list(mappings)
        self.load_count = 0
        self.fail_loads = False
        self.fail_increments = False

    async def get_all(self) -> list[DictionaryMapping]:
        if self.fail_loads:
            raise RepositoryError("dictionary store unavailable")
        self.load_count += 1
        return [m.model_copy() for m in self.mappings]

    async def increment_usage(self, mapping_id: str) -> None:
        if self.fail_increments:
            raise RepositoryError("increment rejected")
        for mapping in self.mappings:
            if mapping.id == mapping_id:
                mapping.usage_count += 1
                return

    async def save(self, mapping: DictionaryMapping) -> None:
        for i, existing in enumerate(self.mappings):
            if (existing.category, existing.source_locale, existing.source_term) == (
                mapping.category,
                mapping.source_locale,
                mapping.source_term,
            ):
                self.mappings[i] = mapping
                return
        self.mappings.append(mapping)

    def usage_of(self, source_term: str, source_locale: str) -> int:
        for mapping in self.mappings:
            if mapping.source_term == source_term and mapping.source_locale == source_locale:
                return mapping.usage_count
        return 0

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "InMemoryDictionaryStore":
        """Load a list of mapping objects from a JSON file."""
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls(DictionaryMapping(**item) for item in data)


class InMemoryUnknownTermStore:
    """Unknown terms deduplicated on (term, category)."""

    def __init__(self, max_contexts: int = DEFAULT_MAX_CONTEXTS):
        self.terms: dict[tuple[str, str], UnknownTerm] = {}
        self.max_contexts = max_contexts
        self.fail_writes = False

    async def log_or_increment(
        self,
        term: str,
        category: str,
        context: Optional[str],
        source_platform: Optional[str],
    ) -> str:
        if self.fail_writes:
            raise RepositoryError("unknown-term store unavailable")

        key = unknown_key(term, category)
        existing = self.terms.get(key)
        if existing is not None:
            existing.increment_occurrence(context, self.max_contexts)
            return existing.id

        unknown = UnknownTerm(
            term=term,
            category=category,
            source_platform=source_platform,
            occurrences=1,
        )
        unknown.add_context(context, self.max_contexts)
        self.terms[key] = unknown
        return unknown.id

    async def get_by_id(self, unknown_id: str) -> Optional[UnknownTerm]:
        for unknown in self.terms.values():
            if unknown.id == unknown_id:
                return unknown
        return None

    async def find_all(
        self,
        status: Optional[UnknownTermStatus] = None,
        category: Optional[str] = None,
        min_occurrences: int = 1,
        limit: Optional[int] = None,
    ) -> list[UnknownTerm]:
        items = [
            u
            for u in self.terms.values()
            if (status is None or u.status == status)
            and (category is None or u.category == category)
            and u.occurrences >= min_occurrences
        ]
        items.sort(key=lambda u: u.occurrences, reverse=True)
        return items[:limit] if limit else items

    async def update(self, unknown: UnknownTerm) -> None:
        self.terms[unknown.key] = unknown

    def get(self, term: str, category: str) -> Optional[UnknownTerm]:
        return self.terms.get(unknown_key(term, category))
