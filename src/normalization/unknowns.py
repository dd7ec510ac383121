"""
Unknown-term tracking and curation.

Terms that fail normalization are accumulated per (term, category): the
first sighting creates a pending record, later sightings bump
`occurrences` and append their context. Curators then promote a term into
the dictionary or reject it.

Usage:
    from src.normalization.unknowns import UnknownTermTracker

    tracker = UnknownTermTracker(store)
    await tracker.log_or_increment("lilas", "color", "Coupon lin, lilas", "my_little_coupon")

    pending = await tracker.get_unknowns(category="color")
    mapping = await tracker.approve(pending[0].id, "lilac", dictionary_store=dict_store)
"""

import json
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Protocol

from pydantic import BaseModel, Field, field_validator
from rich.console import Console

from .dictionary import DictionaryStore
from .errors import InvalidTransitionError, UnknownTermNotFoundError
from .models import DictionaryMapping, normalize_term

console = Console()

DEFAULT_MAX_CONTEXTS = 10
FREQUENT_THRESHOLD = 5


class UnknownTermStatus(str, Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    ADDED_TO_DICT = "added_to_dict"
    REJECTED = "rejected"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UnknownTerm(BaseModel):
    """A term that failed normalization, queued for human curation."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    term: str
    category: str
    source_platform: Optional[str] = None
    occurrences: int = Field(default=1, ge=0)
    contexts: list[str] = Field(default_factory=list)
    status: UnknownTermStatus = UnknownTermStatus.PENDING

    human_mapping: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None

    first_seen_at: datetime = Field(default_factory=_utcnow)
    last_seen_at: datetime = Field(default_factory=_utcnow)

    @field_validator("term")
    @classmethod
    def require_term(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Term cannot be empty")
        return v

    @property
    def key(self) -> tuple[str, str]:
        """Deduplication key."""
        return unknown_key(self.term, self.category)

    def increment_occurrence(
        self, context: Optional[str] = None, max_contexts: int = DEFAULT_MAX_CONTEXTS
    ) -> None:
        """Count one more sighting; keep the first `max_contexts` distinct contexts."""
        self.occurrences += 1
        self.last_seen_at = _utcnow()
        self.add_context(context, max_contexts)

    def add_context(self, context: Optional[str], max_contexts: int = DEFAULT_MAX_CONTEXTS) -> None:
        if context and context not in self.contexts and len(self.contexts) < max_contexts:
            self.contexts.append(context)

    def mark_reviewed(self, by: Optional[str] = None, notes: Optional[str] = None) -> None:
        self._require_open("review")
        self.status = UnknownTermStatus.REVIEWED
        self._stamp_review(by, notes)

    def add_to_dictionary(
        self, mapping: str, by: Optional[str] = None, notes: Optional[str] = None
    ) -> None:
        self._require_open("add to dictionary")
        if not mapping.strip():
            raise ValueError("Mapping cannot be empty")
        self.status = UnknownTermStatus.ADDED_TO_DICT
        self.human_mapping = mapping.strip()
        self._stamp_review(by, notes)

    def reject(self, by: Optional[str] = None, notes: Optional[str] = None) -> None:
        self._require_open("reject")
        self.status = UnknownTermStatus.REJECTED
        self._stamp_review(by, notes)

    def is_frequent(self, threshold: int = FREQUENT_THRESHOLD) -> bool:
        return self.occurrences >= threshold

    def is_ready_for_review(self) -> bool:
        return self.status == UnknownTermStatus.PENDING and self.occurrences >= 1

    def _require_open(self, action: str) -> None:
        # reviewed / rejected / added_to_dict terms only accept audit-field edits
        if self.status != UnknownTermStatus.PENDING:
            raise InvalidTransitionError(
                f"Cannot {action} unknown term '{self.term}' with status {self.status.value}"
            )

    def _stamp_review(self, by: Optional[str], notes: Optional[str]) -> None:
        self.reviewed_by = by
        self.reviewed_at = _utcnow()
        if notes is not None:
            self.review_notes = notes


def unknown_key(term: str, category: str) -> tuple[str, str]:
    return normalize_term(term), category


def build_context(
    text: Optional[str],
    term: str,
    product_id: Optional[str] = None,
    image_url: Optional[str] = None,
    product_url: Optional[str] = None,
) -> str:
    """
    Context snippet stored with an unknown sighting.

    When product details are available the context is a JSON object so the
    curation screen can show the product image and link.
    """
    base = text or term
    if not (product_id or image_url or product_url):
        return base
    return json.dumps(
        {
            "text": base,
            "product_id": product_id,
            "image": image_url,
            "url": product_url,
        },
        ensure_ascii=False,
    )


class UnknownTermStore(Protocol):
    """Backing store for unknown terms, keyed by (term, category)."""

    async def log_or_increment(
        self,
        term: str,
        category: str,
        context: Optional[str],
        source_platform: Optional[str],
    ) -> str:
        """Create or bump the record; return its id."""
        ...

    async def get_by_id(self, unknown_id: str) -> Optional[UnknownTerm]:
        ...

    async def find_all(
        self,
        status: Optional[UnknownTermStatus] = None,
        category: Optional[str] = None,
        min_occurrences: int = 1,
        limit: Optional[int] = None,
    ) -> list[UnknownTerm]:
        """Matching records, most frequent first."""
        ...

    async def update(self, unknown: UnknownTerm) -> None:
        ...


class UnknownTermTracker:
    """Logs normalization misses and runs the curation use cases."""

    def __init__(self, store: UnknownTermStore):
        self.store = store
        self.failures: list[str] = []

    async def log_or_increment(
        self,
        term: str,
        category: str,
        context: Optional[str] = None,
        source_platform: Optional[str] = None,
        product_id: Optional[str] = None,
        image_url: Optional[str] = None,
        product_url: Optional[str] = None,
    ) -> Optional[str]:
        """
        Record one sighting of an unknown term.

        Never raises: a failing store is reported on the console and the
        caller's normalization continues. Returns the record id, or None
        when logging failed.
        """
        enriched = build_context(context, term, product_id, image_url, product_url)
        try:
            return await self.store.log_or_increment(term, category, enriched, source_platform)
        except Exception as e:
            message = f"Failed to log unknown {category} '{term}': {e}"
            self.failures.append(message)
            console.print(f"[yellow]Warning: {message}[/yellow]")
            return None

    async def get_unknowns(
        self,
        status: UnknownTermStatus = UnknownTermStatus.PENDING,
        category: Optional[str] = None,
        min_occurrences: int = 1,
        limit: int = 100,
    ) -> list[UnknownTerm]:
        return await self.store.find_all(
            status=status,
            category=category,
            min_occurrences=min_occurrences,
            limit=limit,
        )

    async def approve(
        self,
        unknown_id: str,
        value: str,
        dictionary_store: DictionaryStore,
        validated_by: Optional[str] = None,
        source_locale: str = "fr",
        target_locale: str = "en",
        notes: Optional[str] = None,
        engine=None,
    ) -> DictionaryMapping:
        """
        Promote an unknown term into the dictionary.

        Saves a new manual mapping, marks the unknown `added_to_dict`, and
        invalidates the engine's dictionary cache so the mapping is used on
        the next lookup.
        """
        unknown = await self._get(unknown_id)
        unknown.add_to_dictionary(value, validated_by, notes)

        mapping = DictionaryMapping(
            category=unknown.category,
            source_locale=source_locale,
            source_term=unknown.term,
            translations={target_locale: value},
            confidence=1.0,
            source="manual",
            validated_by=validated_by,
            notes=notes,
        )
        await dictionary_store.save(mapping)
        await self.store.update(unknown)

        if engine is not None:
            engine.invalidate_cache()

        console.print(
            f"[green]✓ Added '{unknown.term}' -> '{value}' "
            f"({unknown.category}, {source_locale}->{target_locale})[/green]"
        )
        return mapping

    async def reject(
        self,
        unknown_id: str,
        rejected_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> UnknownTerm:
        unknown = await self._get(unknown_id)
        unknown.reject(rejected_by, notes)
        await self.store.update(unknown)
        console.print(f"[yellow]Rejected '{unknown.term}' ({unknown.category})[/yellow]")
        return unknown

    async def count_by_status(self) -> dict[str, int]:
        counts = {status.value: 0 for status in UnknownTermStatus}
        for status in UnknownTermStatus:
            records = await self.store.find_all(status=status, min_occurrences=0)
            counts[status.value] = len(records)
        return counts

    async def _get(self, unknown_id: str) -> UnknownTerm:
        unknown = await self.store.get_by_id(unknown_id)
        if unknown is None:
            raise UnknownTermNotFoundError(f"Unknown term not found: {unknown_id}")
        return unknown
