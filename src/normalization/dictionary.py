"""
Dictionary store contract and in-process dictionary cache.

The store is the external collaborator holding curated DictionaryMapping
rows. The cache loads every mapping once, groups them by category, and
keeps them until invalidate() is called (after a curator adds a mapping).
"""

from typing import Iterable, Optional, Protocol

from rich.console import Console

from .errors import DictionaryUnavailableError
from .models import CATEGORIES, DictionaryMapping

console = Console()


class DictionaryStore(Protocol):
    """Queryable collection of curated dictionary mappings."""

    async def get_all(self) -> list[DictionaryMapping]:
        """Every mapping, in the order lookups should scan them."""
        ...

    async def increment_usage(self, mapping_id: str) -> None:
        ...

    async def save(self, mapping: DictionaryMapping) -> None:
        ...


class DictionaryCache:
    """
    Memoized dictionary grouped by category.

    Mappings keep the store's order within each category. That order is
    the lookup priority: the first matching mapping wins.
    """

    def __init__(
        self,
        store: DictionaryStore,
        categories: Iterable[str] = CATEGORIES,
    ):
        self.store = store
        self.categories = tuple(categories)
        self._cache: Optional[dict[str, list[DictionaryMapping]]] = None

    @property
    def is_loaded(self) -> bool:
        return self._cache is not None

    async def get(self, category: str) -> list[DictionaryMapping]:
        """Mappings for a category, loading the whole dictionary on first use."""
        if self._cache is None:
            await self.load_all()
        return list(self._cache.get(category, []))

    async def load_all(self) -> None:
        """
        Reload every mapping from the store.

        The new grouping is built aside and swapped in only once complete,
        so a failing store never leaves a partial (or empty) cache behind.
        """
        try:
            mappings = await self.store.get_all()
        except Exception as e:
            raise DictionaryUnavailableError(f"Failed to load dictionary: {e}") from e

        grouped: dict[str, list[DictionaryMapping]] = {
            category: [] for category in self.categories
        }
        for mapping in mappings:
            if mapping.category in grouped:
                grouped[mapping.category].append(mapping)
            else:
                console.print(
                    f"[yellow]Warning: unknown dictionary category "
                    f"'{mapping.category}' for term '{mapping.source_term}'[/yellow]"
                )

        self._cache = grouped

        summary = ", ".join(f"{cat}: {len(items)}" for cat, items in grouped.items())
        console.print(f"[dim]✓ Dictionary loaded ({summary})[/dim]")

    def invalidate(self) -> None:
        """Drop the memoized dictionary; the next get() reloads it."""
        self._cache = None
