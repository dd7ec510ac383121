"""
Dictionary-first normalization engine.

Resolves a raw catalog term to its canonical English value:

1. lowercase / trim the input
2. keep the category's mappings whose source_locale matches
3. exact pass: first mapping whose source_term equals the input
4. partial pass: first mapping whose source_term is contained in the input
5. otherwise a miss, echoing the original text as `unknown`

The exact pass always runs to completion before the partial pass, so a
short term such as "soie" can never shadow an exact "soie sauvage".
"""

from typing import Optional

from rich.console import Console

from config.settings import NormalizationConfig
from .dictionary import DictionaryCache, DictionaryStore
from .models import COLOR, MATERIAL, PATTERN, DictionaryMapping, NormalizationResult, normalize_term
from .sinks import BestEffortRunner

console = Console()


class NormalizationEngine:
    """Resolves extracted terms against the locale-partitioned dictionary."""

    def __init__(
        self,
        store: DictionaryStore,
        cache: Optional[DictionaryCache] = None,
        config: Optional[NormalizationConfig] = None,
        runner: Optional[BestEffortRunner] = None,
        verbose: bool = False,
    ):
        self.config = config or NormalizationConfig()
        self.store = store
        self.cache = cache or DictionaryCache(store, self.config.categories)
        self.runner = runner or BestEffortRunner()
        self.verbose = verbose

    async def normalize_material(self, text: str, source_locale: str = "fr") -> NormalizationResult:
        return await self.normalize(text, MATERIAL, source_locale)

    async def normalize_color(self, text: str, source_locale: str = "fr") -> NormalizationResult:
        return await self.normalize(text, COLOR, source_locale)

    async def normalize_pattern(self, text: str, source_locale: str = "fr") -> NormalizationResult:
        return await self.normalize(text, PATTERN, source_locale)

    async def normalize(
        self,
        text: str,
        category: str,
        source_locale: str = "fr",
        exact_only: bool = False,
    ) -> NormalizationResult:
        """Resolve one term. `exact_only` skips the substring pass."""
        normalized = normalize_term(text)

        mappings = await self.cache.get(category)
        if not mappings:
            console.print(f"[yellow]Warning: no mappings found for category: {category}[/yellow]")
            return NormalizationResult.miss(text)

        if not normalized:
            return NormalizationResult.miss(text)

        locale_mappings = [m for m in mappings if m.source_locale == source_locale]

        result = self._match_exact(normalized, locale_mappings)
        if result is None and not exact_only:
            result = self._match_partial(normalized, locale_mappings)
        if result is None:
            result = NormalizationResult.miss(text)

        if self.verbose:
            console.print(
                f"[dim]  {category}/{source_locale}: '{text}' -> "
                f"{result.value if result.found else 'unknown'}"
                f"{f' ({result.match_type})' if result.match_type else ''}[/dim]"
            )
        return result

    def invalidate_cache(self) -> None:
        self.cache.invalidate()

    async def flush(self) -> None:
        """Wait for pending usage-count increments."""
        await self.runner.drain()

    def _match_exact(
        self, normalized: str, mappings: list[DictionaryMapping]
    ) -> Optional[NormalizationResult]:
        for mapping in mappings:
            if normalized == mapping.source_term:
                return self._resolve(mapping, "exact")
        return None

    def _match_partial(
        self, normalized: str, mappings: list[DictionaryMapping]
    ) -> Optional[NormalizationResult]:
        if self.config.partial_match_strategy == "longest_first":
            # sorted() is stable: equal lengths keep stored order
            mappings = sorted(mappings, key=lambda m: len(m.source_term), reverse=True)

        for mapping in mappings:
            if mapping.source_term in normalized:
                return self._resolve(mapping, "partial")
        return None

    def _resolve(self, mapping: DictionaryMapping, match_type: str) -> NormalizationResult:
        self.runner.schedule(
            f"Failed to increment usage for mapping {mapping.id}",
            self.store.increment_usage(mapping.id),
        )
        return NormalizationResult.hit(mapping, match_type)
