"""
Term normalization for scraped textile catalogs.

- Locale-partitioned dictionary with an in-process cache
- Exact-then-partial dictionary lookups
- Unknown-term tracking and curation
- Composition parsing ("80% coton 20% polyester")

Usage:
    from src.normalization import NormalizationEngine, UnknownTermTracker, normalize_textile

    engine = NormalizationEngine(dictionary_store)
    tracker = UnknownTermTracker(unknown_store)
    result = await normalize_textile(data, engine, tracker)
"""

from .composition import parse_composition
from .dictionary import DictionaryCache, DictionaryStore
from .engine import NormalizationEngine
from .errors import (
    DictionaryUnavailableError,
    FeedError,
    InvalidTransitionError,
    NormalizationError,
    RepositoryError,
    UnknownTermNotFoundError,
)
from .models import (
    CATEGORIES,
    COLOR,
    MATERIAL,
    PATTERN,
    Color,
    DictionaryMapping,
    ExtractedTerms,
    ExtractionConfidence,
    MaterialType,
    NormalizationResult,
    Pattern,
)
from .sinks import BestEffortRunner
from .textile_normalizer import NormalizeTextileInput, NormalizeTextileOutput, normalize_textile
from .unknowns import UnknownTerm, UnknownTermStatus, UnknownTermStore, UnknownTermTracker

__all__ = [
    # Dictionary
    "DictionaryCache",
    "DictionaryMapping",
    "DictionaryStore",
    # Engine
    "NormalizationEngine",
    "NormalizationResult",
    "BestEffortRunner",
    # Textile normalization
    "ExtractedTerms",
    "ExtractionConfidence",
    "NormalizeTextileInput",
    "NormalizeTextileOutput",
    "normalize_textile",
    "parse_composition",
    # Value objects
    "MaterialType",
    "Color",
    "Pattern",
    "CATEGORIES",
    "MATERIAL",
    "COLOR",
    "PATTERN",
    # Unknown terms
    "UnknownTerm",
    "UnknownTermStatus",
    "UnknownTermStore",
    "UnknownTermTracker",
    # Errors
    "NormalizationError",
    "FeedError",
    "DictionaryUnavailableError",
    "RepositoryError",
    "UnknownTermNotFoundError",
    "InvalidTransitionError",
]
