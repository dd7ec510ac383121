"""
pytest configuration and shared fixtures for the textile normalization tests.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.loaders.memory import InMemoryDictionaryStore, InMemoryUnknownTermStore  # noqa: E402
from src.normalization.models import DictionaryMapping  # noqa: E402


def make_mapping(category: str, locale: str, term: str, english: str, **kwargs) -> DictionaryMapping:
    """Build a manual mapping with an English translation."""
    return DictionaryMapping(
        category=category,
        source_locale=locale,
        source_term=term,
        translations={"en": english},
        **kwargs,
    )


# Small curated dictionary in store order (locale, then term)
SAMPLE_MAPPINGS = [
    ("material", "en", "cotton", "cotton"),
    ("material", "en", "silk", "silk"),
    ("color", "en", "black", "black"),
    ("color", "en", "navy", "navy"),
    ("pattern", "en", "floral", "floral"),
    ("material", "fr", "coton", "cotton"),
    ("material", "fr", "lin", "linen"),
    ("material", "fr", "polyester", "polyester"),
    ("material", "fr", "soie", "silk"),
    ("material", "fr", "soie sauvage", "wild silk"),
    ("color", "fr", "bleu", "blue"),
    ("color", "fr", "noir", "black"),
    ("pattern", "fr", "fleuri", "floral"),
    ("pattern", "fr", "rayé", "stripes"),
]


@pytest.fixture
def dictionary_store() -> InMemoryDictionaryStore:
    return InMemoryDictionaryStore(make_mapping(*row) for row in SAMPLE_MAPPINGS)


@pytest.fixture
def unknown_store() -> InMemoryUnknownTermStore:
    return InMemoryUnknownTermStore()
