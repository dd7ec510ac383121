"""
Data models for dictionary lookups and extracted catalog terms.

Includes the curated DictionaryMapping, the per-lookup NormalizationResult,
the per-product ExtractedTerms produced by source extractors, and the value
objects wrapping canonical material / color / pattern values.
"""

import uuid
from datetime import datetime, timezone
from typing import ClassVar, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MATERIAL = "material"
COLOR = "color"
PATTERN = "pattern"

CATEGORIES = (MATERIAL, COLOR, PATTERN)

MappingSource = Literal["manual", "llm_suggested", "user_feedback"]
MatchType = Literal["exact", "partial"]


def normalize_term(value: str) -> str:
    """Lowercase and trim a raw term for dictionary comparison."""
    return value.lower().strip()


class DictionaryMapping(BaseModel):
    """One approved translation rule: source term -> canonical translations."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    category: str
    source_locale: str
    source_term: str
    translations: dict[str, str]
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    usage_count: int = Field(default=0, ge=0)
    source: MappingSource = "manual"
    validated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    validated_by: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("source_term")
    @classmethod
    def clean_source_term(cls, v: str) -> str:
        """Store source terms lowercased and trimmed."""
        v = normalize_term(v)
        if not v:
            raise ValueError("Source term cannot be empty")
        return v

    @field_validator("translations")
    @classmethod
    def require_translation(cls, v: dict[str, str]) -> dict[str, str]:
        """A mapping without any translation cannot resolve anything."""
        cleaned = {locale: text.strip() for locale, text in v.items() if text and text.strip()}
        if not cleaned:
            raise ValueError("Translations cannot be empty")
        return cleaned

    def get_translation(self, locale: str = "en") -> Optional[str]:
        return self.translations.get(locale)

    @property
    def canonical_value(self) -> str:
        """English translation, or the source term itself when none exists."""
        return self.get_translation("en") or self.source_term

    def is_reliable(self) -> bool:
        return self.confidence >= 0.9

    def is_llm_suggested(self) -> bool:
        return self.source == "llm_suggested"


class NormalizationResult(BaseModel):
    """Outcome of a single dictionary lookup."""

    found: bool
    value: str = ""
    unknown: Optional[str] = None
    mapping_id: Optional[str] = None
    match_type: Optional[MatchType] = None

    @classmethod
    def miss(cls, text: str) -> "NormalizationResult":
        return cls(found=False, value="", unknown=text)

    @classmethod
    def hit(cls, mapping: DictionaryMapping, match_type: MatchType) -> "NormalizationResult":
        return cls(
            found=True,
            value=mapping.canonical_value,
            mapping_id=mapping.id,
            match_type=match_type,
        )


class ExtractionConfidence(BaseModel):
    """Heuristic confidence per category, set by the extraction method."""

    materials: float = Field(default=0.0, ge=0.0, le=1.0)
    colors: float = Field(default=0.0, ge=0.0, le=1.0)
    patterns: float = Field(default=0.0, ge=0.0, le=1.0)


class ExtractedTerms(BaseModel):
    """
    Candidate terms smart-parsed from one catalog product.

    List order is significant: the first candidate that normalizes wins.
    """

    materials: list[str] = Field(default_factory=list)
    colors: list[str] = Field(default_factory=list)
    patterns: list[str] = Field(default_factory=list)
    confidence: ExtractionConfidence = Field(default_factory=ExtractionConfidence)
    source_locale: str = "fr"

    def candidates(self, category: str) -> list[str]:
        """Ordered candidates for a dictionary category."""
        return {
            MATERIAL: self.materials,
            COLOR: self.colors,
            PATTERN: self.patterns,
        }.get(category, [])


class _CanonicalValue(BaseModel):
    """Immutable, lowercased canonical dictionary value."""

    model_config = ConfigDict(frozen=True)

    value: str

    @field_validator("value")
    @classmethod
    def clean_value(cls, v: str) -> str:
        v = normalize_term(v)
        if not v:
            raise ValueError(f"{cls.__name__} cannot be empty")
        return v

    def __init__(self, value: str, **data):
        super().__init__(value=value, **data)

    def __str__(self) -> str:
        return self.value


class MaterialType(_CanonicalValue):
    """Canonical material (fiber) value."""

    NATURAL: ClassVar[tuple] = ("cotton", "silk", "wool", "linen", "cashmere", "mohair", "alpaca", "hemp", "jute")
    SYNTHETIC: ClassVar[tuple] = ("polyester", "nylon", "acrylic", "spandex", "elastane", "lycra", "rayon")

    def is_natural(self) -> bool:
        return self.value in self.NATURAL

    def is_synthetic(self) -> bool:
        return self.value in self.SYNTHETIC


class Color(_CanonicalValue):
    """Canonical color value."""


class Pattern(_CanonicalValue):
    """Canonical pattern value."""

    GEOMETRIC: ClassVar[tuple] = ("stripes", "checks", "polka dots", "geometric", "chevron", "zigzag")
    NATURAL: ClassVar[tuple] = ("floral", "paisley", "animal print", "leaf", "botanical")

    def is_geometric(self) -> bool:
        return self.value in self.GEOMETRIC

    def is_natural(self) -> bool:
        return self.value in self.NATURAL


VALUE_OBJECTS = {
    MATERIAL: MaterialType,
    COLOR: Color,
    PATTERN: Pattern,
}
