"""
Normalize one textile's extracted terms into canonical values.

For each category (material, then color, then pattern) the extractor's
candidates are tried in order. The first candidate the dictionary resolves
is kept and the rest are ignored; every miss before that is logged as an
unknown term with the product's text and links for later curation.
"""

from typing import Optional

from pydantic import BaseModel, Field

from .engine import NormalizationEngine
from .models import CATEGORIES, VALUE_OBJECTS, Color, ExtractedTerms, MaterialType, Pattern
from .unknowns import UnknownTermTracker


class NormalizeTextileInput(BaseModel):
    name: str
    description: Optional[str] = None
    extracted_terms: ExtractedTerms
    source_platform: Optional[str] = None
    product_id: Optional[str] = None
    image_url: Optional[str] = None
    product_url: Optional[str] = None

    @property
    def full_text(self) -> str:
        return f"{self.name} {self.description or ''}"


class NormalizeTextileOutput(BaseModel):
    material: Optional[MaterialType] = None
    color: Optional[Color] = None
    pattern: Optional[Pattern] = None
    # Last unresolved candidate per category
    unknowns: dict[str, str] = Field(default_factory=dict)


async def normalize_textile(
    data: NormalizeTextileInput,
    engine: NormalizationEngine,
    tracker: UnknownTermTracker,
) -> NormalizeTextileOutput:
    """Resolve material, color and pattern for one product."""
    terms = data.extracted_terms
    output = NormalizeTextileOutput()

    for category in CATEGORIES:
        for term in terms.candidates(category):
            result = await engine.normalize(term, category, terms.source_locale)

            if result.found:
                setattr(output, category, VALUE_OBJECTS[category](result.value))
                break

            if result.unknown:
                await tracker.log_or_increment(
                    term,
                    category,
                    data.full_text,
                    data.source_platform,
                    data.product_id,
                    data.image_url,
                    data.product_url,
                )
                output.unknowns[category] = term

    return output
