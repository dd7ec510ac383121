"""
My Little Coupon extractor (French catalog).

MLC tags carry compositions such as "100% Soie" or "80% Coton", and the
color is usually the last comma-separated part of the title
("Coupon de soie imprimée, Bleu nuit").
"""

import re
from typing import Optional

import httpx

from config.settings import SOURCES, SourceConfig
from src.normalization.models import ExtractedTerms, ExtractionConfidence
from .shopify_extractor import ShopifyExtractor, dedupe

MATERIAL_RE = re.compile(
    r"(\d+%?\s*)?(soie|coton|laine|lin|viscose|polyester|cachemire|élasthanne|nylon|acrylique)",
    re.IGNORECASE,
)

PATTERN_KEYWORDS = [
    "uni",
    "imprimé",
    "rayé",
    "à rayures",
    "fleurs",
    "fleuri",
    "floral",
    "pois",
    "à pois",
    "carreaux",
    "à carreaux",
    "vichy",
    "jacquard",
    "brodé",
    "dentelle",
]

# A title fragment longer than this is a phrase, not a color
MAX_TITLE_COLOR_LENGTH = 30


class MyLittleCouponExtractor(ShopifyExtractor):
    """Extracts French-tagged deadstock coupons."""

    CONFIDENCE_MATERIALS = 0.9  # composition tags
    CONFIDENCE_COLORS = 0.8  # title fragment heuristic
    CONFIDENCE_PATTERNS = 0.7  # keyword match

    def __init__(
        self,
        source: Optional[SourceConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(source or SOURCES["my_little_coupon"], client)

    def smart_parse(self, title: str, tags: list[str]) -> ExtractedTerms:
        materials = self.parse_materials(tags)
        colors = self.parse_colors(title)
        patterns = self.parse_patterns(tags)

        return ExtractedTerms(
            materials=materials,
            colors=colors,
            patterns=patterns,
            confidence=ExtractionConfidence(
                materials=self.CONFIDENCE_MATERIALS if materials else 0.0,
                colors=self.CONFIDENCE_COLORS if colors else 0.0,
                patterns=self.CONFIDENCE_PATTERNS if patterns else 0.0,
            ),
            source_locale=self.source_locale,
        )

    def parse_materials(self, tags: list[str]) -> list[str]:
        """Materials named in composition tags, percentages dropped."""
        text = ", ".join(tags)
        return dedupe([m.group(2).lower() for m in MATERIAL_RE.finditer(text)])

    def parse_colors(self, title: str) -> list[str]:
        """Text after the last comma of the title, when short enough."""
        if "," not in title:
            return []
        after_last_comma = title.rsplit(",", 1)[1].strip()
        if 0 < len(after_last_comma) < MAX_TITLE_COLOR_LENGTH:
            return [after_last_comma.lower()]
        return []

    def parse_patterns(self, tags: list[str]) -> list[str]:
        return self._match_keywords(", ".join(tags), PATTERN_KEYWORDS)
