"""
The Fabric Sales extractor (English catalog).

TFS tags are already clean English keywords, colors included, so every
category is keyword-matched against the tags. When no color tag exists the
first color keyword found in the title is used.
"""

from typing import Optional

import httpx

from config.settings import SOURCES, SourceConfig
from src.normalization.models import ExtractedTerms, ExtractionConfidence
from .shopify_extractor import ShopifyExtractor

MATERIAL_KEYWORDS = [
    "silk",
    "cotton",
    "wool",
    "linen",
    "viscose",
    "polyester",
    "cashmere",
    "elastane",
    "spandex",
    "nylon",
    "acrylic",
    "modal",
    "rayon",
    "velvet",
    "satin",
    "chiffon",
    "organza",
    "taffeta",
    "crepe",
    "jersey",
]

COLOR_KEYWORDS = [
    "black",
    "white",
    "grey",
    "gray",
    "red",
    "blue",
    "green",
    "yellow",
    "orange",
    "purple",
    "pink",
    "brown",
    "beige",
    "cream",
    "ivory",
    "navy",
    "burgundy",
    "maroon",
    "teal",
    "turquoise",
    "aqua",
    "lavender",
    "lilac",
    "violet",
    "gold",
    "silver",
    "multicolor",
    "multi",
    "rainbow",
]

PATTERN_KEYWORDS = [
    "solid",
    "plain",
    "print",
    "printed",
    "stripe",
    "striped",
    "floral",
    "flower",
    "abstract",
    "geometric",
    "dot",
    "polka",
    "check",
    "checked",
    "plaid",
    "jacquard",
    "embroidered",
    "lace",
]


class TheFabricSalesExtractor(ShopifyExtractor):
    """Extracts English-tagged designer deadstock."""

    TAG_CONFIDENCE = 0.9
    TITLE_CONFIDENCE = 0.7  # color guessed from the title

    def __init__(
        self,
        source: Optional[SourceConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(source or SOURCES["the_fabric_sales"], client)

    def smart_parse(self, title: str, tags: list[str]) -> ExtractedTerms:
        tag_text = " ".join(tags)

        materials = self._match_keywords(tag_text, MATERIAL_KEYWORDS)
        colors = self._match_keywords(tag_text, COLOR_KEYWORDS)
        color_confidence = self.TAG_CONFIDENCE
        if not colors:
            colors = self.parse_title_color(title)
            color_confidence = self.TITLE_CONFIDENCE
        patterns = self._match_keywords(tag_text, PATTERN_KEYWORDS)

        return ExtractedTerms(
            materials=materials,
            colors=colors,
            patterns=patterns,
            confidence=ExtractionConfidence(
                materials=self.TAG_CONFIDENCE if materials else 0.0,
                colors=color_confidence if colors else 0.0,
                patterns=self.TAG_CONFIDENCE if patterns else 0.0,
            ),
            source_locale=self.source_locale,
        )

    def parse_title_color(self, title: str) -> list[str]:
        """First color keyword in the title, used when no tag names a color."""
        title = title.lower()
        for keyword in COLOR_KEYWORDS:
            if keyword in title:
                return [keyword]
        return []
