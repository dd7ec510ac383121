"""
Composition parsing: "80% Coton 20% Polyester" -> {"cotton": 80, "polyester": 20}.
"""

import re
from typing import Optional

from .engine import NormalizationEngine
from .models import MATERIAL
from .unknowns import UnknownTermTracker

# "<digits>[%] <words>", words may carry French accents
COMPOSITION_PATTERN = re.compile(r"(\d+)\s*%?\s*([a-zà-öø-ÿ\s]+)", re.IGNORECASE)


async def parse_composition(
    text: str,
    engine: NormalizationEngine,
    source_locale: str = "fr",
    tracker: Optional[UnknownTermTracker] = None,
    source_platform: Optional[str] = None,
) -> dict[str, int]:
    """
    Parse percentage/material pairs and resolve each material.

    Only exact dictionary hits count, so "3 mètres de lin" is not read as
    3% linen. Phrases the dictionary cannot resolve are dropped.
    Percentages are kept as written (no check that they sum to 100). When a
    tracker is passed, dropped phrases are also logged as unknown materials.
    """
    composition: dict[str, int] = {}
    if not text:
        return composition

    for match in COMPOSITION_PATTERN.finditer(text):
        percentage = int(match.group(1))
        phrase = match.group(2).strip().lower()
        if not phrase:
            continue

        result = await engine.normalize(phrase, MATERIAL, source_locale, exact_only=True)
        if result.found:
            composition[result.value] = percentage
        elif tracker is not None:
            await tracker.log_or_increment(phrase, MATERIAL, text, source_platform)

    return composition
