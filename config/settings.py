"""
Configuration settings for the textile normalization pipeline.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file from project root
load_dotenv(Path(__file__).parent.parent / ".env")


BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class SourceConfig:
    """Configuration for one Shopify-style catalog source."""

    key: str
    base_url: str
    products_path: str = "/products.json"
    source_locale: str = "en"

    # Defaults stamped onto every textile from this source
    currency: str = "EUR"
    default_quantity: float = 1.0
    quantity_unit: str = "m"
    supplier_name: Optional[str] = None

    headers: dict = field(default_factory=dict)
    timeout_seconds: float = 30.0

    @property
    def platform(self) -> str:
        """Platform name persisted as source_platform."""
        return self.key

    @property
    def feed_url(self) -> str:
        return f"{self.base_url}{self.products_path}"


SOURCES: dict[str, SourceConfig] = {
    "my_little_coupon": SourceConfig(
        key="my_little_coupon",
        base_url="https://mylittlecoupon.fr",
        products_path="/collections/all/products.json",
        source_locale="fr",
        currency="EUR",
        default_quantity=3.0,  # MLC sells 3m coupons
        supplier_name="Maison de couture française",
        # Realistic headers, the shop rejects bare clients
        headers={
            "User-Agent": BROWSER_USER_AGENT,
            "Accept": "application/json, text/plain, */*",
            "Accept-Language": "fr-FR,fr;q=0.9,en-US;q=0.8,en;q=0.7",
            "Referer": "https://mylittlecoupon.fr/",
            "Origin": "https://mylittlecoupon.fr",
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
        },
    ),
    "the_fabric_sales": SourceConfig(
        key="the_fabric_sales",
        base_url="https://thefabricsales.com",
        products_path="/products.json",
        source_locale="en",
        currency="GBP",
        default_quantity=1.0,  # yardage is not always listed
        supplier_name="The Fabric Sales",
    ),
}


@dataclass
class NormalizationConfig:
    """Configuration for dictionary lookups and unknown tracking."""

    categories: tuple = ("material", "color", "pattern")
    target_locale: str = "en"

    # "stored_order" keeps the store's order for the partial pass,
    # "longest_first" tries longer source terms first
    partial_match_strategy: str = "stored_order"

    max_unknown_contexts: int = 10
    frequent_unknown_threshold: int = 5

    # Send unmatched composition phrases to the unknown-term queue
    route_composition_misses: bool = False

    def __post_init__(self):
        if self.partial_match_strategy not in ("stored_order", "longest_first"):
            raise ValueError(
                f"Unsupported partial_match_strategy: {self.partial_match_strategy}"
            )


@dataclass
class SupabaseConfig:
    """Configuration for the Supabase backing store."""

    url: Optional[str] = field(default_factory=lambda: os.getenv("SUPABASE_URL"))
    key: Optional[str] = field(default_factory=lambda: os.getenv("SUPABASE_KEY"))
    schema: str = field(
        default_factory=lambda: os.getenv("SUPABASE_SCHEMA", "deadstock")
    )

    textiles_table: str = "textiles"
    dictionary_table: str = "dictionary_mappings"
    unknowns_table: str = "unknown_terms"

    increment_usage_rpc: str = "increment_mapping_usage"
    increment_unknown_rpc: str = "increment_unknown_occurrence"

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.key)


@dataclass
class LoggingConfig:
    """Configuration for console output."""

    verbose: bool = False  # Print every lookup


@dataclass
class PipelineConfig:
    """Main configuration combining all settings."""

    sources: dict = field(default_factory=lambda: dict(SOURCES))
    normalization: NormalizationConfig = field(default_factory=NormalizationConfig)
    supabase: SupabaseConfig = field(default_factory=SupabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    default_limit: int = 10

    def get_source(self, key: str) -> SourceConfig:
        if key not in self.sources:
            raise ValueError(
                f"Unknown source: {key}. Available: {', '.join(self.sources)}"
            )
        return self.sources[key]


# Default configuration instance
config = PipelineConfig()
