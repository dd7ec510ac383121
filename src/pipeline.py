"""
Scrape pipeline: fetch a source feed, normalize each product, save textiles.

A feed failure aborts the whole batch. A failure on one product (validation,
persistence) is recorded against its id and the batch moves on.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from config.settings import PipelineConfig, SourceConfig, config
from src.extractors.shopify_extractor import ProductData, ShopifyExtractor
from src.normalization.composition import parse_composition
from src.normalization.engine import NormalizationEngine
from src.normalization.errors import FeedError
from src.normalization.textile_normalizer import NormalizeTextileInput, normalize_textile
from src.normalization.unknowns import UnknownTermTracker
from src.transformers.textile import Textile

console = Console()


class TextileRepository(Protocol):
    async def save(self, textile: Textile) -> None:
        ...


@dataclass
class ScrapeResult:
    """Per-source batch outcome."""

    source: str
    total_fetched: int = 0
    total_saved: int = 0
    total_errors: int = 0
    errors: list[str] = field(default_factory=list)
    fatal_error: Optional[str] = None
    elapsed_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return self.fatal_error is None

    def record_error(self, message: str) -> None:
        self.total_errors += 1
        self.errors.append(message)


class TextilePipeline:
    """
    Orchestrates one scrape run per source.

    - Extract: fetch and smart-parse the source feed
    - Normalize: resolve terms, parse composition, build the Textile
    - Load: upsert into the textile repository
    """

    def __init__(
        self,
        engine: NormalizationEngine,
        tracker: UnknownTermTracker,
        repository: TextileRepository,
        pipeline_config: Optional[PipelineConfig] = None,
    ):
        self.engine = engine
        self.tracker = tracker
        self.repository = repository
        self.config = pipeline_config or config

    async def scrape_source(self, extractor: ShopifyExtractor, limit: int = 10) -> ScrapeResult:
        """Run one source end to end. Products are processed sequentially."""
        source = extractor.source
        result = ScrapeResult(source=source.key)
        start_time = datetime.now()

        self._print_header(source, limit)

        try:
            products = await extractor.fetch_products(limit)
        except FeedError as e:
            result.fatal_error = str(e)
            result.record_error(f"Fatal error: {e}")
            console.print(f"[bold red]✗ Fatal error: {e}[/bold red]")
            return result

        result.total_fetched = len(products)

        for product in products:
            try:
                await self.process_product(product, source)
                result.total_saved += 1
                console.print(f"  [green]✓ Saved: {product.name[:50]}[/green]")
            except Exception as e:
                result.record_error(f"Product {product.id}: {e}")
                console.print(f"  [red]✗ Error: {product.id} - {e}[/red]")

        # Let pending usage-count increments land before the loop closes
        await self.engine.flush()

        result.elapsed_seconds = (datetime.now() - start_time).total_seconds()
        return result

    async def process_product(self, product: ProductData, source: SourceConfig) -> Textile:
        """Normalize, validate and save one product."""
        normalized = await normalize_textile(
            NormalizeTextileInput(
                name=product.name,
                description=product.description,
                extracted_terms=product.extracted,
                source_platform=source.platform,
                product_id=product.id,
                image_url=product.image_url,
                product_url=product.source_url,
            ),
            self.engine,
            self.tracker,
        )

        composition_tracker = (
            self.tracker if self.config.normalization.route_composition_misses else None
        )
        composition = await parse_composition(
            f"{product.name} {product.description}",
            self.engine,
            source_locale=product.extracted.source_locale,
            tracker=composition_tracker,
            source_platform=source.platform,
        )

        textile = Textile.from_product(
            product,
            normalized,
            composition,
            source_platform=source.platform,
            quantity_value=source.default_quantity,
            quantity_unit=source.quantity_unit,
            currency=source.currency,
            supplier_name=source.supplier_name,
        )

        await self.repository.save(textile)
        return textile

    def _print_header(self, source: SourceConfig, limit: int) -> None:
        header = Panel(
            f"[bold white]{source.key.upper()} -> TEXTILES[/bold white]\n"
            f"[dim]Feed: {source.feed_url}[/dim]\n"
            f"[dim]Locale: {source.source_locale} | Limit: {limit}[/dim]",
            title="🧵 Deadstock Scraper",
            border_style="blue",
        )
        console.print(header)


def print_summary(results: list[ScrapeResult]) -> None:
    """Print the end-of-run summary table and per-item error messages."""
    table = Table(title="Scraping Results", show_header=True)
    table.add_column("Source", style="cyan")
    table.add_column("Fetched", style="white")
    table.add_column("Saved", style="green")
    table.add_column("Errors", style="red")
    table.add_column("Time", style="dim")

    for result in results:
        table.add_row(
            result.source,
            str(result.total_fetched),
            str(result.total_saved),
            str(result.total_errors),
            f"{result.elapsed_seconds:.1f}s",
        )

    console.print("\n")
    console.print(table)

    for result in results:
        if result.errors:
            console.print(f"\n[bold red]Errors ({result.source}):[/bold red]")
            for error in result.errors:
                console.print(f"  • {error}")
