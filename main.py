#!/usr/bin/env python3
"""
Deadstock Textile Scraper - Main Entry Point

Scrapes deadstock fabric catalogs, normalizes materials / colors / patterns
against the curated dictionary, and saves textiles to Supabase.

Usage:
    python main.py                              # Scrape every source (10 products each)
    python main.py -s my_little_coupon -n 50    # One source, 50 products
    python main.py --dry-run --dictionary dict.json
    python main.py --unknowns                   # Review pending unknown terms
"""
import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from rich.console import Console

from config.settings import PipelineConfig, config
from src.extractors import EXTRACTORS, get_extractor
from src.loaders.memory import (
    InMemoryDictionaryStore,
    InMemoryTextileRepository,
    InMemoryUnknownTermStore,
)
from src.normalization import (
    NormalizationEngine,
    NormalizationError,
    UnknownTermTracker,
)
from src.pipeline import TextilePipeline, print_summary

console = Console()


class CustomHelpFormatter(argparse.RawDescriptionHelpFormatter):
    """Custom formatter that preserves formatting and adds width."""

    def __init__(self, prog):
        super().__init__(prog, max_help_position=40, width=100)


def parse_args(argv=None):
    """Parse command line arguments."""

    source_list = "\n".join(
        f"    {key:<18} {source.source_locale}  {source.feed_url}"
        for key, source in config.sources.items()
    )

    epilog = f"""
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
AVAILABLE SOURCES
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
{source_list}

━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
EXAMPLES
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
  Scraping:
    python main.py                              All sources, 10 products each
    python main.py -s the_fabric_sales -n 25    25 products from one source
    python main.py --dry-run --dictionary d.json  No database, local dictionary

  Curation:
    python main.py --unknowns                   Pending unknown terms
    python main.py --unknowns --category color  Only colors
    python main.py --approve <ID> lilac --locale fr
    python main.py --reject <ID>

NOTES
  • Requires .env file with SUPABASE_URL and SUPABASE_KEY (except --dry-run)
  • Curation commands always use Supabase; --dry-run is for scraping only
  • Re-scraping a product updates its row (upsert on source_url)
"""

    parser = argparse.ArgumentParser(
        prog="python main.py",
        description="Deadstock textile scraper and term normalizer",
        epilog=epilog,
        formatter_class=CustomHelpFormatter,
    )

    scrape_group = parser.add_argument_group("Scraping Options")
    scrape_group.add_argument(
        "--source",
        "-s",
        choices=[*EXTRACTORS.keys(), "all"],
        default="all",
        help="Source to scrape (default: all)",
    )
    scrape_group.add_argument(
        "--limit",
        "-n",
        type=int,
        default=config.default_limit,
        metavar="NUM",
        help=f"Products to fetch per source (default: {config.default_limit})",
    )
    scrape_group.add_argument(
        "--dry-run",
        action="store_true",
        help="Scrape into in-memory stores instead of Supabase",
    )
    scrape_group.add_argument(
        "--dictionary",
        type=Path,
        metavar="PATH",
        help="JSON list of dictionary mappings for --dry-run",
    )
    scrape_group.add_argument(
        "--longest-match",
        action="store_true",
        help="Try longer dictionary terms first in the partial pass",
    )
    scrape_group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Print every dictionary lookup",
    )

    curation_group = parser.add_argument_group("Curation")
    curation_group.add_argument(
        "--unknowns",
        action="store_true",
        help="List pending unknown terms grouped by category",
    )
    curation_group.add_argument(
        "--category",
        choices=list(config.normalization.categories),
        help="Filter --unknowns by category",
    )
    curation_group.add_argument(
        "--approve",
        nargs=2,
        metavar=("ID", "VALUE"),
        help="Add an unknown term to the dictionary with VALUE as translation",
    )
    curation_group.add_argument(
        "--reject",
        metavar="ID",
        help="Reject an unknown term",
    )
    curation_group.add_argument(
        "--locale",
        default="fr",
        help="Source locale of the approved term (default: fr)",
    )
    curation_group.add_argument(
        "--by",
        default=None,
        help="Curator name recorded on approve / reject",
    )

    args = parser.parse_args(argv)

    # In-memory stores start empty, so there is nothing to review or curate
    if args.dry_run and (args.unknowns or args.approve or args.reject):
        parser.error("--dry-run only applies to scraping, not to --unknowns / --approve / --reject")

    return args


def build_services(args, pipeline_config: PipelineConfig):
    """Create the dictionary store, engine, tracker and textile repository."""
    if args.dry_run:
        dictionary_store = (
            InMemoryDictionaryStore.from_json(args.dictionary)
            if args.dictionary
            else InMemoryDictionaryStore()
        )
        unknown_store = InMemoryUnknownTermStore(
            pipeline_config.normalization.max_unknown_contexts
        )
        repository = InMemoryTextileRepository()
    else:
        from src.loaders.supabase_loader import (
            SupabaseDictionaryStore,
            SupabaseTextileRepository,
            SupabaseUnknownTermStore,
            create_supabase_client,
        )

        client = create_supabase_client(pipeline_config.supabase)
        dictionary_store = SupabaseDictionaryStore(client, pipeline_config.supabase)
        unknown_store = SupabaseUnknownTermStore(client, pipeline_config.supabase)
        repository = SupabaseTextileRepository(client, pipeline_config.supabase)

    engine = NormalizationEngine(
        dictionary_store,
        config=pipeline_config.normalization,
        verbose=pipeline_config.logging.verbose,
    )
    tracker = UnknownTermTracker(unknown_store)
    return dictionary_store, engine, tracker, repository


async def run_scrape(args, pipeline_config: PipelineConfig) -> int:
    _, engine, tracker, repository = build_services(args, pipeline_config)
    pipeline = TextilePipeline(engine, tracker, repository, pipeline_config)

    source_keys = list(EXTRACTORS) if args.source == "all" else [args.source]
    results = []
    for key in source_keys:
        source = pipeline_config.get_source(key)
        async with get_extractor(key, source=source) as extractor:
            results.append(await pipeline.scrape_source(extractor, args.limit))

    print_summary(results)
    if args.dry_run:
        console.print(f"[dim]Dry run: {await repository.count()} textiles kept in memory[/dim]")

    return 1 if any(not r.success for r in results) else 0


async def show_unknowns(args, pipeline_config: PipelineConfig) -> int:
    _, _, tracker, _ = build_services(args, pipeline_config)
    unknowns = await tracker.get_unknowns(category=args.category)

    if not unknowns:
        console.print("[green]✓ No unknown terms pending.[/green]")
        return 0

    threshold = pipeline_config.normalization.frequent_unknown_threshold
    console.print(f"[bold]Found {len(unknowns)} unknown terms[/bold]")
    by_category: dict[str, list] = {}
    for unknown in unknowns:
        by_category.setdefault(unknown.category, []).append(unknown)

    for category, terms in by_category.items():
        console.print(f"\n[bold cyan]{category.upper()}[/bold cyan] ({len(terms)} unknowns)")
        for term in terms:
            flag = " [yellow]★[/yellow]" if term.is_frequent(threshold) else ""
            console.print(f"  • [white]{term.term}[/white] ({term.occurrences}×){flag} [dim]{term.id}[/dim]")
            if term.contexts:
                console.print(f"    [dim]Context: {term.contexts[0][:60]}...[/dim]")

    counts = await tracker.count_by_status()
    console.print(
        "\n[dim]" + " | ".join(f"{status}: {n}" for status, n in counts.items()) + "[/dim]"
    )
    return 0


async def curate(args, pipeline_config: PipelineConfig) -> int:
    dictionary_store, engine, tracker, _ = build_services(args, pipeline_config)
    if args.approve:
        unknown_id, value = args.approve
        await tracker.approve(
            unknown_id,
            value,
            dictionary_store=dictionary_store,
            validated_by=args.by,
            source_locale=args.locale,
            target_locale=pipeline_config.normalization.target_locale,
            engine=engine,
        )
    if args.reject:
        await tracker.reject(args.reject, rejected_by=args.by)
    return 0


async def run(args) -> int:
    pipeline_config = PipelineConfig()
    pipeline_config.logging.verbose = args.verbose
    if args.longest_match:
        pipeline_config.normalization.partial_match_strategy = "longest_first"

    if args.approve or args.reject:
        return await curate(args, pipeline_config)
    if args.unknowns:
        return await show_unknowns(args, pipeline_config)
    return await run_scrape(args, pipeline_config)


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        return asyncio.run(run(args))
    except (NormalizationError, ValueError) as e:
        console.print(f"\n[bold red]✗ {e}[/bold red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
