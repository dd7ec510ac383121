"""
Supabase-backed stores for textiles, dictionary mappings and unknown terms.

- Textiles -> `textiles` table, upserted on `source_url`
- Dictionary -> `dictionary_mappings` joined with `attribute_categories`
- Unknown terms -> `unknown_terms`, incremented through an RPC

The supabase client is synchronous; every query runs in a worker thread
so the pipeline's event loop keeps running.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Optional

from rich.console import Console
from supabase import Client, create_client
from supabase.lib.client_options import ClientOptions

from config.settings import SupabaseConfig
from src.normalization.errors import RepositoryError
from src.normalization.models import DictionaryMapping
from src.normalization.unknowns import UnknownTerm, UnknownTermStatus
from src.transformers.textile import Textile

console = Console()

# Dictionary categories are stored as attribute_categories slugs
CATEGORY_TO_SLUG = {"material": "fiber", "color": "color", "pattern": "pattern"}
SLUG_TO_CATEGORY = {slug: category for category, slug in CATEGORY_TO_SLUG.items()}


def create_supabase_client(supabase_config: Optional[SupabaseConfig] = None) -> Client:
    """
    Create a Supabase client from config or SUPABASE_URL / SUPABASE_KEY.

    Raises:
        ValueError: when credentials are missing
    """
    supabase_config = supabase_config or SupabaseConfig()
    if not supabase_config.is_configured:
        raise ValueError(
            "Supabase credentials required. Set SUPABASE_URL and SUPABASE_KEY "
            "environment variables or pass them in SupabaseConfig."
        )
    return create_client(
        supabase_config.url,
        supabase_config.key,
        options=ClientOptions(schema=supabase_config.schema),
    )


async def _execute(query, action: str):
    """Run a query builder in a thread, wrapping failures in RepositoryError."""
    try:
        return await asyncio.to_thread(query.execute)
    except Exception as e:
        raise RepositoryError(f"Failed to {action}: {e}") from e


def _parse_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


class SupabaseTextileRepository:
    """Persists Textile entities, one row per source_url."""

    def __init__(self, client: Client, supabase_config: Optional[SupabaseConfig] = None):
        self.client = client
        self.config = supabase_config or SupabaseConfig()

    @property
    def table(self):
        return self.client.table(self.config.textiles_table)

    async def save(self, textile: Textile) -> None:
        """Insert or update the textile keyed on source_url."""
        row = self.to_row(textile)
        await _execute(
            self.table.upsert(row, on_conflict="source_url", ignore_duplicates=False),
            "save textile",
        )

    async def find_by_source_url(self, source_url: str) -> Optional[Textile]:
        result = await _execute(
            self.table.select("*").eq("source_url", source_url).limit(1),
            "find textile",
        )
        return self.from_row(result.data[0]) if result.data else None

    async def find_all(self, limit: Optional[int] = None) -> list[Textile]:
        query = self.table.select("*").order("created_at", desc=True)
        if limit:
            query = query.limit(limit)
        result = await _execute(query, "get textiles")
        return [self.from_row(row) for row in result.data or []]

    async def count(self) -> int:
        result = await _execute(
            self.table.select("id", count="exact").limit(1), "count textiles"
        )
        return result.count or 0

    @staticmethod
    def to_row(textile: Textile) -> dict:
        """Textile -> database row (id omitted so upserts keep the stored id)."""
        return {
            "name": textile.name,
            "description": textile.description,
            "material_type": textile.material_type,
            "color": textile.color,
            "pattern": textile.pattern,
            "composition": textile.composition,
            "quantity_value": textile.quantity_value,
            "quantity_unit": textile.quantity_unit,
            "price_value": textile.price_value,
            "price_currency": textile.price_currency,
            "source_platform": textile.source_platform,
            "source_url": textile.source_url,
            "source_product_id": textile.source_product_id,
            "supplier_name": textile.supplier_name,
            "available": textile.available,
            "image_url": textile.image_url,
            "raw_data": textile.raw_data,
        }

    @staticmethod
    def from_row(row: dict) -> Textile:
        """Database row -> Textile (re-validated)."""
        return Textile(
            id=row["id"],
            name=row["name"],
            description=row.get("description") or "",
            material_type=row.get("material_type"),
            color=row.get("color"),
            pattern=row.get("pattern"),
            composition=row.get("composition"),
            quantity_value=row["quantity_value"],
            quantity_unit=row.get("quantity_unit") or "m",
            price_value=row.get("price_value") or 0,
            price_currency=row.get("price_currency") or "EUR",
            source_platform=row["source_platform"],
            source_url=row["source_url"],
            source_product_id=row.get("source_product_id") or "",
            supplier_name=row.get("supplier_name"),
            available=bool(row.get("available")),
            image_url=row.get("image_url"),
            raw_data=row.get("raw_data") or {},
            created_at=_parse_datetime(row.get("created_at")),
            updated_at=_parse_datetime(row.get("updated_at")),
        )


class SupabaseDictionaryStore:
    """Reads curated mappings and bumps their usage counters."""

    SELECT = "*, attribute_categories!category_id ( slug )"

    def __init__(self, client: Client, supabase_config: Optional[SupabaseConfig] = None):
        self.client = client
        self.config = supabase_config or SupabaseConfig()
        self._category_ids: dict[str, str] = {}

    @property
    def table(self):
        return self.client.table(self.config.dictionary_table)

    async def get_all(self) -> list[DictionaryMapping]:
        """Every mapping, ordered by source locale then source term."""
        result = await _execute(
            self.table.select(self.SELECT)
            .order("source_locale", desc=False)
            .order("source_term", desc=False),
            "get all dictionaries",
        )
        return [self.to_mapping(row) for row in result.data or []]

    async def increment_usage(self, mapping_id: str) -> None:
        await _execute(
            self.client.rpc(self.config.increment_usage_rpc, {"p_mapping_id": mapping_id}),
            "increment usage",
        )

    async def save(self, mapping: DictionaryMapping) -> None:
        """Upsert on (source_term, source_locale, category_id)."""
        row = self.to_row(mapping)
        row["category_id"] = await self._category_id(mapping.category)
        await _execute(
            self.table.upsert(row, on_conflict="source_term,source_locale,category_id"),
            "save mapping",
        )

    async def _category_id(self, category: str) -> str:
        slug = CATEGORY_TO_SLUG.get(category, category)
        if slug not in self._category_ids:
            result = await _execute(
                self.client.table("attribute_categories").select("id").eq("slug", slug).limit(1),
                "get category",
            )
            if not result.data:
                raise RepositoryError(f"Unknown dictionary category: {category}")
            self._category_ids[slug] = result.data[0]["id"]
        return self._category_ids[slug]

    @staticmethod
    def to_mapping(row: dict) -> DictionaryMapping:
        joined = row.get("attribute_categories") or {}
        slug = joined.get("slug") or row.get("category") or "fiber"
        return DictionaryMapping(
            id=row["id"],
            category=SLUG_TO_CATEGORY.get(slug, slug),
            source_locale=row["source_locale"],
            source_term=row["source_term"],
            translations=row.get("translations") or {},
            confidence=row.get("confidence") if row.get("confidence") is not None else 1.0,
            usage_count=row.get("usage_count") or 0,
            source=row.get("source") or "manual",
            validated_at=_parse_datetime(row.get("validated_at")) or datetime.now(timezone.utc),
            validated_by=row.get("validated_by"),
            notes=row.get("notes"),
        )

    @staticmethod
    def to_row(mapping: DictionaryMapping) -> dict:
        return {
            "id": mapping.id,
            "source_term": mapping.source_term,
            "source_locale": mapping.source_locale,
            "translations": mapping.translations,
            "source": mapping.source,
            "confidence": mapping.confidence,
            "usage_count": mapping.usage_count,
            "validated_at": mapping.validated_at.isoformat(),
            "validated_by": mapping.validated_by,
            "notes": mapping.notes,
        }


class SupabaseUnknownTermStore:
    """Unknown-term queue; dedup and counting happen in the database RPC."""

    def __init__(self, client: Client, supabase_config: Optional[SupabaseConfig] = None):
        self.client = client
        self.config = supabase_config or SupabaseConfig()

    @property
    def table(self):
        return self.client.table(self.config.unknowns_table)

    async def log_or_increment(
        self,
        term: str,
        category: str,
        context: Optional[str],
        source_platform: Optional[str],
    ) -> str:
        result = await _execute(
            self.client.rpc(
                self.config.increment_unknown_rpc,
                {
                    "p_term": term,
                    "p_category": category,
                    "p_context": context,
                    "p_source_platform": source_platform,
                },
            ),
            "log unknown",
        )
        return result.data

    async def get_by_id(self, unknown_id: str) -> Optional[UnknownTerm]:
        result = await _execute(
            self.table.select("*").eq("id", unknown_id).limit(1), "get unknown by id"
        )
        return self.to_unknown(result.data[0]) if result.data else None

    async def find_all(
        self,
        status: Optional[UnknownTermStatus] = None,
        category: Optional[str] = None,
        min_occurrences: int = 1,
        limit: Optional[int] = None,
    ) -> list[UnknownTerm]:
        query = self.table.select("*")
        if status:
            query = query.eq("status", UnknownTermStatus(status).value)
        if category:
            query = query.eq("category", category)
        if min_occurrences:
            query = query.gte("occurrences", min_occurrences)
        query = query.order("occurrences", desc=True)
        if limit:
            query = query.limit(limit)

        result = await _execute(query, "find unknowns")
        return [self.to_unknown(row) for row in result.data or []]

    async def update(self, unknown: UnknownTerm) -> None:
        await _execute(
            self.table.update(self.to_row(unknown)).eq("id", unknown.id),
            "update unknown",
        )

    @staticmethod
    def to_unknown(row: dict) -> UnknownTerm:
        contexts = row.get("contexts") or []
        now = datetime.now(timezone.utc)
        return UnknownTerm(
            id=row["id"],
            term=row["term"],
            category=row["category"],
            source_platform=row.get("source_platform"),
            occurrences=row.get("occurrences") or 0,
            contexts=[str(c) for c in contexts] if isinstance(contexts, list) else [str(contexts)],
            status=row.get("status") or UnknownTermStatus.PENDING,
            human_mapping=row.get("human_mapping"),
            reviewed_by=row.get("reviewed_by"),
            reviewed_at=_parse_datetime(row.get("reviewed_at")),
            review_notes=row.get("review_notes"),
            first_seen_at=_parse_datetime(row.get("first_seen_at")) or now,
            last_seen_at=_parse_datetime(row.get("last_seen_at")) or now,
        )

    @staticmethod
    def to_row(unknown: UnknownTerm) -> dict:
        added = unknown.status == UnknownTermStatus.ADDED_TO_DICT
        return {
            "term": unknown.term,
            "category": unknown.category,
            "occurrences": unknown.occurrences,
            "contexts": unknown.contexts,
            "status": unknown.status.value,
            "source_platform": unknown.source_platform,
            "human_mapping": unknown.human_mapping,
            "added_to_dict": added,
            "added_to_dict_at": unknown.reviewed_at.isoformat() if added and unknown.reviewed_at else None,
            "reviewed_by": unknown.reviewed_by,
            "reviewed_at": unknown.reviewed_at.isoformat() if unknown.reviewed_at else None,
            "review_notes": unknown.review_notes,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
