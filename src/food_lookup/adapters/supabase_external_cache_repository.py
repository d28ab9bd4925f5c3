"""Supabase implementation for the external product cache."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from food_lookup.adapters.supabase_query import (
    execute_query,
    parse_datetime,
    parse_float,
    parse_uuid,
)
from food_lookup.domain.errors import StoreError
from food_lookup.domain.foods import ExternalFoodCacheRow
from food_lookup.services.external_cache import ExternalCacheRepository

_TABLE = "external_food_cache"


@dataclass
class SupabaseExternalCacheRepository(ExternalCacheRepository):
    """Supabase-backed repository for ``external_food_cache``."""

    client: Client

    def find(self, barcode: str, source: str) -> ExternalFoodCacheRow | None:
        """Return the row for a ``(barcode, source)`` pair."""
        rows = execute_query(
            self.client.table(_TABLE)
            .select("*")
            .eq("barcode", barcode)
            .eq("source", source)
            .limit(1),
            action="external_food_cache lookup",
        )
        return parse_cache_row(rows[0]) if rows else None

    def find_by_barcode(self, barcode: str) -> ExternalFoodCacheRow | None:
        """Return any row for a barcode regardless of source."""
        rows = execute_query(
            self.client.table(_TABLE).select("*").eq("barcode", barcode).limit(1),
            action="external_food_cache barcode lookup",
        )
        return parse_cache_row(rows[0]) if rows else None

    def get(self, cache_id: UUID) -> ExternalFoodCacheRow | None:
        """Return a row by id, if present."""
        rows = execute_query(
            self.client.table(_TABLE).select("*").eq("id", str(cache_id)).limit(1),
            action="external_food_cache get",
        )
        return parse_cache_row(rows[0]) if rows else None

    def upsert(self, payload: dict[str, object]) -> ExternalFoodCacheRow:
        """Insert or overwrite the row keyed by ``(barcode, source)``."""
        rows = execute_query(
            self.client.table(_TABLE).upsert(payload, on_conflict="barcode,source"),
            action="external_food_cache upsert",
        )
        if not rows:
            raise StoreError("Upsert returned no row")
        return parse_cache_row(rows[0])

    def increment_scan_count(self, cache_id: UUID) -> None:
        """Increment ``times_scanned``, preferring the atomic RPC."""
        try:
            execute_query(
                self.client.rpc(
                    "increment_cache_scan_count", {"cache_id": str(cache_id)}
                ),
                action="increment_cache_scan_count rpc",
            )
        except StoreError:
            rows = execute_query(
                self.client.table(_TABLE)
                .select("times_scanned")
                .eq("id", str(cache_id))
                .limit(1),
                action="external_food_cache scan count read",
            )
            if not rows:
                return
            current = int(rows[0].get("times_scanned") or 0)
            execute_query(
                self.client.table(_TABLE)
                .update({"times_scanned": current + 1})
                .eq("id", str(cache_id)),
                action="external_food_cache scan count update",
            )

    def set_promoted_food(self, cache_id: UUID, food_id: UUID) -> None:
        """Link a cache row to the ``food_master`` row it was promoted into."""
        execute_query(
            self.client.table(_TABLE)
            .update({"promoted_food_master_id": str(food_id)})
            .eq("id", str(cache_id)),
            action="external_food_cache promotion link",
        )

    def list_popular(self, limit: int) -> list[ExternalFoodCacheRow]:
        """Return the most scanned rows."""
        rows = execute_query(
            self.client.table(_TABLE)
            .select("*")
            .order("times_scanned", desc=True)
            .limit(limit),
            action="external_food_cache popular",
        )
        return [parse_cache_row(row) for row in rows]

    def list_fetched_before(
        self, cutoff: datetime, limit: int
    ) -> list[ExternalFoodCacheRow]:
        """Return rows never fetched or last fetched before ``cutoff``."""
        rows = execute_query(
            self.client.table(_TABLE)
            .select("*")
            .or_(f"last_fetched_at.is.null,last_fetched_at.lt.{cutoff.isoformat()}")
            .order("times_scanned", desc=True)
            .limit(limit),
            action="external_food_cache stale",
        )
        return [parse_cache_row(row) for row in rows]


def parse_cache_row(row: dict[str, object]) -> ExternalFoodCacheRow:
    """Parse an ``external_food_cache`` row into a domain model."""
    now = datetime.now(tz=UTC)
    raw_payload = row.get("raw_payload")
    return ExternalFoodCacheRow(
        id=parse_uuid(row.get("id")),
        barcode=str(row.get("barcode") or ""),
        source=str(row.get("source") or ""),
        source_food_id=row.get("source_food_id"),
        product_name=row.get("product_name"),
        brand=row.get("brand"),
        energy_kcal_100g=parse_float(row.get("energy_kcal_100g")),
        protein_100g=parse_float(row.get("protein_100g")),
        carbs_100g=parse_float(row.get("carbs_100g")),
        fat_100g=parse_float(row.get("fat_100g")),
        saturated_fat_100g=parse_float(row.get("saturated_fat_100g")),
        sugars_100g=parse_float(row.get("sugars_100g")),
        fiber_100g=parse_float(row.get("fiber_100g")),
        sodium_100g=parse_float(row.get("sodium_100g")),
        serving_size=row.get("serving_size"),
        raw_payload=raw_payload if isinstance(raw_payload, dict) else None,
        created_at=parse_datetime(row.get("created_at")) or now,
        updated_at=parse_datetime(row.get("updated_at")) or now,
        last_fetched_at=parse_datetime(row.get("last_fetched_at")),
        times_scanned=int(row.get("times_scanned") or 0),
        promoted_food_master_id=parse_uuid(row.get("promoted_food_master_id")),
    )
