"""Cache of products fetched from external nutrition databases."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import UUID

from food_lookup.domain.errors import StoreError
from food_lookup.domain.foods import ExternalFoodCacheRow, ExternalProduct

DEFAULT_STALE_AFTER = timedelta(days=30)

_logger = logging.getLogger(__name__)


class ExternalCacheRepository(Protocol):
    """Persistence interface for ``external_food_cache``."""

    def find(self, barcode: str, source: str) -> ExternalFoodCacheRow | None:
        """Return the row for a ``(barcode, source)`` pair."""

    def find_by_barcode(self, barcode: str) -> ExternalFoodCacheRow | None:
        """Return any row for a barcode regardless of source."""

    def get(self, cache_id: UUID) -> ExternalFoodCacheRow | None:
        """Return a row by id, if present."""

    def upsert(self, payload: dict[str, object]) -> ExternalFoodCacheRow:
        """Insert or overwrite the row keyed by ``(barcode, source)``."""

    def increment_scan_count(self, cache_id: UUID) -> None:
        """Increment ``times_scanned`` by one."""

    def set_promoted_food(self, cache_id: UUID, food_id: UUID) -> None:
        """Link a row to the ``food_master`` record it was promoted into."""

    def list_popular(self, limit: int) -> list[ExternalFoodCacheRow]:
        """Return the most scanned rows."""

    def list_fetched_before(
        self, cutoff: datetime, limit: int
    ) -> list[ExternalFoodCacheRow]:
        """Return rows never fetched or last fetched before ``cutoff``."""


def is_stale(
    last_fetched_at: datetime | None,
    now: datetime | None = None,
    stale_after: timedelta = DEFAULT_STALE_AFTER,
) -> bool:
    """Return whether a row needs refreshing; never-fetched rows are stale."""
    if last_fetched_at is None:
        return True
    current = now or datetime.now(tz=UTC)
    return current - last_fetched_at > stale_after


@dataclass(frozen=True)
class CacheProbe:
    """Cache read result; ``degraded`` when a miss may hide an existing row."""

    row: ExternalFoodCacheRow | None
    degraded: bool = False


@dataclass
class ExternalCacheService:
    """Service for reading and writing cached external products."""

    repository: ExternalCacheRepository
    source: str = "openfoodfacts"
    stale_after: timedelta = field(default=DEFAULT_STALE_AFTER)

    def lookup(
        self, barcode: str, source: str | None = None
    ) -> ExternalFoodCacheRow | None:
        """Find a cached row, falling back to a barcode-only match.

        Rows with inconsistent ``source`` tagging are still found through the
        fallback query. Failures of both queries count as a miss.
        """
        return self.probe(barcode, source).row

    def probe(self, barcode: str, source: str | None = None) -> CacheProbe:
        """Like ``lookup``, but also report whether the miss is trustworthy."""
        clean = barcode.strip()
        resolved_source = source or self.source
        composite_failed = False
        try:
            row = self.repository.find(clean, resolved_source)
        except StoreError as exc:
            _logger.warning(
                "fail-open: cache lookup (%s, %s) failed, retrying by barcode: %s",
                clean,
                resolved_source,
                exc,
            )
            row = None
            composite_failed = True
        if row is not None:
            return CacheProbe(row=row)
        try:
            return CacheProbe(
                row=self.repository.find_by_barcode(clean), degraded=composite_failed
            )
        except StoreError as exc:
            _logger.warning(
                "fail-open: cache barcode lookup failed for %s, treating as miss: %s",
                clean,
                exc,
            )
            return CacheProbe(row=None, degraded=True)

    def get(self, cache_id: UUID) -> ExternalFoodCacheRow | None:
        """Return a cached row by id."""
        return self.repository.get(cache_id)

    def upsert(
        self,
        barcode: str,
        product: ExternalProduct,
        existing: ExternalFoodCacheRow | None = None,
        *,
        keep_counter: bool = False,
    ) -> ExternalFoodCacheRow:
        """Write a freshly fetched product through to the cache.

        With ``keep_counter`` the payload carries no ``times_scanned``, so a
        stored row keeps its count and a new row gets the column default.
        On write failure an unpersisted row is returned so the caller can
        still show the product.
        """
        now = datetime.now(tz=UTC)
        times_scanned = existing.times_scanned + 1 if existing else 1
        payload = _cache_payload(barcode.strip(), self.source, product)
        payload["last_fetched_at"] = now.isoformat()
        if not keep_counter:
            payload["times_scanned"] = times_scanned
        try:
            return self.repository.upsert(payload)
        except StoreError as exc:
            _logger.warning(
                "fail-soft: cache upsert failed for %s, returning unpersisted row: %s",
                barcode,
                exc,
            )
        return ExternalFoodCacheRow(
            id=existing.id if existing else None,
            barcode=barcode.strip(),
            source=self.source,
            source_food_id=product.source_id,
            product_name=product.product_name,
            brand=product.brand,
            energy_kcal_100g=product.energy_kcal_100g,
            protein_100g=product.protein_100g,
            carbs_100g=product.carbs_100g,
            fat_100g=product.fat_100g,
            saturated_fat_100g=product.saturated_fat_100g,
            sugars_100g=product.sugars_100g,
            fiber_100g=product.fiber_100g,
            sodium_100g=product.sodium_100g,
            serving_size=product.serving_size,
            raw_payload=product.raw_payload,
            created_at=existing.created_at if existing else now,
            updated_at=now,
            last_fetched_at=now,
            times_scanned=times_scanned,
            promoted_food_master_id=(
                existing.promoted_food_master_id if existing else None
            ),
        )

    def increment_scan_count(self, cache_id: UUID | None) -> None:
        """Bump the popularity counter; failures are only logged."""
        if cache_id is None:
            return
        try:
            self.repository.increment_scan_count(cache_id)
        except StoreError as exc:
            _logger.warning("Failed to increment scan count for %s: %s", cache_id, exc)

    def is_stale(self, row: ExternalFoodCacheRow, now: datetime | None = None) -> bool:
        """Return whether a cached row is past its freshness window."""
        return is_stale(row.last_fetched_at, now=now, stale_after=self.stale_after)

    def list_popular(self, limit: int = 20) -> list[ExternalFoodCacheRow]:
        """Return the most scanned cached products."""
        return self.repository.list_popular(limit)

    def list_stale(self, limit: int = 20) -> list[ExternalFoodCacheRow]:
        """Return cached products past the freshness window, most scanned first."""
        cutoff = datetime.now(tz=UTC) - self.stale_after
        return self.repository.list_fetched_before(cutoff, limit)


def _cache_payload(
    barcode: str, source: str, product: ExternalProduct
) -> dict[str, object]:
    return {
        "barcode": barcode,
        "source": source,
        "source_food_id": product.source_id,
        "product_name": product.product_name,
        "brand": product.brand,
        "energy_kcal_100g": product.energy_kcal_100g,
        "protein_100g": product.protein_100g,
        "carbs_100g": product.carbs_100g,
        "fat_100g": product.fat_100g,
        "saturated_fat_100g": product.saturated_fat_100g,
        "sugars_100g": product.sugars_100g,
        "fiber_100g": product.fiber_100g,
        "sodium_100g": product.sodium_100g,
        "serving_size": product.serving_size,
        "raw_payload": product.raw_payload,
    }
