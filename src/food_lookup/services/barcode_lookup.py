"""Barcode scan lookup flow.

A scanned code is resolved through three tiers, stopping at the first hit:

1. ``food_master``: curated foods, authoritative.
2. ``external_food_cache``: products fetched earlier, served even when stale.
3. OpenFoodFacts: fetched live and written through to the cache.

Misses are not cached, so a product added upstream later is found on the
next scan.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from food_lookup.domain.barcodes import (
    InvalidBarcodeError,
    normalize_barcode,
    pad_barcode_to_ean13,
)
from food_lookup.domain.lookup import (
    FoundCache,
    FoundCanonical,
    FoundExternal,
    InvalidBarcode,
    LookupOutcome,
    NotFound,
    ProductNotFound,
)
from food_lookup.services.external_cache import ExternalCacheService
from food_lookup.services.food_master import FoodMasterService
from food_lookup.services.products import ProductService

_logger = logging.getLogger(__name__)


@dataclass
class BarcodeLookupService:
    """Resolves scanned barcodes to a single lookup outcome."""

    food_master_service: FoodMasterService
    cache_service: ExternalCacheService
    product_service: ProductService
    coalesce_inflight: bool = False
    _inflight: dict[str, "asyncio.Task[LookupOutcome]"] = field(
        default_factory=dict, init=False, repr=False
    )

    async def handle_scanned_barcode(self, raw_code: str) -> LookupOutcome:
        """Run the full lookup flow for a raw scanned or typed code."""
        try:
            barcode = normalize_barcode(raw_code)
        except InvalidBarcodeError as exc:
            _logger.info("Rejected barcode %r: %s", raw_code, exc)
            return InvalidBarcode(raw_code=raw_code, error=str(exc))

        if not self.coalesce_inflight:
            return await self._resolve(barcode)

        task = self._inflight.get(barcode)
        if task is None:
            task = asyncio.ensure_future(self._resolve(barcode))
            self._inflight[barcode] = task
            task.add_done_callback(lambda _: self._inflight.pop(barcode, None))
        else:
            _logger.info("Joining in-flight lookup for %s", barcode)
        return await asyncio.shield(task)

    async def handle_manual_entry(self, value: str) -> LookupOutcome:
        """Run the lookup for a hand-typed code, zero-padding short input."""
        try:
            padded = pad_barcode_to_ean13(value)
        except InvalidBarcodeError as exc:
            _logger.info("Rejected manual barcode %r: %s", value, exc)
            return InvalidBarcode(raw_code=value, error=str(exc))
        return await self.handle_scanned_barcode(padded)

    async def _resolve(self, barcode: str) -> LookupOutcome:
        food = self.food_master_service.lookup_by_barcode(barcode)
        if food is not None:
            return FoundCanonical(food=food, normalized_barcode=barcode)

        probe = self.cache_service.probe(barcode)
        cache_row = probe.row
        if cache_row is not None:
            self.cache_service.increment_scan_count(cache_row.id)
            return FoundCache(
                cache_row=cache_row,
                normalized_barcode=barcode,
                is_stale=self.cache_service.is_stale(cache_row),
            )

        result = await self.product_service.fetch_by_barcode(barcode)
        if isinstance(result, ProductNotFound):
            return NotFound(normalized_barcode=barcode, error=result.error)

        # An unreadable cache may still hold this barcode with a real count.
        cache_row = self.cache_service.upsert(
            barcode, result.product, keep_counter=probe.degraded
        )
        return FoundExternal(
            product=result.product,
            cache_row=cache_row,
            normalized_barcode=barcode,
        )
