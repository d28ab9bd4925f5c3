"""Promotion of cached external products into user-owned foods."""

import logging
from dataclasses import dataclass
from uuid import UUID

from food_lookup.domain.errors import StoreError
from food_lookup.domain.foods import ExternalFoodCacheRow
from food_lookup.domain.lookup import (
    PromotionFailure,
    PromotionOverrides,
    PromotionResult,
    PromotionSuccess,
)
from food_lookup.services.external_cache import ExternalCacheRepository
from food_lookup.services.food_master import FoodMasterRepository
from food_lookup.services.serving import sodium_grams_to_mg

DEFAULT_SERVING_SIZE = 100.0
DEFAULT_SERVING_UNIT = "g"
UNKNOWN_PRODUCT_NAME = "Unknown Product"

_logger = logging.getLogger(__name__)


@dataclass
class PromotionService:
    """Turns cache rows into custom ``food_master`` records."""

    food_master_repository: FoodMasterRepository
    cache_repository: ExternalCacheRepository

    def promote_to_food_master(
        self,
        cache_row: ExternalFoodCacheRow,
        user_id: UUID,
        overrides: PromotionOverrides | None = None,
    ) -> PromotionResult:
        """Create a custom food owned by ``user_id`` from a cache row.

        Nutrition is copied per 100g, so the serving defaults to 100 g. The
        new record is not curated. Promoting the same row twice creates two
        records and the link points at the newer one.
        """
        if not cache_row.is_persisted:
            return PromotionFailure(error="Cache row has not been saved")

        resolved = overrides or PromotionOverrides()
        payload = {
            "name": resolved.name or cache_row.product_name or UNKNOWN_PRODUCT_NAME,
            "brand": resolved.brand or cache_row.brand,
            "barcode": cache_row.barcode,
            "calories_kcal": cache_row.energy_kcal_100g or 0,
            "protein_g": cache_row.protein_100g or 0,
            "carbs_g": cache_row.carbs_100g or 0,
            "fat_g": cache_row.fat_100g or 0,
            "fiber_g": cache_row.fiber_100g,
            "saturated_fat_g": cache_row.saturated_fat_100g,
            "sugar_g": cache_row.sugars_100g,
            "sodium_mg": sodium_grams_to_mg(cache_row.sodium_100g),
            "serving_size": (
                resolved.serving_size
                if resolved.serving_size is not None
                else DEFAULT_SERVING_SIZE
            ),
            "serving_unit": resolved.serving_unit or DEFAULT_SERVING_UNIT,
            "source": cache_row.source,
            "is_custom": True,
            "owner_user_id": str(user_id),
        }
        try:
            food_id = self.food_master_repository.create_food(payload)
        except StoreError as exc:
            _logger.error("Failed to promote cache row %s: %s", cache_row.id, exc)
            return PromotionFailure(error=str(exc) or "Failed to create food entry")

        try:
            self.cache_repository.set_promoted_food(cache_row.id, food_id)
        except StoreError as exc:
            _logger.warning(
                "Promoted cache row %s to %s but failed to link it: %s",
                cache_row.id,
                food_id,
                exc,
            )
        _logger.info("Promoted cache row %s to food %s", cache_row.id, food_id)
        return PromotionSuccess(food_master_id=food_id)
