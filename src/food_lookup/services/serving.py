"""Conversions from cached per-100g values to per-serving values."""

import math
from decimal import ROUND_HALF_UP, Decimal

from food_lookup.domain.foods import (
    ExternalFoodCacheRow,
    FoodBaseMapping,
    ServingNutrition,
)

MG_PER_GRAM = 1000
MAX_SERVING_GRAMS = 10_000.0


def _round(value: float, places: int = 0) -> Decimal:
    if not math.isfinite(value):
        raise ValueError(f"Cannot round non-finite value: {value!r}")
    # Half away from zero.
    quantum = Decimal(1).scaleb(-places)
    return Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP)


def _round_int(value: float) -> int:
    return int(_round(value))


def _round_1(value: float) -> float:
    return float(_round(value, 1))


def sodium_grams_to_mg(sodium_grams: float | None) -> int | None:
    """Convert sodium grams to whole milligrams."""
    if sodium_grams is None:
        return None
    return _round_int(sodium_grams * MG_PER_GRAM)


def calculate_nutrition_for_serving(
    cache_row: ExternalFoodCacheRow, serving_grams: float
) -> ServingNutrition:
    """Scale a cached product's per-100g nutrition to ``serving_grams``."""
    factor = serving_grams / 100
    return ServingNutrition(
        calories=_round_int((cache_row.energy_kcal_100g or 0.0) * factor),
        protein=_round_1((cache_row.protein_100g or 0.0) * factor),
        carbs=_round_1((cache_row.carbs_100g or 0.0) * factor),
        fat=_round_1((cache_row.fat_100g or 0.0) * factor),
        fiber=(
            _round_1(cache_row.fiber_100g * factor)
            if cache_row.fiber_100g is not None
            else None
        ),
        sugar=(
            _round_1(cache_row.sugars_100g * factor)
            if cache_row.sugars_100g is not None
            else None
        ),
        sodium_mg=(
            _round_int(cache_row.sodium_100g * MG_PER_GRAM * factor)
            if cache_row.sodium_100g is not None
            else None
        ),
    )


def map_external_food_to_base(
    cache_row: ExternalFoodCacheRow, serving_size: float, serving_unit: str
) -> FoodBaseMapping:
    """Map a cached product onto ``food_master`` fields for one serving.

    The serving size is treated as grams whatever the unit. Unsaturated fat
    is derived as total minus saturated fat and omitted when negative.
    """
    factor = serving_size / 100

    def scaled(value: float | None) -> float | None:
        return _round_1(value * factor) if value is not None else None

    fat = scaled(cache_row.fat_100g)
    saturated_fat = scaled(cache_row.saturated_fat_100g)
    unsaturated_fat = None
    if fat is not None:
        remainder = fat - (saturated_fat or 0.0)
        if remainder >= 0:
            unsaturated_fat = _round_1(remainder)

    return FoodBaseMapping(
        name=cache_row.product_name,
        brand=cache_row.brand,
        barcode=cache_row.barcode,
        source=cache_row.source or "openfoodfacts",
        serving_size=serving_size,
        serving_unit=serving_unit,
        calories_kcal=(
            _round_int(cache_row.energy_kcal_100g * factor)
            if cache_row.energy_kcal_100g is not None
            else None
        ),
        protein_g=scaled(cache_row.protein_100g),
        carbs_g=scaled(cache_row.carbs_100g),
        fat_g=fat,
        fiber_g=scaled(cache_row.fiber_100g),
        saturated_fat_g=saturated_fat,
        unsaturated_fat_g=unsaturated_fat,
        sugar_g=scaled(cache_row.sugars_100g),
        sodium_mg=(
            _round_int(cache_row.sodium_100g * MG_PER_GRAM * factor)
            if cache_row.sodium_100g is not None
            else None
        ),
    )
