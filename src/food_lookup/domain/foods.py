"""Domain models for canonical foods and cached external products."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class CanonicalFood:
    """Curated food record from ``food_master``; values are per serving."""

    id: UUID
    name: str
    brand: str | None
    calories_kcal: float
    protein_g: float
    carbs_g: float
    fat_g: float
    fiber_g: float | None
    saturated_fat_g: float | None
    sugar_g: float | None
    sodium_mg: float | None
    serving_size: float
    serving_unit: str
    source: str | None
    is_custom: bool
    barcode: str | None


@dataclass(frozen=True)
class ExternalProduct:
    """Product adapted from a third-party database; values are per 100g.

    Sodium is kept in grams, matching the upstream convention.
    """

    barcode: str
    source_id: str
    product_name: str | None
    brand: str | None
    energy_kcal_100g: float | None
    protein_100g: float | None
    carbs_100g: float | None
    fat_100g: float | None
    saturated_fat_100g: float | None
    sugars_100g: float | None
    fiber_100g: float | None
    sodium_100g: float | None
    serving_size: str | None
    raw_payload: dict[str, object]


@dataclass(frozen=True)
class ExternalFoodCacheRow:
    """Row of ``external_food_cache``; ``id`` is None for unpersisted rows."""

    id: UUID | None
    barcode: str
    source: str
    source_food_id: str | None
    product_name: str | None
    brand: str | None
    energy_kcal_100g: float | None
    protein_100g: float | None
    carbs_100g: float | None
    fat_100g: float | None
    saturated_fat_100g: float | None
    sugars_100g: float | None
    fiber_100g: float | None
    sodium_100g: float | None
    serving_size: str | None
    raw_payload: dict[str, object] | None
    created_at: datetime
    updated_at: datetime
    last_fetched_at: datetime | None
    times_scanned: int
    promoted_food_master_id: UUID | None = None

    @property
    def is_persisted(self) -> bool:
        """Whether the row was read back from the store."""
        return self.id is not None


@dataclass(frozen=True)
class ServingNutrition:
    """Nutrition scaled to a serving; sodium in milligrams."""

    calories: int
    protein: float
    carbs: float
    fat: float
    fiber: float | None
    sugar: float | None
    sodium_mg: int | None


@dataclass(frozen=True)
class FoodBaseMapping:
    """Per-serving values shaped like a ``food_master`` row."""

    name: str | None
    brand: str | None
    barcode: str | None
    source: str | None
    serving_size: float
    serving_unit: str
    calories_kcal: int | None
    protein_g: float | None
    carbs_g: float | None
    fat_g: float | None
    fiber_g: float | None
    saturated_fat_g: float | None
    unsaturated_fat_g: float | None
    sugar_g: float | None
    sodium_mg: int | None
