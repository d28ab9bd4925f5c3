"""Result types for barcode lookup, external fetches, and promotion."""

from dataclasses import dataclass
from typing import Literal
from uuid import UUID

from food_lookup.domain.foods import CanonicalFood, ExternalFoodCacheRow, ExternalProduct


@dataclass(frozen=True)
class FoundCanonical:
    """Barcode matched a curated ``food_master`` record."""

    food: CanonicalFood
    normalized_barcode: str
    status: Literal["found_food_master"] = "found_food_master"
    source: Literal["food_master"] = "food_master"


@dataclass(frozen=True)
class FoundCache:
    """Barcode matched a cached external product, possibly stale."""

    cache_row: ExternalFoodCacheRow
    normalized_barcode: str
    is_stale: bool
    status: Literal["found_cache"] = "found_cache"
    source: Literal["external_food_cache"] = "external_food_cache"


@dataclass(frozen=True)
class FoundExternal:
    """Barcode was fetched from the external provider and cached."""

    product: ExternalProduct
    cache_row: ExternalFoodCacheRow
    normalized_barcode: str
    status: Literal["found_openfoodfacts"] = "found_openfoodfacts"
    source: Literal["openfoodfacts"] = "openfoodfacts"


@dataclass(frozen=True)
class NotFound:
    """No tier knows the barcode."""

    normalized_barcode: str
    error: str
    status: Literal["not_found"] = "not_found"
    source: Literal["none"] = "none"


@dataclass(frozen=True)
class InvalidBarcode:
    """Raw code could not be normalized; no lookup ran."""

    raw_code: str
    error: str
    status: Literal["invalid_barcode"] = "invalid_barcode"
    source: Literal["none"] = "none"


LookupOutcome = FoundCanonical | FoundCache | FoundExternal | NotFound | InvalidBarcode


@dataclass(frozen=True)
class ProductFound:
    """External provider returned a product."""

    product: ExternalProduct
    found: Literal[True] = True


@dataclass(frozen=True)
class ProductNotFound:
    """External provider has no product, or could not be reached."""

    error: str
    found: Literal[False] = False


ProductFetchResult = ProductFound | ProductNotFound


@dataclass(frozen=True)
class PromotionOverrides:
    """Optional caller-supplied values used when promoting a cache row."""

    name: str | None = None
    brand: str | None = None
    serving_size: float | None = None
    serving_unit: str | None = None


@dataclass(frozen=True)
class PromotionSuccess:
    food_master_id: UUID
    success: Literal[True] = True


@dataclass(frozen=True)
class PromotionFailure:
    error: str
    success: Literal[False] = False


PromotionResult = PromotionSuccess | PromotionFailure
