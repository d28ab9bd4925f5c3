"""Pydantic request models and response serializers for the HTTP API."""

from dataclasses import asdict
from uuid import UUID

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from food_lookup.domain.barcodes import BarcodeValidation, format_barcode_for_display
from food_lookup.domain.foods import ExternalFoodCacheRow
from food_lookup.domain.lookup import (
    FoundCache,
    FoundExternal,
    InvalidBarcode,
    LookupOutcome,
    PromotionOverrides,
    PromotionResult,
    PromotionSuccess,
)
from food_lookup.services.serving import MAX_SERVING_GRAMS


class BarcodeLookupRequest(BaseModel):
    """Raw code from a camera scan or manual entry."""

    code: str
    manual: bool = False


class BarcodeValidationRequest(BaseModel):
    code: str


class PromotionRequest(BaseModel):
    """Promotion of a cached product into a user-owned food."""

    user_id: UUID
    name: str | None = None
    brand: str | None = None
    serving_size: float | None = Field(
        default=None, gt=0, le=MAX_SERVING_GRAMS, allow_inf_nan=False
    )
    serving_unit: str | None = None

    def overrides(self) -> PromotionOverrides:
        return PromotionOverrides(
            name=self.name,
            brand=self.brand,
            serving_size=self.serving_size,
            serving_unit=self.serving_unit,
        )


def serialize_cache_row(row: ExternalFoodCacheRow) -> dict[str, object]:
    """Serialize a cache row without its raw upstream payload."""
    data = asdict(row)
    data.pop("raw_payload", None)
    return jsonable_encoder(data)


def serialize_outcome(outcome: LookupOutcome) -> dict[str, object]:
    """Serialize a lookup outcome to JSON-ready data."""
    data = _outcome_fields(outcome)
    if not isinstance(outcome, InvalidBarcode):
        data["display_barcode"] = format_barcode_for_display(
            outcome.normalized_barcode
        )
    return data


def _outcome_fields(outcome: LookupOutcome) -> dict[str, object]:
    if isinstance(outcome, FoundCache):
        return {
            "status": outcome.status,
            "source": outcome.source,
            "normalized_barcode": outcome.normalized_barcode,
            "is_stale": outcome.is_stale,
            "cache_row": serialize_cache_row(outcome.cache_row),
        }
    if isinstance(outcome, FoundExternal):
        product = asdict(outcome.product)
        product.pop("raw_payload", None)
        return {
            "status": outcome.status,
            "source": outcome.source,
            "normalized_barcode": outcome.normalized_barcode,
            "product": jsonable_encoder(product),
            "cache_row": serialize_cache_row(outcome.cache_row),
        }
    return jsonable_encoder(asdict(outcome))


def serialize_promotion(result: PromotionResult) -> dict[str, object]:
    if isinstance(result, PromotionSuccess):
        return {"success": True, "food_master_id": str(result.food_master_id)}
    return {"success": False, "error": result.error}


def serialize_validation(validation: BarcodeValidation) -> dict[str, object]:
    data = jsonable_encoder(asdict(validation))
    data["display_barcode"] = (
        format_barcode_for_display(validation.normalized_code)
        if validation.normalized_code
        else None
    )
    return data
