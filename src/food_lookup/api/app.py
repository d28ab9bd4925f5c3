"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from uuid import UUID

from fastapi import FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from food_lookup.api.admin import router as admin_router
from food_lookup.api.models import (
    BarcodeLookupRequest,
    BarcodeValidationRequest,
    PromotionRequest,
    serialize_outcome,
    serialize_promotion,
    serialize_validation,
)
from food_lookup.app_logging import configure_logging
from food_lookup.containers import AppContainer
from food_lookup.domain.barcodes import (
    detect_barcode_format,
    validate_and_normalize_barcode,
)
from food_lookup.domain.errors import StoreError
from food_lookup.services.promotion import DEFAULT_SERVING_SIZE, DEFAULT_SERVING_UNIT
from food_lookup.services.serving import (
    MAX_SERVING_GRAMS,
    calculate_nutrition_for_serving,
    map_external_food_to_base,
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(StoreError)
    async def store_error_handler(_: Request, exc: StoreError) -> JSONResponse:
        logger.error("Store error: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Storage unavailable"},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/barcodes/lookup")
    async def lookup_barcode(
        payload: BarcodeLookupRequest, request: Request
    ) -> dict[str, object]:
        """Resolve a scanned or typed barcode."""
        state_container: AppContainer = request.app.state.container
        service = state_container.barcode_lookup_service
        if payload.manual:
            outcome = await service.handle_manual_entry(payload.code)
        else:
            outcome = await service.handle_scanned_barcode(payload.code)
        logger.info("Barcode lookup %r -> %s", payload.code, outcome.status)
        data = serialize_outcome(outcome)
        data["scanned_format"] = detect_barcode_format(payload.code).value
        return data

    @app.post("/barcodes/validate")
    async def validate_barcode(payload: BarcodeValidationRequest) -> dict[str, object]:
        """Check a code without looking it up."""
        return serialize_validation(validate_and_normalize_barcode(payload.code))

    @app.get("/external-foods/{cache_id}/nutrition")
    async def serving_nutrition(
        cache_id: UUID,
        request: Request,
        serving_grams: float = Query(
            gt=0, le=MAX_SERVING_GRAMS, allow_inf_nan=False
        ),
    ) -> dict[str, object]:
        """Return a cached product's nutrition scaled to a serving."""
        state_container: AppContainer = request.app.state.container
        cache_row = state_container.cache_service.get(cache_id)
        if cache_row is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        nutrition = calculate_nutrition_for_serving(cache_row, serving_grams)
        return {
            "cache_id": str(cache_id),
            "serving_grams": serving_grams,
            "calories": nutrition.calories,
            "protein": nutrition.protein,
            "carbs": nutrition.carbs,
            "fat": nutrition.fat,
            "fiber": nutrition.fiber,
            "sugar": nutrition.sugar,
            "sodium_mg": nutrition.sodium_mg,
        }

    @app.get("/external-foods/{cache_id}/food-preview")
    async def food_preview(
        cache_id: UUID,
        request: Request,
        serving_size: float = Query(
            default=DEFAULT_SERVING_SIZE,
            gt=0,
            le=MAX_SERVING_GRAMS,
            allow_inf_nan=False,
        ),
        serving_unit: str = DEFAULT_SERVING_UNIT,
    ) -> dict[str, object]:
        """Show the food record a promotion would start from for one serving."""
        state_container: AppContainer = request.app.state.container
        cache_row = state_container.cache_service.get(cache_id)
        if cache_row is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        mapping = map_external_food_to_base(cache_row, serving_size, serving_unit)
        return {"cache_id": str(cache_id), **asdict(mapping)}

    @app.post("/external-foods/{cache_id}/promote")
    async def promote_external_food(
        cache_id: UUID, payload: PromotionRequest, request: Request
    ) -> dict[str, object]:
        """Promote a cached product into a food owned by the given user."""
        state_container: AppContainer = request.app.state.container
        cache_row = state_container.cache_service.get(cache_id)
        if cache_row is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        result = state_container.promotion_service.promote_to_food_master(
            cache_row, payload.user_id, payload.overrides()
        )
        return serialize_promotion(result)

    return app
