"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta

from supabase import create_client

from food_lookup.adapters.openfoodfacts_client import HttpxOpenFoodFactsClient
from food_lookup.adapters.supabase_external_cache_repository import (
    SupabaseExternalCacheRepository,
)
from food_lookup.adapters.supabase_food_master_repository import (
    SupabaseFoodMasterRepository,
)
from food_lookup.config import Settings
from food_lookup.services.barcode_lookup import BarcodeLookupService
from food_lookup.services.external_cache import ExternalCacheService
from food_lookup.services.food_master import FoodMasterService
from food_lookup.services.products import ProductService
from food_lookup.services.promotion import PromotionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    food_master_service: FoodMasterService
    cache_service: ExternalCacheService
    product_service: ProductService
    barcode_lookup_service: BarcodeLookupService
    promotion_service: PromotionService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    food_master_repository = SupabaseFoodMasterRepository(supabase_client)
    cache_repository = SupabaseExternalCacheRepository(supabase_client)
    openfoodfacts_client = HttpxOpenFoodFactsClient.create(
        base_url=resolved_settings.openfoodfacts_base_url,
        user_agent=resolved_settings.openfoodfacts_user_agent,
        timeout_seconds=resolved_settings.openfoodfacts_timeout_seconds,
    )
    food_master_service = FoodMasterService(food_master_repository)
    cache_service = ExternalCacheService(
        repository=cache_repository,
        source=resolved_settings.external_source,
        stale_after=timedelta(days=resolved_settings.cache_stale_days),
    )
    product_service = ProductService(client=openfoodfacts_client)
    barcode_lookup_service = BarcodeLookupService(
        food_master_service=food_master_service,
        cache_service=cache_service,
        product_service=product_service,
        coalesce_inflight=resolved_settings.coalesce_inflight_lookups,
    )
    promotion_service = PromotionService(
        food_master_repository=food_master_repository,
        cache_repository=cache_repository,
    )

    async def close_resources() -> None:
        await openfoodfacts_client.close()

    return AppContainer(
        settings=resolved_settings,
        food_master_service=food_master_service,
        cache_service=cache_service,
        product_service=product_service,
        barcode_lookup_service=barcode_lookup_service,
        promotion_service=promotion_service,
        close_resources=close_resources,
    )
