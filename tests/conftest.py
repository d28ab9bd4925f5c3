"""Shared test fixtures."""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest

from food_lookup.adapters.openfoodfacts_client import OpenFoodFactsClient
from food_lookup.config import Settings
from food_lookup.containers import AppContainer
from food_lookup.domain.errors import StoreError
from food_lookup.domain.foods import CanonicalFood, ExternalFoodCacheRow
from food_lookup.services.barcode_lookup import BarcodeLookupService
from food_lookup.services.external_cache import (
    ExternalCacheRepository,
    ExternalCacheService,
)
from food_lookup.services.food_master import FoodMasterRepository, FoodMasterService
from food_lookup.services.products import ProductService
from food_lookup.services.promotion import PromotionService

TEST_BAR_PRODUCT: dict[str, object] = {
    "code": "0036000291452",
    "product_name": "Test Bar",
    "brands": "Acme",
    "serving_size": "40 g",
    "nutriments": {
        "energy-kcal_100g": 450,
        "proteins_100g": 20,
        "carbohydrates_100g": 55.5,
        "fat_100g": 18,
        "saturated-fat_100g": 6,
        "sugars_100g": 30,
        "fiber_100g": 4,
        "sodium_100g": 0.25,
    },
}


def make_food(**overrides: object) -> CanonicalFood:
    values: dict[str, object] = {
        "id": uuid4(),
        "name": "Curated Oats",
        "brand": "Quaker",
        "calories_kcal": 150.0,
        "protein_g": 5.0,
        "carbs_g": 27.0,
        "fat_g": 3.0,
        "fiber_g": 4.0,
        "saturated_fat_g": 0.5,
        "sugar_g": 1.0,
        "sodium_mg": 0.0,
        "serving_size": 40.0,
        "serving_unit": "g",
        "source": "catalog",
        "is_custom": False,
        "barcode": "0036000291452",
    }
    values.update(overrides)
    return CanonicalFood(**values)  # type: ignore[arg-type]


def make_cache_row(**overrides: object) -> ExternalFoodCacheRow:
    now = datetime.now(tz=UTC)
    values: dict[str, object] = {
        "id": uuid4(),
        "barcode": "0036000291452",
        "source": "openfoodfacts",
        "source_food_id": "0036000291452",
        "product_name": "Cached Bar",
        "brand": "Acme",
        "energy_kcal_100g": 200.0,
        "protein_100g": 10.0,
        "carbs_100g": 25.0,
        "fat_100g": 8.0,
        "saturated_fat_100g": 3.0,
        "sugars_100g": 12.0,
        "fiber_100g": 2.0,
        "sodium_100g": 0.5,
        "serving_size": "40 g",
        "raw_payload": {"status": 1},
        "created_at": now,
        "updated_at": now,
        "last_fetched_at": now,
        "times_scanned": 1,
        "promoted_food_master_id": None,
    }
    values.update(overrides)
    return ExternalFoodCacheRow(**values)  # type: ignore[arg-type]


@dataclass
class InMemoryFoodMasterRepository(FoodMasterRepository):
    """In-memory ``food_master`` repository for tests."""

    foods: list[CanonicalFood] = field(default_factory=list)
    created: list[dict[str, object]] = field(default_factory=list)
    lookups: list[str] = field(default_factory=list)
    find_error: StoreError | None = None
    create_error: StoreError | None = None

    def find_by_barcode(
        self, barcode: str, *, include_custom: bool = False
    ) -> CanonicalFood | None:
        self.lookups.append(barcode)
        if self.find_error:
            raise self.find_error
        for food in self.foods:
            if food.barcode == barcode and (include_custom or not food.is_custom):
                return food
        return None

    def create_food(self, payload: dict[str, object]) -> UUID:
        if self.create_error:
            raise self.create_error
        food_id = uuid4()
        self.created.append({"id": food_id, **payload})
        self.foods.append(
            CanonicalFood(
                id=food_id,
                name=str(payload["name"]),
                brand=payload.get("brand"),
                calories_kcal=float(payload["calories_kcal"]),
                protein_g=float(payload["protein_g"]),
                carbs_g=float(payload["carbs_g"]),
                fat_g=float(payload["fat_g"]),
                fiber_g=payload.get("fiber_g"),
                saturated_fat_g=payload.get("saturated_fat_g"),
                sugar_g=payload.get("sugar_g"),
                sodium_mg=payload.get("sodium_mg"),
                serving_size=float(payload["serving_size"]),
                serving_unit=str(payload["serving_unit"]),
                source=payload.get("source"),
                is_custom=bool(payload["is_custom"]),
                barcode=payload.get("barcode"),
            )
        )
        return food_id


@dataclass
class InMemoryExternalCacheRepository(ExternalCacheRepository):
    """In-memory ``external_food_cache`` repository keyed like the real table."""

    rows: dict[UUID, ExternalFoodCacheRow] = field(default_factory=dict)
    find_calls: int = 0
    find_by_barcode_calls: int = 0
    upsert_calls: int = 0
    find_error: StoreError | None = None
    find_by_barcode_error: StoreError | None = None
    upsert_error: StoreError | None = None
    increment_error: StoreError | None = None
    link_error: StoreError | None = None

    def add(self, row: ExternalFoodCacheRow) -> ExternalFoodCacheRow:
        assert row.id is not None
        self.rows[row.id] = row
        return row

    def find(self, barcode: str, source: str) -> ExternalFoodCacheRow | None:
        self.find_calls += 1
        if self.find_error:
            raise self.find_error
        for row in self.rows.values():
            if row.barcode == barcode and row.source == source:
                return row
        return None

    def find_by_barcode(self, barcode: str) -> ExternalFoodCacheRow | None:
        self.find_by_barcode_calls += 1
        if self.find_by_barcode_error:
            raise self.find_by_barcode_error
        for row in self.rows.values():
            if row.barcode == barcode:
                return row
        return None

    def get(self, cache_id: UUID) -> ExternalFoodCacheRow | None:
        return self.rows.get(cache_id)

    def upsert(self, payload: dict[str, object]) -> ExternalFoodCacheRow:
        self.upsert_calls += 1
        if self.upsert_error:
            raise self.upsert_error
        now = datetime.now(tz=UTC)
        current = next(
            (
                row
                for row in self.rows.values()
                if row.barcode == payload["barcode"]
                and row.source == payload["source"]
            ),
            None,
        )
        values = dict(payload)
        values["last_fetched_at"] = datetime.fromisoformat(
            str(payload["last_fetched_at"])
        )
        # Columns missing from the payload keep their stored value or default.
        values.setdefault("times_scanned", current.times_scanned if current else 1)
        row = ExternalFoodCacheRow(
            id=current.id if current else uuid4(),
            created_at=current.created_at if current else now,
            updated_at=now,
            promoted_food_master_id=(
                current.promoted_food_master_id if current else None
            ),
            **values,  # type: ignore[arg-type]
        )
        return self.add(row)

    def increment_scan_count(self, cache_id: UUID) -> None:
        if self.increment_error:
            raise self.increment_error
        row = self.rows[cache_id]
        self.rows[cache_id] = replace(row, times_scanned=row.times_scanned + 1)

    def set_promoted_food(self, cache_id: UUID, food_id: UUID) -> None:
        if self.link_error:
            raise self.link_error
        row = self.rows[cache_id]
        self.rows[cache_id] = replace(row, promoted_food_master_id=food_id)

    def list_popular(self, limit: int) -> list[ExternalFoodCacheRow]:
        ranked = sorted(
            self.rows.values(), key=lambda row: row.times_scanned, reverse=True
        )
        return ranked[:limit]

    def list_fetched_before(
        self, cutoff: datetime, limit: int
    ) -> list[ExternalFoodCacheRow]:
        stale = [
            row
            for row in self.rows.values()
            if row.last_fetched_at is None or row.last_fetched_at < cutoff
        ]
        return stale[:limit]


@dataclass
class FakeOpenFoodFactsClient(OpenFoodFactsClient):
    """Fake OpenFoodFacts client serving products from a dict."""

    products: dict[str, dict[str, object]] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)
    error: Exception | None = None

    async def get_product(self, barcode: str) -> dict[str, object]:
        self.calls.append(barcode)
        await asyncio.sleep(0)
        if self.error:
            raise self.error
        product = self.products.get(barcode)
        if product is None:
            return {"code": barcode, "status": 0, "status_verbose": "product not found"}
        return {"code": barcode, "status": 1, "product": product}


@dataclass
class LookupHarness:
    """Lookup service with direct access to its fakes."""

    service: BarcodeLookupService
    foods: InMemoryFoodMasterRepository
    cache: InMemoryExternalCacheRepository
    client: FakeOpenFoodFactsClient


def build_lookup(coalesce_inflight: bool = False) -> LookupHarness:
    foods = InMemoryFoodMasterRepository()
    cache = InMemoryExternalCacheRepository()
    client = FakeOpenFoodFactsClient()
    service = BarcodeLookupService(
        food_master_service=FoodMasterService(foods),
        cache_service=ExternalCacheService(cache),
        product_service=ProductService(client, retry_delay_seconds=0),
        coalesce_inflight=coalesce_inflight,
    )
    return LookupHarness(service=service, foods=foods, cache=cache, client=client)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        admin_token="admin-token",
    )


@pytest.fixture
def lookup() -> LookupHarness:
    return build_lookup()


@pytest.fixture
def container(settings: Settings) -> AppContainer:
    harness = build_lookup()
    promotion_service = PromotionService(
        food_master_repository=harness.foods,
        cache_repository=harness.cache,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        food_master_service=harness.service.food_master_service,
        cache_service=harness.service.cache_service,
        product_service=harness.service.product_service,
        barcode_lookup_service=harness.service,
        promotion_service=promotion_service,
        close_resources=close_resources,
    )


@pytest.fixture
def food_lookup_logs(
    caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
) -> pytest.LogCaptureFixture:
    """Capture package warnings even after ``configure_logging`` ran."""
    monkeypatch.setattr(logging.getLogger("food_lookup"), "propagate", True)
    caplog.set_level(logging.WARNING, logger="food_lookup")
    return caplog
