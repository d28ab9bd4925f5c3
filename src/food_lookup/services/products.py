"""External product lookups backed by OpenFoodFacts."""

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from food_lookup.adapters.openfoodfacts_client import OpenFoodFactsClient
from food_lookup.domain.foods import ExternalProduct
from food_lookup.domain.lookup import ProductFetchResult, ProductFound, ProductNotFound

_NOT_FOUND_MESSAGE = "Product not found in OpenFoodFacts database"

_logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


@dataclass
class ProductService:
    """Fetches products by barcode and adapts them to the per-100g shape."""

    client: OpenFoodFactsClient
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def fetch_by_barcode(self, barcode: str) -> ProductFetchResult:
        """Fetch a product; absence and transport failures are not raised."""
        _logger.info("Fetching product from OpenFoodFacts: %s", barcode)
        try:
            payload = await self._call_with_retry(
                lambda: self.client.get_product(barcode),
                action=f"get_product:{barcode}",
            )
        except (httpx.HTTPError, ValueError) as exc:
            _logger.error("OpenFoodFacts fetch failed for %s: %s", barcode, exc)
            reason = str(exc) or "Network error"
            return ProductNotFound(error=f"Failed to fetch from OpenFoodFacts: {reason}")

        product = payload.get("product")
        if payload.get("status") != 1 or not isinstance(product, dict):
            _logger.info("Product not found in OpenFoodFacts: %s", barcode)
            return ProductNotFound(error=_NOT_FOUND_MESSAGE)

        parsed = parse_product(barcode, payload, product)
        _logger.info("Found product in OpenFoodFacts: %s", parsed.product_name)
        return ProductFound(product=parsed)

    async def _call_with_retry(
        self, func: "Callable[[], Awaitable[dict[str, object]]]", *, action: str
    ) -> dict[str, object]:
        """Call an async function with a short retry."""
        attempt = 0
        while True:
            try:
                return await func()
            except httpx.HTTPError as exc:
                attempt += 1
                _logger.warning(
                    "OpenFoodFacts %s failed (attempt %s/%s, status=%s): %s",
                    action,
                    attempt,
                    self.retry_attempts + 1,
                    _status_code_from_exception(exc),
                    exc,
                )
                if attempt > self.retry_attempts:
                    raise
                await asyncio.sleep(self.retry_delay_seconds)


def parse_product(
    barcode: str, payload: dict[str, object], product: dict[str, object]
) -> ExternalProduct:
    """Adapt an OpenFoodFacts product document to an ``ExternalProduct``."""
    nutriments = product.get("nutriments")
    if not isinstance(nutriments, dict):
        nutriments = {}
    return ExternalProduct(
        barcode=barcode,
        source_id=str(product.get("code") or barcode),
        product_name=(
            product.get("product_name") or product.get("product_name_en") or None
        ),
        brand=product.get("brands") or None,
        energy_kcal_100g=parse_numeric_field(nutriments.get("energy-kcal_100g")),
        protein_100g=parse_numeric_field(nutriments.get("proteins_100g")),
        carbs_100g=parse_numeric_field(nutriments.get("carbohydrates_100g")),
        fat_100g=parse_numeric_field(nutriments.get("fat_100g")),
        saturated_fat_100g=parse_numeric_field(nutriments.get("saturated-fat_100g")),
        sugars_100g=parse_numeric_field(nutriments.get("sugars_100g")),
        fiber_100g=parse_numeric_field(nutriments.get("fiber_100g")),
        sodium_100g=parse_numeric_field(nutriments.get("sodium_100g")),
        serving_size=product.get("serving_size") or None,
        raw_payload=payload,
    )


def parse_numeric_field(value: object) -> float | None:
    """Parse a nutriment value, rounded to two decimals."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if number != number:  # NaN
        return None
    return round(number, 2)


def _status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"
