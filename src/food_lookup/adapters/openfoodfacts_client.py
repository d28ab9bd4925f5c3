"""OpenFoodFacts API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

_NOT_FOUND_STATUS = 404


class OpenFoodFactsClient(Protocol):
    """Interface for OpenFoodFacts product lookups."""

    async def get_product(self, barcode: str) -> dict[str, object]:
        """Fetch a product by barcode and return raw API data."""


@dataclass
class HttpxOpenFoodFactsClient(OpenFoodFactsClient):
    """HTTPX-backed OpenFoodFacts client."""

    base_url: str
    user_agent: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 15.0

    @classmethod
    def create(
        cls, base_url: str, user_agent: str, timeout_seconds: float = 15.0
    ) -> "HttpxOpenFoodFactsClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url,
            user_agent=user_agent,
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def get_product(self, barcode: str) -> dict[str, object]:
        """Fetch a product; unknown barcodes come back with ``status`` 0."""
        url = f"{self.base_url}/product/{barcode}.json"
        response = await self.http_client.get(
            url,
            headers={"User-Agent": self.user_agent, "Accept": "application/json"},
            timeout=self.timeout_seconds,
        )
        if response.status_code == _NOT_FOUND_STATUS:
            return {
                "code": barcode,
                "status": 0,
                "status_verbose": "product not found",
            }
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
