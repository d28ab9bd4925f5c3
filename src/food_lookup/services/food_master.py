"""Canonical food lookups by barcode."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from food_lookup.domain.errors import StoreError
from food_lookup.domain.foods import CanonicalFood

_logger = logging.getLogger(__name__)


class FoodMasterRepository(Protocol):
    """Persistence interface for the ``food_master`` catalog."""

    def find_by_barcode(
        self, barcode: str, *, include_custom: bool = False
    ) -> CanonicalFood | None:
        """Return a food with this barcode, curated only unless asked otherwise."""

    def create_food(self, payload: dict[str, object]) -> UUID:
        """Insert a food row and return its id."""


@dataclass
class FoodMasterService:
    """Read-only barcode lookups against curated foods."""

    repository: FoodMasterRepository

    def lookup_by_barcode(self, barcode: str) -> CanonicalFood | None:
        """Return the curated food for a normalized barcode.

        User-created custom foods never match. Store failures are logged and
        treated as a miss so the caller can fall through to the next tier.
        """
        clean = barcode.strip()
        try:
            food = self.repository.find_by_barcode(clean, include_custom=False)
        except StoreError as exc:
            _logger.warning(
                "fail-open: food_master lookup failed for %s, treating as miss: %s",
                clean,
                exc,
            )
            return None
        if food is None:
            return None
        if food.is_custom or food.barcode != clean:
            _logger.warning(
                "food_master returned mismatched row %s for barcode %s", food.id, clean
            )
            return None
        return food
