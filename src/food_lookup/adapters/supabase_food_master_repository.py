"""Supabase implementation for the canonical food catalog."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from food_lookup.adapters.supabase_query import (
    execute_query,
    parse_float,
    parse_uuid,
)
from food_lookup.domain.errors import StoreError
from food_lookup.domain.foods import CanonicalFood
from food_lookup.services.food_master import FoodMasterRepository

_FOOD_MASTER_COLUMNS = (
    "id, name, brand, calories_kcal, protein_g, carbs_g, fat_g, fiber_g, "
    "saturated_fat_g, sugar_g, sodium_mg, serving_size, serving_unit, source, "
    "is_custom, barcode"
)


@dataclass
class SupabaseFoodMasterRepository(FoodMasterRepository):
    """Supabase-backed repository for ``food_master``."""

    client: Client

    def find_by_barcode(
        self, barcode: str, *, include_custom: bool = False
    ) -> CanonicalFood | None:
        """Return the first food with this barcode, curated only by default."""
        query = (
            self.client.table("food_master")
            .select(_FOOD_MASTER_COLUMNS)
            .eq("barcode", barcode)
        )
        if not include_custom:
            query = query.eq("is_custom", False)
        rows = execute_query(query.limit(1), action="food_master lookup")
        if not rows:
            return None
        return _parse_food(rows[0])

    def create_food(self, payload: dict[str, object]) -> UUID:
        """Insert a food row and return its id."""
        rows = execute_query(
            self.client.table("food_master").insert(payload),
            action="food_master insert",
        )
        food_id = parse_uuid(rows[0].get("id")) if rows else None
        if food_id is None:
            raise StoreError("Failed to create food entry")
        return food_id


def _parse_food(row: dict[str, object]) -> CanonicalFood:
    """Parse a ``food_master`` row into a domain model."""
    return CanonicalFood(
        id=UUID(str(row["id"])),
        name=str(row.get("name") or ""),
        brand=row.get("brand"),
        calories_kcal=float(row.get("calories_kcal") or 0.0),
        protein_g=float(row.get("protein_g") or 0.0),
        carbs_g=float(row.get("carbs_g") or 0.0),
        fat_g=float(row.get("fat_g") or 0.0),
        fiber_g=parse_float(row.get("fiber_g")),
        saturated_fat_g=parse_float(row.get("saturated_fat_g")),
        sugar_g=parse_float(row.get("sugar_g")),
        sodium_mg=parse_float(row.get("sodium_mg")),
        serving_size=float(row.get("serving_size") or 0.0),
        serving_unit=str(row.get("serving_unit") or ""),
        source=row.get("source"),
        is_custom=bool(row.get("is_custom", False)),
        barcode=row.get("barcode"),
    )
