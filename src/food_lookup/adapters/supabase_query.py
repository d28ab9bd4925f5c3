"""Helpers shared by the Supabase repositories."""

from datetime import datetime
from uuid import UUID

import httpx
from postgrest.exceptions import APIError

from food_lookup.domain.errors import StoreError


def execute_query(query, *, action: str) -> list[dict[str, object]]:  # type: ignore[no-untyped-def]
    """Execute a PostgREST query, wrapping client failures in ``StoreError``."""
    try:
        response = query.execute()
    except (APIError, httpx.HTTPError) as exc:
        raise StoreError(f"{action} failed: {exc}") from exc
    data = response.data
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return [data]
    return []


def parse_datetime(value: object) -> datetime | None:
    """Parse an ISO timestamp column, tolerating nulls and blanks."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None


def parse_uuid(value: object) -> UUID | None:
    if isinstance(value, UUID):
        return value
    if isinstance(value, str) and value:
        return UUID(value)
    return None


def parse_float(value: object) -> float | None:
    if value is None or value == "":
        return None
    return float(value)  # type: ignore[arg-type]
