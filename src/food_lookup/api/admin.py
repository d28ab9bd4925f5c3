"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from food_lookup.api.models import serialize_cache_row

if TYPE_CHECKING:
    from food_lookup.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/external-foods/popular", dependencies=[Depends(require_admin)])
async def popular_external_foods(
    request: Request, limit: int = 20
) -> dict[str, object]:
    """Return the most scanned cached products."""
    container: AppContainer = request.app.state.container
    rows = container.cache_service.list_popular(limit)
    return {"external_foods": [serialize_cache_row(row) for row in rows]}


@router.get("/external-foods/stale", dependencies=[Depends(require_admin)])
async def stale_external_foods(request: Request, limit: int = 20) -> dict[str, object]:
    """Return cached products past the freshness window."""
    container: AppContainer = request.app.state.container
    rows = container.cache_service.list_stale(limit)
    return {"external_foods": [serialize_cache_row(row) for row in rows]}
