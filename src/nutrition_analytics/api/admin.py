"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from nutrition_analytics.api.models import CleanupRequest  # noqa: TC001

if TYPE_CHECKING:
    from nutrition_analytics.containers import AppContainer

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


@router.delete(
    "/users/{user_id}/days/{date_key}", dependencies=[Depends(require_admin)]
)
async def delete_day(
    user_id: UUID, date_key: date, request: Request
) -> dict[str, object]:
    """Delete a whole day document."""
    container: AppContainer = request.app.state.container
    deleted = await container.day_log_service.delete_day(user_id, date_key)
    return {"date": date_key.isoformat(), "deleted": deleted}


@router.post("/users/{user_id}/cleanup", dependencies=[Depends(require_admin)])
async def cleanup(
    user_id: UUID, payload: CleanupRequest, request: Request
) -> dict[str, object]:
    """Delete every stored day in the look-back range outside the kept interval."""
    container: AppContainer = request.app.state.container
    deleted = await container.day_log_service.cleanup_outside(
        user_id,
        keep_start=payload.keep_start,
        keep_end=payload.keep_end,
        today=payload.today or date.today(),
        lookback_days=container.settings.cleanup_lookback_days,
    )
    return {"deleted": deleted, "count": len(deleted)}
