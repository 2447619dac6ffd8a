"""Admin API endpoints, available to the signed-in administrator."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException, Request, status

from property_stage.domain.accounts import PlanTier

if TYPE_CHECKING:
    from property_stage.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


async def require_admin(request: Request) -> None:
    """Ensure the current session belongs to an administrator."""
    container: AppContainer = request.app.state.container
    current = container.session_manager.current
    if current is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    if not current.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)


@router.get("/accounts", dependencies=[Depends(require_admin)])
async def list_accounts(
    request: Request, search: str | None = None, plan: PlanTier | None = None
) -> dict[str, object]:
    """Return accounts with signup and credit totals."""
    container: AppContainer = request.app.state.container
    return {
        "accounts": container.admin_service.list_accounts(search=search, plan=plan),
        "stats": container.admin_service.summary(),
    }


@router.get("/accounts/{account_id}", dependencies=[Depends(require_admin)])
async def account_detail(account_id: str, request: Request) -> dict[str, object]:
    """Return one account with its recent generations."""
    container: AppContainer = request.app.state.container
    detail = container.admin_service.get_account_detail(account_id)
    if detail is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return detail
