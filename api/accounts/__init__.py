"""Account and seller endpoints."""

from fastapi import APIRouter, HTTPException, Depends, Query, status

from auth import get_current_operator
from console import AdminConsole, get_console
from ..responses import (
    account_payload,
    seller_payload,
    view_payload,
    run_view,
    moderation_payload
)

router = APIRouter(tags=["Accounts"])

@router.get("/accounts")
async def list_accounts(
    q: str = Query('', description="Case-insensitive search on email, name and seller details"),
    tab: str = Query('all', description="all, users or sellers"),
    console: AdminConsole = Depends(get_console),
    operator: str = Depends(get_current_operator)
):
    """Accounts with per-tab counts over the whole collection."""
    view = run_view(console.state.accounts_view, q, tab)
    return view_payload(view, account_payload)

@router.get("/sellers")
async def list_sellers(
    q: str = Query('', description="Case-insensitive search on phone, city, address, email and name"),
    tab: str = Query('all', description="all, not_submitted, pending_review, verified or rejected"),
    console: AdminConsole = Depends(get_console),
    operator: str = Depends(get_current_operator)
):
    """Seller profiles joined with their accounts."""
    view = run_view(console.state.sellers_view, q, tab)
    return view_payload(view, seller_payload)

@router.get("/sellers/{profile_id}")
async def get_seller(
    profile_id: str,
    console: AdminConsole = Depends(get_console),
    operator: str = Depends(get_current_operator)
):
    row = console.state.profile_detail(profile_id)
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Seller profile {profile_id} not found"
        )
    return seller_payload(row)

@router.post("/sellers/{profile_id}/approve")
async def approve_seller(
    profile_id: str,
    console: AdminConsole = Depends(get_console),
    operator: str = Depends(get_current_operator)
):
    """Verify a seller and grant the verified seller role."""
    return moderation_payload(await console.engine.approve_seller(profile_id))

@router.post("/sellers/{profile_id}/reject")
async def reject_seller(
    profile_id: str,
    console: AdminConsole = Depends(get_console),
    operator: str = Depends(get_current_operator)
):
    """Reject a seller's verification request."""
    return moderation_payload(await console.engine.reject_seller(profile_id))
