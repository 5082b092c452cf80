"""Listing endpoints."""

from fastapi import APIRouter, HTTPException, Depends, Query, status

from auth import get_current_operator
from console import AdminConsole, get_console
from ..responses import listing_payload, view_payload, run_view, moderation_payload

router = APIRouter(
    prefix="/listings",
    tags=["Listings"]
)

@router.get("")
async def list_listings(
    q: str = Query('', description="Case-insensitive search on name, category, location and seller id"),
    tab: str = Query('all', description="all, pending, active or rejected"),
    console: AdminConsole = Depends(get_console),
    operator: str = Depends(get_current_operator)
):
    """Listings newest first, joined with their sellers."""
    view = run_view(console.state.listings_view, q, tab)
    return view_payload(view, listing_payload)

@router.get("/{listing_id}")
async def get_listing(
    listing_id: str,
    console: AdminConsole = Depends(get_console),
    operator: str = Depends(get_current_operator)
):
    row = console.state.listing_detail(listing_id)
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Listing {listing_id} not found"
        )
    return listing_payload(row)

@router.post("/{listing_id}/approve")
async def approve_listing(
    listing_id: str,
    console: AdminConsole = Depends(get_console),
    operator: str = Depends(get_current_operator)
):
    """Publish a pending listing and notify its seller."""
    return moderation_payload(await console.engine.approve_listing(listing_id))

@router.post("/{listing_id}/reject")
async def reject_listing(
    listing_id: str,
    console: AdminConsole = Depends(get_console),
    operator: str = Depends(get_current_operator)
):
    """Reject a pending listing and notify its seller."""
    return moderation_payload(await console.engine.reject_listing(listing_id))
