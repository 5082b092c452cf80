"""Serialization helpers shared by the API routers."""

from typing import Any, Dict

from fastapi import HTTPException, status

from database import DatabaseError, RecordNotFoundError, WriteConflictError
from moderation import (
    EntityNotFoundError,
    InvalidTransitionError,
    ModerationBusyError,
    ModerationResult
)
from reconciliation import ListingRow, SellerRow, UnknownTabError, ViewResult

def account_payload(account) -> Dict[str, Any]:
    payload = account.model_dump(mode='json', exclude={'profile'})
    payload['is_seller'] = account.profile is not None
    return payload

def seller_payload(row: SellerRow) -> Dict[str, Any]:
    return {
        "profile": row.profile.model_dump(mode='json'),
        "account": account_payload(row.account) if row.account else None,
        "status": row.status
    }

def listing_payload(row: ListingRow) -> Dict[str, Any]:
    return {
        "listing": row.listing.model_dump(mode='json'),
        "seller": account_payload(row.seller) if row.seller else None,
        "status": row.status,
        "condition": row.condition
    }

def view_payload(view: ViewResult, serialize) -> Dict[str, Any]:
    return {
        "rows": [serialize(row) for row in view.rows],
        "counts": view.counts,
        "query": view.query,
        "tab": view.tab
    }

def run_view(build, *args):
    """Build a view, turning an unknown tab into a 400."""
    try:
        return build(*args)
    except UnknownTabError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

def moderation_payload(result: ModerationResult) -> Dict[str, Any]:
    """Successful results become a body, failures the matching HTTP error."""
    if result.success:
        return {
            "success": True,
            "entity": result.entity.model_dump(mode='json'),
            "notification_sent": result.notification is not None
        }

    exc = result.exception
    if isinstance(exc, (EntityNotFoundError, RecordNotFoundError)):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, (ModerationBusyError, InvalidTransitionError, WriteConflictError)):
        code = status.HTTP_409_CONFLICT
    elif isinstance(exc, DatabaseError):
        code = status.HTTP_502_BAD_GATEWAY
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    raise HTTPException(status_code=code, detail=result.error)
