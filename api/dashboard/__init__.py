"""Dashboard endpoint."""

from fastapi import APIRouter, Depends

from auth import get_current_operator
from console import AdminConsole, get_console
from ..responses import account_payload

router = APIRouter(
    prefix="/dashboard",
    tags=["Dashboard"]
)

@router.get("")
async def get_dashboard(
    console: AdminConsole = Depends(get_console),
    operator: str = Depends(get_current_operator)
):
    """Headline counters and the most recently created accounts."""
    summary = console.dashboard()
    return {
        "total_accounts": summary.total_accounts,
        "basic_users": summary.basic_users,
        "sellers": summary.sellers,
        "pending_sellers": summary.pending_sellers,
        "pending_listings": summary.pending_listings,
        "recent_accounts": [account_payload(a) for a in summary.recent_accounts],
        "fallback": summary.fallback,
        "diagnostics": console.state.diagnostics
    }
