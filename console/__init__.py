"""Console module wiring the store, account source, state and moderation engine
for one operator surface."""

import asyncio
import logging
from typing import List, Optional

from accounts import AccountSource, AccountsSnapshot
from database import RemoteStore, PostgresStore
from models import Listing, parse_records
from moderation import ModerationEngine, DEFAULT_ACTION_URL
from notifications import NotificationEmitter
from reconciliation import ConsoleState, DashboardSummary, dashboard_summary

logger = logging.getLogger(__name__)

class AdminConsole:
    """Operator-facing facade over the moderation workflow."""

    def __init__(
        self,
        store: RemoteStore,
        action_url: str = DEFAULT_ACTION_URL,
        recent_accounts_limit: int = 10
    ):
        self.store = store
        self.state = ConsoleState()
        self.source = AccountSource(store)
        self.emitter = NotificationEmitter(store)
        self.engine = ModerationEngine(store, self.state, self.emitter, action_url)
        self.recent_accounts_limit = recent_accounts_limit

    async def fetch_listings(self, diagnostics: List[str]) -> List[Listing]:
        """Listings newest first. An empty list on failure, with the error logged."""
        try:
            rows = await self.store.query('listings', order_by='created_at', descending=True)
        except Exception as e:
            message = f"Error fetching listings: {e}"
            logger.error(message)
            diagnostics.append(message)
            return []
        return parse_records(Listing, rows)

    async def refresh(self) -> AccountsSnapshot:
        """Refetch everything and rebuild the console state."""
        listing_diagnostics: List[str] = []
        snapshot, listings = await asyncio.gather(
            self.source.fetch_accounts(),
            self.fetch_listings(listing_diagnostics)
        )
        snapshot.diagnostics.extend(listing_diagnostics)
        self.state.load(snapshot, listings)
        return snapshot

    def dashboard(self) -> DashboardSummary:
        return dashboard_summary(self.state, self.recent_accounts_limit)

_console: Optional[AdminConsole] = None

def init_console(store: Optional[RemoteStore] = None) -> AdminConsole:
    """Create the global console, reading its knobs from settings."""
    global _console
    from config import get_settings
    settings = get_settings()
    _console = AdminConsole(
        store or PostgresStore(identities_schema=settings['identities_schema']),
        action_url=settings['product_action_url'],
        recent_accounts_limit=settings['recent_accounts_limit']
    )
    return _console

def get_console() -> AdminConsole:
    """Global console instance.

    Raises:
        RuntimeError: If init_console hasn't been called
    """
    if _console is None:
        raise RuntimeError("Console not initialized")
    return _console

__all__ = ['AdminConsole', 'init_console', 'get_console']
