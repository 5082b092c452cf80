"""Shared fixtures: a small marketplace held in an in-memory store."""

import pytest
import pytest_asyncio

from accounts import AccountSource
from fakes import InMemoryStore, at, identity_row, profile_row, listing_row
from models import Listing, parse_records
from moderation import ModerationEngine
from reconciliation import ConsoleState

IDENTITIES = [
    identity_row('U1', 'marie.dubois@example.com', 'Marie Dubois', email_confirmed=True, created_at=at(1)),
    identity_row('U2', 'jean.mbala@example.com', 'Jean Mbala', email_confirmed=True,
                 created_at=at(2), last_sign_in_at=at(3)),
    identity_row('U3', 'paul@example.com', None, email_confirmed=False, created_at=at(3)),
    identity_row('U4', 'luc.dubois@example.com', 'Luc Dubois', email_confirmed=True, created_at=at(4)),
    identity_row('U5', 'ana@example.com', 'Ana Kabila', email_confirmed=True,
                 created_at=at(5), last_sign_in_at=at(6))
]

PROFILES = [
    profile_row('U1', 'pending_review', phone_number='+243 810 000 001', city='Kinshasa',
                address='12 avenue du Commerce', created_at=at(1)),
    profile_row('U5', 'verified', phone_number='+243 820 000 005', city='Lubumbashi',
                address='4 rue Kasai', created_at=at(5), user_role='seller_verified')
]

LISTINGS = [
    listing_row('L4', 'U1', 'Canapé', 'pending', category='Furniture', location='Kinshasa', created_at=at(10)),
    listing_row('L3', 'U5', 'Lampe', 'rejected', category='Lighting', location='Lubumbashi', created_at=at(9)),
    listing_row('L2', 'U5', 'Table en bois', 'active', category='Furniture', location='Lubumbashi', created_at=at(8)),
    listing_row('L1', 'U1', 'Chaise', 'pending', category='Furniture', location='Kinshasa', created_at=at(7))
]

@pytest.fixture
def store():
    """Create and return an in-memory store with the sample marketplace."""
    return InMemoryStore(IDENTITIES, PROFILES, LISTINGS)

@pytest_asyncio.fixture
async def state(store):
    """Console state loaded from the sample store."""
    snapshot = await AccountSource(store).fetch_accounts()
    listings = parse_records(Listing, await store.query('listings', order_by='created_at'))
    console_state = ConsoleState()
    console_state.load(snapshot, listings)
    return console_state

@pytest_asyncio.fixture
async def engine(store, state):
    """Create and return a moderation engine over the sample store and state."""
    return ModerationEngine(store, state, clock=lambda: at(30))
