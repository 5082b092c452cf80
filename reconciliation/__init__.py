"""Reconciliation module: the console's in-memory view of accounts, sellers and listings.

`ConsoleState` owns the collections loaded by the last fetch together with id
indexes built once per load. It is mutated only by `load` (a full refetch) and
by the `replace_*` methods the moderation engine calls after a confirmed write.

Views filter by a free-text query and a tab. Tab counters are always computed
over the whole collection so searching never changes the badges.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, Iterable, List, Optional, Sequence, TypeVar

from accounts import AccountsSnapshot
from models import Account, AccountType, Identity, Listing, Profile, ProductState, VerificationStatus
from status import condition_label, listing_status, profile_status

logger = logging.getLogger(__name__)

ALL = 'all'
ACCOUNT_TABS = (ALL, 'users', 'sellers')
PROFILE_TABS = (ALL,) + tuple(s.value for s in VerificationStatus)
LISTING_TABS = (ALL,) + tuple(s.value for s in ProductState)

T = TypeVar('T')

class UnknownTabError(ValueError):
    """Raised when a view is asked for a tab it does not have."""
    pass

@dataclass
class SellerRow:
    """A profile joined with the account it belongs to."""
    profile: Profile
    account: Optional[Account]
    status: str

@dataclass
class ListingRow:
    """A listing joined with its seller's account."""
    listing: Listing
    seller: Optional[Account]
    status: str
    condition: str

@dataclass
class ViewResult(Generic[T]):
    rows: List[T]
    counts: Dict[str, int]
    query: str = ''
    tab: str = ALL

@dataclass
class DashboardSummary:
    total_accounts: int
    basic_users: int
    sellers: int
    pending_sellers: int
    pending_listings: int
    recent_accounts: List[Account] = field(default_factory=list)
    fallback: bool = False

def _contains(value: Optional[str], needle: str) -> bool:
    return bool(value) and needle in value.lower()

def _profile_fields_match(profile: Profile, needle: str) -> bool:
    return (_contains(profile.phone_number, needle)
            or _contains(profile.city, needle)
            or _contains(profile.address, needle))

def _account_fields_match(account: Account, needle: str) -> bool:
    return _contains(account.email, needle) or _contains(account.full_name, needle)

def account_matches(account: Account, query: str) -> bool:
    """Match email and name, plus the joined profile's fields for sellers."""
    needle = query.strip().lower()
    if not needle:
        return True
    if _account_fields_match(account, needle):
        return True
    return account.profile is not None and _profile_fields_match(account.profile, needle)

def profile_matches(profile: Profile, account: Optional[Account], query: str) -> bool:
    """Match profile fields and, when joined, the owning account's email and name."""
    needle = query.strip().lower()
    if not needle:
        return True
    if _profile_fields_match(profile, needle):
        return True
    return account is not None and _account_fields_match(account, needle)

def listing_matches(listing: Listing, query: str) -> bool:
    needle = query.strip().lower()
    if not needle:
        return True
    return (_contains(listing.name, needle)
            or _contains(listing.category, needle)
            or _contains(listing.location, needle)
            or _contains(listing.seller_id, needle))

def account_tab(account: Account) -> str:
    return 'sellers' if account.type == AccountType.SELLER else 'users'

def profile_tab(profile: Profile) -> str:
    if profile.verification_status is None:
        return VerificationStatus.NOT_SUBMITTED.value
    return profile.verification_status.value

def listing_tab(listing: Listing) -> Optional[str]:
    return listing.product_state.value if listing.product_state else None

def count_by_tab(items: Iterable[T], tab_of: Callable[[T], Optional[str]], tabs: Sequence[str]) -> Dict[str, int]:
    """Count items per tab; 'all' counts everything."""
    counts = {tab: 0 for tab in tabs}
    for item in items:
        counts[ALL] += 1
        tab = tab_of(item)
        if tab in counts:
            counts[tab] += 1
    return counts

def _check_tab(tab: str, tabs: Sequence[str]) -> None:
    if tab not in tabs:
        raise UnknownTabError(f"Unknown tab {tab!r}, expected one of {', '.join(tabs)}")

class ConsoleState:
    """Accounts, profiles and listings held by one operator surface."""

    def __init__(self):
        self.accounts: List[Account] = []
        self.profiles: List[Profile] = []
        self.listings: List[Listing] = []
        self.identities: List[Identity] = []
        self.fallback = False
        self.diagnostics: List[str] = []
        self._accounts_by_id: Dict[str, int] = {}
        self._profiles_by_id: Dict[str, int] = {}
        self._listings_by_id: Dict[str, int] = {}

    def load(self, snapshot: AccountsSnapshot, listings: List[Listing]) -> None:
        """Replace every collection with a fresh fetch and rebuild the indexes."""
        self.accounts = sorted(snapshot.accounts, key=lambda a: a.created_at, reverse=True)
        self.profiles = sorted(snapshot.profiles, key=lambda p: p.created_at, reverse=True)
        self.listings = list(listings)
        self.identities = list(snapshot.identities)
        self.fallback = snapshot.fallback
        self.diagnostics = list(snapshot.diagnostics)
        self._reindex()
        logger.info(
            f"Console state loaded: {len(self.accounts)} accounts, "
            f"{len(self.profiles)} profiles, {len(self.listings)} listings"
        )

    def _reindex(self) -> None:
        self._accounts_by_id = {a.id: i for i, a in enumerate(self.accounts)}
        self._profiles_by_id = {p.id: i for i, p in enumerate(self.profiles)}
        self._listings_by_id = {l.id: i for i, l in enumerate(self.listings)}

    def account(self, account_id: str) -> Optional[Account]:
        index = self._accounts_by_id.get(account_id)
        return self.accounts[index] if index is not None else None

    def profile(self, profile_id: str) -> Optional[Profile]:
        index = self._profiles_by_id.get(profile_id)
        return self.profiles[index] if index is not None else None

    def listing(self, listing_id: str) -> Optional[Listing]:
        index = self._listings_by_id.get(listing_id)
        return self.listings[index] if index is not None else None

    def replace_listing(self, listing: Listing) -> None:
        """Swap in a new version of a listing, keeping its position."""
        index = self._listings_by_id.get(listing.id)
        if index is None:
            raise KeyError(listing.id)
        self.listings[index] = listing

    def replace_profile(self, profile: Profile) -> None:
        """Swap in a new version of a profile and refresh the owning account."""
        index = self._profiles_by_id.get(profile.id)
        if index is None:
            raise KeyError(profile.id)
        self.profiles[index] = profile

        account_index = self._accounts_by_id.get(profile.id)
        if account_index is not None:
            self.accounts[account_index] = self.accounts[account_index].model_copy(
                update={'profile': profile, 'status': profile_status(profile)}
            )

    def seller_row(self, profile: Profile) -> SellerRow:
        return SellerRow(profile=profile, account=self.account(profile.id), status=profile_status(profile))

    def listing_row(self, listing: Listing) -> ListingRow:
        return ListingRow(
            listing=listing,
            seller=self.account(listing.seller_id),
            status=listing_status(listing),
            condition=condition_label(listing.condition)
        )

    def listing_detail(self, listing_id: str) -> Optional[ListingRow]:
        listing = self.listing(listing_id)
        return self.listing_row(listing) if listing else None

    def profile_detail(self, profile_id: str) -> Optional[SellerRow]:
        profile = self.profile(profile_id)
        return self.seller_row(profile) if profile else None

    def accounts_view(self, query: str = '', tab: str = ALL) -> ViewResult[Account]:
        _check_tab(tab, ACCOUNT_TABS)
        rows = [
            a for a in self.accounts
            if (tab == ALL or account_tab(a) == tab) and account_matches(a, query)
        ]
        return ViewResult(
            rows=rows,
            counts=count_by_tab(self.accounts, account_tab, ACCOUNT_TABS),
            query=query,
            tab=tab
        )

    def sellers_view(self, query: str = '', tab: str = ALL) -> ViewResult[SellerRow]:
        _check_tab(tab, PROFILE_TABS)
        rows = []
        for profile in self.profiles:
            if tab != ALL and profile_tab(profile) != tab:
                continue
            row = self.seller_row(profile)
            if profile_matches(profile, row.account, query):
                rows.append(row)
        return ViewResult(
            rows=rows,
            counts=count_by_tab(self.profiles, profile_tab, PROFILE_TABS),
            query=query,
            tab=tab
        )

    def listings_view(self, query: str = '', tab: str = ALL) -> ViewResult[ListingRow]:
        _check_tab(tab, LISTING_TABS)
        rows = [
            self.listing_row(l) for l in self.listings
            if (tab == ALL or listing_tab(l) == tab) and listing_matches(l, query)
        ]
        return ViewResult(
            rows=rows,
            counts=count_by_tab(self.listings, listing_tab, LISTING_TABS),
            query=query,
            tab=tab
        )

def dashboard_summary(state: ConsoleState, limit: int = 10) -> DashboardSummary:
    """Headline counters and the most recently created accounts."""
    account_counts = count_by_tab(state.accounts, account_tab, ACCOUNT_TABS)
    profile_counts = count_by_tab(state.profiles, profile_tab, PROFILE_TABS)
    listing_counts = count_by_tab(state.listings, listing_tab, LISTING_TABS)
    return DashboardSummary(
        total_accounts=account_counts[ALL],
        basic_users=account_counts['users'],
        sellers=account_counts['sellers'],
        pending_sellers=profile_counts[VerificationStatus.PENDING_REVIEW.value],
        pending_listings=listing_counts[ProductState.PENDING.value],
        recent_accounts=state.accounts[:limit],
        fallback=state.fallback
    )

__all__ = [
    'ALL',
    'ACCOUNT_TABS',
    'PROFILE_TABS',
    'LISTING_TABS',
    'UnknownTabError',
    'SellerRow',
    'ListingRow',
    'ViewResult',
    'DashboardSummary',
    'ConsoleState',
    'account_matches',
    'profile_matches',
    'listing_matches',
    'count_by_tab',
    'dashboard_summary'
]
