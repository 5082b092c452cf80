"""Accounts module: builds the console's account list from the remote store.

Identities come from the auth provider's privileged listing and profiles from the
profiles collection. When the identity listing is refused the source degrades to
profiles-only mode and synthesizes one seller account per profile.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from database import RemoteStore, PermissionDeniedError
from models import (
    Account,
    AccountType,
    Identity,
    Profile,
    parse_records
)
from status import account_status, profile_status

logger = logging.getLogger(__name__)

SYNTHETIC_EMAIL_DOMAIN = 'phone.invalid'

@dataclass
class AccountsSnapshot:
    """Result of one account fetch.

    `diagnostics` is the only way to tell "no users" from "fetch failed" when
    `accounts` is empty.
    """
    accounts: List[Account] = field(default_factory=list)
    identities: List[Identity] = field(default_factory=list)
    profiles: List[Profile] = field(default_factory=list)
    fallback: bool = False
    diagnostics: List[str] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return not self.accounts and bool(self.diagnostics)

def merge_accounts(identities: List[Identity], profiles: List[Profile]) -> List[Account]:
    """Join identities with their optional profile, newest first."""
    profiles_by_id: Dict[str, Profile] = {p.id: p for p in profiles}
    accounts = []
    for identity in identities:
        profile = profiles_by_id.get(identity.id)
        accounts.append(Account(
            id=identity.id,
            email=identity.email,
            full_name=identity.full_name,
            email_confirmed=identity.email_confirmed,
            created_at=identity.created_at,
            last_sign_in_at=identity.last_sign_in_at,
            type=AccountType.SELLER if profile else AccountType.USER,
            status=account_status(identity, profile),
            profile=profile
        ))
    accounts.sort(key=lambda a: a.created_at, reverse=True)
    return accounts

def synthesize_account(profile: Profile) -> Account:
    """Stand-in account for a profile whose identity cannot be read."""
    if profile.phone_number:
        digits = ''.join(ch for ch in profile.phone_number if ch.isdigit() or ch == '+')
        email = f"{digits}@{SYNTHETIC_EMAIL_DOMAIN}"
    else:
        email = f"{profile.id}@{SYNTHETIC_EMAIL_DOMAIN}"
    return Account(
        id=profile.id,
        email=email,
        full_name=f"Seller {profile.id[:8]}",
        email_confirmed=False,
        created_at=profile.created_at,
        type=AccountType.SELLER,
        status=profile_status(profile),
        profile=profile,
        synthetic=True
    )

class AccountSource:
    """Fetches identities and profiles and merges them into accounts."""

    def __init__(self, store: RemoteStore):
        self.store = store

    async def fetch_identities(self, diagnostics: List[str]) -> Optional[List[Identity]]:
        """List identities, or None when the listing is unavailable."""
        try:
            rows = await self.store.list_identities()
        except PermissionDeniedError as e:
            message = f"Identity listing refused, falling back to profiles: {e}"
            logger.warning(message)
            diagnostics.append(message)
            return None
        except Exception as e:
            message = f"Error listing identities: {e}"
            logger.error(message)
            diagnostics.append(message)
            return None
        return parse_records(Identity, rows)

    async def fetch_profiles(self, diagnostics: List[str]) -> Optional[List[Profile]]:
        """List profiles newest first, or None on failure."""
        try:
            rows = await self.store.query('profiles', order_by='created_at', descending=True)
        except Exception as e:
            message = f"Error listing profiles: {e}"
            logger.error(message)
            diagnostics.append(message)
            return None
        return parse_records(Profile, rows)

    async def fetch_accounts(self) -> AccountsSnapshot:
        """Fetch and merge accounts. Never raises.

        Returns:
            AccountsSnapshot with merged accounts, the raw records they were built
            from, whether profiles-only fallback was used and any diagnostics
        """
        diagnostics: List[str] = []
        identities, profiles = await asyncio.gather(
            self.fetch_identities(diagnostics),
            self.fetch_profiles(diagnostics)
        )

        if identities is not None:
            accounts = merge_accounts(identities, profiles or [])
            logger.info(
                f"Loaded {len(accounts)} accounts "
                f"({sum(1 for a in accounts if a.type == AccountType.SELLER)} sellers)"
            )
            return AccountsSnapshot(
                accounts=accounts,
                identities=identities,
                profiles=profiles or [],
                diagnostics=diagnostics
            )

        if profiles is not None:
            accounts = [synthesize_account(p) for p in profiles]
            accounts.sort(key=lambda a: a.created_at, reverse=True)
            logger.warning(f"Profiles-only mode: synthesized {len(accounts)} seller accounts")
            return AccountsSnapshot(
                accounts=accounts,
                profiles=profiles,
                fallback=True,
                diagnostics=diagnostics
            )

        logger.error("Both identity and profile fetches failed")
        return AccountsSnapshot(diagnostics=diagnostics)

__all__ = [
    'AccountSource',
    'AccountsSnapshot',
    'merge_accounts',
    'synthesize_account',
    'SYNTHETIC_EMAIL_DOMAIN'
]
