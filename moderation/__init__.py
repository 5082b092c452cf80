"""Moderation module: approve or reject pending listings and seller profiles.

Each operation follows the same sequence:

1. Check the entity exists in the console state and is still moderatable
   (no remote call is made otherwise).
2. Write the new state to the store with a conditional update, so a decision
   already taken by another operator is not overwritten.
3. Only after the write is confirmed, patch the in-memory record.
4. For listings, notify the seller. A failed notification never turns a
   successful transition into a failure.

Operations never raise for expected failures. They return a ModerationResult,
and a single busy flag keeps one surface to one moderation call at a time.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, Union

from database import RemoteStore, DatabaseError
from models import (
    Listing,
    Notification,
    Profile,
    ProductState,
    VerificationStatus,
    SELLER_VERIFIED_ROLE
)
from notifications import NotificationEmitter, PRODUCT_APPROVED, PRODUCT_REJECTED
from reconciliation import ConsoleState

logger = logging.getLogger(__name__)

DEFAULT_ACTION_URL = '/(tabs)/profile?tab=myItems'

# States a transition may start from
LISTING_SOURCE_STATES = (ProductState.PENDING,)
PROFILE_SOURCE_STATES = (None, VerificationStatus.NOT_SUBMITTED, VerificationStatus.PENDING_REVIEW)

class ModerationError(Exception):
    """Base exception for moderation errors."""
    pass

class EntityNotFoundError(ModerationError):
    """Raised when the entity is not in the console state."""
    pass

class InvalidTransitionError(ModerationError):
    """Raised when the entity is not in a state the transition starts from."""
    pass

class ModerationBusyError(ModerationError):
    """Raised when another moderation call is still in flight."""
    pass

@dataclass
class ModerationResult:
    """Outcome of one moderation call."""
    success: bool
    entity: Optional[Union[Listing, Profile]] = None
    error: Optional[str] = None
    exception: Optional[Exception] = None
    notification: Optional[Notification] = None

    @classmethod
    def failure(cls, exc: Exception) -> 'ModerationResult':
        return cls(success=False, error=str(exc), exception=exc)

def apply_listing_state(listing: Listing, state: ProductState, now: datetime) -> Listing:
    """New version of a listing in `state`, every other field unchanged."""
    return listing.model_copy(update={'product_state': state, 'updated_at': now})

def apply_verification(
    profile: Profile,
    verification_status: VerificationStatus,
    now: datetime,
    user_role: Optional[str] = None
) -> Profile:
    """New version of a profile with its verification decided."""
    update = {'verification_status': verification_status, 'updated_at': now}
    if user_role is not None:
        update['user_role'] = user_role
    return profile.model_copy(update=update)

def _state_values(states) -> list:
    return [s.value if s is not None else None for s in states]

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class ModerationEngine:
    """Runs moderation transitions for one operator surface."""

    def __init__(
        self,
        store: RemoteStore,
        state: ConsoleState,
        emitter: Optional[NotificationEmitter] = None,
        action_url: str = DEFAULT_ACTION_URL,
        clock: Callable[[], datetime] = _utcnow
    ):
        """Initialize the engine.

        Args:
            store: Remote store receiving the writes
            state: Console state patched after confirmed writes
            emitter: Optional notification emitter, defaults to one over `store`
            action_url: Deep link placed on listing notifications
            clock: Source of `updated_at` timestamps
        """
        self.store = store
        self.state = state
        self.emitter = emitter or NotificationEmitter(store)
        self.action_url = action_url
        self.clock = clock
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    async def approve_listing(self, listing_id: str) -> ModerationResult:
        return await self._run(
            f"approve listing {listing_id}",
            lambda: self._moderate_listing(listing_id, ProductState.ACTIVE, PRODUCT_APPROVED)
        )

    async def reject_listing(self, listing_id: str) -> ModerationResult:
        return await self._run(
            f"reject listing {listing_id}",
            lambda: self._moderate_listing(listing_id, ProductState.REJECTED, PRODUCT_REJECTED)
        )

    async def approve_seller(self, profile_id: str) -> ModerationResult:
        return await self._run(
            f"approve seller {profile_id}",
            lambda: self._moderate_seller(profile_id, VerificationStatus.VERIFIED, SELLER_VERIFIED_ROLE)
        )

    async def reject_seller(self, profile_id: str) -> ModerationResult:
        return await self._run(
            f"reject seller {profile_id}",
            lambda: self._moderate_seller(profile_id, VerificationStatus.REJECTED)
        )

    async def _run(
        self,
        action: str,
        operation: Callable[[], Awaitable[ModerationResult]]
    ) -> ModerationResult:
        """Single-flight wrapper turning expected failures into results."""
        if self._busy:
            logger.warning(f"Refused to {action}: another moderation action is in progress")
            return ModerationResult.failure(
                ModerationBusyError("Another moderation action is in progress")
            )

        self._busy = True
        try:
            logger.info(f"Starting: {action}")
            return await operation()
        except ModerationError as e:
            logger.warning(f"Cannot {action}: {e}")
            return ModerationResult.failure(e)
        except DatabaseError as e:
            logger.error(f"Store rejected {action}: {e}")
            return ModerationResult.failure(e)
        finally:
            self._busy = False

    async def _moderate_listing(
        self,
        listing_id: str,
        target: ProductState,
        translation_key: str
    ) -> ModerationResult:
        listing = self.state.listing(listing_id)
        if listing is None:
            raise EntityNotFoundError(f"Listing {listing_id} not found")
        if listing.product_state not in LISTING_SOURCE_STATES:
            current = listing.product_state.value if listing.product_state else 'unknown'
            raise InvalidTransitionError(
                f"Listing {listing_id} is {current}, only pending listings can be moderated"
            )

        now = self.clock()
        await self.store.update(
            'listings',
            listing_id,
            {'product_state': target.value, 'updated_at': now},
            expected={'product_state': _state_values(LISTING_SOURCE_STATES)}
        )

        # A refresh may have reloaded the listing while the write was in flight
        current = self.state.listing(listing_id)
        if current is not None:
            listing = current
        updated = apply_listing_state(listing, target, now)
        if current is not None:
            self.state.replace_listing(updated)
        logger.info(f"Listing {listing_id} is now {target.value}")

        notification = await self.emitter.emit(
            listing.seller_id,
            translation_key,
            'product',
            self.action_url,
            {'productName': listing.name}
        )
        if notification is None:
            logger.warning(f"Listing {listing_id} moderated but its seller was not notified")

        return ModerationResult(success=True, entity=updated, notification=notification)

    async def _moderate_seller(
        self,
        profile_id: str,
        target: VerificationStatus,
        user_role: Optional[str] = None
    ) -> ModerationResult:
        profile = self.state.profile(profile_id)
        if profile is None:
            raise EntityNotFoundError(f"Seller profile {profile_id} not found")
        if profile.verification_status not in PROFILE_SOURCE_STATES:
            raise InvalidTransitionError(
                f"Seller {profile_id} is already {profile.verification_status.value}"
            )

        now = self.clock()
        patch = {'verification_status': target.value, 'updated_at': now}
        if user_role is not None:
            patch['user_role'] = user_role

        # Status and role change together in one update
        await self.store.update(
            'profiles',
            profile_id,
            patch,
            expected={'verification_status': _state_values(PROFILE_SOURCE_STATES)}
        )

        current = self.state.profile(profile_id)
        if current is not None:
            profile = current
        updated = apply_verification(profile, target, now, user_role)
        if current is not None:
            self.state.replace_profile(updated)
        logger.info(f"Seller {profile_id} is now {target.value}")

        return ModerationResult(success=True, entity=updated)

__all__ = [
    'ModerationEngine',
    'ModerationResult',
    'ModerationError',
    'EntityNotFoundError',
    'InvalidTransitionError',
    'ModerationBusyError',
    'apply_listing_state',
    'apply_verification',
    'DEFAULT_ACTION_URL'
]
