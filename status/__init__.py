"""Display labels derived from raw record fields.

Everything here is pure: the same record always yields the same label.
"""

from typing import Optional, Union

from models import (
    Identity,
    Profile,
    Listing,
    IdentityType,
    VerificationStatus,
    ListingCondition,
    ProductState
)

ACTIVE = 'Active'
CONFIRMED = 'Confirmed'
PENDING = 'Pending'
VERIFIED = 'Verified'
REJECTED = 'Rejected'
NOT_SUBMITTED = 'Not submitted'
APPROVED = 'Approved'
UNKNOWN = 'Unknown'

VERIFICATION_LABELS = {
    VerificationStatus.PENDING_REVIEW: PENDING,
    VerificationStatus.VERIFIED: VERIFIED,
    VerificationStatus.REJECTED: REJECTED,
    VerificationStatus.NOT_SUBMITTED: NOT_SUBMITTED
}

PRODUCT_STATE_LABELS = {
    ProductState.PENDING: PENDING,
    ProductState.ACTIVE: APPROVED,
    ProductState.REJECTED: REJECTED
}

CONDITION_LABELS = {
    ListingCondition.NEW: 'New',
    ListingCondition.LIKE_NEW: 'Like new',
    ListingCondition.GOOD: 'Good',
    ListingCondition.FAIR: 'Fair'
}

IDENTITY_TYPE_LABELS = {
    IdentityType.VOTER_CARD: 'Voter card',
    IdentityType.PASSPORT: 'Passport',
    IdentityType.DRIVING_LICENSE: 'Driving license'
}

def identity_status(identity: Identity) -> str:
    """Label for an identity with no seller profile."""
    if identity.last_sign_in_at:
        return ACTIVE
    if identity.email_confirmed:
        return CONFIRMED
    return PENDING

def profile_status(profile: Profile) -> str:
    """Label for a seller profile's verification state."""
    return VERIFICATION_LABELS.get(profile.verification_status, NOT_SUBMITTED)

def account_status(identity: Identity, profile: Optional[Profile] = None) -> str:
    """Label for an account.

    A profile, when present, always decides the label: a confirmed identity
    that is also a pending seller reports the seller status.
    """
    if profile is not None:
        return profile_status(profile)
    return identity_status(identity)

def listing_status(listing: Listing) -> str:
    """Label for a listing's moderation state."""
    return PRODUCT_STATE_LABELS.get(listing.product_state, UNKNOWN)

def condition_label(condition: Optional[Union[ListingCondition, str]]) -> str:
    """Display label for a listing condition, the raw value if unrecognised."""
    if condition in CONDITION_LABELS:
        return CONDITION_LABELS[condition]
    if condition is None or condition == ListingCondition.UNSPECIFIED:
        return 'Not specified'
    return str(condition)

def identity_type_label(identity_type: Optional[Union[IdentityType, str]]) -> str:
    """Display label for the identity document type of a profile."""
    return IDENTITY_TYPE_LABELS.get(identity_type, 'Not provided')

__all__ = [
    'ACTIVE',
    'CONFIRMED',
    'PENDING',
    'VERIFIED',
    'REJECTED',
    'NOT_SUBMITTED',
    'APPROVED',
    'UNKNOWN',
    'identity_status',
    'profile_status',
    'account_status',
    'listing_status',
    'condition_label',
    'identity_type_label'
]
