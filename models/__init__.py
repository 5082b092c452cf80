"""Record types for the moderation console.

Rows coming back from the remote store are plain dicts. They are validated into
these models at the source boundary so the rest of the console only ever sees
fully shaped records.
"""

import logging
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

class IdentityType(str, Enum):
    VOTER_CARD = 'voter_card'
    PASSPORT = 'passport'
    DRIVING_LICENSE = 'driving_license'
    NONE = 'none'

class VerificationStatus(str, Enum):
    NOT_SUBMITTED = 'not_submitted'
    PENDING_REVIEW = 'pending_review'
    VERIFIED = 'verified'
    REJECTED = 'rejected'

class ListingCondition(str, Enum):
    NEW = 'new'
    LIKE_NEW = 'like-new'
    GOOD = 'good'
    FAIR = 'fair'
    UNSPECIFIED = 'unspecified'

class ProductState(str, Enum):
    PENDING = 'pending'
    ACTIVE = 'active'
    REJECTED = 'rejected'

class NotificationStatus(str, Enum):
    UNREAD = 'unread'
    READ = 'read'

class AccountType(str, Enum):
    USER = 'user'
    SELLER = 'seller'

# Role written alongside a seller verification
SELLER_VERIFIED_ROLE = 'seller_verified'

def _enum_or_none(enum_cls, value):
    """Coerce unknown enum values to None instead of rejecting the whole row."""
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        logger.warning(f"Unknown {enum_cls.__name__} value {value!r}, treating as absent")
        return None

class Record(BaseModel):
    """Base class for store-backed records."""
    model_config = ConfigDict(extra='ignore', frozen=True)

class Identity(Record):
    """Login-capable account owned by the external auth provider."""
    id: str
    email: str = ''
    full_name: Optional[str] = None
    email_confirmed: bool = False
    created_at: datetime
    last_sign_in_at: Optional[datetime] = None

    @field_validator('id', mode='before')
    @classmethod
    def _stringify_id(cls, value):
        return str(value) if value is not None else value

    @field_validator('email', mode='before')
    @classmethod
    def _email(cls, value):
        # Phone-only sign-ups have no email
        return value or ''

class Profile(Record):
    """Seller-candidate profile keyed to an Identity."""
    id: str
    phone_number: Optional[str] = None
    city: Optional[str] = None
    address: Optional[str] = None
    birth_date: Optional[str] = None
    identity_type: IdentityType = IdentityType.NONE
    identity_number: Optional[str] = None
    verification_status: Optional[VerificationStatus] = None
    user_role: Optional[str] = None
    profile_picture_url: Optional[str] = None
    identity_document_url: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @field_validator('id', 'birth_date', mode='before')
    @classmethod
    def _stringify(cls, value):
        return str(value) if value is not None else value

    @field_validator('identity_type', mode='before')
    @classmethod
    def _identity_type(cls, value):
        return _enum_or_none(IdentityType, value) or IdentityType.NONE

    @field_validator('verification_status', mode='before')
    @classmethod
    def _verification_status(cls, value):
        return _enum_or_none(VerificationStatus, value)

class Listing(Record):
    """Product entry awaiting or having received moderation."""
    id: str
    seller_id: str
    name: str
    category: str
    sub_category: Optional[str] = None
    price: Decimal = Field(default=Decimal('0'), ge=0)
    location: Optional[str] = None
    condition: ListingCondition = ListingCondition.UNSPECIFIED
    thumbnail: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    views: int = Field(default=0, ge=0)
    product_state: Optional[ProductState] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @field_validator('id', 'seller_id', mode='before')
    @classmethod
    def _stringify_ids(cls, value):
        return str(value) if value is not None else value

    @field_validator('condition', mode='before')
    @classmethod
    def _condition(cls, value):
        return _enum_or_none(ListingCondition, value) or ListingCondition.UNSPECIFIED

    @field_validator('product_state', mode='before')
    @classmethod
    def _product_state(cls, value):
        return _enum_or_none(ProductState, value)

    @field_validator('images', mode='before')
    @classmethod
    def _images(cls, value):
        return [] if value is None else value

class Account(Record):
    """Identity merged with its optional Profile. Derived, never persisted."""
    id: str
    email: str
    full_name: Optional[str] = None
    email_confirmed: bool = False
    created_at: datetime
    last_sign_in_at: Optional[datetime] = None
    type: AccountType
    status: str
    profile: Optional[Profile] = None
    synthetic: bool = False

class Notification(Record):
    """Moderation event addressed to a marketplace user."""
    id: Optional[str] = None
    user_id: str
    translation_key: str
    type: str
    status: NotificationStatus = NotificationStatus.UNREAD
    action_url: Optional[str] = None
    translation_params: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None

    @field_validator('id', 'user_id', mode='before')
    @classmethod
    def _stringify_ids(cls, value):
        return str(value) if value is not None else value

RecordT = TypeVar('RecordT', bound=Record)

def parse_records(model: Type[RecordT], rows: Iterable[Dict[str, Any]]) -> List[RecordT]:
    """Validate raw store rows, dropping (and logging) rows that do not fit the model."""
    records = []
    for row in rows:
        try:
            records.append(model.model_validate(row))
        except ValidationError as e:
            logger.warning(
                f"Skipping malformed {model.__name__} row {row.get('id')!r}: "
                f"{e.error_count()} validation error(s)"
            )
    return records

__all__ = [
    'IdentityType',
    'VerificationStatus',
    'ListingCondition',
    'ProductState',
    'NotificationStatus',
    'AccountType',
    'SELLER_VERIFIED_ROLE',
    'Record',
    'Identity',
    'Profile',
    'Listing',
    'Account',
    'Notification',
    'parse_records'
]
