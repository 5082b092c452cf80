"""Tests for record validation at the store boundary."""

import uuid
from decimal import Decimal

import pytest
from pydantic import ValidationError

from fakes import identity_row, profile_row, listing_row
from models import (
    Identity,
    IdentityType,
    Listing,
    ListingCondition,
    Profile,
    parse_records
)

def test_uuid_ids_become_strings():
    seller = uuid.uuid4()
    listing = Listing.model_validate(listing_row(uuid.uuid4(), seller, 'Chaise'))

    assert isinstance(listing.id, str)
    assert listing.seller_id == str(seller)
    assert listing.price == Decimal('25000')

def test_unknown_enum_values_are_absorbed():
    profile = Profile.model_validate(profile_row('U1', 'escalated', identity_type='student_card'))
    listing = Listing.model_validate(listing_row('L1', 'U1', 'Chaise', 'archived', condition='mint'))

    assert profile.verification_status is None
    assert profile.identity_type == IdentityType.NONE
    assert listing.product_state is None
    assert listing.condition == ListingCondition.UNSPECIFIED

def test_missing_email_is_empty_string():
    identity = Identity.model_validate(identity_row('U1', None))
    assert identity.email == ''

def test_negative_price_rejected():
    with pytest.raises(ValidationError):
        Listing.model_validate(listing_row('L1', 'U1', 'Chaise', price='-1'))

def test_parse_records_drops_malformed_rows():
    rows = [
        listing_row('L1', 'U1', 'Chaise'),
        listing_row('L2', None, 'No seller'),
        listing_row('L3', 'U1', 'Negative views', views=-4),
        listing_row('L4', 'U2', 'Table', images=None)
    ]

    listings = parse_records(Listing, rows)

    assert [l.id for l in listings] == ['L1', 'L4']
    assert listings[1].images == []

def test_records_are_immutable():
    listing = Listing.model_validate(listing_row('L1', 'U1', 'Chaise'))
    with pytest.raises(ValidationError):
        listing.name = 'Fauteuil'
