"""In-memory RemoteStore, a stand-in asyncpg pool and row builders for tests."""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from database import RemoteStore, RecordNotFoundError, WriteConflictError

BASE_TIME = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

def at(days: int) -> datetime:
    """Timestamp `days` after BASE_TIME."""
    return BASE_TIME + timedelta(days=days)

def identity_row(id, email, full_name=None, email_confirmed=True, created_at=None, last_sign_in_at=None):
    return {
        'id': id,
        'email': email,
        'full_name': full_name,
        'email_confirmed': email_confirmed,
        'created_at': created_at or BASE_TIME,
        'last_sign_in_at': last_sign_in_at
    }

def profile_row(id, verification_status='pending_review', phone_number=None, city=None,
                address=None, created_at=None, **extra):
    row = {
        'id': id,
        'phone_number': phone_number,
        'city': city,
        'address': address,
        'identity_type': 'passport',
        'identity_number': 'P-0001',
        'verification_status': verification_status,
        'user_role': 'seller_pending',
        'created_at': created_at or BASE_TIME,
        'updated_at': created_at or BASE_TIME
    }
    row.update(extra)
    return row

def listing_row(id, seller_id, name, product_state='pending', category='Furniture',
                location=None, created_at=None, **extra):
    row = {
        'id': id,
        'seller_id': seller_id,
        'name': name,
        'category': category,
        'sub_category': None,
        'price': '25000',
        'location': location,
        'condition': 'good',
        'thumbnail': None,
        'images': [f'https://cdn.example.com/{id}/1.jpg'],
        'views': 3,
        'product_state': product_state,
        'created_at': created_at or BASE_TIME,
        'updated_at': created_at or BASE_TIME
    }
    row.update(extra)
    return row

class InMemoryStore(RemoteStore):
    """RemoteStore over plain dicts, with failure injection.

    Attributes:
        identities_error: Raised by list_identities when set
        query_errors: collection -> exception raised by query
        update_errors: collection -> exception raised by update
        insert_errors: collection -> exception raised by insert
        gate: When set, update waits for it before writing
        updates: Every update call as (collection, id, patch, expected)
    """

    def __init__(self, identities=None, profiles=None, listings=None, notifications=None):
        self.collections: Dict[str, List[Dict[str, Any]]] = {
            'identities': [dict(r) for r in identities or []],
            'profiles': [dict(r) for r in profiles or []],
            'listings': [dict(r) for r in listings or []],
            'notifications': [dict(r) for r in notifications or []]
        }
        self.identities_error: Optional[Exception] = None
        self.query_errors: Dict[str, Exception] = {}
        self.update_errors: Dict[str, Exception] = {}
        self.insert_errors: Dict[str, Exception] = {}
        self.gate: Optional[asyncio.Event] = None
        self.updates: List[tuple] = []

    def row(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        for row in self.collections[collection]:
            if row['id'] == record_id:
                return row
        return None

    async def list_identities(self):
        if self.identities_error:
            raise self.identities_error
        return [dict(r) for r in self.collections['identities']]

    async def query(self, collection, filters=None, order_by=None, descending=True, limit=None):
        if collection in self.query_errors:
            raise self.query_errors[collection]
        rows = [
            dict(r) for r in self.collections[collection]
            if all(r.get(k) == v for k, v in (filters or {}).items())
        ]
        if order_by:
            rows.sort(key=lambda r: r[order_by], reverse=descending)
        return rows[:limit] if limit else rows

    async def count(self, collection, filters=None):
        return len(await self.query(collection, filters))

    async def update(self, collection, record_id, patch, expected=None):
        self.updates.append((collection, record_id, dict(patch), expected))
        if self.gate is not None:
            await self.gate.wait()
        if collection in self.update_errors:
            raise self.update_errors[collection]

        row = self.row(collection, record_id)
        if row is None:
            raise RecordNotFoundError(f"{collection} {record_id} not found")
        for column, allowed in (expected or {}).items():
            if row.get(column) not in allowed:
                raise WriteConflictError(collection, record_id, dict(expected))
        row.update(patch)
        return dict(row)

    async def insert(self, collection, record):
        if collection in self.insert_errors:
            raise self.insert_errors[collection]
        row = dict(record)
        row.setdefault('id', uuid.uuid4().hex)
        self.collections[collection].append(row)
        return dict(row)

class FakeConnection:
    """Connection returning canned results, or raising `error`."""

    def __init__(self, fetch=None, fetchrow=None, fetchval=None, error=None):
        self._fetch = fetch or []
        self._fetchrow = fetchrow
        self._fetchval = fetchval
        self.error = error

    async def fetch(self, sql, *params):
        if self.error is not None:
            raise self.error
        return self._fetch

    async def fetchrow(self, sql, *params):
        if self.error is not None:
            raise self.error
        return self._fetchrow

    async def fetchval(self, sql, *params):
        if self.error is not None:
            raise self.error
        return self._fetchval

class FakePool:
    """Pool handing out a single FakeConnection."""

    def __init__(self, conn):
        self.conn = conn

    def acquire(self):
        return self

    async def __aenter__(self):
        return self.conn

    async def __aexit__(self, *exc):
        return False
