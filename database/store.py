"""Remote store client.

The console reads and writes four logical collections:

- identities: the auth provider's users (admin-only listing)
- profiles: seller-candidate profiles
- listings: marketplace products
- notifications: per-user notification inbox

`RemoteStore` is the interface the rest of the console depends on. `PostgresStore`
implements it over the asyncpg pool from this package. SQL text is produced by
the `build_*` helpers so it can be checked without a live database.
"""

import asyncio
import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

import asyncpg

from .exceptions import (
    DatabaseError,
    PermissionDeniedError,
    RemoteWriteError,
    WriteConflictError,
    RecordNotFoundError
)

logger = logging.getLogger(__name__)

IDENTIFIER_RE = re.compile(r'^[a-z_][a-z0-9_]*$')

# Lost connections and statements cut off by command_timeout
CONNECTION_ERRORS = (asyncpg.InterfaceError, asyncio.TimeoutError, OSError)

# Collection name -> backing table and the columns the console may touch
COLLECTIONS: Dict[str, Dict[str, Any]] = {
    'profiles': {
        'table': 'user_profiles',
        'columns': {
            'id', 'phone_number', 'city', 'address', 'birth_date',
            'identity_type', 'identity_number', 'verification_status',
            'user_role', 'profile_picture_url', 'identity_document_url',
            'created_at', 'updated_at'
        }
    },
    'listings': {
        'table': 'products',
        'columns': {
            'id', 'seller_id', 'name', 'category', 'sub_category', 'price',
            'location', 'condition', 'thumbnail', 'images', 'views',
            'product_state', 'created_at', 'updated_at'
        }
    },
    'notifications': {
        'table': 'notifications',
        'columns': {
            'id', 'user_id', 'translation_key', 'type', 'status',
            'action_url', 'translation_params', 'created_at'
        }
    }
}

def _describe(error: Exception) -> str:
    # asyncio.TimeoutError carries no message
    return str(error) or type(error).__name__

def _identifier(name: str) -> str:
    """Quote a validated SQL identifier."""
    if not IDENTIFIER_RE.match(name):
        raise ValueError(f"Invalid identifier: {name!r}")
    return f'"{name}"'

def _collection(name: str) -> Dict[str, Any]:
    try:
        return COLLECTIONS[name]
    except KeyError:
        raise ValueError(f"Unknown collection: {name!r}")

def _check_columns(collection: str, columns) -> None:
    allowed = _collection(collection)['columns']
    unknown = set(columns) - allowed
    if unknown:
        raise ValueError(f"Unknown columns for {collection}: {sorted(unknown)}")

def _where(
    filters: Optional[Dict[str, Any]],
    params: List[Any]
) -> List[str]:
    """Equality conditions, appending bound values to params."""
    conditions = []
    for column, value in (filters or {}).items():
        if value is None:
            conditions.append(f"{_identifier(column)} IS NULL")
        else:
            params.append(value)
            conditions.append(f"{_identifier(column)} = ${len(params)}")
    return conditions

def build_identities_query(schema: str = 'auth') -> str:
    """SQL listing identities from the auth provider's users table."""
    return f'''
        SELECT
            id::text AS id,
            email,
            raw_user_meta_data->>'full_name' AS full_name,
            email_confirmed_at IS NOT NULL AS email_confirmed,
            created_at,
            last_sign_in_at
        FROM {_identifier(schema)}."users"
        ORDER BY created_at DESC
    '''

def build_select(
    collection: str,
    filters: Optional[Dict[str, Any]] = None,
    order_by: Optional[str] = None,
    descending: bool = True,
    limit: Optional[int] = None
) -> Tuple[str, List[Any]]:
    """Build a SELECT for a collection.

    Args:
        collection: Logical collection name
        filters: Optional column -> value equality filters (None matches NULL)
        order_by: Optional column to order by
        descending: Order direction when order_by is given
        limit: Optional maximum number of rows

    Returns:
        Tuple of (sql, params)
    """
    table = _collection(collection)['table']
    _check_columns(collection, list(filters or {}) + ([order_by] if order_by else []))

    params: List[Any] = []
    sql = f"SELECT * FROM {_identifier(table)}"
    conditions = _where(filters, params)
    if conditions:
        sql += " WHERE " + " AND ".join(conditions)
    if order_by:
        sql += f" ORDER BY {_identifier(order_by)} {'DESC' if descending else 'ASC'}"
    if limit is not None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        params.append(int(limit))
        sql += f" LIMIT ${len(params)}"
    return sql, params

def build_count(
    collection: str,
    filters: Optional[Dict[str, Any]] = None
) -> Tuple[str, List[Any]]:
    """Build a COUNT(*) for a collection."""
    table = _collection(collection)['table']
    _check_columns(collection, list(filters or {}))

    params: List[Any] = []
    sql = f"SELECT COUNT(*) FROM {_identifier(table)}"
    conditions = _where(filters, params)
    if conditions:
        sql += " WHERE " + " AND ".join(conditions)
    return sql, params

def build_update(
    collection: str,
    record_id: str,
    patch: Dict[str, Any],
    expected: Optional[Dict[str, Sequence[Optional[str]]]] = None
) -> Tuple[str, List[Any]]:
    """Build an UPDATE ... RETURNING * for one record.

    Args:
        collection: Logical collection name
        record_id: Id of the record to update
        patch: Column -> new value
        expected: Optional column -> allowed current values. The update only
                  applies while every listed column still holds one of its
                  allowed values (None allows NULL).

    Returns:
        Tuple of (sql, params)
    """
    if not patch:
        raise ValueError("Update patch is empty")
    if 'id' in patch:
        raise ValueError("Record id cannot be updated")
    table = _collection(collection)['table']
    _check_columns(collection, list(patch) + list(expected or {}))

    params: List[Any] = []
    assignments = []
    for column, value in patch.items():
        params.append(value)
        assignments.append(f"{_identifier(column)} = ${len(params)}")

    params.append(record_id)
    conditions = [f'"id" = ${len(params)}']

    for column, allowed in (expected or {}).items():
        values = [v for v in allowed if v is not None]
        options = []
        if values:
            params.append(values)
            options.append(f"{_identifier(column)}::text = ANY(${len(params)}::text[])")
        if len(values) != len(allowed):
            options.append(f"{_identifier(column)} IS NULL")
        if not options:
            raise ValueError(f"No allowed values given for {column}")
        conditions.append("(" + " OR ".join(options) + ")")

    sql = (
        f"UPDATE {_identifier(table)} "
        f"SET {', '.join(assignments)} "
        f"WHERE {' AND '.join(conditions)} "
        "RETURNING *"
    )
    return sql, params

def build_insert(collection: str, record: Dict[str, Any]) -> Tuple[str, List[Any]]:
    """Build an INSERT ... RETURNING * for one record."""
    if not record:
        raise ValueError("Insert record is empty")
    table = _collection(collection)['table']
    _check_columns(collection, list(record))

    columns = list(record)
    placeholders = [f"${i}" for i in range(1, len(columns) + 1)]
    sql = (
        f"INSERT INTO {_identifier(table)} "
        f"({', '.join(_identifier(c) for c in columns)}) "
        f"VALUES ({', '.join(placeholders)}) "
        "RETURNING *"
    )
    return sql, [record[c] for c in columns]

class RemoteStore:
    """Generic query interface over the marketplace's collections."""

    async def list_identities(self) -> List[Dict[str, Any]]:
        """List all identities.

        Raises:
            PermissionDeniedError: If the current role may not list identities
        """
        raise NotImplementedError

    async def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = True,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        raise NotImplementedError

    async def count(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> int:
        raise NotImplementedError

    async def update(
        self,
        collection: str,
        record_id: str,
        patch: Dict[str, Any],
        expected: Optional[Dict[str, Sequence[Optional[str]]]] = None
    ) -> Dict[str, Any]:
        """Update one record and return it as stored.

        Raises:
            RecordNotFoundError: If no record has this id
            WriteConflictError: If `expected` no longer holds
            RemoteWriteError: If the store rejects the write
        """
        raise NotImplementedError

    async def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """Insert one record and return it as stored.

        Raises:
            RemoteWriteError: If the store rejects the write
        """
        raise NotImplementedError

class PostgresStore(RemoteStore):
    """RemoteStore backed by the marketplace's Postgres database."""

    def __init__(self, pool=None, identities_schema: str = 'auth'):
        """Initialize the store.

        Args:
            pool: Optional asyncpg pool. If not provided, will get from database module.
            identities_schema: Schema holding the auth provider's users table
        """
        self.pool = pool
        self.identities_schema = identities_schema

    async def ensure_pool(self):
        """Ensure we have a database pool."""
        if not self.pool:
            from . import get_pool
            self.pool = await get_pool()

    async def list_identities(self) -> List[Dict[str, Any]]:
        try:
            await self.ensure_pool()
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(build_identities_query(self.identities_schema))
            return [dict(row) for row in rows]
        except (asyncpg.exceptions.InsufficientPrivilegeError,
                asyncpg.exceptions.UndefinedTableError) as e:
            raise PermissionDeniedError(f"Identity listing refused: {e}")
        except asyncpg.PostgresError as e:
            raise DatabaseError(f"Failed to list identities: {e}")
        except CONNECTION_ERRORS as e:
            raise DatabaseError(f"Failed to list identities: {_describe(e)}")

    async def query(self, collection, filters=None, order_by=None, descending=True, limit=None):
        sql, params = build_select(collection, filters, order_by, descending, limit)
        try:
            await self.ensure_pool()
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(sql, *params)
            return [dict(row) for row in rows]
        except asyncpg.exceptions.InsufficientPrivilegeError as e:
            raise PermissionDeniedError(f"Query on {collection} refused: {e}")
        except asyncpg.PostgresError as e:
            raise DatabaseError(f"Failed to query {collection}: {e}")
        except CONNECTION_ERRORS as e:
            raise DatabaseError(f"Failed to query {collection}: {_describe(e)}")

    async def count(self, collection, filters=None):
        sql, params = build_count(collection, filters)
        try:
            await self.ensure_pool()
            async with self.pool.acquire() as conn:
                return await conn.fetchval(sql, *params)
        except asyncpg.PostgresError as e:
            raise DatabaseError(f"Failed to count {collection}: {e}")
        except CONNECTION_ERRORS as e:
            raise DatabaseError(f"Failed to count {collection}: {_describe(e)}")

    async def update(self, collection, record_id, patch, expected=None):
        sql, params = build_update(collection, record_id, patch, expected)
        table = _identifier(_collection(collection)['table'])
        try:
            await self.ensure_pool()
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(sql, *params)
                if row is None:
                    exists = await conn.fetchval(
                        f'SELECT EXISTS(SELECT 1 FROM {table} WHERE "id" = $1)',
                        record_id
                    )
                    if not exists:
                        raise RecordNotFoundError(f"{collection} {record_id} not found")
                    raise WriteConflictError(collection, record_id, dict(expected or {}))
            return dict(row)
        except asyncpg.PostgresError as e:
            raise RemoteWriteError(f"Failed to update {collection} {record_id}: {e}")
        except CONNECTION_ERRORS as e:
            raise RemoteWriteError(f"Failed to update {collection} {record_id}: {_describe(e)}")

    async def insert(self, collection, record):
        sql, params = build_insert(collection, record)
        try:
            await self.ensure_pool()
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(sql, *params)
            return dict(row)
        except asyncpg.PostgresError as e:
            raise RemoteWriteError(f"Failed to insert into {collection}: {e}")
        except CONNECTION_ERRORS as e:
            raise RemoteWriteError(f"Failed to insert into {collection}: {_describe(e)}")

__all__ = [
    'COLLECTIONS',
    'RemoteStore',
    'PostgresStore',
    'build_identities_query',
    'build_select',
    'build_count',
    'build_update',
    'build_insert'
]
