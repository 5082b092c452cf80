"""Database module for managing the connection to the marketplace's Postgres store.

This module handles:
- Database connection pool initialization
- Connection lifecycle
- The RemoteStore client used by the console
"""

import json
import logging
from typing import Optional, Dict, Any
import backoff
import asyncpg
from urllib.parse import urlparse, parse_qs

from .exceptions import (
    DatabaseError,
    PermissionDeniedError,
    RemoteWriteError,
    WriteConflictError,
    RecordNotFoundError
)
from .store import RemoteStore, PostgresStore

logger = logging.getLogger(__name__)

_pool: Optional[asyncpg.Pool] = None

def _get_connection_kwargs(db_url: str) -> Dict[str, Any]:
    """Get connection kwargs from database URL.

    Args:
        db_url: Database connection URL

    Returns:
        Dict of connection parameters
    """
    parsed = urlparse(db_url)
    params = parse_qs(parsed.query)

    kwargs: Dict[str, Any] = {
        'server_settings': {
            'application_name': 'moderation-console',
            'statement_timeout': '60000',  # 1 minute
        }
    }

    # sslmode stays in the DSN, asyncpg understands it
    for key, values in params.items():
        if key == 'application_name':
            kwargs['server_settings']['application_name'] = values[0]

    return kwargs

async def _init_connection(conn: asyncpg.Connection) -> None:
    """Decode json/jsonb columns (translation_params) into Python objects."""
    for type_name in ('json', 'jsonb'):
        await conn.set_type_codec(
            type_name,
            encoder=json.dumps,
            decoder=json.loads,
            schema='pg_catalog'
        )

@backoff.on_exception(
    backoff.expo,
    (asyncpg.exceptions.PostgresConnectionError, asyncpg.exceptions.CannotConnectNowError, OSError),
    max_tries=5
)
async def init_db(db_url: Optional[str] = None) -> None:
    """Initialize the database connection pool.

    Args:
        db_url: Optional database URL. If not provided, will use settings.

    Raises:
        ValueError: If database URL is not provided
        Exception: If initialization fails after retries
    """
    global _pool

    try:
        # Import here to avoid loading settings.conf on package import
        from config import get_settings

        url = db_url or get_settings().get('db_url')
        if not url:
            raise ValueError("Database URL not provided")

        conn_kwargs = _get_connection_kwargs(url)

        _pool = await asyncpg.create_pool(
            url,
            min_size=1,          # The console is a single operator surface
            max_size=5,
            max_inactive_connection_lifetime=300.0,  # 5 minutes
            command_timeout=60.0,  # 1 minute command timeout
            init=_init_connection,
            **conn_kwargs
        )
        logger.info(f"Connected to {urlparse(url).hostname}")

    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

async def get_pool() -> asyncpg.Pool:
    """Get the database connection pool.

    Returns:
        The connection pool

    Raises:
        RuntimeError: If pool hasn't been initialized
    """
    if not _pool:
        await init_db()
    if not _pool:
        raise RuntimeError("Failed to initialize database pool")
    return _pool

async def close() -> None:
    """Close the database connection pool."""
    global _pool

    if _pool:
        await _pool.close()
        _pool = None

# Export public interface
__all__ = [
    'init_db',
    'get_pool',
    'close',
    'RemoteStore',
    'PostgresStore',
    'DatabaseError',
    'PermissionDeniedError',
    'RemoteWriteError',
    'WriteConflictError',
    'RecordNotFoundError'
]
