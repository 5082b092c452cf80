"""Exceptions raised by the remote store layer."""

class DatabaseError(Exception):
    """Base exception for remote store errors."""
    pass

class PermissionDeniedError(DatabaseError):
    """Raised when the store refuses a privileged query (e.g. the admin identity listing)."""
    pass

class RemoteWriteError(DatabaseError):
    """Raised when an update or insert is rejected by the store."""
    pass

class WriteConflictError(RemoteWriteError):
    """Raised when a conditional update matched no row because its precondition no longer holds."""
    def __init__(self, collection: str, record_id: str, expected: dict):
        self.collection = collection
        self.record_id = record_id
        self.expected = expected
        super().__init__(
            f"{collection} {record_id} no longer matches {expected}; "
            "it was changed by someone else"
        )

class RecordNotFoundError(DatabaseError):
    """Raised when a record addressed by id does not exist in the store."""
    pass

__all__ = [
    'DatabaseError',
    'PermissionDeniedError',
    'RemoteWriteError',
    'WriteConflictError',
    'RecordNotFoundError'
]
