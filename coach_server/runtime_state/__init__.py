"""
Runtime state package for the Interview Coach server.

Tracks one durable session per user id and serializes access to it:

    from coach_server.runtime_state import SessionRouter, SessionCommand, SessionOperation

    router = SessionRouter(settings, storage, generator)
    record = await router.dispatch(
        SessionCommand(SessionOperation.INIT, user_id="u1")
    )
"""

from .actor import HistoryResult, MessageResult, SessionActor
from .router import (
    SessionCommand,
    SessionOperation,
    SessionRouter,
    validate_user_id,
)
from .storage import (
    FileStorageBackend,
    MemoryStorageBackend,
    StorageBackend,
    build_storage_backend,
)

__all__ = [
    "HistoryResult",
    "MessageResult",
    "SessionActor",
    "SessionCommand",
    "SessionOperation",
    "SessionRouter",
    "validate_user_id",
    "FileStorageBackend",
    "MemoryStorageBackend",
    "StorageBackend",
    "build_storage_backend",
]
