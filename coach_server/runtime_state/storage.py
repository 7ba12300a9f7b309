# coach_server/runtime_state/storage.py
# -*- coding: utf-8 -*-
"""
Interview Coach Server — Session storage backends
-------------------------------------------------
Durable key-value storage for session records. A key is a user id and a
value is the complete JSON-ready session dict; every write replaces the
whole record.

Backends
~~~~~~~~
- FileStorageBackend   : one JSON file per session under sessions_dir,
                         written atomically (temp file + rename).
- MemoryStorageBackend : process-local dict, for tests and throwaway runs.

Any I/O or decoding problem is raised as StorageError. A damaged file is
never treated as "no session", since that would overwrite it with a
fresh record.
"""

from __future__ import annotations

import abc
import asyncio
import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from coach_server.core.config import Settings
from coach_server.core.errors import StorageError
from coach_server.utils import Stopwatch, delete_file, read_json, write_json_atomic

logger = logging.getLogger("coach_server.runtime_state.storage")

RecordDict = Dict[str, Any]


class StorageBackend(abc.ABC):
    """get / put / delete of one serialized session record per key."""

    @abc.abstractmethod
    async def get(self, key: str) -> Optional[RecordDict]:
        """Return the stored record for `key`, or None if there is none."""

    @abc.abstractmethod
    async def put(self, key: str, record: RecordDict) -> None:
        """Store `record` under `key`, replacing any previous value."""

    @abc.abstractmethod
    async def delete(self, key: str) -> None:
        """Remove `key`; deleting a missing key is not an error."""


# ---------------------------------------------------------------------------
# File-backed implementation
# ---------------------------------------------------------------------------


class FileStorageBackend(StorageBackend):
    """
    One JSON file per session.

    File names are the SHA-256 digest of the key, so any user id maps to
    a safe, stable path and the same id finds the same file after a
    restart. Blocking file I/O runs in a worker thread.

    Parameters
    ----------
    directory:
        Folder holding the session files. Created on first write.
    """

    def __init__(self, directory: Union[Path, str]) -> None:
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}.json"

    async def get(self, key: str) -> Optional[RecordDict]:
        path = self.path_for(key)
        try:
            with Stopwatch(f"[FileStorage] read {path.name}", logger):
                return await asyncio.to_thread(read_json, path)
        except (OSError, ValueError) as exc:
            logger.error("[FileStorage] Failed to read %s: %s", path, exc)
            raise StorageError(f"failed to read session file {path}") from exc

    async def put(self, key: str, record: RecordDict) -> None:
        path = self.path_for(key)
        try:
            with Stopwatch(f"[FileStorage] write {path.name}", logger):
                await asyncio.to_thread(write_json_atomic, path, record)
        except (OSError, TypeError, ValueError) as exc:
            raise StorageError(f"failed to write session file {path}") from exc

    async def delete(self, key: str) -> None:
        path = self.path_for(key)
        try:
            removed = await asyncio.to_thread(delete_file, path)
        except OSError as exc:
            logger.error("[FileStorage] Failed to delete %s: %s", path, exc)
            raise StorageError(f"failed to delete session file {path}") from exc
        if removed:
            logger.info("[FileStorage] Deleted session file %s", path.name)


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------


class MemoryStorageBackend(StorageBackend):
    """
    Dict-backed storage.

    Records are stored as JSON round-tripped copies so callers can never
    mutate stored state through a reference they still hold.
    """

    def __init__(self) -> None:
        self._records: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[RecordDict]:
        raw = self._records.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def put(self, key: str, record: RecordDict) -> None:
        try:
            self._records[key] = json.dumps(record)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"record for {key!r} is not JSON-serializable") from exc

    async def delete(self, key: str) -> None:
        self._records.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)


def build_storage_backend(cfg: Settings) -> StorageBackend:
    if cfg.storage_backend == "memory":
        logger.info("Using in-memory session storage (not durable).")
        return MemoryStorageBackend()
    logger.info("Using file session storage at %s", cfg.sessions_dir)
    return FileStorageBackend(cfg.sessions_dir)
