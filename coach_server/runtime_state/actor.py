# coach_server/runtime_state/actor.py
# -*- coding: utf-8 -*-
"""
Interview Coach Server — Session actor
--------------------------------------
One SessionActor owns one user's session record.

Design notes
~~~~~~~~~~~~
- Single writer: every operation runs under the actor's asyncio.Lock, so
  operations for one user execute one at a time in arrival order.
  Different users have different actors and never wait on each other.
- Read-modify-write: each operation loads the record from storage,
  builds the complete next record on a deep copy, and only then writes
  it back. If the write fails the operation fails and nothing is
  considered committed; the caller retries.
- The reply strategy is chosen by the record's `mode`, which is fixed
  when the record is created.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, TypeVar

from pydantic import ValidationError

from coach_server.core.errors import InvalidInput, SessionNotFound, StorageError
from coach_server.core.pipeline import GREETING, ReplyPipeline
from coach_server.models.session_model import Message, Role, SessionRecord, UserProfile
from coach_server.runtime_state.storage import StorageBackend

logger = logging.getLogger("coach_server.runtime_state.actor")

T = TypeVar("T")


@dataclass
class MessageResult:
    """Outcome of append_message: the new assistant message and the record."""
    message: Message
    record: SessionRecord


@dataclass
class HistoryResult:
    """
    Messages and profile of a session.

    user_profile is None when no session exists.
    """
    messages: List[Message]
    user_profile: Optional[UserProfile]


class SessionActor:
    """
    Single-writer owner of one user's session record.

    Parameters
    ----------
    user_id:
        Identity this actor serves; also the storage key.
    storage:
        Storage backend holding the record.
    pipeline_factory:
        Builds the reply pipeline for a mode ("conversation" | "workflow").
    default_mode:
        Mode given to records this actor creates.
    max_message_chars:
        Upper bound on user message length.
    """

    def __init__(
        self,
        user_id: str,
        storage: StorageBackend,
        pipeline_factory: Callable[[str], ReplyPipeline],
        default_mode: str = "conversation",
        max_message_chars: int = 4000,
    ) -> None:
        self.user_id = user_id
        self.storage = storage
        self.pipeline_factory = pipeline_factory
        self.default_mode = default_mode
        self.max_message_chars = max_message_chars

        self._lock = asyncio.Lock()
        self._pipelines: Dict[str, ReplyPipeline] = {}
        # Operations entered but not finished, including those still waiting
        # for the lock. The router only evicts actors where this is zero.
        self.pending = 0
        self.last_used = time.monotonic()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _pipeline(self, mode: str) -> ReplyPipeline:
        if mode not in self._pipelines:
            self._pipelines[mode] = self.pipeline_factory(mode)
        return self._pipelines[mode]

    async def _load(self) -> Optional[SessionRecord]:
        raw = await self.storage.get(self.user_id)
        if raw is None:
            return None
        try:
            return SessionRecord.model_validate(raw)
        except ValidationError as exc:
            logger.error("[SessionActor] Stored record for %s is invalid: %s", self.user_id, exc)
            raise StorageError(f"stored record for {self.user_id!r} failed validation") from exc

    async def _persist(self, record: SessionRecord) -> None:
        await self.storage.put(self.user_id, record.to_json_dict())

    def _submit(self, operation: Callable[[], Awaitable[T]]) -> Awaitable[T]:
        # Counted synchronously, before any suspension point, so the actor
        # is marked busy as soon as an operation is requested.
        self.pending += 1
        self.last_used = time.monotonic()
        return self._exclusive(operation)

    async def _exclusive(self, operation: Callable[[], Awaitable[T]]) -> T:
        try:
            async with self._lock:
                return await operation()
        finally:
            self.pending -= 1
            self.last_used = time.monotonic()

    def _new_record(self, interview_type: Optional[str]) -> SessionRecord:
        record = SessionRecord(user_id=self.user_id, mode=self.default_mode)
        self._pipeline(record.mode).prepare(record, interview_type)
        record.append(Role.ASSISTANT, GREETING)
        return record

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def init(self, interview_type: Optional[str] = None) -> SessionRecord:
        """
        Load the session or create it with a seeded greeting.

        Repeated calls return the existing record with only last_activity
        refreshed; messages are never reset here.
        """

        async def operation() -> SessionRecord:
            current = await self._load()
            if current is None:
                logger.info("[SessionActor] Creating new session for %s", self.user_id)
                draft = self._new_record(interview_type)
            else:
                draft = current.model_copy(deep=True)
            draft.touch()
            await self._persist(draft)
            return draft

        return await self._submit(operation)

    async def append_message(self, content: str) -> MessageResult:
        """
        Append a user message and the assistant reply, then persist both.

        The transaction is shielded from caller cancellation: once it has
        started it runs to completion, so a dropped connection cannot leave
        a half-applied turn.
        """
        text = (content or "").strip()
        if not text:
            raise InvalidInput("message is required")
        if len(text) > self.max_message_chars:
            raise InvalidInput(f"message exceeds {self.max_message_chars} characters")

        async def operation() -> MessageResult:
            current = await self._load()
            if current is None:
                raise SessionNotFound()

            draft = current.model_copy(deep=True)
            draft.append(Role.USER, text)

            reply = await self._pipeline(draft.mode).next_reply(draft, text)
            assistant = draft.append(Role.ASSISTANT, reply.text, metadata=reply.metadata)

            draft.touch()
            await self._persist(draft)
            return MessageResult(message=assistant, record=draft)

        return await asyncio.shield(self._submit(operation))

    async def get_history(self) -> HistoryResult:
        """Messages and profile; empty defaults when there is no session."""

        async def operation() -> HistoryResult:
            current = await self._load()
            if current is None:
                return HistoryResult(messages=[], user_profile=None)
            return HistoryResult(messages=current.messages, user_profile=current.user_profile)

        return await self._submit(operation)

    async def clear(self) -> None:
        """Delete the stored record; clearing a missing session succeeds."""

        async def operation() -> None:
            await self.storage.delete(self.user_id)
            logger.info("[SessionActor] Cleared session for %s", self.user_id)

        await self._submit(operation)

    @property
    def busy(self) -> bool:
        return self.pending > 0
