# coach_server/runtime_state/router.py
# -*- coding: utf-8 -*-
"""
Interview Coach Server — Session router
---------------------------------------
Maps a user id to exactly one live SessionActor and dispatches the four
session operations to it.

- resolve() is synchronous, so looking up and creating an actor cannot
  interleave with another request on the event loop: one id never has
  two live actors.
- The actor's storage key is the user id itself, so the same id reaches
  the same durable record after a restart.
- Idle actors (no pending operations) are evicted once more than
  max_live_actors exist; evicting only drops the in-memory handle.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Union

from coach_server.core.config import Settings
from coach_server.core.errors import InvalidIdentifier, InvalidInput
from coach_server.core.generate import GenerationBackend
from coach_server.core.pipeline import ReplyPipeline, build_reply_pipeline
from coach_server.models.session_model import SessionRecord
from coach_server.runtime_state.actor import HistoryResult, MessageResult, SessionActor
from coach_server.runtime_state.storage import StorageBackend

logger = logging.getLogger("coach_server.runtime_state.router")


class SessionOperation(str, Enum):
    INIT = "init"
    MESSAGE = "message"
    HISTORY = "history"
    CLEAR = "clear"


@dataclass
class SessionCommand:
    """One request addressed to a user's session."""
    operation: SessionOperation
    user_id: str
    message: Optional[str] = None
    interview_type: Optional[str] = None


SessionOutcome = Union[SessionRecord, MessageResult, HistoryResult, None]


def validate_user_id(user_id: object, max_length: int = 128) -> str:
    """
    Return the stripped user id or raise InvalidIdentifier.

    Valid ids are non-empty strings of at most `max_length` characters
    without control characters.
    """
    if not isinstance(user_id, str):
        raise InvalidIdentifier("userId is required")
    value = user_id.strip()
    if not value:
        raise InvalidIdentifier("userId is required")
    if len(value) > max_length:
        raise InvalidIdentifier(f"userId must be at most {max_length} characters")
    if any(ord(ch) < 32 or ord(ch) == 127 for ch in value):
        raise InvalidIdentifier("userId contains control characters")
    return value


class SessionRouter:
    """
    Registry of live session actors.

    Parameters
    ----------
    cfg:
        Settings (coach mode, limits, workflow seed).
    storage:
        Storage backend shared by the actors; each actor only touches
        its own key.
    generator:
        Generation backend used by conversation-mode pipelines.
    rng_factory:
        Optional factory for per-actor random generators (workflow mode).
    """

    def __init__(
        self,
        cfg: Settings,
        storage: StorageBackend,
        generator: GenerationBackend,
        rng_factory: Optional[Callable[[], random.Random]] = None,
    ) -> None:
        self.cfg = cfg
        self.storage = storage
        self.generator = generator
        self.rng_factory = rng_factory
        self._actors: Dict[str, SessionActor] = {}

    def __len__(self) -> int:
        return len(self._actors)

    def _pipeline_factory(self, mode: str) -> ReplyPipeline:
        return build_reply_pipeline(mode, self.cfg, self.generator, self.rng_factory)

    def resolve(self, user_id: str) -> SessionActor:
        """Return the live actor for `user_id`, creating it on first use."""
        key = validate_user_id(user_id, self.cfg.max_user_id_length)

        actor = self._actors.get(key)
        if actor is None:
            if len(self._actors) >= self.cfg.max_live_actors:
                self.prune_idle(self.cfg.actor_idle_timeout_s)
            actor = SessionActor(
                key,
                self.storage,
                self._pipeline_factory,
                default_mode=self.cfg.coach_mode,
                max_message_chars=self.cfg.max_message_chars,
            )
            self._actors[key] = actor
            logger.debug("[SessionRouter] Created actor for %s (live=%d)", key, len(self._actors))
        return actor

    def prune_idle(self, max_idle_seconds: float) -> int:
        """
        Drop actors with no pending work that have been idle longer than
        `max_idle_seconds`. Returns the number of evicted actors.
        """
        cutoff = time.monotonic() - max(0.0, max_idle_seconds)
        to_delete = [
            key
            for key, actor in self._actors.items()
            if not actor.busy and actor.last_used <= cutoff
        ]
        for key in to_delete:
            del self._actors[key]
        if to_delete:
            logger.info("[SessionRouter] Pruned %d idle actors", len(to_delete))
        return len(to_delete)

    async def dispatch(self, command: SessionCommand) -> SessionOutcome:
        """Run one session operation on the actor for command.user_id."""
        actor = self.resolve(command.user_id)
        op = command.operation

        if op is SessionOperation.INIT:
            return await actor.init(command.interview_type)
        if op is SessionOperation.MESSAGE:
            if command.message is None:
                raise InvalidInput("message is required")
            return await actor.append_message(command.message)
        if op is SessionOperation.HISTORY:
            return await actor.get_history()
        if op is SessionOperation.CLEAR:
            await actor.clear()
            return None
        raise InvalidInput(f"Unsupported session operation: {op!r}")
