"""
Tests for user id validation, actor identity and dispatch.
"""

import pytest

from coach_server.core.errors import InvalidIdentifier, InvalidInput
from coach_server.runtime_state import (
    HistoryResult,
    MessageResult,
    SessionCommand,
    SessionOperation,
    SessionRouter,
    validate_user_id,
)
from coach_server.models.session_model import SessionRecord


class TestValidateUserId:

    @pytest.mark.parametrize("bad", ["", "   ", None, 42, "bad\nid", "x" * 129])
    def test_rejects_malformed(self, bad):
        with pytest.raises(InvalidIdentifier):
            validate_user_id(bad)

    def test_strips_whitespace(self):
        assert validate_user_id("  user_1 ") == "user_1"


class TestResolve:

    def test_same_id_same_actor(self, session_router):
        assert session_router.resolve("u1") is session_router.resolve("u1")
        assert session_router.resolve("u1") is session_router.resolve(" u1 ")
        assert len(session_router) == 1

    def test_different_ids_different_actors(self, session_router):
        assert session_router.resolve("u1") is not session_router.resolve("u2")

    def test_invalid_id_raises(self, session_router):
        with pytest.raises(InvalidIdentifier):
            session_router.resolve("")

    def test_prune_skips_busy_actors(self, session_router):
        idle = session_router.resolve("idle")
        busy = session_router.resolve("busy")
        busy.pending = 1

        assert session_router.prune_idle(0) == 1
        assert session_router.resolve("busy") is busy
        assert session_router.resolve("idle") is not idle

    @pytest.mark.asyncio
    async def test_pruned_actor_reloads_from_storage(self, session_router):
        await session_router.resolve("u1").init()
        session_router.prune_idle(0)

        history = await session_router.resolve("u1").get_history()
        assert len(history.messages) == 1

    def test_prunes_when_live_limit_reached(self, settings_factory, storage, generator):
        router = SessionRouter(
            settings_factory(max_live_actors=2, actor_idle_timeout_s=0),
            storage,
            generator,
        )
        router.resolve("a")
        router.resolve("b")
        router.resolve("c")
        assert len(router) == 1


class TestDispatch:

    @pytest.mark.asyncio
    async def test_each_operation_returns_its_result(self, session_router):
        record = await session_router.dispatch(SessionCommand(SessionOperation.INIT, "u1"))
        assert isinstance(record, SessionRecord)

        result = await session_router.dispatch(
            SessionCommand(SessionOperation.MESSAGE, "u1", message="Hi")
        )
        assert isinstance(result, MessageResult)

        history = await session_router.dispatch(SessionCommand(SessionOperation.HISTORY, "u1"))
        assert isinstance(history, HistoryResult)
        assert len(history.messages) == 3

        assert await session_router.dispatch(SessionCommand(SessionOperation.CLEAR, "u1")) is None

    @pytest.mark.asyncio
    async def test_message_without_text_is_invalid(self, session_router):
        await session_router.dispatch(SessionCommand(SessionOperation.INIT, "u1"))
        with pytest.raises(InvalidInput):
            await session_router.dispatch(SessionCommand(SessionOperation.MESSAGE, "u1"))
