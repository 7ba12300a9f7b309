"""
Tests for the session actor: lifecycle, persistence, fallback and
per-user serialization.
"""

import asyncio

import pytest

from coach_server.core.errors import InvalidInput, SessionNotFound, StorageError
from coach_server.core.generate import FALLBACK_EMPTY_REPLY, FALLBACK_ERROR_REPLY
from coach_server.core.pipeline import GREETING
from coach_server.models.session_model import Role, SessionRecord, SkillLevel
from coach_server.runtime_state import FileStorageBackend, SessionActor, SessionRouter

from tests.conftest import FakeGenerator


async def stored(storage, user_id) -> SessionRecord:
    return SessionRecord.model_validate(await storage.get(user_id))


class TestInit:

    @pytest.mark.asyncio
    async def test_creates_record_with_greeting(self, session_router, storage):
        record = await session_router.resolve("u1").init()

        assert record.user_id == "u1"
        assert len(record.messages) == 1
        assert record.messages[0].role == Role.ASSISTANT
        assert record.messages[0].content == GREETING
        assert record.messages[0].message_id == 1
        assert record.user_profile.skill_level == SkillLevel.INTERMEDIATE
        assert record.user_profile.focus_areas == set()
        assert record.user_profile.strengths == set()
        assert record.user_profile.weaknesses == set()
        assert (await stored(storage, "u1")).messages == record.messages

    @pytest.mark.asyncio
    async def test_is_idempotent(self, session_router):
        actor = session_router.resolve("u1")
        first = await actor.init()
        await actor.append_message("Hi")
        second = await actor.init()
        third = await actor.init()

        assert len(second.messages) == 3
        assert len(third.messages) == len(second.messages)
        assert third.session_started == first.session_started
        assert third.last_activity >= second.last_activity


class TestAppendMessage:

    @pytest.mark.asyncio
    async def test_requires_existing_session(self, session_router, storage):
        with pytest.raises(SessionNotFound):
            await session_router.resolve("ghost").append_message("Hi")
        assert await storage.get("ghost") is None

    @pytest.mark.asyncio
    async def test_rejects_blank_message(self, session_router):
        actor = session_router.resolve("u1")
        await actor.init()
        with pytest.raises(InvalidInput):
            await actor.append_message("   ")

    @pytest.mark.asyncio
    async def test_appends_user_then_assistant(self, session_router, generator, storage):
        actor = session_router.resolve("u1")
        await actor.init()

        result = await actor.append_message("Hi")
        messages = result.record.messages

        assert len(messages) == 3
        assert [m.role for m in messages[-2:]] == [Role.USER, Role.ASSISTANT]
        assert messages[1].content == "Hi"
        assert result.message == messages[-1]
        assert result.message.content == generator.reply
        assert [m.message_id for m in messages] == [1, 2, 3]
        assert (await stored(storage, "u1")).messages == messages

    @pytest.mark.asyncio
    async def test_context_window_is_system_plus_last_five(self, session_router, generator):
        actor = session_router.resolve("u1")
        await actor.init()
        for i in range(4):
            await actor.append_message(f"answer {i}")

        window = generator.calls[-1]
        assert len(window) == 6
        assert window[0]["role"] == "system"
        assert window[-1] == {"role": "user", "content": "answer 3"}
        assert [m["role"] for m in window[1:]] == ["user", "assistant", "user", "assistant", "user"]

    @pytest.mark.asyncio
    async def test_generation_failure_uses_fallback_and_persists(self, session_router, generator, storage):
        actor = session_router.resolve("u1")
        await actor.init()
        generator.fail = True

        result = await actor.append_message("Are you there?")

        assert result.message.content == FALLBACK_ERROR_REPLY
        record = await stored(storage, "u1")
        assert [m.content for m in record.messages[-2:]] == ["Are you there?", FALLBACK_ERROR_REPLY]
        assert record.messages[-1].metadata == {"fallback": True, "fallbackReason": "error"}

    @pytest.mark.asyncio
    async def test_generation_timeout_uses_fallback(self, settings_factory, storage):
        slow = FakeGenerator(delay=1.0)
        router = SessionRouter(settings_factory(generation_timeout_s=0.05), storage, slow)
        actor = router.resolve("u1")
        await actor.init()

        result = await actor.append_message("Hello?")

        assert result.message.content == FALLBACK_ERROR_REPLY
        assert len((await stored(storage, "u1")).messages) == 3
        assert result.message.metadata["fallbackReason"] == "timeout"

    @pytest.mark.asyncio
    async def test_empty_generation_uses_empty_fallback(self, session_router, generator):
        actor = session_router.resolve("u1")
        await actor.init()
        generator.reply = "   "

        result = await actor.append_message("Hi")
        assert result.message.content == FALLBACK_EMPTY_REPLY
        assert result.message.metadata["fallback"] is True

    @pytest.mark.asyncio
    async def test_storage_failure_is_not_committed(self, session_router, storage):
        actor = session_router.resolve("u1")
        await actor.init()
        storage.fail_writes = True

        with pytest.raises(StorageError):
            await actor.append_message("Hi")

        storage.fail_writes = False
        assert len((await stored(storage, "u1")).messages) == 1
        history = await actor.get_history()
        assert len(history.messages) == 1


class TestHistoryAndClear:

    @pytest.mark.asyncio
    async def test_history_of_missing_session_is_empty(self, session_router, storage):
        history = await session_router.resolve("nobody").get_history()
        assert history.messages == []
        assert history.user_profile is None
        assert await storage.get("nobody") is None

    @pytest.mark.asyncio
    async def test_clear_then_history_is_empty(self, session_router):
        actor = session_router.resolve("u1")
        await actor.init()
        await actor.append_message("Hi")

        await actor.clear()
        history = await actor.get_history()
        assert history.messages == []
        assert history.user_profile is None

    @pytest.mark.asyncio
    async def test_clear_missing_session_is_noop(self, session_router, storage):
        await session_router.resolve("u1").init()
        await session_router.resolve("nobody").clear()
        assert len(storage) == 1

    @pytest.mark.asyncio
    async def test_init_after_clear_starts_fresh(self, session_router):
        actor = session_router.resolve("u1")
        await actor.init()
        await actor.append_message("Hi")
        await actor.clear()

        record = await actor.init()
        assert len(record.messages) == 1
        assert record.messages[0].content == GREETING

    @pytest.mark.asyncio
    async def test_example_conversation(self, session_router):
        actor = session_router.resolve("u1")
        assert len((await actor.init()).messages) == 1

        result = await actor.append_message("Hi")
        contents = [m.content for m in result.record.messages]
        assert contents[:2] == [GREETING, "Hi"]
        assert len(contents) == 3

        history = await actor.get_history()
        assert history.messages == result.record.messages

        await actor.clear()
        assert (await actor.get_history()).messages == []


class TestConcurrency:

    @pytest.mark.asyncio
    async def test_same_user_operations_are_serialized(self, settings_factory, storage):
        gen = FakeGenerator(delay=0.02)
        router = SessionRouter(settings_factory(), storage, gen)
        actor = router.resolve("u1")
        await actor.init()

        await asyncio.gather(*(actor.append_message(f"msg {i}") for i in range(5)))

        record = await stored(storage, "u1")
        assert len(record.messages) == 11
        roles = [m.role for m in record.messages[1:]]
        assert roles == [Role.USER, Role.ASSISTANT] * 5
        assert [m.content for m in record.messages[1::2]] == [f"msg {i}" for i in range(5)]
        assert gen.max_in_flight == 1
        assert actor.pending == 0

    @pytest.mark.asyncio
    async def test_different_users_run_in_parallel(self, settings_factory, storage):
        gen = FakeGenerator(delay=0.05)
        router = SessionRouter(settings_factory(), storage, gen)
        users = [f"user-{i}" for i in range(4)]
        for user in users:
            await router.resolve(user).init()

        await asyncio.gather(*(router.resolve(u).append_message("hello") for u in users))

        assert gen.max_in_flight == len(users)

    @pytest.mark.asyncio
    async def test_cancelled_caller_still_completes_turn(self, settings_factory, storage):
        gen = FakeGenerator(delay=0.05)
        router = SessionRouter(settings_factory(), storage, gen)
        actor = router.resolve("u1")
        await actor.init()

        task = asyncio.create_task(actor.append_message("Hi"))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        # The shielded transaction finishes on its own.
        for _ in range(50):
            if len((await stored(storage, "u1")).messages) == 3:
                break
            await asyncio.sleep(0.01)
        assert len((await stored(storage, "u1")).messages) == 3


class TestModes:

    @pytest.mark.asyncio
    async def test_record_keeps_mode_it_was_created_with(self, settings_factory, storage, generator):
        conv_router = SessionRouter(settings_factory(coach_mode="conversation"), storage, generator)
        await conv_router.resolve("u1").init()

        wf_router = SessionRouter(settings_factory(coach_mode="workflow"), storage, generator)
        result = await wf_router.resolve("u1").append_message("Hi")

        assert result.record.mode == "conversation"
        assert result.record.workflow_state is None
        assert result.message.content == generator.reply

    @pytest.mark.asyncio
    async def test_workflow_interview_end_to_end(self, workflow_router, generator, storage):
        actor = workflow_router.resolve("u1")
        record = await actor.init("backend")
        assert record.mode == "workflow"
        assert record.workflow_state.current_step_index == 0
        assert "backend" in record.user_profile.focus_areas

        answers = [
            "Hi, I'm preparing for interviews.",
            "I design distributed and scalable systems with a clean architecture.",
            "I'd use an ordered dict.",
            "We disagreed, so we prototyped both options.",
            "Shard by key and cache hot entries.",
        ]
        indices = []
        for answer in answers:
            result = await actor.append_message(answer)
            indices.append(result.record.workflow_state.current_step_index)

        assert indices == [1, 2, 3, 4, 5]
        assert generator.calls == []

        record = await stored(storage, "u1")
        state = record.workflow_state
        assert state.completed is True
        assert state.responses == answers
        assert record.user_profile.skill_level == SkillLevel.ADVANCED
        assert record.user_profile.strengths
        assert record.messages[-1].content.startswith("## Interview Summary")
        assert record.messages[-1].metadata["interviewComplete"] is True

        again = await actor.append_message("What now?")
        assert again.message.content == record.messages[-1].content
        assert again.record.workflow_state == state
        assert len(again.record.messages) == len(record.messages) + 2


class TestRestart:

    @pytest.mark.asyncio
    async def test_new_process_reloads_persisted_record(self, settings_factory, tmp_path, generator):
        cfg = settings_factory(storage_backend="file", sessions_dir=tmp_path)
        first = SessionRouter(cfg, FileStorageBackend(tmp_path), generator)
        await first.resolve("u1").init()
        await first.resolve("u1").append_message("Hi")

        second = SessionRouter(cfg, FileStorageBackend(tmp_path), generator)
        history = await second.resolve("u1").get_history()
        assert [m.role for m in history.messages] == [Role.ASSISTANT, Role.USER, Role.ASSISTANT]

    @pytest.mark.asyncio
    async def test_invalid_stored_record_raises_storage_error(self, storage):
        await storage.put("u1", {"userId": "u1", "messages": "not-a-list"})
        actor = SessionActor("u1", storage, pipeline_factory=lambda mode: None)
        with pytest.raises(StorageError):
            await actor.get_history()
