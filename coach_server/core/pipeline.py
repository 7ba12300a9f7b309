# coach_server/core/pipeline.py
# -*- coding: utf-8 -*-
"""
Interview Coach Server — Reply pipelines
----------------------------------------
Two strategies for producing the next assistant turn of a session:

    ConversationPipeline
        system instruction + last N stored messages -> GenerationBackend,
        fixed fallback text on failure/timeout/empty output.

    WorkflowPipeline
        user text -> WorkflowEngine.advance() -> next interview prompt or
        the final feedback summary; profile fields follow the assessment.

Both work on a *draft* SessionRecord that the session actor persists as
a whole afterwards. The user message is already appended to the draft
when next_reply() runs.
"""

from __future__ import annotations

import abc
import logging
import random
from typing import Callable, Optional

from coach_server.core.config import Settings
from coach_server.core.generate import (
    GenerationBackend,
    build_context_window,
    generate_with_fallback,
    load_system_prompt,
    params_from_settings,
)
from coach_server.core.types import ReplyResult
from coach_server.core.workflow import WorkflowEngine, WorkflowStep
from coach_server.models.session_model import SessionRecord, SkillLevel

logger = logging.getLogger(__name__)


GREETING = (
    "Hello! I'm your AI Interview Coach. I'm here to help you practice "
    "technical and behavioral interview questions. What type of role are "
    "you preparing for?"
)


class ReplyPipeline(abc.ABC):
    mode: str

    def prepare(self, record: SessionRecord, interview_type: Optional[str] = None) -> None:
        """Hook run once when a fresh record is created."""

    @abc.abstractmethod
    async def next_reply(self, draft: SessionRecord, user_text: str) -> ReplyResult:
        """Produce the next assistant turn, mutating `draft` as needed."""


class ConversationPipeline(ReplyPipeline):
    mode = "conversation"

    def __init__(self, backend: GenerationBackend, cfg: Settings) -> None:
        self.backend = backend
        self.cfg = cfg

    async def next_reply(self, draft: SessionRecord, user_text: str) -> ReplyResult:
        window = build_context_window(
            draft.messages,
            load_system_prompt(self.cfg.prompts_dir),
            size=self.cfg.context_window_messages,
        )
        result = await generate_with_fallback(
            self.backend,
            window,
            params_from_settings(self.cfg),
            timeout_s=self.cfg.generation_timeout_s,
        )
        if result.fallback:
            logger.info("[Conversation] user=%s used fallback reply", draft.user_id)
        return result


class WorkflowPipeline(ReplyPipeline):
    mode = "workflow"

    def __init__(self, engine: WorkflowEngine, default_interview_type: str = "general") -> None:
        self.engine = engine
        self.default_interview_type = default_interview_type

    def prepare(self, record: SessionRecord, interview_type: Optional[str] = None) -> None:
        state = self.engine.start(interview_type or self.default_interview_type)
        record.workflow_state = state
        if state.interview_type != "general":
            record.user_profile.focus_areas.add(state.interview_type)

    async def next_reply(self, draft: SessionRecord, user_text: str) -> ReplyResult:
        if draft.workflow_state is None:
            # Record created before workflow mode existed for it; start now.
            self.prepare(draft)

        step = self.engine.advance(draft.workflow_state, response=user_text)
        draft.workflow_state = step.state

        profile = draft.user_profile
        if step.step is WorkflowStep.TECHNICAL_ASSESSMENT:
            level = step.state.assessment_data.technical_strength
            if isinstance(level, SkillLevel):
                profile.skill_level = level
        elif step.step is WorkflowStep.FEEDBACK_SUMMARY:
            summary = step.state.assessment_data.summary
            if summary is not None:
                profile.strengths = set(summary.strengths)
                profile.weaknesses = set(summary.improvements)

        metadata = dict(step.metadata)
        metadata["step"] = step.step.value
        if step.next_step is not None:
            metadata["nextStep"] = step.next_step.value
        return ReplyResult(text=step.message, metadata=metadata)


def build_reply_pipeline(
    mode: str,
    cfg: Settings,
    backend: GenerationBackend,
    rng_factory: Optional[Callable[[], random.Random]] = None,
) -> ReplyPipeline:
    """
    Pipeline for one session actor.

    Each workflow pipeline gets its own engine and RNG so sessions never
    share mutable state.
    """
    if mode == "workflow":
        rng = rng_factory() if rng_factory else random.Random(cfg.workflow_seed)
        return WorkflowPipeline(WorkflowEngine(rng), cfg.default_interview_type)
    if mode == "conversation":
        return ConversationPipeline(backend, cfg)
    raise ValueError(f"Unknown coach mode: {mode!r}")
