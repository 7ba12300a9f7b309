# coach_server/core/generate.py
# -*- coding: utf-8 -*-
"""
Interview Coach Server — Generation core
----------------------------------------
Everything between a session's stored messages and the LLM:

- GenerationBackend: the opaque `generate(messages, params) -> text` call.
- TieredGenerationBackend: the production backend, a provider chain
    1) Tier1: Online LLM (OpenRouter, multi-model with priority list)
    2) Tier2: Local LLM (Ollama via providers.tier2_local)
  raising GenerationError when every tier fails.
- build_context_window(): system instruction + last N stored messages.
- generate_with_fallback(): timeout + fixed fallback text, so a model
  problem never breaks the conversation.
"""

from __future__ import annotations

import abc
import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from coach_server.core.config import Settings, settings as default_settings
from coach_server.core.errors import GenerationError
from coach_server.core.types import ChatMessage, GenerationParams, ReplyResult
from coach_server.models.session_model import Message
from coach_server.providers.tier1_online import Tier1Error, call_tier1_model
from coach_server.providers.tier2_local import Tier2Error, call_tier2_model
from coach_server.utils import Stopwatch, read_text_safely

logger = logging.getLogger(__name__)


# Fixed fallback replies. Conversation must continue even when every
# backend is down or returns nothing.
FALLBACK_ERROR_REPLY = (
    "I'm experiencing some technical difficulties. Let me try to help you in a "
    "different way. Could you tell me more about what you'd like to practice?"
)
FALLBACK_EMPTY_REPLY = (
    "I'm having trouble generating a response right now. Could you please try again?"
)

DEFAULT_SYSTEM_PROMPT = (
    "You are an expert software engineering interview coach. Conduct mock "
    "interviews, ask thoughtful technical and behavioral questions, and give "
    "encouraging yet constructive feedback. Keep responses concise but helpful."
)


# ---------------------------------------------------------------------------
# Prompt loading
# ---------------------------------------------------------------------------

_PROMPT_CACHE: Dict[Path, str] = {}


def load_system_prompt(prompts_dir: Path, filename: str = "system_prompt.txt") -> str:
    """
    Read the system instruction from `prompts_dir` with simple caching.

    Falls back to DEFAULT_SYSTEM_PROMPT if the file is missing or empty.
    """
    path = prompts_dir / filename
    if path in _PROMPT_CACHE:
        return _PROMPT_CACHE[path]

    text = read_text_safely(path, default="", strip=True) or ""
    if not text:
        logger.warning("System prompt not found at %s; using built-in default.", path)
        text = DEFAULT_SYSTEM_PROMPT

    _PROMPT_CACHE[path] = text
    return text


def build_context_window(
    messages: Sequence[Message],
    system_prompt: str,
    size: int = 5,
) -> List[ChatMessage]:
    """
    System instruction followed by the most recent `size` stored messages,
    oldest first.

    The window is taken regardless of role, so it may contain no user
    turn at all when the tail of the history is assistant-only.
    """
    recent = list(messages)[-size:] if size > 0 else []
    window: List[ChatMessage] = [{"role": "system", "content": system_prompt}]
    window.extend(m.as_chat_message() for m in recent)
    return window


def params_from_settings(cfg: Settings) -> GenerationParams:
    return GenerationParams(
        max_tokens=cfg.generation_max_tokens,
        temperature=cfg.generation_temperature,
        top_p=cfg.generation_top_p,
    )


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------


class GenerationBackend(abc.ABC):
    """Opaque text generator: ordered role-tagged messages in, text out."""

    name: str = "generation"

    @abc.abstractmethod
    async def generate(
        self,
        messages: List[ChatMessage],
        params: GenerationParams,
    ) -> str:
        """Return generated text or raise GenerationError."""


class TieredGenerationBackend(GenerationBackend):
    """
    Tier1 (OpenRouter, models in priority order) then Tier2 (Ollama).

    Provider calls are blocking `requests` calls, so each one runs in a
    worker thread and never stalls the event loop for other sessions.
    """

    name = "tiered"

    def __init__(self, cfg: Optional[Settings] = None) -> None:
        self.cfg = cfg or default_settings

    async def generate(
        self,
        messages: List[ChatMessage],
        params: GenerationParams,
    ) -> str:
        cfg = self.cfg

        if cfg.tier1_enabled and cfg.tier1_api_key:
            model_list = cfg.tier1_model_candidates or []
            if not model_list:
                logger.warning(
                    "Tier1 is enabled and API key is set, but no "
                    "tier1_model_candidates configured; skipping Tier1."
                )
            for model_name in model_list:
                try:
                    with Stopwatch(f"tier1 {model_name}", logger):
                        return await asyncio.to_thread(
                            call_tier1_model, messages, model_name, params, cfg=cfg
                        )
                except Tier1Error as exc:
                    logger.warning("Tier1 model %s failed: %s", model_name, exc)

        if cfg.tier2_enabled:
            try:
                with Stopwatch("tier2 ollama", logger):
                    return await asyncio.to_thread(call_tier2_model, messages, params, cfg=cfg)
            except Tier2Error as exc:
                logger.warning("Tier2 failed: %s", exc)

        raise GenerationError("All generation tiers failed or are disabled.")


# ---------------------------------------------------------------------------
# Fallback wrapper
# ---------------------------------------------------------------------------


def _fallback(text: str, reason: str) -> ReplyResult:
    return ReplyResult(
        text=text,
        metadata={"fallback": True, "fallbackReason": reason},
        fallback=True,
    )


async def generate_with_fallback(
    backend: GenerationBackend,
    messages: List[ChatMessage],
    params: GenerationParams,
    timeout_s: Optional[float] = None,
) -> ReplyResult:
    """
    Call `backend` and always come back with usable text.

    - backend error or timeout  -> FALLBACK_ERROR_REPLY
    - empty / non-string output -> FALLBACK_EMPTY_REPLY

    Fallback results carry metadata {"fallback": True, "fallbackReason": ...}.
    """
    try:
        if timeout_s is not None and timeout_s > 0:
            text = await asyncio.wait_for(backend.generate(messages, params), timeout_s)
        else:
            text = await backend.generate(messages, params)
    except asyncio.TimeoutError:
        logger.warning("Generation backend %s timed out after %.1f s", backend.name, timeout_s)
        return _fallback(FALLBACK_ERROR_REPLY, "timeout")
    except Exception as exc:  # noqa: BLE001
        # Any backend failure, including unexpected ones, degrades to fallback text.
        logger.warning("Generation backend %s failed: %s", backend.name, exc)
        return _fallback(FALLBACK_ERROR_REPLY, "error")

    if not isinstance(text, str) or not text.strip():
        logger.warning("Generation backend %s returned empty output.", backend.name)
        return _fallback(FALLBACK_EMPTY_REPLY, "empty")

    return ReplyResult(text=text.strip())
