# coach_server/core/types.py
# -*- coding: utf-8 -*-
"""
Interview Coach Server — Shared type helpers
--------------------------------------------
Small shared definitions used across the core:

- RoleLabel        : "system" | "user" | "assistant"
- ChatMessage      : OpenAI-style {"role": ..., "content": ...} dict
- GenerationParams : sampling parameters passed to every provider
- ReplyResult      : next assistant turn produced by a reply pipeline
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional

RoleLabel = Literal["system", "user", "assistant"]

# {"role": "system"|"user"|"assistant", "content": "..."}
ChatMessage = Dict[str, str]


@dataclass(frozen=True)
class GenerationParams:
    """
    Sampling parameters for one generation call.

    Attributes
    ----------
    max_tokens:
        Upper bound on generated tokens.
    temperature:
        Sampling temperature.
    top_p:
        Nucleus-sampling threshold.
    """
    max_tokens: int = 400
    temperature: float = 0.7
    top_p: float = 0.9


@dataclass
class ReplyResult:
    """
    Assistant turn produced by a reply pipeline.

    Attributes
    ----------
    text:
        Content of the assistant message (never empty).
    metadata:
        Optional step metadata attached to the message
        (questionType, difficulty, interviewComplete, ...).
    fallback:
        True when the text is a fixed fallback string rather than
        generated or selected content; metadata then holds
        {"fallback": True, "fallbackReason": "error" | "timeout" | "empty"}.
    """
    text: str
    metadata: Optional[Dict[str, Any]] = None
    fallback: bool = False
