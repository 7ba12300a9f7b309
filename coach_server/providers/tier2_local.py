# coach_server/providers/tier2_local.py
# -*- coding: utf-8 -*-
"""

Interview Coach Server — Tier2 Local Provider (Ollama)

"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from coach_server.core.config import Settings, settings as default_settings
from coach_server.core.types import ChatMessage, GenerationParams

logger = logging.getLogger(__name__)


class Tier2Error(Exception):
    """Raised when Tier2 (local) fails in a recoverable way."""


def call_tier2_model(
    messages: List[ChatMessage],
    params: GenerationParams,
    cfg: Optional[Settings] = None,
) -> str:
    """
    Entry point for Tier2 local models.

    `cfg` defaults to the process settings.

    Raises
    ------
    Tier2Error
        If Tier2 is disabled, misconfigured, or the HTTP/JSON fails.
    """
    if cfg is None:
        cfg = default_settings
    if not cfg.tier2_enabled:
        raise Tier2Error("Tier2 is disabled in config.")

    return _call_ollama(messages, params, cfg)


def _call_ollama(messages: List[ChatMessage], params: GenerationParams, cfg: Settings) -> str:
    """
    Call a local Ollama model via HTTP.

    Expected config:
        cfg.tier2_ollama_url   e.g. "http://localhost:11434/api/chat"
        cfg.tier2_ollama_model e.g. "llama3.1:8b"
    """
    base_url = cfg.tier2_ollama_url
    model = cfg.tier2_ollama_model

    if not base_url or not model:
        raise Tier2Error(
            "Tier2 (Ollama) is not configured. "
            "Set TIER2_OLLAMA_URL and TIER2_OLLAMA_MODEL in your .env "
            "or disable Tier2."
        )

    # stream=false so we get a single JSON object back.
    payload: Dict[str, Any] = {
        "model": model,
        "messages": messages,
        "stream": False,
        "options": {
            "num_predict": params.max_tokens,
            "temperature": params.temperature,
            "top_p": params.top_p,
        },
    }

    try:
        resp = requests.post(base_url, json=payload, timeout=cfg.tier2_timeout_s)
    except requests.RequestException as exc:
        raise Tier2Error(f"Ollama HTTP error: {exc}") from exc

    if resp.status_code != 200:
        text_preview = resp.text[:200].replace("\n", " ")
        raise Tier2Error(f"Ollama HTTP {resp.status_code}: {text_preview}")

    try:
        data = resp.json()
    except ValueError as exc:
        raise Tier2Error("Ollama returned non-JSON response.") from exc

    # /api/chat (stream=false):
    #   {"model": "...", "message": {"role": "assistant", "content": "..."}, "done": true}
    message = data.get("message") if isinstance(data, dict) else None
    if not isinstance(message, dict):
        raise Tier2Error("Ollama response JSON missing message object.")
    content = message.get("content")

    if not isinstance(content, str) or not content.strip():
        raise Tier2Error("Ollama returned empty content.")

    return content.strip()
