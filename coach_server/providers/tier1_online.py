# coach_server/providers/tier1_online.py
# -*- coding: utf-8 -*-
"""
Interview Coach Server — Tier1 Online Provider (OpenRouter)
-----------------------------------------------------------
The ONLY place that knows how to talk to OpenRouter.

- Build the HTTP request (URL, headers, JSON payload).
- Map GenerationParams onto the chat-completions payload.
- Parse the response and return assistant text.

Used by core/generate.py, which walks tier1_model_candidates in order and
falls back to Tier2 when this provider raises Tier1Error.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from coach_server.core.config import Settings, settings as default_settings
from coach_server.core.types import ChatMessage, GenerationParams

logger = logging.getLogger(__name__)


class Tier1Error(Exception):
    """Raised when Tier1 (online) fails in a recoverable way."""


def _build_openrouter_payload(
    messages: List[ChatMessage],
    model_name: str,
    params: GenerationParams,
) -> Dict[str, Any]:
    """
    Build the JSON payload for OpenRouter.

    Parameters
    ----------
    messages:
        List of {"role": "system"|"user"|"assistant", "content": "..."} dicts.
    model_name:
        Any OpenRouter model ID, e.g. "meta-llama/llama-3.1-8b-instruct".
    params:
        Sampling parameters (max_tokens, temperature, top_p).
    """
    return {
        "model": model_name,
        "messages": messages,
        "max_tokens": params.max_tokens,
        "temperature": params.temperature,
        "top_p": params.top_p,
    }


def call_tier1_model(
    messages: List[ChatMessage],
    model_name: str,
    params: GenerationParams,
    cfg: Optional[Settings] = None,
) -> str:
    """
    Call a Tier1 online model via OpenRouter and return the assistant's text.

    Endpoint, key and timeout come from `cfg` (the process settings when
    omitted), so an app built with its own Settings reaches its own tier.

    Returns
    -------
    content: str
        The assistant's reply (already stripped).

    Raises
    ------
    Tier1Error
        If Tier1 is disabled, misconfigured, or the HTTP/JSON fails.
    """
    if cfg is None:
        cfg = default_settings
    if not cfg.tier1_enabled:
        raise Tier1Error("Tier1 is disabled in config.")

    api_key = cfg.tier1_api_key
    if not api_key:
        raise Tier1Error("Tier1 API key is missing.")

    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }
    payload = _build_openrouter_payload(messages, model_name, params)

    try:
        resp = requests.post(
            cfg.tier1_base_url,
            headers=headers,
            json=payload,
            timeout=cfg.tier1_timeout_s,
        )
    except requests.RequestException as exc:
        raise Tier1Error(f"Tier1 HTTP error: {exc}") from exc

    if resp.status_code != 200:
        text_preview = resp.text[:200].replace("\n", " ")
        raise Tier1Error(f"Tier1 HTTP {resp.status_code}: {text_preview}")

    try:
        data = resp.json()
    except ValueError as exc:
        raise Tier1Error("Tier1 returned non-JSON response.") from exc

    try:
        # OpenAI/OpenRouter-style: choices[0].message.content
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise Tier1Error(
            "Tier1 response JSON missing choices[0].message.content"
        ) from exc

    if not isinstance(content, str) or not content.strip():
        raise Tier1Error("Tier1 returned empty content.")

    return content.strip()
