# coach_server/core/config.py
# -*- coding: utf-8 -*-
"""
Interview Coach Server — Configuration
--------------------------------------
Central configuration for the coaching server, including:

- app metadata and API host/port/prefix
- session storage backend (JSON files or in-memory)
- reply strategy (free conversation vs. structured interview workflow)
- generation parameters shared by every provider
- Tier1 (online via OpenRouter) and Tier2 (local via Ollama HTTP)

"""

from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

# This file is: <root>/coach_server/core/config.py
PACKAGE_DIR: Path = Path(__file__).resolve().parents[1]   # .../coach_server
ROOT_DIR: Path = PACKAGE_DIR.parent                       # project root

PROMPTS_DIR: Path = PACKAGE_DIR / "prompts"
SESSIONS_DIR: Path = ROOT_DIR / "data" / "sessions"


InterviewType = Literal["general", "frontend", "backend", "fullstack"]
CoachMode = Literal["conversation", "workflow"]


# ---------------------------------------------------------------------------
# Settings model
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """
    Global configuration for the coaching server.

    Instantiated once at import time as `settings`. The app factory
    accepts another instance, which is how tests run with in-memory
    storage and a fixed workflow seed.
    """

    model_config = SettingsConfigDict(
        env_file=ROOT_DIR / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- App / server basics -----------------------------------------------
    app_name: str = "AI Interview Coach"
    app_version: str = "1.0.0"
    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False

    api_host: str = "0.0.0.0"
    api_port: int = 8787
    api_prefix: str = "/api"

    # --- Logging -------------------------------------------------------------
    # Explicit root level ("DEBUG", "INFO", ...); None derives it from debug.
    log_level: Optional[str] = None
    # Held at quiet_log_level (HTTP client and access loggers).
    quiet_loggers: List[str] = Field(
        default_factory=lambda: ["uvicorn.access", "urllib3", "requests", "httpx"]
    )
    quiet_log_level: str = "WARNING"

    # --- Session storage ----------------------------------------------------
    storage_backend: Literal["file", "memory"] = "file"
    sessions_dir: Path = SESSIONS_DIR
    prompts_dir: Path = PROMPTS_DIR

    # --- Session router -----------------------------------------------------
    max_user_id_length: int = 128
    max_live_actors: int = 1024
    actor_idle_timeout_s: float = 900.0

    # --- Reply strategy -----------------------------------------------------
    # "conversation": forward a bounded window of history to the LLM.
    # "workflow"    : deterministic five-step mock interview.
    coach_mode: CoachMode = "conversation"
    default_interview_type: InterviewType = "general"
    workflow_seed: Optional[int] = Field(
        default=None,
        description="Seed for prompt selection (env: WORKFLOW_SEED).",
    )

    # --- Generation parameters (shared by all tiers) -----------------------
    context_window_messages: int = 5
    generation_max_tokens: int = 400
    generation_temperature: float = 0.7
    generation_top_p: float = 0.9
    generation_timeout_s: float = 30.0

    max_message_chars: int = 4000

    # --- Tier1: Online provider (OpenRouter) -------------------------------
    tier1_enabled: bool = True
    tier1_base_url: str = "https://openrouter.ai/api/v1/chat/completions"

    # ENV: TIER1_API_KEY=sk-or-v1-...
    tier1_api_key: str | None = Field(
        default=None,
        description="API key for Tier1 online provider (env: TIER1_API_KEY).",
    )

    # Priority-ordered model list for Tier1 (first → last).
    tier1_model_candidates: list[str] = [
        "meta-llama/llama-3.1-8b-instruct",
        "meta-llama/llama-3.3-70b-instruct:free",
    ]
    tier1_timeout_s: float = 18.0

    # --- Tier2: Local backend (Ollama HTTP) --------------------------------
    #   TIER2_OLLAMA_URL   (e.g. http://localhost:11434/api/chat)
    #   TIER2_OLLAMA_MODEL (e.g. llama3.1:8b)
    tier2_enabled: bool = True
    tier2_ollama_url: str | None = Field(
        default=None,
        description="Ollama chat endpoint (env: TIER2_OLLAMA_URL).",
    )
    tier2_ollama_model: str | None = Field(
        default=None,
        description="Ollama model name (env: TIER2_OLLAMA_MODEL).",
    )
    tier2_timeout_s: float = 60.0


# Single global settings instance used by the rest of the app.
settings = Settings()
