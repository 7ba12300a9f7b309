# coach_server/models/api_models.py
# -*- coding: utf-8 -*-
"""
Interview Coach Server — Request / response models
--------------------------------------------------
Bodies of the HTTP endpoints. Every response is an envelope:

    {"success": true, ...payload}
    {"success": false, "error": "..."}

Field names are camelCase on the wire (userId, sessionData, ...).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, constr

from coach_server.models.session_model import CamelModel, Message, SessionRecord


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class SessionInitRequest(CamelModel):
    """Body of POST /session/init."""

    user_id: constr(strip_whitespace=True, min_length=1) = Field(
        ...,
        description="Stable identifier of the user.",
        examples=["user_123"],
    )
    interview_type: Optional[str] = Field(
        default=None,
        description="general | frontend | backend | fullstack (workflow mode only).",
        examples=["backend"],
    )


class ChatRequest(CamelModel):
    """Body of POST /chat and POST /session/message."""

    user_id: constr(strip_whitespace=True, min_length=1) = Field(
        ...,
        description="Stable identifier of the user.",
        examples=["user_123"],
    )
    message: constr(strip_whitespace=True, min_length=1) = Field(
        ...,
        description="User message in plain text.",
        examples=["I'm preparing for a backend role."],
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"userId": "user_123", "message": "Can we practice system design?"},
            ]
        }
    }


class SessionClearRequest(CamelModel):
    """Body of POST /session/clear."""

    user_id: constr(strip_whitespace=True, min_length=1)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class SessionInitResponse(CamelModel):
    success: bool = True
    session: SessionRecord


class ChatResponse(CamelModel):
    success: bool = True
    message: Message
    session_data: SessionRecord


class HistoryResponse(CamelModel):
    success: bool = True
    messages: List[Message] = Field(default_factory=list)
    user_profile: Dict[str, Any] = Field(default_factory=dict)


class ClearResponse(CamelModel):
    success: bool = True
    message: str = "Session cleared successfully"


class HealthResponse(CamelModel):
    success: bool = True
    message: str
    timestamp: datetime
    version: str


class ErrorResponse(CamelModel):
    success: bool = False
    error: str
