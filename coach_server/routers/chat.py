# coach_server/routers/chat.py
# -*- coding: utf-8 -*-
"""
Interview Coach Server — /chat router
-------------------------------------
Public chat endpoint used by the browser UI.

Flow:
  HTTP POST /chat  {userId, message}
    -> SessionRouter resolves the user's SessionActor
    -> actor appends the user message, asks the reply pipeline
       (conversation or workflow) for the next turn, persists both
    -> {success, message, sessionData}

Both fields are required; a missing or blank one is a 400. A user that
never called /session/init gets a 404.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from coach_server.models.api_models import ChatRequest, ChatResponse
from coach_server.routers.common import get_session_router
from coach_server.routers.session import send_message
from coach_server.runtime_state import SessionRouter

router = APIRouter(tags=["chat"])
logger = logging.getLogger(__name__)


@router.post(
    "/chat",
    response_model=ChatResponse,
    response_model_exclude_none=True,
)
async def chat_endpoint(
    request: ChatRequest,
    sessions: SessionRouter = Depends(get_session_router),
) -> ChatResponse:
    """Main chat endpoint for the coaching UI."""
    logger.info("[/chat] user=%s chars=%d", request.user_id, len(request.message))
    return await send_message(sessions, request)
