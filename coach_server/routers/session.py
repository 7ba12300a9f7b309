# coach_server/routers/session.py
# -*- coding: utf-8 -*-
"""
Interview Coach Server — /session router
----------------------------------------
Session lifecycle endpoints:

    POST /session/init     {userId, interviewType?} -> {success, session}
    POST /session/message  {userId, message}        -> {success, message, sessionData}
    GET  /session/history  ?userId=...              -> {success, messages, userProfile}
    POST /session/clear    {userId}                 -> {success, message}

Each endpoint builds a SessionCommand and hands it to the SessionRouter,
which resolves the user's actor and runs the operation there.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from coach_server.core.errors import InvalidIdentifier
from coach_server.models.api_models import (
    ChatRequest,
    ChatResponse,
    ClearResponse,
    HistoryResponse,
    SessionClearRequest,
    SessionInitRequest,
    SessionInitResponse,
)
from coach_server.routers.common import get_session_router, run_command
from coach_server.runtime_state import SessionCommand, SessionOperation, SessionRouter

router = APIRouter(prefix="/session", tags=["session"])
logger = logging.getLogger(__name__)


@router.post(
    "/init",
    response_model=SessionInitResponse,
    response_model_exclude_none=True,
)
async def init_session(
    body: SessionInitRequest,
    sessions: SessionRouter = Depends(get_session_router),
) -> SessionInitResponse:
    """Create the user's session or return the existing one."""
    record = await run_command(
        sessions,
        SessionCommand(
            SessionOperation.INIT,
            user_id=body.user_id,
            interview_type=body.interview_type,
        ),
    )
    logger.info("[/session/init] user=%s messages=%d", record.user_id, len(record.messages))
    return SessionInitResponse(session=record)


@router.post(
    "/message",
    response_model=ChatResponse,
    response_model_exclude_none=True,
)
async def post_message(
    body: ChatRequest,
    sessions: SessionRouter = Depends(get_session_router),
) -> ChatResponse:
    """Append a user message and return the assistant reply."""
    return await send_message(sessions, body)


@router.get(
    "/history",
    response_model=HistoryResponse,
    response_model_exclude_none=True,
)
async def get_history(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    sessions: SessionRouter = Depends(get_session_router),
) -> HistoryResponse:
    """Messages and profile; empty when the user has no session."""
    if not user_id or not user_id.strip():
        raise InvalidIdentifier("userId parameter is required")

    history = await run_command(
        sessions,
        SessionCommand(SessionOperation.HISTORY, user_id=user_id),
    )
    profile = history.user_profile.to_json_dict() if history.user_profile else {}
    return HistoryResponse(messages=history.messages, user_profile=profile)


@router.post(
    "/clear",
    response_model=ClearResponse,
)
async def clear_session(
    body: SessionClearRequest,
    sessions: SessionRouter = Depends(get_session_router),
) -> ClearResponse:
    """Delete the user's session; succeeds even if none exists."""
    await run_command(
        sessions,
        SessionCommand(SessionOperation.CLEAR, user_id=body.user_id),
    )
    logger.info("[/session/clear] user=%s", body.user_id)
    return ClearResponse()


async def send_message(sessions: SessionRouter, body: ChatRequest) -> ChatResponse:
    result = await run_command(
        sessions,
        SessionCommand(
            SessionOperation.MESSAGE,
            user_id=body.user_id,
            message=body.message,
        ),
    )
    logger.info(
        "[message] user=%s reply_id=%d total=%d",
        result.record.user_id,
        result.message.message_id,
        len(result.record.messages),
    )
    return ChatResponse(message=result.message, session_data=result.record)
