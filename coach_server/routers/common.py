# coach_server/routers/common.py
# -*- coding: utf-8 -*-
"""
Interview Coach Server — shared router helpers
----------------------------------------------
- get_session_router(): FastAPI dependency returning the SessionRouter
  stored on app.state by create_app().
- run_command(): dispatch one SessionCommand, letting CoachError through
  to the exception handlers and turning anything else into InternalError
  after logging it.
"""

from __future__ import annotations

import logging

from fastapi import Request

from coach_server.core.errors import CoachError, InternalError
from coach_server.runtime_state import SessionCommand, SessionRouter
from coach_server.runtime_state.router import SessionOutcome

logger = logging.getLogger(__name__)


def get_session_router(request: Request) -> SessionRouter:
    return request.app.state.session_router


async def run_command(router: SessionRouter, command: SessionCommand) -> SessionOutcome:
    try:
        return await router.dispatch(command)
    except CoachError:
        raise
    except Exception as exc:  # noqa: BLE001
        logger.exception(
            "Unhandled exception in session %s for user %r",
            command.operation.value,
            command.user_id,
        )
        raise InternalError() from exc
