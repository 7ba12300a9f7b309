# coach_server/core/errors.py
# -*- coding: utf-8 -*-
"""
Interview Coach Server — Error taxonomy
---------------------------------------
Every error the service raises on purpose derives from CoachError and
carries the HTTP status plus a message that is safe to show a client.

    InvalidInput       400  missing / malformed field
    InvalidIdentifier  400  empty or malformed user id
    SessionNotFound    404  operation needs a record that does not exist
    BackendFailure     500  storage or generation backend failed
    InternalError      500  anything unexpected (details only in logs)

GenerationError is a BackendFailure that never reaches the client: the
reply pipeline turns it into fallback text.
"""

from __future__ import annotations


class CoachError(Exception):
    """Base class for all service errors."""

    status_code: int = 500
    public_message: str = "Internal server error"

    # 4xx messages describe the caller's mistake and are returned as-is;
    # 5xx messages may carry internals and stay in the logs.
    expose_message: bool = False

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)

    @property
    def client_message(self) -> str:
        if self.expose_message:
            return str(self)
        return self.public_message


class InvalidInput(CoachError):
    status_code = 400
    public_message = "Invalid request"
    expose_message = True


class InvalidIdentifier(InvalidInput):
    public_message = "userId is required"


class SessionNotFound(CoachError):
    status_code = 404
    public_message = "Session not found"
    expose_message = True


class BackendFailure(CoachError):
    """A collaborator (storage / generation) failed."""

    public_message = "Backend service error"


class StorageError(BackendFailure):
    """Raised when a session record cannot be read, written or deleted."""

    public_message = "Session storage error"


class GenerationError(BackendFailure):
    """Raised when every generation tier failed or returned nothing."""

    public_message = "Generation backend error"


class InternalError(CoachError):
    public_message = "Internal server error"
