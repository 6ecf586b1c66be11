"""Error types shared by the relay services."""
from __future__ import annotations


class RelayError(Exception):
    """Base class for session relay failures."""


class MalformedLineError(RelayError):
    """A log line could not be decoded into a record."""

    def __init__(self, line: str, reason: str):
        self.line = line
        self.reason = reason
        super().__init__(f"Malformed log line ({reason}): {line[:50]}")


class SessionNotFoundError(RelayError):
    """No backing log file exists for a session identifier."""

    def __init__(self, session_id: str, message: str | None = None):
        self.session_id = session_id
        super().__init__(message or f"Conversation file not found for session {session_id}")
