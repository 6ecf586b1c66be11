"""API routers for session discovery, message relay and conversation history."""
from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, HTTPException

from session_relay import config
from session_relay.errors import SessionNotFoundError
from session_relay.models import (
    ConversationResponse,
    SendMessageRequest,
    SendMessageResult,
    SessionListResponse,
)
from session_relay.parsers.records import record_to_dict
from session_relay.parsers.sessions import list_sessions, read_conversation
from session_relay.services.message_append import send_message as append_message
from session_relay.services.notifier import dispatch_notification
from session_relay.services.session_resolver import resolve_session_file

logger = logging.getLogger("relay.api")

# ── Sessions router ─────────────────────────────────────────────────

sessions_router = APIRouter(prefix="/api/sessions", tags=["sessions"])


@sessions_router.get("", response_model=SessionListResponse)
async def get_sessions():
    """Active agent sessions, most recently modified first."""
    try:
        sessions = list_sessions(config.PROJECTS_DIR)
    except Exception as e:
        logger.exception("Error getting sessions")
        raise HTTPException(status_code=500, detail=str(e))
    return SessionListResponse(sessions=sessions)


# ── Messages router ─────────────────────────────────────────────────

messages_router = APIRouter(prefix="/api", tags=["messages"])


@messages_router.post("/send-message", response_model=SendMessageResult)
async def send_message(payload: SendMessageRequest, background_tasks: BackgroundTasks):
    """Append a user message to a session's log, then nudge the agent."""
    if not payload.sessionId or not payload.message:
        raise HTTPException(status_code=400, detail="sessionId and message are required")

    try:
        result = append_message(
            payload.sessionId,
            payload.message,
            payload.projectPath,
            root_dir=config.PROJECTS_DIR,
        )
    except SessionNotFoundError as e:
        logger.warning("Error sending message: %s", e)
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.exception("Error sending message to session %s", payload.sessionId)
        raise HTTPException(status_code=500, detail=str(e))

    # Runs after the response has been sent.
    background_tasks.add_task(dispatch_notification, payload.message)
    return result


# ── Conversation router ─────────────────────────────────────────────

conversation_router = APIRouter(prefix="/api/conversation", tags=["conversation"])


@conversation_router.get("/{session_id}", response_model=ConversationResponse)
async def get_conversation(session_id: str):
    """Every decodable record of a session's log, in file order."""
    try:
        path = resolve_session_file(session_id, root_dir=config.PROJECTS_DIR)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=500, detail=f"Conversation not found for session {e.session_id}")

    try:
        records = read_conversation(path)
    except Exception as e:
        logger.exception("Error getting conversation %s", session_id)
        raise HTTPException(status_code=500, detail=str(e))
    return ConversationResponse(conversation=[record_to_dict(record) for record in records])
