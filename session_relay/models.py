"""Pydantic models for log records and the relay HTTP payloads."""
from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional, Union

# ── Log record models ───────────────────────────────────────────────

class MessagePayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: Optional[str] = None
    # Plain text, or a list of typed blocks ({"type": "text", "text": ...}, tool_use, ...)
    content: Union[str, list[Any], None] = None


class LogRecord(BaseModel):
    """One line of a conversation log. Unknown agent fields are kept as extras."""

    model_config = ConfigDict(extra="allow")

    parentUuid: Optional[str] = None
    isSidechain: Optional[bool] = None
    userType: Optional[str] = None
    cwd: Optional[str] = None
    sessionId: Optional[str] = None
    version: Optional[str] = None
    type: Optional[str] = None
    message: Optional[MessagePayload] = None
    uuid: Optional[str] = None
    timestamp: Optional[str] = None


class ConversationContext(BaseModel):
    """Request-scoped view of a log used to chain a new record."""

    lastRecord: Optional[LogRecord] = None
    cwd: str
    version: str
    sessionId: Optional[str] = None


# ── Session listing ─────────────────────────────────────────────────

class SessionSummary(BaseModel):
    sessionId: str
    projectPath: str
    filePath: str
    lastModified: str
    lastMessage: str = "No messages"
    lastMessageRole: Optional[str] = None
    lastMessageTimestamp: Optional[str] = None
    messageCount: int = 0


class SessionListResponse(BaseModel):
    sessions: list[SessionSummary] = Field(default_factory=list)


# ── Messaging ───────────────────────────────────────────────────────

class SendMessageRequest(BaseModel):
    sessionId: Optional[str] = None
    message: Optional[str] = None
    projectPath: Optional[str] = None


class SendMessageResult(BaseModel):
    success: bool = True
    messageId: str
    sessionId: str
    message: str = "Message sent to Claude Code conversation"


class ConversationResponse(BaseModel):
    conversation: list[dict[str, Any]] = Field(default_factory=list)


class ServiceDescriptor(BaseModel):
    service: str
    status: str = "running"
    port: int
    version: str
    description: str = ""
    endpoints: dict[str, str] = Field(default_factory=dict)
    timestamp: str
