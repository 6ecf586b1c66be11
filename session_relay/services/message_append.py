"""Append externally authored user messages to a conversation log."""
from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path
from typing import Optional

from session_relay.date_utils import utc_now_iso
from session_relay.models import ConversationContext, LogRecord, MessagePayload, SendMessageResult
from session_relay.observability import record_append, start_span
from session_relay.parsers.records import encode_record
from session_relay.services.conversation_context import load_context
from session_relay.services.session_resolver import resolve_session_file

logger = logging.getLogger("relay.append")


def build_user_record(content: str, context: ConversationContext, session_id: str) -> LogRecord:
    """A user turn chained onto the context's last valid record."""
    last = context.lastRecord
    return LogRecord(
        parentUuid=last.uuid if last else None,
        isSidechain=False,
        userType="external",
        cwd=context.cwd,
        sessionId=session_id,
        version=context.version,
        type="user",
        message=MessagePayload(role="user", content=content),
        uuid=str(uuid.uuid4()),
        timestamp=utc_now_iso(),
    )


def append_durable(path: Path, record: LogRecord) -> None:
    """Append ``record`` as a single line and bump the file's mtime.

    The line goes out in one O_APPEND write so concurrent readers never see
    half of it. The file must already exist; it is never truncated.
    """
    data = encode_record(record).encode("utf-8")
    fd = os.open(path, os.O_WRONLY | os.O_APPEND)
    try:
        written = os.write(fd, data)
        if written != len(data):
            raise OSError(f"Short write to {path}: {written} of {len(data)} bytes")
        os.fsync(fd)
    finally:
        os.close(fd)

    # Some watchers only react to mtime changes.
    os.utime(path, None)
    logger.info("Message appended to %s", path.name)


def send_message(
    session_id: str,
    message: str,
    project_path: Optional[str] = None,
    root_dir: Optional[Path] = None,
) -> SendMessageResult:
    """Resolve the session's log, chain a new user record and append it.

    Raises SessionNotFoundError when no log matches and OSError when the
    append fails.
    """
    logger.info("Sending message to session %s", session_id)
    with start_span("relay.send_message", {"session_id": session_id}):
        try:
            path = resolve_session_file(session_id, project_path, root_dir)
            context = load_context(path)
            record = build_user_record(message, context, session_id)
            append_durable(path, record)
        except Exception:
            record_append("error")
            raise

    record_append("success")
    logger.info("Message %s sent to %s", record.uuid, path)
    return SendMessageResult(success=True, messageId=record.uuid, sessionId=session_id)
