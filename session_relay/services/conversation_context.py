"""Recover the state a new record needs from the tail of a log."""
from __future__ import annotations

import logging
import os
from pathlib import Path

from session_relay import config
from session_relay.errors import MalformedLineError
from session_relay.models import ConversationContext
from session_relay.observability import record_malformed_line
from session_relay.parsers.records import decode_line
from session_relay.parsers.sessions import read_log_lines

logger = logging.getLogger("relay.context")


def default_context() -> ConversationContext:
    return ConversationContext(
        lastRecord=None,
        cwd=os.getcwd(),
        version=config.DEFAULT_AGENT_VERSION,
    )


def load_context(path: Path) -> ConversationContext:
    """Context built from the last valid record in ``path``.

    Lines are tried from the end backwards so a torn trailing write falls
    back to the last good record. Empty, unreadable and fully malformed logs
    give the default context.
    """
    try:
        lines = read_log_lines(path)
    except OSError as exc:
        logger.error("Error reading conversation context from %s: %s", path, exc)
        return default_context()

    for index in range(len(lines) - 1, -1, -1):
        try:
            record = decode_line(lines[index])
        except MalformedLineError:
            logger.warning("Skipping invalid JSON line %d: %s...", index + 1, lines[index].strip()[:50])
            record_malformed_line("context")
            continue
        return ConversationContext(
            lastRecord=record,
            cwd=record.cwd or os.getcwd(),
            version=record.version or config.DEFAULT_AGENT_VERSION,
            sessionId=record.sessionId,
        )

    if lines:
        logger.warning("No valid JSON record found in %s", path.name)
    return default_context()
