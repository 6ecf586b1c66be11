"""Decode and encode single lines of a JSONL conversation log."""
from __future__ import annotations

import json

from pydantic import ValidationError

from session_relay.errors import MalformedLineError
from session_relay.models import LogRecord

NO_CONTENT_PLACEHOLDER = "[No content]"
NON_TEXT_PLACEHOLDER = "[Tool use or other content]"


def decode_line(line: str) -> LogRecord:
    """Parse one log line, raising MalformedLineError when it is not a usable record."""
    text = line.strip()
    if not text:
        raise MalformedLineError(line, "blank line")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedLineError(line, f"invalid JSON: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise MalformedLineError(line, f"expected an object, got {type(payload).__name__}")
    try:
        return LogRecord.model_validate(payload)
    except ValidationError as exc:
        raise MalformedLineError(line, f"unexpected record shape ({exc.error_count()} errors)") from exc


def encode_record(record: LogRecord) -> str:
    """Serialize a record as one compact JSON line terminated by a newline."""
    return record.model_dump_json(exclude_unset=True) + "\n"


def record_to_dict(record: LogRecord) -> dict:
    """Plain dict with the keys the record was read or built with."""
    return record.model_dump(exclude_unset=True)


def extract_preview(record: LogRecord) -> str:
    """Display text for a record's message content."""
    content = record.message.content if record.message else None
    if isinstance(content, str) and content:
        return content
    if isinstance(content, list):
        texts = [
            str(block.get("text") or "")
            for block in content
            if isinstance(block, dict) and block.get("type") == "text"
        ]
        text = " ".join(texts)
        return text or NON_TEXT_PLACEHOLDER
    return NO_CONTENT_PLACEHOLDER
