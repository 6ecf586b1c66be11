"""Discover conversation logs under the agent's project directory tree."""
from __future__ import annotations

import logging
import time
from pathlib import Path

from session_relay import config
from session_relay.date_utils import epoch_to_iso
from session_relay.errors import MalformedLineError
from session_relay.models import LogRecord, SessionSummary
from session_relay.observability import record_malformed_line, record_scan, start_span
from session_relay.parsers.records import decode_line, extract_preview
from session_relay.project_paths import decode_project_path

logger = logging.getLogger("relay.scanner")

NO_MESSAGES_PLACEHOLDER = "No messages"


def read_log_lines(path: Path) -> list[str]:
    """Non-blank lines of a log file, in file order.

    Only ``\\n`` separates records; JSON strings may hold raw U+2028/U+0085.
    """
    content = path.read_text(encoding="utf-8", errors="replace")
    return [line for line in content.split("\n") if line.strip()]


def _summarize_file(path: Path, project_path: str, mtime: float) -> SessionSummary:
    summary = SessionSummary(
        sessionId=path.name[: -len(config.LOG_SUFFIX)],
        projectPath=project_path,
        filePath=str(path),
        lastModified=epoch_to_iso(mtime),
    )
    try:
        lines = read_log_lines(path)
    except OSError as exc:
        logger.warning("Could not read session log %s: %s", path, exc)
        return summary

    summary.messageCount = len(lines)
    if not lines:
        return summary

    try:
        last: LogRecord = decode_line(lines[-1])
    except MalformedLineError as exc:
        logger.warning("Last line of %s is not a valid record: %s", path.name, exc.reason)
        record_malformed_line("scanner")
        return summary

    summary.lastMessage = extract_preview(last)
    summary.lastMessageTimestamp = last.timestamp
    summary.lastMessageRole = (last.message.role if last.message else None) or last.type
    return summary


def _iter_project_dirs(root_dir: Path) -> list[Path]:
    try:
        return sorted(p for p in root_dir.iterdir() if p.is_dir())
    except OSError as exc:
        logger.warning("Could not list project directories in %s: %s", root_dir, exc)
        return []


def list_sessions(root_dir: Path | None = None) -> list[SessionSummary]:
    """Summaries of every session log, most recently modified first.

    A missing root yields an empty list. Failures are isolated per project
    directory and per file so that one bad entry never hides its siblings.
    """
    root = root_dir or config.PROJECTS_DIR
    if not root.exists():
        return []

    started = time.perf_counter()
    entries: list[tuple[float, SessionSummary]] = []
    with start_span("relay.list_sessions", {"root": str(root)}):
        for project_dir in _iter_project_dirs(root):
            project_path = decode_project_path(project_dir.name)
            try:
                candidates = sorted(project_dir.iterdir())
            except OSError as exc:
                logger.warning("Skipping unreadable project directory %s: %s", project_dir, exc)
                continue

            for path in candidates:
                if not path.name.endswith(config.LOG_SUFFIX) or path.name == config.LOG_SUFFIX:
                    continue
                try:
                    if not path.is_file():
                        continue
                    mtime = path.stat().st_mtime
                except OSError as exc:
                    logger.warning("Skipping session log %s: %s", path, exc)
                    continue
                entries.append((mtime, _summarize_file(path, project_path, mtime)))

    entries.sort(key=lambda item: item[0], reverse=True)
    sessions = [summary for _, summary in entries]
    record_scan((time.perf_counter() - started) * 1000)
    return sessions


def read_conversation(path: Path) -> list[LogRecord]:
    """Every decodable record in a log, skipping malformed lines."""
    records: list[LogRecord] = []
    for index, line in enumerate(read_log_lines(path), start=1):
        try:
            records.append(decode_line(line))
        except MalformedLineError as exc:
            logger.warning("Skipping invalid line %d of %s: %s", index, path.name, exc.reason)
            record_malformed_line("conversation")
    return records
