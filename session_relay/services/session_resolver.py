"""Locate the log file backing a session identifier."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from session_relay import config
from session_relay.errors import SessionNotFoundError
from session_relay.project_paths import encode_project_path

logger = logging.getLogger("relay.resolver")


def _is_safe_name(name: str) -> bool:
    """A single path component that stays inside its parent directory."""
    if not name or name in {".", ".."}:
        return False
    return "/" not in name and "\\" not in name and "\x00" not in name


def session_file_name(session_id: str) -> str:
    return f"{session_id}{config.LOG_SUFFIX}"


def resolve_session_file(
    session_id: str,
    project_path: Optional[str] = None,
    root_dir: Optional[Path] = None,
) -> Path:
    """Return the log file for ``session_id``.

    The directory derived from ``project_path`` is tried first; otherwise
    every project directory is searched and the first match wins.
    Raises SessionNotFoundError when nothing matches.
    """
    if not _is_safe_name(session_id):
        raise SessionNotFoundError(session_id)

    root = root_dir or config.PROJECTS_DIR
    file_name = session_file_name(session_id)

    project_dir_name = encode_project_path(project_path) if project_path else ""
    if project_dir_name and not _is_safe_name(project_dir_name):
        logger.warning("Ignoring project path %r outside the projects directory", project_path)
    elif project_dir_name:
        candidate = root / project_dir_name / file_name
        if candidate.is_file():
            return candidate
        logger.debug("Session %s not under hinted project %s, scanning all projects", session_id, project_path)

    try:
        project_dirs = sorted(p for p in root.iterdir() if p.is_dir())
    except OSError as exc:
        logger.warning("Could not list project directories in %s: %s", root, exc)
        raise SessionNotFoundError(session_id) from exc

    for project_dir in project_dirs:
        candidate = project_dir / file_name
        if candidate.is_file():
            return candidate

    raise SessionNotFoundError(session_id)
