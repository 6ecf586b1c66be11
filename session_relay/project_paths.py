"""Mapping between project paths and the agent's project directory names.

The agent stores each project's logs in a directory named after the project's
absolute path with ``/`` flattened to ``-`` (``/Users/me/app`` becomes
``Users-me-app``; directories created by the agent itself may also carry a
leading ``-``). The substitution cannot represent a ``-`` inside a path
segment; such names decode to extra path components.
"""
from __future__ import annotations

PATH_SEPARATOR = "/"
FILLER = "-"
ROOT_PREFIX = "/"


def encode_project_path(project_path: str) -> str:
    """``/Users/me/app`` -> ``Users-me-app``."""
    encoded = project_path.replace(PATH_SEPARATOR, FILLER)
    if encoded.startswith(FILLER):
        encoded = encoded[len(FILLER):]
    return encoded


def decode_project_path(dir_name: str) -> str:
    """``Users-me-app`` (or ``-Users-me-app``) -> ``/Users/me/app``."""
    name = dir_name[len(FILLER):] if dir_name.startswith(FILLER) else dir_name
    return ROOT_PREFIX + name.replace(FILLER, PATH_SEPARATOR)
