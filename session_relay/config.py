"""Session Relay configuration."""
import os
from pathlib import Path
from typing import Optional


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


# Agent log layout
CLAUDE_DIR = Path(os.getenv("RELAY_CLAUDE_DIR", str(Path.home() / ".claude"))).expanduser()
PROJECTS_DIR = CLAUDE_DIR / "projects"
LOG_SUFFIX = ".jsonl"

# Fields inherited by appended records when the log has nothing to offer
DEFAULT_AGENT_VERSION = os.getenv("RELAY_DEFAULT_AGENT_VERSION", "1.0.44")

# Notification
AGENT_PROCESS_NAME = os.getenv("RELAY_AGENT_PROCESS_NAME", "claude")
NOTIFY_ENABLED = _env_bool("RELAY_NOTIFY_ENABLED", True)
NOTIFY_TIMEOUT_SECONDS = _env_float("RELAY_NOTIFY_TIMEOUT_SECONDS", 10.0)

# Observability
OTEL_ENABLED = _env_bool("RELAY_OTEL_ENABLED", False)
OTEL_ENDPOINT = os.getenv("RELAY_OTEL_ENDPOINT", "http://localhost:4318")
OTEL_SERVICE_NAME = os.getenv("RELAY_OTEL_SERVICE_NAME", "session-relay")
PROM_PORT = _env_int("RELAY_PROM_PORT", 9465)

# Server settings
SERVICE_NAME = "Claude API Proxy"
SERVICE_VERSION = "1.0.0"
HOST = os.getenv("RELAY_HOST", "127.0.0.1")
DEFAULT_PORT = 3335
PORT_ENV_VARS = ("CLAUDE_CODE_TEMPLATES_API_PROXY_PORT", "API_PROXY_PORT")
LOG_LEVEL = os.getenv("RELAY_LOG_LEVEL", "INFO").upper()

# CORS
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("RELAY_CORS_ORIGINS", "*").split(",")
    if origin.strip()
]


def resolve_port(option: Optional[int | str] = None) -> int:
    """Pick the listening port: explicit option, then env vars, then the default."""
    candidates = [option] + [os.getenv(name) for name in PORT_ENV_VARS]
    for candidate in candidates:
        if candidate is None or candidate == "":
            continue
        try:
            return int(candidate)
        except (TypeError, ValueError):
            continue
    return DEFAULT_PORT
