"""Observability helpers."""

from session_relay.observability.otel import (
    initialize,
    shutdown,
    start_span,
    record_append,
    record_malformed_line,
    record_notification,
    record_scan,
)

__all__ = [
    "initialize",
    "shutdown",
    "start_span",
    "record_append",
    "record_malformed_line",
    "record_notification",
    "record_scan",
]
