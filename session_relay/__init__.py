"""Relay between HTTP callers and Claude Code conversation logs."""
