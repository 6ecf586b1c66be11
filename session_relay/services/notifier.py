"""Best-effort nudges that surface an appended message to the live agent.

The log append is the authoritative effect; everything here is advisory.
Failures are logged and never reach the HTTP caller.
"""
from __future__ import annotations

import logging
import subprocess
import sys
from typing import Optional

from session_relay import config
from session_relay.observability import record_notification

logger = logging.getLogger("relay.notify")

_TERMINAL_TAB_SCRIPT = """
set messageText to "{message}"
set success to false

tell application "Terminal"
  set agentFound to false
  repeat with w in windows
    repeat with t in tabs of w
      try
        if (tty of t) is "{tty}" then
          set agentFound to true
          set selected tab of w to t
          set frontmost of w to true
          activate
          delay 0.5
          do script messageText & return in t
          set success to true
          exit repeat
        end if
      end try
    end repeat
    if agentFound then exit repeat
  end repeat
end tell

return success
"""


def sanitize_applescript_string(value: str) -> str:
    """Escape text for use inside an AppleScript double-quoted literal."""
    if not value:
        return value
    # Backslashes first, then everything that could end the literal.
    return (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )


class AgentNotifier:
    """Capability interface for surfacing a message to the agent process."""

    name = "base"
    supported = False

    def notify(self, message_text: str) -> bool:
        raise NotImplementedError


class UnsupportedNotifier(AgentNotifier):
    """No-op used on every platform without a delivery mechanism."""

    name = "unsupported"

    def __init__(self, reason: str = ""):
        self.reason = reason or f"platform {sys.platform!r}"

    def notify(self, message_text: str) -> bool:
        logger.warning(
            "Message injection only supported on macOS with Terminal.app (%s); skipping",
            self.reason,
        )
        return False


class TerminalAppNotifier(AgentNotifier):
    """macOS: type the message into the Terminal.app tab that owns the agent's TTY."""

    name = "terminal_app"
    supported = True

    def __init__(self, process_name: Optional[str] = None, timeout: Optional[float] = None):
        self.process_name = process_name or config.AGENT_PROCESS_NAME
        self.timeout = timeout if timeout is not None else config.NOTIFY_TIMEOUT_SECONDS

    def _run(self, args: list[str]) -> subprocess.CompletedProcess:
        return subprocess.run(args, capture_output=True, text=True, check=False, timeout=self.timeout)

    def find_agent_tty(self) -> Optional[str]:
        """Device path of the agent's controlling terminal, e.g. ``/dev/ttys003``."""
        pids = self._run(["pgrep", "-x", self.process_name])
        if pids.returncode != 0 or not pids.stdout.strip():
            logger.warning("Could not find a running %r process", self.process_name)
            return None
        pid = pids.stdout.split()[0]

        tty = self._run(["ps", "-o", "tty=", "-p", pid])
        device = tty.stdout.strip()
        if tty.returncode != 0 or not device or device.startswith("?"):
            logger.warning("Process %s (%s) has no controlling terminal", pid, self.process_name)
            return None
        return device if device.startswith("/dev/") else f"/dev/{device}"

    def build_script(self, message_text: str, tty: str) -> str:
        return _TERMINAL_TAB_SCRIPT.format(
            message=sanitize_applescript_string(message_text),
            tty=sanitize_applescript_string(tty),
        )

    def notify(self, message_text: str) -> bool:
        tty = self.find_agent_tty()
        if not tty:
            return False
        logger.info("Found %s running on TTY %s", self.process_name, tty)

        result = self._run(["osascript", "-e", self.build_script(message_text, tty)])
        if result.returncode != 0:
            logger.warning(
                "Terminal.app injection failed: %s (check Accessibility permissions)",
                result.stderr.strip() or f"exit code {result.returncode}",
            )
            return False
        if result.stdout.strip() != "true":
            logger.warning("Could not find the %s session in Terminal.app for TTY %s", self.process_name, tty)
            return False
        logger.info("Injected message into %s via Terminal.app", self.process_name)
        return True


def get_notifier(platform: Optional[str] = None) -> AgentNotifier:
    """Pick the notifier variant for ``platform`` (defaults to the running one)."""
    if not config.NOTIFY_ENABLED:
        return UnsupportedNotifier("notifications disabled by RELAY_NOTIFY_ENABLED")
    current = platform or sys.platform
    if current == "darwin":
        return TerminalAppNotifier()
    return UnsupportedNotifier(f"platform {current!r}")


def dispatch_notification(message_text: str, notifier: Optional[AgentNotifier] = None) -> bool:
    """Fire-and-forget entry point; returns whether delivery was confirmed."""
    if not message_text:
        return False
    target = notifier or get_notifier()
    try:
        delivered = target.notify(message_text)
    except (OSError, subprocess.SubprocessError) as exc:
        logger.warning("Injection via %s failed: %s", target.name, exc)
        delivered = False
    except Exception:  # noqa: BLE001
        logger.exception("Unexpected error while notifying the agent via %s", target.name)
        delivered = False
    if delivered:
        outcome = "delivered"
    else:
        outcome = "failed" if target.supported else "skipped"
    record_notification(target.name, outcome)
    return delivered
