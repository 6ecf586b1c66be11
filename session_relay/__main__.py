"""Run the session relay.

Usage:
  python -m session_relay
  python -m session_relay --port 3335 --host 0.0.0.0
"""
from __future__ import annotations

import argparse

import uvicorn

from session_relay import config
from session_relay.main import create_app


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="session-relay", description=__doc__.splitlines()[0])
    parser.add_argument("--host", default=config.HOST)
    parser.add_argument("--port", type=int, default=None, help="overrides CLAUDE_CODE_TEMPLATES_API_PROXY_PORT / API_PROXY_PORT")
    parser.add_argument("--log-level", default=config.LOG_LEVEL.lower())
    args = parser.parse_args(argv)

    port = config.resolve_port(args.port)
    uvicorn.run(create_app(port), host=args.host, port=port, log_level=args.log_level)


if __name__ == "__main__":
    main()
