"""Helper for running the Fridgelens ASGI application."""

from __future__ import annotations

import os

import uvicorn


def _parse_port(value: str) -> int:
    try:
        port = int(value)
    except ValueError as exc:
        raise SystemExit(f"Invalid FRIDGELENS_SERVER_PORT '{value}': {exc}") from exc
    if not 0 < port < 65536:
        raise SystemExit("FRIDGELENS_SERVER_PORT must be between 1 and 65535.")
    return port


def serve(host: str, port: int, *, reload: bool = False) -> None:
    """Run uvicorn against the module-level application."""

    uvicorn.run(
        "fridgelens.server.app:app",
        host=host,
        port=port,
        reload=reload,
        log_config=None,
    )


def main() -> None:
    """Entry point used by `fridgelens-server`."""

    host = os.environ.get("FRIDGELENS_SERVER_HOST", "127.0.0.1")
    port = _parse_port(os.environ.get("FRIDGELENS_SERVER_PORT", "8000"))
    serve(host, port, reload=os.environ.get("RELOAD") == "1")


if __name__ == "__main__":
    main()
