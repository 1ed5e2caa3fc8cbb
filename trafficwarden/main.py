"""
Server launcher.  Host and port come from ``UVICORN_HOST`` / ``UVICORN_PORT``.
"""

from __future__ import annotations

import os

import uvicorn

from trafficwarden.utils import logger

log = logger.create_logger("Server")

HOST = os.environ.get("UVICORN_HOST", "0.0.0.0")
PORT = int(os.environ.get("UVICORN_PORT", "3001"))


def run() -> None:
    """Entry point for running the server."""
    log.success(f"Server listening on {HOST}:{PORT}")
    log.info("Try it", {"url": f"http://localhost:{PORT}/api/intercept?url=https://example.com"})
    uvicorn.run("trafficwarden.app:app", host=HOST, port=PORT)


if __name__ == "__main__":
    run()
