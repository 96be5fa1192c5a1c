"""Entry point for running the relay with Uvicorn."""
from __future__ import annotations

import logging
import os

import uvicorn


def main() -> None:
  logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
  )
  port = int(os.getenv("CHATHUB_PORT", "8000"))
  reload = os.getenv("UVICORN_RELOAD", "false").lower() == "true"
  uvicorn.run("chathub.main:app", host="0.0.0.0", port=port, reload=reload)


if __name__ == "__main__":
  main()
