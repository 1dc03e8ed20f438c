"""Logging configuration helpers for the fetch-url server."""
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional


def _normalise_level(level: Optional[str | int]) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        value = level.strip().upper()
        if value.isdigit():
            return int(value)
        if value in logging._nameToLevel:  # type: ignore[attr-defined]
            return logging._nameToLevel[value]
    return logging.INFO


def configure_logging(
    level: Optional[str | int] = None,
    log_dir: Optional[str | Path] = None,
    log_file: str = "latest-run.log",
) -> Optional[Path]:
    """Configure root logging to stream to stderr and, optionally, a fresh file.

    stdout is reserved for the MCP stdio transport, so console output always
    goes to stderr. When ``log_dir`` is given the log file is truncated on
    every call and its path is returned; otherwise ``None`` is returned.
    """

    log_level = _normalise_level(level)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    log_path: Optional[Path] = None
    if log_dir:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        log_path = directory / log_file
        handlers.append(logging.FileHandler(log_path, mode="w", encoding="utf-8"))

    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        handlers=handlers,
    )
    if log_path is not None:
        logging.getLogger(__name__).info("Logs initialised at %s", log_path)
    return log_path


if __name__ == "__main__":  # pragma: no cover - manual script usage
    path = configure_logging(os.getenv("LOG_LEVEL"), os.getenv("FETCH_URL_LOG_DIR", "logs"))
    print(f"Log file created at {path}", file=sys.stderr)
