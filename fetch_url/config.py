"""Runtime settings read from the environment once at startup."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_DOWNLOAD_LIMIT = 40000
DEFAULT_PORT = 3037
DEFAULT_MAX_LINKS = 40


def _int_from_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid %s value %s; falling back to %s", name, raw, default)
        return default


def _timeout_from_env(env: Mapping[str, str]) -> Optional[float]:
    raw = env.get("FETCH_TIMEOUT")
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid FETCH_TIMEOUT value %s; requests will not time out", raw)
        return None
    return value if value > 0 else None


@dataclass(frozen=True, slots=True)
class Settings:
    """Configuration passed explicitly to the tool and transport layers."""

    download_limit: int = DEFAULT_DOWNLOAD_LIMIT
    port: int = DEFAULT_PORT
    transport: str = "stdio"
    request_timeout: Optional[float] = None
    log_level: Optional[str] = None
    log_dir: Optional[str] = None
    log_file: str = "latest-run.log"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``os.environ`` (or the mapping supplied).

        ``DEFAULT_LIMIT`` and ``PORT`` fall back to their defaults when unset
        or not an integer. ``MCP_TRANSPORT=http`` selects the HTTP transport.
        """

        env = os.environ if env is None else env
        transport = "http" if env.get("MCP_TRANSPORT", "").strip().lower() == "http" else "stdio"
        return cls(
            download_limit=_int_from_env(env, "DEFAULT_LIMIT", DEFAULT_DOWNLOAD_LIMIT),
            port=_int_from_env(env, "PORT", DEFAULT_PORT),
            transport=transport,
            request_timeout=_timeout_from_env(env),
            log_level=env.get("LOG_LEVEL") or None,
            log_dir=env.get("FETCH_URL_LOG_DIR") or None,
            log_file=env.get("FETCH_URL_LOG_FILE") or "latest-run.log",
        )
