"""Command line entrypoint: ``fetch-url-mcp [--http] [--port N] [--log-level LEVEL]``."""
from __future__ import annotations

import argparse
import dataclasses
import logging
from typing import Optional, Sequence

import anyio

from .config import Settings
from .logging_setup import configure_logging
from .server import run_http, run_stdio

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fetch-url-mcp",
        description="MCP server that fetches a web page and returns its structure as text.",
    )
    parser.add_argument(
        "--http",
        action="store_true",
        help="serve streamable HTTP on /mcp instead of stdio (same as MCP_TRANSPORT=http)",
    )
    parser.add_argument("--port", type=int, help="HTTP listen port (default: PORT or 3037)")
    parser.add_argument("--log-level", help="logging level name or number (default: LOG_LEVEL or INFO)")
    return parser


def resolve_settings(args: argparse.Namespace, settings: Settings) -> Settings:
    """Apply command line overrides on top of the environment settings."""
    changes = {}
    if args.http:
        changes["transport"] = "http"
    if args.port is not None:
        changes["port"] = args.port
    if args.log_level:
        changes["log_level"] = args.log_level
    return dataclasses.replace(settings, **changes)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = resolve_settings(args, Settings.from_env())
    configure_logging(settings.log_level, settings.log_dir, settings.log_file)

    try:
        if settings.transport == "http":
            run_http(settings)
        else:
            anyio.run(run_stdio, settings)
    except KeyboardInterrupt:
        logger.info("Shutting down MCP server...")
    except Exception:
        logger.exception("Fatal error while running the MCP server")
        return 1
    return 0
