"""The ``fetch-url`` tool: argument validation, fetch, extraction and the result envelope."""
from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional

from .config import Settings
from .errors import FetchError, ValidationError
from .extractor import extract
from .fetcher import fetch_html
from .schemas import TOOL_NAME, RequestPayload, ToolResult

logger = logging.getLogger(__name__)

TOOL_DESCRIPTION = (
    "Fetch a website and return its title, headings, links, and text content in structured format"
)

Fetch = Callable[..., str]


def input_schema(settings: Settings) -> dict[str, Any]:
    """JSON schema advertised to MCP clients for the tool arguments."""
    return {
        "type": "object",
        "properties": {
            "url": {
                "type": "string",
                "description": "URL of the website to fetch",
            },
            "headers": {
                "type": "object",
                "description": "Optional headers to include in the request",
            },
            "max_length": {
                "type": "number",
                "description": (
                    "Maximum number of characters to return for content "
                    f"(default: {settings.download_limit})"
                ),
            },
            "start_index": {
                "type": "number",
                "description": "Start content from this character index (default: 0)",
            },
            "findInPage": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Optional search terms to prioritize which links and content to return",
            },
            "maxLinks": {
                "type": "number",
                "description": "Maximum number of links to extract from the page (default: 40)",
            },
        },
        "required": ["url"],
    }


def run_fetch_url(
    payload: RequestPayload,
    settings: Settings,
    fetch: Fetch = fetch_html,
) -> str:
    """Fetch and extract one page, returning the JSON text of the result."""
    html = fetch(payload.url, payload.headers, timeout=settings.request_timeout)
    result = extract(
        html,
        payload.url,
        max_length=payload.max_length,
        start_index=payload.start_index,
        max_links=payload.link_limit,
        find_in_page=payload.find_in_page,
    )
    return result.to_json()


def fetch_url_tool(
    arguments: Optional[Mapping[str, Any]],
    settings: Settings,
    fetch: Fetch = fetch_html,
) -> ToolResult:
    """Handle one ``fetch-url`` call, turning every expected failure into an error envelope."""
    try:
        payload = RequestPayload.from_arguments(arguments, download_limit=settings.download_limit)
    except ValidationError as exc:
        logger.warning("Rejected %s call: %s", TOOL_NAME, exc)
        return ToolResult(text=str(exc), is_error=True)

    logger.info("Fetching %s", payload.url)
    try:
        text = run_fetch_url(payload, settings, fetch)
    except FetchError as exc:
        logger.warning("%s", exc)
        return ToolResult(text=str(exc), is_error=True)
    return ToolResult(text=text)
