"""Request and result structures shared across modules."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .config import DEFAULT_DOWNLOAD_LIMIT, DEFAULT_MAX_LINKS
from .errors import ValidationError

TOOL_NAME = "fetch-url"


class RequestPayload(BaseModel):
    """Validated arguments of one ``fetch-url`` call."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    url: str
    headers: Optional[Dict[str, str]] = None
    max_length: int = Field(default=DEFAULT_DOWNLOAD_LIMIT, ge=0)
    start_index: int = Field(default=0, ge=0)
    find_in_page: Optional[List[str]] = Field(default=None, alias="findInPage")
    max_links: Optional[int] = Field(default=None, ge=0, le=200, alias="maxLinks")

    @field_validator("url")
    @classmethod
    def url_must_be_absolute(cls, value: str) -> str:
        parts = urlsplit(value)
        if not parts.scheme or not parts.netloc:
            raise ValueError("url must be an absolute URI")
        return value

    @property
    def link_limit(self) -> int:
        return DEFAULT_MAX_LINKS if self.max_links is None else self.max_links

    @classmethod
    def from_arguments(
        cls,
        arguments: Optional[Mapping[str, Any]],
        download_limit: int = DEFAULT_DOWNLOAD_LIMIT,
    ) -> "RequestPayload":
        """Validate raw tool arguments, filling ``max_length`` from ``download_limit``.

        Raises :class:`fetch_url.errors.ValidationError` with one readable
        line per problem found by pydantic.
        """

        data = dict(arguments or {})
        if data.get("max_length") is None:
            data["max_length"] = download_limit
        try:
            return cls.model_validate(data)
        except PydanticValidationError as exc:
            problems = []
            for error in exc.errors():
                location = ".".join(str(part) for part in error.get("loc", ())) or "arguments"
                problems.append(f"{location}: {error.get('msg', 'invalid value')}")
            raise ValidationError(f"Invalid arguments for {TOOL_NAME}: " + "; ".join(problems)) from exc


@dataclass(slots=True)
class WebsiteResult:
    url: str
    title: str = ""
    h1: str = ""
    h2: str = ""
    h3: str = ""
    links: List[Tuple[str, str]] = field(default_factory=list)
    content: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON shape, leaving out empty ``links`` and ``content``."""
        data: dict[str, Any] = {
            "url": self.url,
            "title": self.title,
            "h1": self.h1,
            "h2": self.h2,
            "h3": self.h3,
        }
        if self.links:
            data["links"] = [[label, link] for label, link in self.links]
        if self.content:
            data["content"] = self.content
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)


@dataclass(slots=True)
class ToolResult:
    """Text envelope returned to the MCP client for every call."""

    text: str
    is_error: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"content": [{"type": "text", "text": self.text}], "isError": self.is_error}
