"""Exceptions raised while handling a fetch-url call."""
from __future__ import annotations

BLOCKED_ADDRESS_MESSAGE = (
    "Fetcher blocked an attempt to fetch a private IP {hostname}. This is to prevent a security "
    "vulnerability where a local MCP could fetch privileged local IPs and exfiltrate data."
)


class FetchError(RuntimeError):
    """Raised when the target page cannot be retrieved."""

    def __init__(self, url: str, reason: str | None = None, *, message: str | None = None) -> None:
        self.url = url
        self.reason = reason or "Unknown error"
        super().__init__(message or f"Failed to fetch {url}: {self.reason}")


class BlockedAddressError(FetchError):
    """Raised when the target host is a literal non-public IP address."""

    def __init__(self, url: str, hostname: str) -> None:
        self.hostname = hostname
        super().__init__(
            url,
            f"private IP {hostname}",
            message=BLOCKED_ADDRESS_MESSAGE.format(hostname=hostname),
        )


class ValidationError(ValueError):
    """Raised when tool arguments do not describe a valid request."""
