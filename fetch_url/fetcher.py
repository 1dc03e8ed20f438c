"""Page fetching with browser-like headers and a guard against internal addresses."""
from __future__ import annotations

import ipaddress
import logging
import random
import socket
from typing import Mapping, Optional
from urllib.parse import urlsplit

import requests
from requests.structures import CaseInsensitiveDict

from .errors import BlockedAddressError, FetchError

logger = logging.getLogger(__name__)

USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/134.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Linux; Android 10; SM-M515F) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/87.0.4280.141 Mobile Safari/537.36",
    "Mozilla/5.0 (Linux; Android 6.0; E5533) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/83.0.4103.101 Mobile Safari/537.36",
    "Mozilla/5.0 (Linux; Android 8.1.0; AX1082) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/83.0.4103.83 Mobile Safari/537.36",
    "Mozilla/5.0 (Linux; Android 8.1.0; TM-MID1020A) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/83.0.4103.96 Safari/537.36",
    "Mozilla/5.0 (Linux; Android 9; POT-LX1) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/96.0.4664.45 Mobile Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/97.0.4692.71 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/98.0.4758.80 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/14.0.3 Safari/605.1.15",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/18.3.1 Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:97.0) Gecko/20100101 Firefox/97.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/134.0.0.0 Safari/537.36 Edg/134.0.0.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/97.0.4692.71 Safari/537.36 Edg/97.0.1072.71",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/97.0.4692.71 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/98.0.4758.80 Safari/537.36 Edg/98.0.1108.62",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/98.0.4758.80 Safari/537.36",
    "Mozilla/5.0 (X11; CrOS x86_64 14541.0.0) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/134.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/97.0.4692.71 Safari/537.36",
    "Mozilla/5.0 (X11; Ubuntu; Linux x86_64; rv:97.0) Gecko/20100101 Firefox/97.0",
    "Opera/9.80 (Android 7.0; Opera Mini/36.2.2254/119.132; U; id) Presto/2.12.423 Version/12.16",
)

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


def _parse_ip_literal(hostname: str) -> Optional[IPAddress]:
    """Return the address a hostname denotes when it is an IP literal.

    Shorthand IPv4 forms such as ``127.1`` or ``0x7f000001`` are accepted too,
    since the socket layer would connect to them as addresses.
    """

    candidate = hostname.rstrip(".")
    try:
        address = ipaddress.ip_address(candidate)
    except ValueError:
        try:
            address = ipaddress.IPv4Address(socket.inet_aton(candidate))
        except OSError:
            return None
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        return address.ipv4_mapped
    return address


def _is_non_public(address: IPAddress) -> bool:
    # 255.255.255.255 falls inside the reserved 240.0.0.0/4 block.
    return (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_multicast
        or address.is_reserved
        or address.is_unspecified
    )


def check_host(url: str) -> None:
    """Raise :class:`BlockedAddressError` when ``url`` targets a non-public IP literal.

    Hostnames are not resolved; only addresses written directly in the URL
    are checked.
    """

    hostname = urlsplit(url).hostname
    if not hostname:
        return
    address = _parse_ip_literal(hostname)
    if address is not None and _is_non_public(address):
        logger.warning("Blocked request to non-public address %s", hostname)
        raise BlockedAddressError(url, hostname)


def spoof_headers(url: str) -> dict[str, str]:
    """Return a browser-like header bundle for ``url``."""
    domain = urlsplit(url).hostname or ""
    return {
        "User-Agent": random.choice(USER_AGENTS),
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,image/apng,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
        # Only encodings requests can always decode.
        "Accept-Encoding": "gzip, deflate",
        "Referer": f"https://{domain}/",
        "Origin": f"https://{domain}",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
        "Sec-Fetch-Dest": "document",
        "Sec-Fetch-Mode": "navigate",
        "Sec-Fetch-Site": "none",
        "Sec-Fetch-User": "?1",
        "Cache-Control": "max-age=0",
    }


def fetch_html(
    url: str,
    headers: Optional[Mapping[str, str]] = None,
    *,
    timeout: Optional[float] = None,
) -> str:
    """Fetch ``url`` and return the response body as text.

    Caller headers override the spoofed defaults key by key (case-insensitive).
    Every failure is raised as :class:`FetchError`; nothing is retried.
    """

    check_host(url)

    merged = CaseInsensitiveDict(spoof_headers(url))
    if headers:
        merged.update(headers)

    try:
        response = requests.get(
            url,
            headers=merged,
            timeout=timeout,
            allow_redirects=True,
        )
    except requests.RequestException as exc:
        logger.warning("Failed to fetch %s: %s", url, exc)
        raise FetchError(url, str(exc)) from exc
    except Exception as exc:
        logger.exception("Unexpected error while fetching %s", url)
        raise FetchError(url, str(exc)) from exc

    if not 200 <= response.status_code < 300:
        logger.info("Fetching %s returned status %s", url, response.status_code)
        raise FetchError(url, f"HTTP error: {response.status_code}")

    if "charset" not in response.headers.get("Content-Type", "").lower():
        response.encoding = "utf-8"
    return response.text
