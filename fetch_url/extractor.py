"""Structural extraction of fetched pages: headings, ranked links and text content.

Extraction works on raw markup with bounded regular expressions; no document
tree is built. Every function here is pure, so the same HTML and parameters
always produce the same :class:`WebsiteResult`.
"""
from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence, Tuple
from urllib.parse import urljoin

from .config import DEFAULT_MAX_LINKS
from .schemas import WebsiteResult

_BODY_OPEN = re.compile(r"<body[^>]*>")
_TITLE = re.compile(r"<title>([^<]*)</title>")
_HEADINGS = {level: re.compile(rf"<h{level}[^>]*>([^<]*)</h{level}>") for level in (1, 2, 3)}
_ANCHOR = re.compile(r'<a\s+[^>]*?href="([^"]+)"[^>]*>(.*?)</a>', re.DOTALL)
_LABEL_NOISE = re.compile(r'\\[ntr]|\s|<(?:[^>"]|"[^"]*")+>')
_DIGIT_RUN = re.compile(r"\d+")
_WORD_SPLIT = re.compile(r"\s+")
_SCRIPT = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_STYLE = re.compile(r"<style[^>]*>.*?</style>", re.IGNORECASE | re.DOTALL)
_TAG = re.compile(r"<[^>]+>")
_WHITESPACE = re.compile(r"\s+")

SEARCH_TERM_BONUS = 1000


def split_sections(html: str) -> Tuple[str, str]:
    """Return the ``(head, body)`` spans of ``html``.

    The head runs from the first ``<head>`` (or the start, when the tag has
    attributes or is missing) through the following ``</head>``. The body runs
    from the first ``<body ...>`` tag (or the start) to the last ``</body>``
    (or the end).
    """

    head = ""
    head_start = max(html.find("<head>"), 0)
    head_end = html.find("</head>", head_start)
    if head_end != -1:
        head = html[head_start : head_end + len("</head>")]
    elif html.startswith("<head>", head_start):
        head = html[head_start:]

    body_match = _BODY_OPEN.search(html)
    body_start = body_match.start() if body_match else 0
    body_end = html.rfind("</body>")
    if body_end == -1:
        body_end = len(html)
    return head, html[body_start:body_end]


def _first_group(pattern: re.Pattern[str], text: str) -> str:
    match = pattern.search(text)
    return match.group(1) if match else ""


def _clean_label(raw: str) -> str:
    return _LABEL_NOISE.sub(" ", raw).strip()


def _digit_ratio(link: str) -> float:
    # Fewer digits in a URL reads as navigation rather than content.
    run = _DIGIT_RUN.search(link)
    if run is None:
        return 1.0
    return 1.0 / (1 + len(run.group(0)))


def score_link(
    label: str,
    link: str,
    index: int,
    total: int,
    search_terms: Optional[Sequence[str]] = None,
) -> float:
    """Rank a link; higher scores are kept first.

    Short labels on digit-free links score highest, wordy labels help links
    that carry digits, and every search term found in the label adds
    :data:`SEARCH_TERM_BONUS`.
    """

    ratio = _digit_ratio(link)
    position = 20 * index / total if total else 0
    score = ratio * (100 - (len(label) + len(link) + position)) + (1 - ratio) * len(_WORD_SPLIT.split(label))
    if search_terms:
        lowered = label.lower()
        score += sum(SEARCH_TERM_BONUS for term in search_terms if term.lower() in lowered)
    return score


def extract_links(
    body: str,
    page_url: str,
    max_links: int = DEFAULT_MAX_LINKS,
    search_terms: Optional[Sequence[str]] = None,
) -> List[Tuple[str, str]]:
    """Harvest anchors from ``body`` and return the best ``max_links`` as ``(label, url)``."""
    if max_links <= 0:
        return []

    candidates: list[tuple[str, str]] = []
    for href, inner in _ANCHOR.findall(body):
        link = urljoin(page_url, href) if href.startswith("/") else href
        if link.startswith("http"):
            candidates.append((_clean_label(inner), link))

    total = len(candidates)
    scored = [
        (score_link(label, link, index, total, search_terms), label, link)
        for index, (label, link) in enumerate(candidates)
    ]
    scored.sort(key=lambda item: item[0], reverse=True)

    ranked: list[tuple[str, str]] = []
    seen: set[str] = set()
    for _, label, link in scored:
        if link in seen:
            continue
        seen.add(link)
        ranked.append((label, link))
        if len(ranked) == max_links:
            break
    return ranked


def clean_text(body: str) -> str:
    """Strip scripts, styles and tags from ``body`` and collapse whitespace."""
    text = _SCRIPT.sub("", body)
    text = _STYLE.sub("", text)
    text = _TAG.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()


def apply_length_limits(text: str, max_length: int, start_index: int = 0) -> str:
    if start_index >= len(text):
        return ""
    end = min(start_index + max_length, len(text)) if max_length > 0 else len(text)
    return text[start_index:end]


def _merge_windows(windows: Iterable[Tuple[int, int]]) -> List[Tuple[int, int]]:
    merged: list[list[int]] = []
    for start, end in sorted(windows):
        if merged and start <= merged[-1][1]:
            merged[-1][1] = max(merged[-1][1], end)
        else:
            merged.append([start, end])
    return [(start, end) for start, end in merged]


def search_windows(text: str, search_terms: Sequence[str], max_length: int) -> str:
    """Return the context around the first match of each term, in document order.

    Each term contributes ``max_length // (2 * len(search_terms))`` characters
    on either side of its first case-insensitive occurrence. Overlapping
    windows are merged so no character is repeated.
    """

    if not search_terms:
        return ""
    padding = max_length // (2 * len(search_terms))
    windows = []
    for term in search_terms:
        match = re.search(re.escape(term), text, re.IGNORECASE)
        if match is None:
            continue
        windows.append((max(0, match.start() - padding), min(len(text), match.end() + padding)))
    return "".join(text[start:end] for start, end in _merge_windows(windows))


def extract_content(
    body: str,
    max_length: int,
    start_index: int = 0,
    search_terms: Optional[Sequence[str]] = None,
) -> str:
    if max_length <= 0:
        return ""
    text = clean_text(body)
    if search_terms and max_length < len(text):
        # start_index does not apply when content is centred on search terms.
        return search_windows(text, search_terms, max_length)
    return apply_length_limits(text, max_length, start_index)


def extract(
    html: str,
    url: str,
    max_length: int,
    start_index: int = 0,
    max_links: int = DEFAULT_MAX_LINKS,
    find_in_page: Optional[Sequence[str]] = None,
) -> WebsiteResult:
    """Reduce a page to its title, first headings, ranked links and bounded text."""
    head, body = split_sections(html)
    return WebsiteResult(
        url=url,
        title=_first_group(_TITLE, head),
        h1=_first_group(_HEADINGS[1], body),
        h2=_first_group(_HEADINGS[2], body),
        h3=_first_group(_HEADINGS[3], body),
        links=extract_links(body, url, max_links, find_in_page),
        content=extract_content(body, max_length, start_index, find_in_page),
    )
