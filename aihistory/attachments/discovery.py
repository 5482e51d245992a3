"""Find candidate download URLs inside arbitrary JSON or text.

File endpoints often answer with an indirection (a JSON document or an
error page naming the real signed URL) instead of the bytes.  ``discover_urls``
walks such a payload breadth-first and returns absolute http(s) URLs,
best-known keys first, with no duplicates.  The walk visits at most
``node_budget`` nodes and never revisits a container, so hostile or cyclic
input always terminates.
"""

from __future__ import annotations

import re
from collections.abc import Collection, Mapping
from typing import Any
from urllib.parse import urljoin

from aihistory.config import DISCOVERY_NODE_BUDGET

PRIORITY_KEYS: tuple[str, ...] = (
    "download_url",
    "downloadUrl",
    "download_link",
    "downloadLink",
    "signed_download_url",
    "signedDownloadUrl",
    "signed_url",
    "signedUrl",
    "presigned_url",
    "presignedUrl",
    "file_url",
    "fileUrl",
    "content_url",
    "contentUrl",
    "retrieval_url",
    "retrievalUrl",
    "href",
    "url",
    "link",
)

_KEY_HINT_RE = re.compile(r"(url|link|href|download|signed|presign|content|asset|file|path)", re.IGNORECASE)
_HTTP_URL_RE = re.compile(r"^https?://", re.IGNORECASE)
_EMBEDDED_HTTP_RE = re.compile(r"https?://[^\s\"'<>\\]+", re.IGNORECASE)
_EMBEDDED_BACKEND_RE = re.compile(r"/backend-api/[^\s\"'<>\\]+", re.IGNORECASE)
_URL_MARKERS = ("http://", "https://", "/backend-api/")


def is_http_url(value: str) -> bool:
    return bool(_HTTP_URL_RE.match(value))


def to_absolute_http_url(raw: str, base_url: str) -> str | None:
    """Absolute http(s) URL for ``raw``, resolving root-relative paths against ``base_url``."""
    trimmed = raw.strip()
    if not trimmed:
        return None
    if is_http_url(trimmed):
        return trimmed
    if trimmed.startswith("backend-api/"):
        trimmed = f"/{trimmed}"
    if not trimmed.startswith("/"):
        return None
    try:
        absolute = urljoin(base_url, trimmed)
    except ValueError:
        return None
    return absolute if is_http_url(absolute) else None


class _CandidateList:
    """Insertion-ordered, de-duplicated absolute URLs."""

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url
        self.urls: list[str] = []
        self._seen: set[str] = set()

    def add(self, raw: str) -> None:
        url = to_absolute_http_url(raw, self.base_url)
        if url is None or url in self._seen:
            return
        self._seen.add(url)
        self.urls.append(url)

    def scan(self, text: str) -> None:
        # JSON-escaped slashes
        text = text.replace("\\/", "/")
        for pattern in (_EMBEDDED_HTTP_RE, _EMBEDDED_BACKEND_RE):
            for match in pattern.finditer(text):
                self.add(match.group(0))


def extract_url_candidates_from_text(text: str, base_url: str) -> list[str]:
    """URLs embedded in free text: absolute http(s) links, then ``/backend-api/`` paths."""
    candidates = _CandidateList(base_url)
    candidates.scan(text)
    return candidates.urls


def discover_urls(
    payload: Any,
    base_url: str,
    *,
    node_budget: int = DISCOVERY_NODE_BUDGET,
) -> list[str]:
    """Breadth-first URL discovery over a decoded JSON value."""
    candidates = _CandidateList(base_url)
    visited: set[int] = set()
    queue: list[Any] = [payload]

    index = 0
    while index < len(queue) and index < node_budget:
        node = queue[index]
        index += 1
        if not node:
            continue
        if isinstance(node, str):
            candidates.add(node)
            candidates.scan(node)
            continue
        if not isinstance(node, (list, tuple, Mapping)):
            continue
        if id(node) in visited:
            continue
        visited.add(id(node))

        if not isinstance(node, Mapping):
            queue.extend(node)
            continue

        for key in PRIORITY_KEYS:
            value = node.get(key)
            if isinstance(value, str):
                candidates.add(value)

        for key, value in node.items():
            if not isinstance(value, str):
                queue.append(value)
                continue
            if _KEY_HINT_RE.search(str(key)):
                candidates.add(value)
            if any(marker in value for marker in _URL_MARKERS):
                candidates.scan(value)

    return candidates.urls


def pick_redirect_url(
    payload: Any,
    base_url: str,
    tried: Collection[str],
    *,
    node_budget: int = DISCOVERY_NODE_BUDGET,
) -> str | None:
    """First discovered URL not already attempted."""
    for candidate in discover_urls(payload, base_url, node_budget=node_budget):
        if candidate not in tried:
            return candidate
    return None


__all__ = [
    "PRIORITY_KEYS",
    "discover_urls",
    "extract_url_candidates_from_text",
    "is_http_url",
    "pick_redirect_url",
    "to_absolute_http_url",
]
