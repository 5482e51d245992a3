"""Turn an attachment hint URL into the bytes it ultimately refers to.

A hint rarely points straight at the file.  The resolver follows the common
indirections, each request at most once per ``(method, url)``:

- a JSON body (success or error) naming the real download URL
- a download endpoint that rejects GET (400/405/422) but accepts ``POST {}``
- an error page whose text embeds a signed URL

Terminal outcomes are an ``AttachmentFetchResult``; nothing raises out of
``resolve`` or ``probe``.  An HTML page, an empty body or an unparseable JSON
indirection is a soft miss: the next candidate is tried, and when none remain
the result says no downloadable link was found.

Example:
    resolver = AttachmentResolver(settings.resolver)
    result = await resolver.resolve("https://chatgpt.com/backend-api/files/file-abc/download")
    if result.ok:
        store(result.data_url)
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import AsyncIterator, Awaitable
from contextlib import asynccontextmanager
from typing import TypeVar

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from aihistory.config import ResolverSettings
from aihistory.errors import (
    AttachmentError,
    AttachmentHTTPError,
    AttachmentNetworkError,
    AttachmentPolicyError,
)
from aihistory.lib.json import parse_json_safe
from aihistory.lib.log import get_logger
from aihistory.lib.models import AttachmentFetchResult, ProbeResult

from .discovery import extract_url_candidates_from_text, is_http_url, pick_redirect_url
from .filenames import (
    build_data_url,
    filename_from_url,
    normalize_mime,
    parse_content_disposition_filename,
    refine_mime,
)

logger = get_logger(__name__)

T = TypeVar("T")

POST_FALLBACK_STATUSES = frozenset({400, 405, 422})
DOWNLOAD_ENDPOINT_RE = re.compile(
    r"/backend-api/(?:files/download/|files/[^/?#]+/download|estuary/content)",
    re.IGNORECASE,
)
POST_FALLBACK_HEADERS = {
    "content-type": "application/json",
    "accept": "application/json, */*;q=0.8",
}
PROBE_RANGE = "bytes=0-1023"

NO_LINK_ERROR = "no downloadable attachment link found"
HTTP_ONLY_ERROR = "only http(s) URLs can be fetched"


def _megabytes(size: int) -> int:
    return round(size / 1024 / 1024)


def _content_length(response: httpx.Response) -> int | None:
    raw = response.headers.get("content-length")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


class _Resolution:
    """State for one ``resolve`` call: the attempt log and the visited set."""

    def __init__(self, client: httpx.AsyncClient, settings: ResolverSettings, url: str) -> None:
        self.client = client
        self.settings = settings
        self.tried: list[str] = [url]
        self.requested: set[tuple[str, str]] = set()

    def result(self, **fields) -> AttachmentFetchResult:
        return AttachmentFetchResult(tried=tuple(self.tried), **fields)

    async def send(self, method: str, url: str) -> httpx.Response:
        headers = {"accept": "*/*"}
        content = None
        if method == "POST":
            headers.update(POST_FALLBACK_HEADERS)
            content = b"{}"
        try:
            request = self.client.build_request(
                method, url, headers=headers, content=content, timeout=self.settings.timeout_seconds
            )
        except httpx.InvalidURL as exc:
            raise AttachmentPolicyError(f"invalid URL: {url}") from exc
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.settings.connect_attempts),
            wait=wait_exponential(multiplier=0.2, max=2),
            retry=retry_if_exception_type(httpx.ConnectError),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await self.client.send(request, stream=True, follow_redirects=True)
        except httpx.TimeoutException as exc:
            raise AttachmentNetworkError(f"timed out after {self.settings.timeout_seconds}s: {url}") from exc
        except httpx.HTTPError as exc:
            raise AttachmentNetworkError(str(exc) or exc.__class__.__name__) from exc
        raise AttachmentNetworkError(f"no response from {url}")

    async def bounded(self, awaitable: Awaitable[T], deadline: float, url: str) -> T:
        """Await within the request's total deadline (headers, retries and body)."""
        remaining = max(deadline - asyncio.get_running_loop().time(), 0)
        try:
            return await asyncio.wait_for(awaitable, timeout=remaining)
        except asyncio.TimeoutError as exc:
            raise AttachmentNetworkError(f"timed out after {self.settings.timeout_seconds}s: {url}") from exc

    async def read_body(self, response: httpx.Response, *, strict: bool) -> bytes:
        """Read at most ``max_bytes``; over the ceiling raise (strict) or truncate."""
        limit = self.settings.max_bytes
        chunks: list[bytes] = []
        total = 0
        try:
            async for chunk in response.aiter_bytes():
                total += len(chunk)
                if total > limit:
                    if strict:
                        raise AttachmentPolicyError(
                            f"attachment exceeds size limit ({_megabytes(total)}MB)",
                            status=response.status_code,
                        )
                    break
                chunks.append(chunk)
        except httpx.HTTPError as exc:
            raise AttachmentNetworkError(str(exc) or exc.__class__.__name__) from exc
        return b"".join(chunks)

    async def fetch(self, url: str, method: str = "GET") -> AttachmentFetchResult | None:
        key = (method, url)
        if key in self.requested:
            return None
        self.requested.add(key)
        if url not in self.tried:
            self.tried.append(url)

        logger.debug("attachment_request", method=method, url=url)
        # httpx timeouts bound each socket operation, not the whole exchange
        deadline = asyncio.get_running_loop().time() + self.settings.timeout_seconds
        response = await self.bounded(self.send(method, url), deadline, url)
        try:
            if response.is_success:
                return await self.on_success(response, url, deadline)
            return await self.on_failure(response, url, method, deadline)
        finally:
            await response.aclose()

    async def on_failure(
        self, response: httpx.Response, url: str, method: str, deadline: float
    ) -> AttachmentFetchResult | None:
        status = response.status_code
        final_url = str(response.url) or url
        mime = normalize_mime(response.headers.get("content-type"))
        body = await self.bounded(self.read_body(response, strict=False), deadline, url)

        payload = parse_json_safe(body) if "application/json" in mime else None
        if payload is not None:
            redirect = pick_redirect_url(
                payload, final_url, self.tried, node_budget=self.settings.discovery_node_budget
            )
            if redirect:
                return await self.fetch(redirect)

        if status in POST_FALLBACK_STATUSES and method == "GET" and DOWNLOAD_ENDPOINT_RE.search(url):
            result = await self.fetch(url, "POST")
            if result is not None:
                return result

        if payload is None:
            text = body.decode("utf-8", errors="replace")
            for candidate in extract_url_candidates_from_text(text, final_url):
                if candidate in self.tried:
                    continue
                result = await self.fetch(candidate)
                if result is not None:
                    return result

        raise AttachmentHTTPError(f"HTTP {status}", status=status)

    async def on_success(
        self, response: httpx.Response, url: str, deadline: float
    ) -> AttachmentFetchResult | None:
        status = response.status_code
        final_url = str(response.url) or url
        mime = normalize_mime(response.headers.get("content-type"))
        filename = parse_content_disposition_filename(
            response.headers.get("content-disposition", "")
        ) or filename_from_url(final_url)

        if "application/json" in mime:
            payload = parse_json_safe(await self.bounded(self.read_body(response, strict=False), deadline, url))
            if payload is None:
                return None
            redirect = pick_redirect_url(
                payload, final_url, self.tried, node_budget=self.settings.discovery_node_budget
            )
            return await self.fetch(redirect) if redirect else None

        if mime.startswith("text/html"):
            logger.debug("attachment_html_skipped", url=final_url)
            return None

        mime = refine_mime(mime, filename)
        declared = _content_length(response)
        if declared is not None and declared > self.settings.max_bytes:
            raise AttachmentPolicyError(
                f"attachment exceeds size limit ({_megabytes(declared)}MB)", status=status
            )

        data = await self.bounded(self.read_body(response, strict=True), deadline, url)
        if not data:
            logger.debug("attachment_empty_body", url=final_url)
            return None

        return self.result(
            ok=True,
            data_url=build_data_url(mime, data, filename),
            mime=mime,
            filename=filename,
            size=len(data),
            status=status,
        )


class AttachmentResolver:
    """Resolve attachment hints to data URLs.

    Args:
        settings: Size ceiling, timeout, discovery budget, connect retries.
        client: Optional shared ``httpx.AsyncClient``; when omitted each call
            opens (and closes) its own.
    """

    def __init__(
        self,
        settings: ResolverSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or ResolverSettings()
        self._client = client

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        headers = {"user-agent": self.settings.user_agent} if self.settings.user_agent else None
        async with httpx.AsyncClient(timeout=self.settings.timeout_seconds, headers=headers) as client:
            yield client

    async def resolve(self, url: str) -> AttachmentFetchResult:
        if not is_http_url(url):
            return AttachmentFetchResult(ok=False, error=HTTP_ONLY_ERROR, error_kind="policy")

        async with self._session() as client:
            resolution = _Resolution(client, self.settings, url)
            try:
                result = await resolution.fetch(url)
            except AttachmentError as exc:
                logger.info("attachment_fetch_failed", url=url, kind=exc.kind, error=str(exc))
                return resolution.result(ok=False, status=exc.status, error=str(exc), error_kind=exc.kind)

        if result is None:
            logger.info("attachment_link_not_found", url=url, tried=len(resolution.tried))
            return resolution.result(ok=False, error=NO_LINK_ERROR, error_kind="exhausted")
        return result

    async def probe(self, url: str) -> ProbeResult:
        """Cheap reachability check: HEAD, then a ranged GET if HEAD fails."""
        if not is_http_url(url):
            return ProbeResult(ok=False, url=url, method="GET", error=HTTP_ONLY_ERROR)

        async with self._session() as client:
            try:
                head = await client.head(url, headers={"accept": "*/*"}, follow_redirects=True)
            except httpx.HTTPError as exc:
                logger.debug("probe_head_failed", url=url, error=str(exc))
            else:
                if head.is_success:
                    return self._probe_result(head, url, "HEAD")

            try:
                async with client.stream(
                    "GET", url, headers={"accept": "*/*", "range": PROBE_RANGE}, follow_redirects=True
                ) as get:
                    return self._probe_result(get, url, "GET")
            except httpx.HTTPError as exc:
                return ProbeResult(ok=False, url=url, method="GET", error=str(exc) or exc.__class__.__name__)

    @staticmethod
    def _probe_result(response: httpx.Response, url: str, method: str) -> ProbeResult:
        return ProbeResult(
            ok=response.is_success,
            url=str(response.url) or url,
            method=method,
            status=response.status_code,
            content_type=response.headers.get("content-type", "").lower() or None,
            content_length=_content_length(response),
            error=None if response.is_success else f"HTTP {response.status_code}",
        )


__all__ = ["AttachmentResolver", "DOWNLOAD_ENDPOINT_RE", "POST_FALLBACK_STATUSES"]
