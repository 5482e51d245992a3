"""High-level async facade for aihistory.

Bundles the parser registry, cleaners and attachment resolver behind one
object built from ``Settings``.  One ``httpx.AsyncClient`` is shared by every
attachment call made while the facade is open.

Example:
    async with AiHistory() as history:
        conversations = history.parse_file("conversations.json")
        for conversation in conversations:
            for turn in conversation.turns:
                for attachment in turn.attachments:
                    result = await history.resolve_attachment(attachment.original_url)
"""

from __future__ import annotations

from pathlib import Path

import httpx

from aihistory.attachments import AttachmentResolver
from aihistory.config import Settings
from aihistory.lib.log import get_logger
from aihistory.lib.models import (
    AttachmentFetchResult,
    ImportPayload,
    LiveCaptureRequest,
    NormalizedConversation,
    ProbeResult,
    SourcePlatform,
)
from aihistory.sources import CleanerRegistry, ParserRegistry, default_cleaners, default_registry
from aihistory.sources.live_capture import live_capture_to_conversation

logger = get_logger(__name__)


class AiHistory:
    """Import, capture and attachment resolution in one place.

    Args:
        settings: Explicit settings; ``Settings.load()`` when omitted.
        cleaners: Cleaner registry shared by imports and live captures.
        client: Optional ``httpx.AsyncClient``; when omitted one is opened on
            ``__aenter__`` and closed on ``__aexit__``.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        cleaners: CleanerRegistry | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or Settings.load()
        self.cleaners = cleaners or default_cleaners()
        self.registry: ParserRegistry = default_registry(self.settings.parser, self.cleaners)
        self._client = client
        self._owns_client = False
        self.resolver = AttachmentResolver(self.settings.resolver, client)

    async def __aenter__(self) -> AiHistory:
        if self._client is None:
            resolver_settings = self.settings.resolver
            headers = {"user-agent": resolver_settings.user_agent} if resolver_settings.user_agent else None
            self._client = httpx.AsyncClient(timeout=resolver_settings.timeout_seconds, headers=headers)
            self._owns_client = True
            self.resolver = AttachmentResolver(resolver_settings, self._client)
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
            self._owns_client = False
            self.resolver = AttachmentResolver(self.settings.resolver)

    def parse(self, payload: ImportPayload) -> list[NormalizedConversation]:
        return self.registry.parse(payload)

    def parse_file(
        self,
        path: str | Path,
        *,
        mime: str = "",
        source_hint: SourcePlatform | None = None,
    ) -> list[NormalizedConversation]:
        """Read a file from disk and parse it; unreadable files yield ``[]``."""
        path = Path(path).expanduser()
        try:
            data = path.read_bytes()
        except OSError as exc:
            logger.warning("import_file_unreadable", path=str(path), error=str(exc))
            return []
        return self.parse(ImportPayload(filename=path.name, mime=mime, data=data, source_hint=source_hint))

    def capture(self, request: LiveCaptureRequest) -> NormalizedConversation:
        return live_capture_to_conversation(request, self.cleaners)

    async def resolve_attachment(self, url: str) -> AttachmentFetchResult:
        return await self.resolver.resolve(url)

    async def probe_attachment(self, url: str) -> ProbeResult:
        return await self.resolver.probe(url)


__all__ = ["AiHistory"]
