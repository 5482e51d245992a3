"""Canonical value objects for imported and captured conversations.

Everything here is immutable once built:

- `ImportPayload`: one file (or page) handed to the parser registry
- `NormalizedTurn`: one role-attributed message
- `NormalizedConversation`: an ordered, never-reordered sequence of turns
- `AttachmentInput`: a reference to a file the archive should fetch
- `AttachmentFetchResult` / `ProbeResult`: outcomes of attachment resolution
- `LiveCaptureRequest`: turns scraped from a live page by a capture script

Example:
    payload = ImportPayload(filename="conversations.json", mime="application/json", text=raw)
    for conversation in default_registry().parse(payload):
        for turn in conversation.turns:
            print(turn.role.value, turn.content_markdown[:40])
"""

from __future__ import annotations

import codecs
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from aihistory.lib.roles import Role


class SourcePlatform(str, Enum):
    """Chat platforms the archive knows how to ingest."""

    CHATGPT = "chatgpt"
    GEMINI = "gemini"
    AI_STUDIO = "ai_studio"
    CLAUDE = "claude"


class AttachmentKind(str, Enum):
    IMAGE = "image"
    PDF = "pdf"
    FILE = "file"


class AttachmentStatus(str, Enum):
    CACHED = "cached"
    FAILED = "failed"
    REMOTE_ONLY = "remote_only"


# UTF-32 marks first: BOM_UTF32_LE starts with BOM_UTF16_LE
_BOMS: tuple[tuple[bytes, str], ...] = (
    (codecs.BOM_UTF32_LE, "utf-32"),
    (codecs.BOM_UTF32_BE, "utf-32"),
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)
_WIDE_SNIFF_BYTES = 4096
_FALLBACK_ENCODING = "cp1252"


def _wide_encoding(blob: bytes) -> str | None:
    """Guess BOM-less UTF-16/32 from where NUL bytes fall in mostly-ASCII text."""
    sample = blob[:_WIDE_SNIFF_BYTES]
    sample = sample[: len(sample) - len(sample) % 4]
    if not sample or b"\x00" not in sample:
        return None
    slots = len(sample) // 4
    zeros = [sample[i::4].count(0) / slots for i in range(4)]
    if all(ratio > 0.5 for ratio in zeros[1:]) and zeros[0] <= 0.5:
        return "utf-32-le"
    if all(ratio > 0.5 for ratio in zeros[:3]) and zeros[3] <= 0.5:
        return "utf-32-be"
    odd = (zeros[1] + zeros[3]) / 2
    even = (zeros[0] + zeros[2]) / 2
    if odd > 0.5 and even <= 0.5:
        return "utf-16-le"
    if even > 0.5 and odd <= 0.5:
        return "utf-16-be"
    return None


def _clean(decoded: str) -> str:
    return decoded.replace("\x00", "").lstrip("\ufeff")


def decode_bytes(blob: bytes) -> str:
    """Decode raw import bytes.

    Order: byte-order mark, BOM-less UTF-16/32 recognised by their NUL
    pattern, strict UTF-8, strict cp1252, then lossy UTF-8.
    """
    candidates: list[str] = [encoding for bom, encoding in _BOMS if blob.startswith(bom)][:1]
    wide = _wide_encoding(blob)
    if wide:
        candidates.append(wide)
    candidates += ["utf-8", _FALLBACK_ENCODING]
    for encoding in candidates:
        try:
            cleaned = _clean(blob.decode(encoding))
        except UnicodeError:
            continue
        if cleaned:
            return cleaned
    return _clean(blob.decode("utf-8", errors="ignore"))


class ImportPayload(BaseModel):
    """A single import or capture input."""

    model_config = ConfigDict(frozen=True)

    filename: str
    mime: str = ""
    text: str | None = None
    data: bytes | None = None
    source_hint: SourcePlatform | None = None

    @property
    def content(self) -> str:
        """Text content, decoded from ``data`` when ``text`` is absent."""
        if self.text is not None:
            return self.text
        if self.data:
            return decode_bytes(self.data)
        return ""

    def head(self, chars: int = 300) -> str:
        """Lower-cased leading slice used for structural sniffing."""
        return self.content[:chars].lower()


class AttachmentInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: AttachmentKind
    original_url: str
    mime: str | None = None
    status: AttachmentStatus | None = None


class CapturedTurn(BaseModel):
    """A turn as scraped from a live page, before cleanup."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content_markdown: str = ""
    thought_markdown: str | None = None
    attachments: tuple[AttachmentInput, ...] = ()
    model: str | None = None
    timestamp: str | None = None
    token_count: int | None = None


class NormalizedTurn(CapturedTurn):
    """One message-like unit attributed to a single role."""

    @model_validator(mode="after")
    def _require_content_or_attachment(self) -> NormalizedTurn:
        if not self.content_markdown.strip() and not self.attachments:
            raise ValueError("turn needs content or at least one attachment")
        return self

    @property
    def has_attachments(self) -> bool:
        return bool(self.attachments)


class NormalizedConversation(BaseModel):
    """A platform conversation in canonical form; turn order is chronological."""

    model_config = ConfigDict(frozen=True)

    source: SourcePlatform
    source_conversation_id: str | None = None
    title: str
    summary: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    turns: tuple[NormalizedTurn, ...]
    meta: dict[str, Any] = Field(default_factory=dict)

    @property
    def turn_count(self) -> int:
        return len(self.turns)


ErrorKind = Literal["network", "http", "policy", "exhausted"]


class AttachmentFetchResult(BaseModel):
    """Outcome of one ``AttachmentResolver.resolve`` call."""

    model_config = ConfigDict(frozen=True)

    ok: bool
    data_url: str | None = None
    mime: str | None = None
    filename: str | None = None
    size: int | None = None
    status: int | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    tried: tuple[str, ...] = ()

    @property
    def retryable(self) -> bool:
        """Whether a later retry could plausibly succeed."""
        return not self.ok and self.error_kind in ("network", "http")


class ProbeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: bool
    url: str
    method: Literal["HEAD", "GET"]
    status: int | None = None
    content_type: str | None = None
    content_length: int | None = None
    error: str | None = None


class LiveCaptureRequest(BaseModel):
    """Turns already structured by a capture script running in the page."""

    model_config = ConfigDict(frozen=True)

    source: SourcePlatform
    page_url: str
    title: str
    turns: tuple[CapturedTurn, ...] = ()
    captured_at: str
    version: str


__all__ = [
    "AttachmentFetchResult",
    "AttachmentInput",
    "AttachmentKind",
    "AttachmentStatus",
    "CapturedTurn",
    "ErrorKind",
    "ImportPayload",
    "LiveCaptureRequest",
    "NormalizedConversation",
    "NormalizedTurn",
    "ProbeResult",
    "SourcePlatform",
    "decode_bytes",
]
