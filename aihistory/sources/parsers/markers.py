"""Plain-text conversations delimited by speaker marker lines.

Recognised markers, case-insensitive, with ASCII or full-width colon:

    User                bare marker; following lines are the turn
    Assistant:          bare marker with colon
    User: hello         inline marker; the remainder opens the turn
    ## Assistant        heading marker (an optional "(model)" suffix is allowed)

Lines before the first marker are ignored.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from aihistory.config import ParserSettings
from aihistory.lib.models import ImportPayload, NormalizedConversation, NormalizedTurn, SourcePlatform
from aihistory.lib.roles import Role

from .base import build_conversation, build_turn

USER_LABELS = ("user", "human", "你")
ASSISTANT_LABELS = ("assistant", "chatgpt", "gemini", "claude", "ai", "模型", "助手")
SYSTEM_LABELS = ("system",)

_LABEL_ROLES: dict[str, Role] = {
    **{label: Role.USER for label in USER_LABELS},
    **{label: Role.ASSISTANT for label in ASSISTANT_LABELS},
    **{label: Role.SYSTEM for label in SYSTEM_LABELS},
}
_LABELS = "|".join(re.escape(label) for label in sorted(_LABEL_ROLES, key=len, reverse=True))

_INLINE_MARKER_RE = re.compile(
    rf"^\**(?P<label>{_LABELS})\**\s*(?:[:：]\**\s*(?P<rest>.*?))?\s*$",
    re.IGNORECASE,
)
_HEADING_MARKER_RE = re.compile(
    rf"^#{{1,3}}\s*(?P<label>{_LABELS})\s*[:：]?\s*(?:[(\[][^)\]]*[)\]])?\s*$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class MarkerLine:
    role: Role
    remainder: str = ""


def match_marker(line: str) -> MarkerLine | None:
    """Return the marker a stripped line carries, if any."""
    match = _HEADING_MARKER_RE.match(line) or _INLINE_MARKER_RE.match(line)
    if match is None:
        return None
    role = _LABEL_ROLES[match.group("label").lower()]
    remainder = match.groupdict().get("rest") or ""
    return MarkerLine(role=role, remainder=remainder.strip())


def parse_marked_turns(text: str) -> list[NormalizedTurn]:
    """Split marker-delimited text into turns with a line state machine."""
    turns: list[NormalizedTurn] = []
    current: Role | None = None
    buffer: list[str] = []

    def flush() -> None:
        if current is not None:
            turn = build_turn(current, "\n".join(buffer))
            if turn is not None:
                turns.append(turn)
        buffer.clear()

    for raw_line in text.splitlines():
        line = raw_line.strip()
        marker = match_marker(line) if line else None
        if marker is not None:
            flush()
            current = marker.role
            if marker.remainder:
                buffer.append(marker.remainder)
            continue
        if current is None:
            continue
        buffer.append(line)

    flush()
    return turns


def detect_source_from_text(text: str) -> SourcePlatform:
    """Guess the originating platform from brand strings in a document."""
    lower = text.lower()
    if "aistudio.google.com" in lower or "ai studio" in lower:
        return SourcePlatform.AI_STUDIO
    if "claude.ai" in lower or "anthropic" in lower or "claude" in lower:
        return SourcePlatform.CLAUDE
    if "gemini.google.com" in lower or "bard.google.com" in lower or "gemini" in lower:
        return SourcePlatform.GEMINI
    return SourcePlatform.CHATGPT


def has_marker_line(lines: Iterable[str]) -> bool:
    return any(match_marker(line.strip()) is not None for line in lines if line.strip())


def strip_extension(filename: str, extensions: tuple[str, ...]) -> str:
    lower = filename.lower()
    for ext in extensions:
        if lower.endswith(ext):
            return filename[: -len(ext)]
    return filename


class MarkedTextParser:
    """Fallback extractor for ``User:`` / ``Assistant:`` style transcripts."""

    name = "text"

    def __init__(self, settings: ParserSettings | None = None) -> None:
        self.settings = settings or ParserSettings()

    def score(self, payload: ImportPayload) -> int:
        name = payload.filename.lower()
        if name.endswith(".txt"):
            return 55
        if payload.mime.lower().startswith("text/plain"):
            return 50
        if has_marker_line(payload.head(self.settings.sniff_chars).splitlines()):
            return 30
        return 0

    def extract(self, payload: ImportPayload) -> list[NormalizedConversation]:
        text = payload.content
        if not text.strip():
            return []
        conversation = build_conversation(
            source=payload.source_hint or detect_source_from_text(text),
            title=strip_extension(payload.filename, (".txt",)) or "Imported Text Conversation",
            turns=parse_marked_turns(text),
            imported_from=payload.filename,
            meta={"parser": self.name},
        )
        return [conversation] if conversation else []


__all__ = [
    "MarkedTextParser",
    "MarkerLine",
    "detect_source_from_text",
    "has_marker_line",
    "match_marker",
    "parse_marked_turns",
    "strip_extension",
]
