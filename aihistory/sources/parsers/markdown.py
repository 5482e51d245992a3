from __future__ import annotations

import re

from aihistory.config import ParserSettings
from aihistory.lib.models import ImportPayload, NormalizedConversation, NormalizedTurn, SourcePlatform
from aihistory.lib.roles import Role

from .base import build_conversation, build_turn
from .markers import strip_extension

_SECTION_SPLIT_RE = re.compile(r"\n(?=##\s+)")
_HEADER_PREFIX_RE = re.compile(r"^##\s+")

MARKDOWN_EXTENSIONS = (".md", ".markdown")


def section_role(header: str) -> Role:
    lowered = header.lower()
    if "user" in lowered or "human" in lowered:
        return Role.USER
    return Role.ASSISTANT


def parse_sections(text: str) -> list[NormalizedTurn]:
    """One turn per ``## Heading`` section; text before the first heading is dropped."""
    turns: list[NormalizedTurn] = []
    for section in _SECTION_SPLIT_RE.split(text):
        header, _, body = section.partition("\n")
        if not header.startswith("## "):
            continue
        turn = build_turn(section_role(_HEADER_PREFIX_RE.sub("", header)), body)
        if turn is not None:
            turns.append(turn)
    return turns


class MarkdownParser:
    """Markdown transcripts with one ``## Role`` section per turn."""

    name = "markdown"

    def __init__(self, settings: ParserSettings | None = None) -> None:
        self.settings = settings or ParserSettings()

    def score(self, payload: ImportPayload) -> int:
        return 65 if payload.filename.lower().endswith(MARKDOWN_EXTENSIONS) else 0

    def extract(self, payload: ImportPayload) -> list[NormalizedConversation]:
        text = payload.content
        if not text.strip():
            return []
        conversation = build_conversation(
            source=payload.source_hint or SourcePlatform.CHATGPT,
            title=strip_extension(payload.filename, MARKDOWN_EXTENSIONS) or "Imported Markdown Conversation",
            turns=parse_sections(text),
            imported_from=payload.filename,
            meta={"parser": self.name},
        )
        return [conversation] if conversation else []


__all__ = ["MarkdownParser", "parse_sections", "section_role"]
