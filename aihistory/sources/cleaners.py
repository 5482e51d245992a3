"""Per-platform cleanup applied to extracted turn text.

Some platforms bake UI chrome ("You said") or legal notices into the text a
capture script or export hands us.  A cleaner removes those without touching
real content: prefixes are matched only at the very start, and boilerplate
paragraphs are dropped only when a whole fingerprint appears in them.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from types import MappingProxyType
from typing import Protocol

from aihistory.lib.models import CapturedTurn, NormalizedTurn, SourcePlatform
from aihistory.lib.roles import Role

_PARAGRAPH_SPLIT_RE = re.compile(r"\n{2,}")
_WHITESPACE_RE = re.compile(r"\s+")


class PlatformTextCleaner(Protocol):
    def clean(self, text: str, role: Role) -> str: ...


class PassthroughCleaner:
    """Cleaner for platforms whose text needs no more than trimming."""

    def clean(self, text: str, role: Role) -> str:
        return text.strip()


def _fingerprint(text: str) -> str:
    return _WHITESPACE_RE.sub("", text).lower()


class BoilerplateCleaner:
    """Prefix stripping plus paragraph-level boilerplate removal.

    Args:
        prefixes: Regexes anchored at the start of the text, matched
            case-insensitively and stripped one after another.  Each pattern
            includes its own terminator so "You said" only goes when it is a
            label line, not the start of a sentence.
        fingerprints: Whitespace-free, lower-cased substrings.  An assistant
            paragraph containing any of them is dropped.
    """

    def __init__(self, prefixes: tuple[str, ...], fingerprints: tuple[str, ...]) -> None:
        self._prefix_res = tuple(re.compile(rf"^{prefix}", re.IGNORECASE) for prefix in prefixes)
        self._fingerprints = tuple(_fingerprint(fp) for fp in fingerprints if fp)

    def strip_prefixes(self, text: str) -> str:
        for prefix_re in self._prefix_res:
            text = prefix_re.sub("", text.lstrip(), count=1)
        return text.strip()

    def strip_boilerplate(self, text: str) -> str:
        kept: list[str] = []
        for paragraph in _PARAGRAPH_SPLIT_RE.split(text):
            normalized = _fingerprint(paragraph)
            if not normalized:
                continue
            if any(fp in normalized for fp in self._fingerprints):
                continue
            kept.append(paragraph.strip())
        return "\n\n".join(kept).strip()

    def clean(self, text: str, role: Role) -> str:
        text = self.strip_prefixes(text)
        if role is Role.ASSISTANT:
            text = self.strip_boilerplate(text)
        return text


GEMINI_UI_PREFIXES: tuple[str, ...] = (
    r"you said[ \t]*(?:\n|$)",
    r"gemini said[ \t]*(?:\n|$)",
    r"显示思路\s*id_?\s*",
)

GEMINI_BOILERPLATE_FINGERPRINTS: tuple[str, ...] = (
    "如果你想让我保存或删除我们对话中关于你的信息",
    "你需要先开启过往对话记录",
    "你也可以手动添加或更新你给gemini的指令",
    "从而定制gemini的回复",
    "ifyouwantmetosaveordeleteinformationfromourconversations",
    "youneedtoturnonchathistory",
    "youcanalsomanuallyaddorupdateyourinstructionsforgemini",
)

GEMINI_CLEANER = BoilerplateCleaner(GEMINI_UI_PREFIXES, GEMINI_BOILERPLATE_FINGERPRINTS)
PASSTHROUGH_CLEANER = PassthroughCleaner()


class CleanerRegistry:
    """Read-only platform → cleaner lookup."""

    def __init__(
        self,
        cleaners: Mapping[SourcePlatform, PlatformTextCleaner] | None = None,
        default: PlatformTextCleaner = PASSTHROUGH_CLEANER,
    ) -> None:
        self._cleaners = MappingProxyType(dict(cleaners or {}))
        self._default = default

    def for_platform(self, platform: SourcePlatform) -> PlatformTextCleaner:
        return self._cleaners.get(platform, self._default)

    def clean(self, platform: SourcePlatform, text: str, role: Role) -> str:
        return self.for_platform(platform).clean(text, role)


def clean_turn(
    cleaner: PlatformTextCleaner,
    turn: CapturedTurn,
    *,
    keep_thoughts: bool = True,
) -> NormalizedTurn | None:
    """Clean one turn; None when nothing but whitespace is left and no attachment."""
    content = cleaner.clean(turn.content_markdown, turn.role)
    if not content and not turn.attachments:
        return None
    thought = (turn.thought_markdown or "").strip() if keep_thoughts else ""
    return NormalizedTurn(
        role=turn.role,
        content_markdown=content,
        thought_markdown=thought or None,
        attachments=turn.attachments,
        model=turn.model,
        timestamp=turn.timestamp,
        token_count=turn.token_count,
    )


def default_cleaners() -> CleanerRegistry:
    return CleanerRegistry({SourcePlatform.GEMINI: GEMINI_CLEANER})


__all__ = [
    "BoilerplateCleaner",
    "CleanerRegistry",
    "GEMINI_BOILERPLATE_FINGERPRINTS",
    "GEMINI_CLEANER",
    "GEMINI_UI_PREFIXES",
    "PASSTHROUGH_CLEANER",
    "PassthroughCleaner",
    "PlatformTextCleaner",
    "clean_turn",
    "default_cleaners",
]
