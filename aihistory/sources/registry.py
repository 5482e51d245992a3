"""Format detection and dispatch for imported files.

The registry asks every extractor for a confidence score, runs the best one,
and passes each extracted turn through the platform cleaner.  Ties go to the
extractor registered first.  ``parse`` never raises: an import queue must not
stall on one unreadable file.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from aihistory.config import ParserSettings
from aihistory.lib.log import get_logger
from aihistory.lib.models import ImportPayload, NormalizedConversation

from .cleaners import CleanerRegistry, clean_turn, default_cleaners
from .parsers import (
    AIStudioParser,
    ChatGPTParser,
    ClaudeParser,
    FormatExtractor,
    GeminiParser,
    HtmlParser,
    MarkdownParser,
    MarkedTextParser,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class ParserSelection:
    extractor: FormatExtractor
    score: int


class ParserRegistry:
    """Ordered, read-only set of extractors plus the cleaners applied after them."""

    def __init__(
        self,
        extractors: Iterable[FormatExtractor],
        cleaners: CleanerRegistry | None = None,
    ) -> None:
        self._extractors: tuple[FormatExtractor, ...] = tuple(extractors)
        self.cleaners = cleaners or default_cleaners()

    @property
    def extractors(self) -> tuple[FormatExtractor, ...]:
        return self._extractors

    def scores(self, payload: ImportPayload) -> list[ParserSelection]:
        return [ParserSelection(extractor, extractor.score(payload)) for extractor in self._extractors]

    def select(self, payload: ImportPayload) -> ParserSelection | None:
        """Best-scoring extractor, or None when nothing scores above zero."""
        best: ParserSelection | None = None
        for selection in self.scores(payload):
            # Strict comparison keeps the earliest registration on ties
            if selection.score > 0 and (best is None or selection.score > best.score):
                best = selection
        return best

    def parse(self, payload: ImportPayload) -> list[NormalizedConversation]:
        selection = self.select(payload)
        if selection is None:
            logger.debug("no_parser_matched", filename=payload.filename, mime=payload.mime)
            return []

        extractor = selection.extractor
        try:
            conversations = extractor.extract(payload)
        except Exception:
            logger.exception("parser_failed", parser=extractor.name, filename=payload.filename)
            return []

        cleaned = [c for c in (self.clean_conversation(conv) for conv in conversations) if c is not None]
        if not cleaned:
            logger.debug("parser_yielded_nothing", parser=extractor.name, filename=payload.filename)
        return cleaned

    def clean_conversation(self, conversation: NormalizedConversation) -> NormalizedConversation | None:
        """Re-clean every turn for the conversation's platform; None if all turns vanish."""
        cleaner = self.cleaners.for_platform(conversation.source)
        turns = [t for t in (clean_turn(cleaner, turn) for turn in conversation.turns) if t is not None]
        if not turns:
            return None
        return conversation.model_copy(update={"turns": tuple(turns)})


def default_extractors(settings: ParserSettings | None = None) -> list[FormatExtractor]:
    settings = settings or ParserSettings()
    return [
        ChatGPTParser(settings),
        ClaudeParser(settings),
        GeminiParser(settings),
        AIStudioParser(settings),
        HtmlParser(settings),
        MarkdownParser(settings),
        MarkedTextParser(settings),
    ]


def default_registry(
    settings: ParserSettings | None = None,
    cleaners: CleanerRegistry | None = None,
) -> ParserRegistry:
    return ParserRegistry(default_extractors(settings), cleaners)


__all__ = ["ParserRegistry", "ParserSelection", "default_extractors", "default_registry"]
