"""Saved chat pages.

Three strategies, tried in order; the first yielding at least
``ParserSettings.html_min_turns`` turns wins, and the text-marker pass is
used as the last resort regardless of its count:

1. DOM: role-annotated elements located with BeautifulSoup
2. Regex over ``data-message-author-role`` attributes (mangled markup)
3. Speaker markers over the tag-stripped text
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Tag

from aihistory.config import ParserSettings
from aihistory.lib.log import get_logger
from aihistory.lib.models import ImportPayload, NormalizedConversation, NormalizedTurn
from aihistory.lib.roles import ROLE_MAP, Role
from aihistory.lib.text import strip_html

from .base import build_conversation, build_turn
from .markers import detect_source_from_text, parse_marked_turns, strip_extension

logger = get_logger(__name__)

TURN_SELECTOR = ", ".join(
    [
        "[data-message-author-role]",
        "[data-author-role]",
        "[data-role]",
        "[data-testid*='conversation-turn']",
        "article[data-role]",
    ]
)
ROLE_ATTRIBUTES = ("data-message-author-role", "data-author-role", "data-role", "data-testid")

_ROLE_ATTRIBUTE_RE = re.compile(
    r"data-message-author-role\s*=\s*['\"]?(user|assistant|system|tool)['\"]?[^>]*>([\s\S]*?)</[^>]+>",
    re.IGNORECASE,
)

MIN_DOM_TEXT_CHARS = 2


def is_url(name: str) -> bool:
    lower = name.lower()
    return lower.startswith("http://") or lower.startswith("https://")


def _node_role(node: Tag, fallback: Role) -> Role:
    # Attribute values such as "conversation-turn-3" carry no role; keep looking
    tokens = [node.get(attribute) for attribute in ROLE_ATTRIBUTES]
    tokens.extend(node.get("class") or ())
    for token in tokens:
        if isinstance(token, str):
            role = ROLE_MAP.get(token.strip().lower())
            if role is not None:
                return role
    return fallback


def turns_from_dom(markup: str, fallback: Role = Role.ASSISTANT) -> list[NormalizedTurn]:
    soup = BeautifulSoup(markup, "html.parser")
    candidates = soup.select(TURN_SELECTOR)
    selected = {id(node) for node in candidates}

    turns: list[NormalizedTurn] = []
    for node in candidates:
        # Wrappers such as conversation-turn articles hold a role-annotated child
        if any(id(child) in selected for child in node.find_all(True)):
            continue
        text = node.get_text("\n", strip=True)
        if len(text) < MIN_DOM_TEXT_CHARS:
            continue
        turn = build_turn(_node_role(node, fallback), text)
        if turn is not None:
            turns.append(turn)
    return turns


def turns_from_role_attributes(markup: str) -> list[NormalizedTurn]:
    turns: list[NormalizedTurn] = []
    for match in _ROLE_ATTRIBUTE_RE.finditer(markup):
        turn = build_turn(Role(match.group(1).lower()), strip_html(match.group(2)))
        if turn is not None:
            turns.append(turn)
    return turns


class HtmlParser:
    """Generic extractor for chat pages saved as HTML."""

    name = "html"

    def __init__(self, settings: ParserSettings | None = None) -> None:
        self.settings = settings or ParserSettings()

    def score(self, payload: ImportPayload) -> int:
        if "text/html" in payload.mime.lower():
            return 96
        name = payload.filename.lower()
        if name.endswith(".html") or name.endswith(".htm"):
            return 95
        head = payload.head(self.settings.sniff_chars)
        if "<html" in head or "<!doctype html" in head:
            return 90
        if is_url(name):
            return 70
        return 0

    def select_turns(self, markup: str) -> list[NormalizedTurn]:
        minimum = self.settings.html_min_turns
        dom_turns = turns_from_dom(markup, self.settings.default_role)
        if len(dom_turns) >= minimum:
            return dom_turns
        attribute_turns = turns_from_role_attributes(markup)
        if len(attribute_turns) >= minimum:
            return attribute_turns
        logger.debug("html_text_marker_fallback", dom=len(dom_turns), attributes=len(attribute_turns))
        return parse_marked_turns(strip_html(markup))

    def extract(self, payload: ImportPayload) -> list[NormalizedConversation]:
        markup = payload.content
        if not markup.strip():
            return []
        from_url = is_url(payload.filename)
        conversation = build_conversation(
            source=payload.source_hint or detect_source_from_text(markup),
            source_conversation_id=payload.filename if from_url else None,
            title=payload.filename if from_url else strip_extension(payload.filename, (".html", ".htm")),
            turns=self.select_turns(markup),
            imported_from=payload.filename,
            meta={"parser": self.name},
        )
        return [conversation] if conversation else []


__all__ = ["HtmlParser", "is_url", "turns_from_dom", "turns_from_role_attributes"]
