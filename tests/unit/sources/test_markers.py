"""Speaker-marker transcripts and ``## Role`` markdown sections."""

from __future__ import annotations

import pytest

from aihistory.lib.models import SourcePlatform
from aihistory.lib.roles import Role
from aihistory.sources.parsers.markdown import MarkdownParser, parse_sections, section_role
from aihistory.sources.parsers.markers import (
    MarkedTextParser,
    MarkerLine,
    detect_source_from_text,
    match_marker,
    parse_marked_turns,
)
from tests.infra.helpers import make_payload

# =============================================================================
# Marker lines
# =============================================================================

MARKER_CASES = [
    ("User", MarkerLine(Role.USER), "bare"),
    ("Assistant:", MarkerLine(Role.ASSISTANT), "bare with colon"),
    ("user: hello there", MarkerLine(Role.USER, "hello there"), "inline"),
    ("**User:** hi", MarkerLine(Role.USER, "hi"), "bold inline"),
    ("## Assistant", MarkerLine(Role.ASSISTANT), "heading"),
    ("## Assistant (gpt-4o)", MarkerLine(Role.ASSISTANT), "heading with model suffix"),
    ("### Gemini", MarkerLine(Role.ASSISTANT), "brand heading"),
    ("Human:", MarkerLine(Role.USER), "human"),
    ("System: be brief", MarkerLine(Role.SYSTEM, "be brief"), "system"),
    ("你：你好", MarkerLine(Role.USER, "你好"), "full-width colon"),
    ("AI is great", None, "sentence starting with a label"),
    ("Username: bob", None, "label prefix of a longer word"),
    ("# AI safety", None, "heading with trailing words"),
    ("Users:", None, "plural"),
    ("Claude said hi", None, "label inside prose"),
]


@pytest.mark.parametrize("line,expected,desc", MARKER_CASES)
def test_match_marker(line, expected, desc):
    assert match_marker(line) == expected, desc


def test_preamble_ignored_and_blank_lines_kept():
    text = "Exported on Monday\n\nUser: first line\n\nsecond paragraph\nAssistant\nthe answer\n"
    turns = parse_marked_turns(text)
    assert [(t.role, t.content_markdown) for t in turns] == [
        (Role.USER, "first line\n\nsecond paragraph"),
        (Role.ASSISTANT, "the answer"),
    ]


def test_empty_marker_turn_dropped():
    turns = parse_marked_turns("User:\n\nAssistant: only me")
    assert [(t.role, t.content_markdown) for t in turns] == [(Role.ASSISTANT, "only me")]


def test_no_markers_no_turns():
    assert parse_marked_turns("just some notes\nwithout speakers") == []


DETECT_CASES = [
    ("copied from aistudio.google.com", SourcePlatform.AI_STUDIO),
    ("Claude: hi", SourcePlatform.CLAUDE),
    ("Gemini: hi", SourcePlatform.GEMINI),
    ("Assistant: hi", SourcePlatform.CHATGPT),
]


@pytest.mark.parametrize("text,expected", DETECT_CASES)
def test_detect_source_from_text(text, expected):
    assert detect_source_from_text(text) is expected


def test_marked_text_parser():
    payload = make_payload("chat.txt", "User: hi\nAssistant: yo")
    [conversation] = MarkedTextParser().extract(payload)
    assert conversation.title == "chat"
    assert conversation.source is SourcePlatform.CHATGPT
    assert conversation.meta == {"imported_from": "chat.txt", "parser": "text"}
    assert [t.content_markdown for t in conversation.turns] == ["hi", "yo"]


def test_marked_text_parser_hint_and_default_title():
    payload = make_payload(".txt", "User: hi", source_hint=SourcePlatform.GEMINI)
    [conversation] = MarkedTextParser().extract(payload)
    assert conversation.source is SourcePlatform.GEMINI
    assert conversation.title == "Imported Text Conversation"


def test_marked_text_parser_without_turns():
    assert MarkedTextParser().extract(make_payload("notes.txt", "nothing to see")) == []
    assert MarkedTextParser().extract(make_payload("notes.txt", "  \n ")) == []


# =============================================================================
# Markdown sections
# =============================================================================

SECTION_ROLE_CASES = [
    ("User", Role.USER),
    ("Human notes", Role.USER),
    ("Assistant", Role.ASSISTANT),
    ("Model (gpt-4o)", Role.ASSISTANT),
]


@pytest.mark.parametrize("header,expected", SECTION_ROLE_CASES)
def test_section_role(header, expected):
    assert section_role(header) is expected


def test_parse_sections():
    text = "# Title\nintro\n## User\nhello\n## Assistant (gpt)\nworld\n\nmore\n## User\n   \n"
    turns = parse_sections(text)
    assert [(t.role, t.content_markdown) for t in turns] == [
        (Role.USER, "hello"),
        (Role.ASSISTANT, "world\n\nmore"),
    ]


def test_markdown_parser():
    payload = make_payload("notes.md", "## User\nq\n## Assistant\na")
    [conversation] = MarkdownParser().extract(payload)
    assert conversation.source is SourcePlatform.CHATGPT
    assert conversation.title == "notes"
    assert conversation.meta == {"imported_from": "notes.md", "parser": "markdown"}


def test_markdown_parser_hint():
    payload = make_payload("notes.markdown", "## User\nq", source_hint=SourcePlatform.CLAUDE)
    [conversation] = MarkdownParser().extract(payload)
    assert conversation.source is SourcePlatform.CLAUDE
    assert conversation.title == "notes"
