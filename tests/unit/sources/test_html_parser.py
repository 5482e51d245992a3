"""Saved-page extraction: DOM, role-attribute regex and text-marker strategies."""

from __future__ import annotations

import pytest

from aihistory.config import ParserSettings
from aihistory.lib.models import SourcePlatform
from aihistory.lib.roles import Role
from aihistory.sources.parsers.html import HtmlParser, turns_from_dom, turns_from_role_attributes
from tests.infra.helpers import make_payload

CHATGPT_PAGE = """
<!DOCTYPE html>
<html><head><title>Saved conversation</title></head><body>
<article data-testid="conversation-turn-1">
  <div data-message-author-role="user"><p>Hi there</p></div>
</article>
<article data-testid="conversation-turn-2">
  <div data-message-author-role="assistant"><p>Hello <b>you</b></p></div>
</article>
</body></html>
"""


def _roles_and_text(turns):
    return [(t.role, t.content_markdown) for t in turns]


def test_dom_strategy_prefers_innermost_role_nodes():
    assert _roles_and_text(turns_from_dom(CHATGPT_PAGE)) == [
        (Role.USER, "Hi there"),
        (Role.ASSISTANT, "Hello\nyou"),
    ]


def test_dom_role_from_class_when_attributes_carry_none():
    markup = (
        '<div data-testid="conversation-turn-1" class="msg user">Question here</div>'
        '<div data-testid="conversation-turn-2" class="msg bot">Answer here</div>'
    )
    assert [t.role for t in turns_from_dom(markup)] == [Role.USER, Role.ASSISTANT]


def test_dom_skips_tiny_nodes_and_uses_fallback_role():
    markup = '<div data-role="user">x</div><div data-role="narrator">Long enough</div>'
    assert _roles_and_text(turns_from_dom(markup, Role.SYSTEM)) == [(Role.SYSTEM, "Long enough")]


def test_role_attribute_regex():
    markup = (
        "<div data-message-author-role='user'><span>What &amp; why?</span></div>"
        "<div data-message-author-role=assistant>Because.</div>"
    )
    assert _roles_and_text(turns_from_role_attributes(markup)) == [
        (Role.USER, "What & why?"),
        (Role.ASSISTANT, "Because."),
    ]


def test_text_marker_fallback():
    markup = "<html><body><p>User:</p><p>What is 2+2?</p><p>Assistant:</p><p>4</p></body></html>"
    [conversation] = HtmlParser().extract(make_payload("math.html", markup))
    assert _roles_and_text(conversation.turns) == [(Role.USER, "What is 2+2?"), (Role.ASSISTANT, "4")]


def test_min_turns_threshold_is_configurable():
    parser = HtmlParser(ParserSettings(html_min_turns=3))
    assert parser.extract(make_payload("page.html", CHATGPT_PAGE)) == []
    [conversation] = HtmlParser().extract(make_payload("page.html", CHATGPT_PAGE))
    assert conversation.turn_count == 2


def test_file_import_metadata():
    [conversation] = HtmlParser().extract(make_payload("My Chat.html", CHATGPT_PAGE))
    assert conversation.title == "My Chat"
    assert conversation.source_conversation_id is None
    assert conversation.source is SourcePlatform.CHATGPT
    assert conversation.meta == {"imported_from": "My Chat.html", "parser": "html"}
    assert conversation.created_at is None and conversation.updated_at is None


def test_url_named_payload_uses_url_as_identity():
    url = "https://chatgpt.com/c/abc-123"
    [conversation] = HtmlParser().extract(make_payload(url, CHATGPT_PAGE))
    assert conversation.source_conversation_id == url
    assert conversation.title == url


SOURCE_SNIFF_CASES = [
    ("<a href='https://aistudio.google.com/prompts/1'>", SourcePlatform.AI_STUDIO),
    ("<meta content='Claude'>", SourcePlatform.CLAUDE),
    ("<link href='https://gemini.google.com/app'>", SourcePlatform.GEMINI),
    ("<title>plain</title>", SourcePlatform.CHATGPT),
]


@pytest.mark.parametrize("marker,expected", SOURCE_SNIFF_CASES)
def test_source_sniffed_from_document(marker, expected):
    [conversation] = HtmlParser().extract(make_payload("page.html", marker + CHATGPT_PAGE))
    assert conversation.source is expected


def test_source_hint_overrides_sniffing():
    payload = make_payload("page.html", "<p>gemini</p>" + CHATGPT_PAGE, source_hint=SourcePlatform.CLAUDE)
    [conversation] = HtmlParser().extract(payload)
    assert conversation.source is SourcePlatform.CLAUDE


def test_blank_page_yields_nothing():
    assert HtmlParser().extract(make_payload("page.html", "   ")) == []
    assert HtmlParser().extract(make_payload("page.html", "<html><body><p>no turns</p></body></html>")) == []
