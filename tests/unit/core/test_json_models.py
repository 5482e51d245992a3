"""orjson helpers and payload/model invariants."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from aihistory.lib.json import dumps, loads, parse_json_safe
from aihistory.lib.models import (
    AttachmentFetchResult,
    AttachmentInput,
    AttachmentKind,
    ImportPayload,
    NormalizedTurn,
)
from aihistory.lib.roles import Role


@pytest.mark.parametrize("raw", [None, "", b"", "{bad", "[1,", "undefined"])
def test_parse_json_safe_returns_none(raw):
    assert parse_json_safe(raw) is None


def test_parse_json_safe_accepts_str_and_bytes():
    assert parse_json_safe('{"a": 1}') == {"a": 1}
    assert parse_json_safe(b"[1, 2]") == [1, 2]


def test_dumps_roundtrip_sorted():
    assert dumps({"b": 1, "a": 2}, sort_keys=True) == '{"a":2,"b":1}'
    assert loads(dumps({"x": [1]})) == {"x": [1]}


PAYLOAD_DECODE_CASES = [
    ('{"k": "é"}'.encode("utf-8"), "utf-8"),
    ('{"k": "é"}'.encode("utf-8-sig"), "utf-8 with BOM"),
    ('{"k": "é"}'.encode("utf-16"), "utf-16 with BOM"),
    ('{"k": "é"}'.encode("utf-32"), "utf-32 with BOM"),
    ('{"k": "é"}'.encode("utf-16-le"), "utf-16-le without BOM"),
    ('{"k": "é"}'.encode("utf-16-be"), "utf-16-be without BOM"),
    ('{"k": "é"}'.encode("utf-32-le"), "utf-32-le without BOM"),
    ('{"k": "é"}'.encode("cp1252"), "windows-1252"),
]


@pytest.mark.parametrize("data,desc", PAYLOAD_DECODE_CASES)
def test_payload_content_decodes_bytes(data, desc):
    payload = ImportPayload(filename="x.json", data=data)
    assert parse_json_safe(payload.content) == {"k": "é"}, desc


LEGACY_TEXT_CASES = [
    ("User: café crème\nAssistant: très bien!".encode("cp1252"), ["café crème", "très bien!"], "cp1252 accents"),
    ("User: 5€ please\nAssistant: “done”".encode("cp1252"), ["5€ please", "“done”"], "cp1252 punctuation"),
    ("User: hi\nAssistant: olá".encode("utf-16-le"), ["hi", "olá"], "utf-16-le without BOM"),
]


@pytest.mark.parametrize("data,expected,desc", LEGACY_TEXT_CASES)
def test_legacy_encoded_transcripts_parse(registry, data, expected, desc):
    [conversation] = registry.parse(ImportPayload(filename="chat.txt", data=data))
    assert [turn.content_markdown for turn in conversation.turns] == expected, desc


def test_undecodable_bytes_go_lossy():
    # 0x81 is unassigned in cp1252 and invalid as a utf-8 start byte
    assert ImportPayload(filename="x.txt", data=b"ok\x81").content == "ok"


def test_payload_text_wins_over_data():
    payload = ImportPayload(filename="x.txt", text="text", data=b"data")
    assert payload.content == "text"


def test_payload_without_content_is_empty():
    assert ImportPayload(filename="x.txt").content == ""


def test_payload_head_is_lowercased_slice():
    payload = ImportPayload(filename="x.html", text="<!DOCTYPE HTML>" + "x" * 500)
    head = payload.head(20)
    assert head.startswith("<!doctype html>")
    assert len(head) == 20


def test_turn_requires_content_or_attachment():
    with pytest.raises(ValidationError):
        NormalizedTurn(role=Role.USER, content_markdown="   ")


def test_attachment_only_turn_is_valid():
    attachment = AttachmentInput(kind=AttachmentKind.IMAGE, original_url="https://x.example/a.png")
    turn = NormalizedTurn(role=Role.USER, attachments=(attachment,))
    assert turn.has_attachments
    assert turn.content_markdown == ""


def test_turns_are_frozen():
    turn = NormalizedTurn(role=Role.USER, content_markdown="hi")
    with pytest.raises(ValidationError):
        turn.content_markdown = "changed"


@pytest.mark.parametrize(
    "kind,retryable",
    [("network", True), ("http", True), ("policy", False), ("exhausted", False)],
)
def test_fetch_result_retryable(kind, retryable):
    result = AttachmentFetchResult(ok=False, error="x", error_kind=kind)
    assert result.retryable is retryable
