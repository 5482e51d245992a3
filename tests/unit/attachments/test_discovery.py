"""Breadth-first URL discovery over JSON and free text."""

from __future__ import annotations

import pytest
from hypothesis import given, settings

from aihistory.attachments.discovery import (
    discover_urls,
    extract_url_candidates_from_text,
    is_http_url,
    pick_redirect_url,
    to_absolute_http_url,
)
from tests.infra.strategies import json_values

BASE = "https://chatgpt.com/c/123"

ABSOLUTE_CASES = [
    ("https://cdn.example/f.pdf", BASE, "https://cdn.example/f.pdf", "already absolute"),
    ("  http://cdn.example/f  ", BASE, "http://cdn.example/f", "trimmed"),
    ("/backend-api/files/f1/download", BASE, "https://chatgpt.com/backend-api/files/f1/download", "root-relative"),
    ("backend-api/files/f1", BASE, "https://chatgpt.com/backend-api/files/f1", "missing leading slash"),
    ("relative/path", BASE, None, "plain relative path"),
    ("", BASE, None, "empty"),
    ("javascript:alert(1)", BASE, None, "other scheme"),
    ("/p", "file:///tmp/x", None, "non-http base"),
]


@pytest.mark.parametrize("raw,base,expected,desc", ABSOLUTE_CASES)
def test_to_absolute_http_url(raw, base, expected, desc):
    assert to_absolute_http_url(raw, base) == expected, desc


def test_priority_keys_before_nested_values():
    payload = {
        "meta": {"url": "https://a.example/deep"},
        "id": "file-1",
        "href": "https://b.example/h",
        "download_url": "https://c.example/d",
    }
    assert discover_urls(payload, BASE) == [
        "https://c.example/d",
        "https://b.example/h",
        "https://a.example/deep",
    ]


def test_hinted_keys_and_embedded_urls():
    payload = {
        "asset_pointer": "/backend-api/files/f2/download",
        "note": "mirror at https://mirror.example/f2 (signed)",
        "items": ["https://list.example/x", 3, None],
    }
    assert discover_urls(payload, BASE) == [
        "https://chatgpt.com/backend-api/files/f2/download",
        "https://mirror.example/f2",
        "https://list.example/x",
    ]


def test_duplicates_collapse():
    payload = {"url": "https://a.example/f", "download_url": "https://a.example/f", "more": ["https://a.example/f"]}
    assert discover_urls(payload, BASE) == ["https://a.example/f"]


def test_node_budget_bounds_the_walk():
    payload = [{"url": f"https://h{i}.example/"} for i in range(10)]
    assert discover_urls(payload, BASE, node_budget=3) == ["https://h0.example/", "https://h1.example/"]


def test_cyclic_input_terminates():
    node: dict = {"url": "https://x.example/a"}
    node["self"] = node
    looped: list = ["https://x.example/b"]
    looped.append(looped)
    node["list"] = looped
    assert discover_urls(node, BASE) == ["https://x.example/a", "https://x.example/b"]


def test_text_scan_unescapes_and_orders():
    text = '{"u":"https:\\/\\/cdn.example\\/f.pdf"} or try /backend-api/files/x/download'
    assert extract_url_candidates_from_text(text, BASE) == [
        "https://cdn.example/f.pdf",
        "https://chatgpt.com/backend-api/files/x/download",
    ]


def test_pick_redirect_skips_tried():
    payload = {"download_url": "https://a.example/1", "url": "https://a.example/2"}
    assert pick_redirect_url(payload, BASE, ["https://a.example/1"]) == "https://a.example/2"
    assert pick_redirect_url(payload, BASE, ["https://a.example/1", "https://a.example/2"]) is None


@given(json_values)
@settings(max_examples=200)
def test_discovered_urls_are_absolute_and_unique(payload):
    urls = discover_urls(payload, BASE)
    assert len(urls) == len(set(urls))
    assert all(is_http_url(url) for url in urls)
