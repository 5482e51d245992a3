"""Generic text helpers shared by every extractor."""

from __future__ import annotations

import html
import re
from collections.abc import Iterable, Mapping
from typing import Any

_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_STYLE_RE = re.compile(r"<style\b[^<]*(?:(?!</style>)<[^<]*)*</style>", re.IGNORECASE)
_BREAK_RE = re.compile(r"<br\s*/?>|</p>|</div>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_BEFORE_NEWLINE_RE = re.compile(r"[ \t\r\f\v]+\n")
_BLANK_RUN_RE = re.compile(r"\n{3,}")
_INLINE_SPACE_RE = re.compile(r"[ \t\r\f\v]{2,}")

_TEXT_CONTAINER_KEYS = ("parts", "chunks", "items")
_MAX_FLATTEN_DEPTH = 12


def strip_html(markup: str) -> str:
    """Reduce an HTML fragment to plain text with paragraph breaks kept."""
    if not markup:
        return ""
    text = _SCRIPT_RE.sub("", markup)
    text = _STYLE_RE.sub("", text)
    text = _BREAK_RE.sub("\n", text)
    text = _TAG_RE.sub(" ", text)
    text = html.unescape(text).replace("\xa0", " ")
    text = _INLINE_SPACE_RE.sub(" ", text)
    text = _SPACE_BEFORE_NEWLINE_RE.sub("\n", text)
    text = _BLANK_RUN_RE.sub("\n\n", text)
    return text.strip()


def to_text(value: object, _depth: int = 0) -> str:
    """Flatten a nested JSON value into text.

    Strings pass through; lists join their non-empty flattened items with
    newlines; mappings yield ``text`` or ``content`` strings, or recurse into
    ``parts``/``chunks``/``items`` lists.  Anything else is empty.
    """
    if _depth > _MAX_FLATTEN_DEPTH:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        pieces = (to_text(item, _depth + 1) for item in value)
        return "\n".join(piece for piece in pieces if piece)
    if isinstance(value, Mapping):
        text = value.get("text")
        if isinstance(text, str):
            return text
        content = value.get("content")
        if isinstance(content, str):
            return content
        for key in _TEXT_CONTAINER_KEYS:
            nested = value.get(key)
            if isinstance(nested, list):
                return to_text(nested, _depth + 1)
    return ""


def first_present(record: Mapping[str, Any], keys: Iterable[str]) -> Any:
    """Return the first value under ``keys`` that is not None."""
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def first_string(record: Mapping[str, Any], keys: Iterable[str]) -> str | None:
    """Like ``first_present`` but stringified, with blanks treated as missing."""
    value = first_present(record, keys)
    if value is None or isinstance(value, (dict, list, bool)):
        return None
    text = str(value).strip()
    return text or None


__all__ = ["first_present", "first_string", "strip_html", "to_text"]
