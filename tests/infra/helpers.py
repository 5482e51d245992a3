"""Test builders for aihistory payloads and platform exports.

Usage:
    from tests.infra.helpers import make_chatgpt_node, make_payload, json_payload
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from aihistory.lib.models import ImportPayload, SourcePlatform


def make_payload(
    filename: str,
    text: str | None = None,
    *,
    mime: str = "",
    data: bytes | None = None,
    source_hint: SourcePlatform | None = None,
) -> ImportPayload:
    return ImportPayload(filename=filename, mime=mime, text=text, data=data, source_hint=source_hint)


def json_payload(filename: str, obj: Any, **kwargs: Any) -> ImportPayload:
    return make_payload(filename, json.dumps(obj, ensure_ascii=False), mime="application/json", **kwargs)


def make_chatgpt_node(
    msg_id: str,
    role: str | None,
    content_parts: list[Any] | None = None,
    *,
    timestamp: float | None = None,
    content_type: str = "text",
    content: dict[str, Any] | None = None,
    metadata: dict | None = None,
) -> dict[str, Any]:
    """Generate a ChatGPT mapping node.

    Usage:
        node = make_chatgpt_node("msg1", "user", ["Hello"], timestamp=1704067200)
    """
    message: dict[str, Any] = {
        "id": msg_id,
        "author": {"role": role},
        "content": content if content is not None else {"content_type": content_type, "parts": content_parts or []},
    }
    if timestamp is not None:
        message["create_time"] = timestamp
    if metadata:
        message["metadata"] = metadata
    return {"id": msg_id, "message": message}


def make_chatgpt_conversation(nodes: dict[str, Any], **fields: Any) -> dict[str, Any]:
    return {"id": "conv-1", "title": "Test Chat", "mapping": nodes, **fields}


def make_claude_conversation(messages: list[dict[str, Any]], **fields: Any) -> dict[str, Any]:
    return {"uuid": "claude-1", "name": "Claude Chat", "chat_messages": messages, **fields}


def mock_client(handler) -> httpx.AsyncClient:
    """AsyncClient whose requests are answered by ``handler``."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class RequestLog:
    """MockTransport handler wrapper recording ``(method, url)`` pairs."""

    def __init__(self, handler) -> None:
        self.handler = handler
        self.calls: list[tuple[str, str]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append((request.method, str(request.url)))
        return self.handler(request)
