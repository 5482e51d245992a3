"""ChatGPT export parser.

A ChatGPT conversation stores its messages as a parent-linked ``mapping`` of
nodes rather than a list.  Nodes are ordered by ``create_time`` with untimed
nodes last.  Hidden system nodes are skipped; reasoning nodes become the
thought of the next assistant turn.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from aihistory.lib.models import (
    AttachmentInput,
    AttachmentKind,
    ImportPayload,
    NormalizedTurn,
    SourcePlatform,
)
from aihistory.lib.roles import Role
from aihistory.lib.text import to_text
from aihistory.lib.timestamps import to_iso

from .base import ConversationFields, StructuredJsonParser, build_turn, has_json_extension

THOUGHT_CONTENT_TYPES = frozenset({"thoughts", "reasoning_recap"})


def _coerce_float(value: object) -> float | None:
    # Exclude bool explicitly (bool is a subclass of int)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def ordered_messages(mapping: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    """Messages of a node mapping in chronological order.

    Untimed messages sort after timed ones; map position breaks ties.
    """
    entries: list[tuple[float | None, int, Mapping[str, Any]]] = []
    for idx, node in enumerate(mapping.values()):
        if not isinstance(node, Mapping):
            continue
        msg = node.get("message")
        if not isinstance(msg, Mapping):
            continue
        entries.append((_coerce_float(msg.get("create_time")), idx, msg))
    # Explicit None check so zero/negative timestamps still sort correctly
    entries.sort(key=lambda item: (item[0] is None, item[0] if item[0] is not None else 0.0, item[1]))
    return [entry[2] for entry in entries]


def _image_attachments(parts: object) -> list[AttachmentInput]:
    if not isinstance(parts, list):
        return []
    attachments = []
    for part in parts:
        if not isinstance(part, Mapping) or part.get("content_type") != "image_asset_pointer":
            continue
        pointer = part.get("asset_pointer")
        if isinstance(pointer, str) and pointer:
            attachments.append(AttachmentInput(kind=AttachmentKind.IMAGE, original_url=pointer))
    return attachments


def _thought_text(content: Mapping[str, Any]) -> str:
    # "thoughts" nodes carry a list of {summary, content}; recaps a plain string
    return to_text(content.get("thoughts")) or to_text(content)


class ChatGPTParser(StructuredJsonParser):
    """ChatGPT ``conversations.json``: a parent-linked node ``mapping`` per conversation."""

    platform = SourcePlatform.CHATGPT
    untitled = "Untitled ChatGPT Conversation"
    conversation_fields = ConversationFields(turns=("mapping",))

    def score_heuristics(self, payload: ImportPayload) -> int:
        name = payload.filename.lower()
        is_json = has_json_extension(name)
        if is_json and name.rsplit("/", 1)[-1].startswith("conversations"):
            return 95
        if is_json and "chatgpt" in name:
            return 80
        if '"mapping"' in payload.head(self.settings.sniff_chars):
            return 60
        return 0

    def extract_turns(self, record: Mapping[str, Any]) -> list[NormalizedTurn]:
        mapping = record.get("mapping")
        if not isinstance(mapping, Mapping):
            return []

        turns: list[NormalizedTurn] = []
        pending_thoughts: list[str] = []
        for msg in ordered_messages(mapping):
            metadata = msg.get("metadata")
            if not isinstance(metadata, Mapping):
                metadata = {}
            if metadata.get("is_visually_hidden_from_conversation"):
                continue
            content = msg.get("content")
            if not isinstance(content, Mapping):
                continue

            if content.get("content_type") in THOUGHT_CONTENT_TYPES:
                thought = _thought_text(content).strip()
                if thought:
                    pending_thoughts.append(thought)
                continue

            author = msg.get("author")
            role = self.normalize_role(author.get("role") if isinstance(author, Mapping) else None)
            parts = content.get("parts")
            text = to_text(parts if parts is not None else content.get("text"))
            model = metadata.get("model_slug")

            thought = None
            if role is Role.ASSISTANT and pending_thoughts:
                thought = "\n\n".join(pending_thoughts)

            turn = build_turn(
                role,
                text,
                thought=thought,
                attachments=_image_attachments(parts),
                model=model if isinstance(model, str) and model else None,
                timestamp=to_iso(msg.get("create_time")),
            )
            if turn is None:
                continue
            if thought is not None:
                pending_thoughts = []
            turns.append(turn)
        return turns


__all__ = ["ChatGPTParser", "ordered_messages"]
