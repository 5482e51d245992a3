"""Claude export parser: ``chat_messages`` with text and thinking content blocks."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from aihistory.lib.models import ImportPayload, NormalizedTurn, SourcePlatform
from aihistory.lib.text import first_present, to_text
from aihistory.lib.timestamps import to_iso

from .base import ConversationFields, StructuredJsonParser, TurnFields, build_turn, has_json_extension


def split_content_blocks(blocks: list[Any]) -> tuple[str, str]:
    """Return (text, thinking) joined from a Claude content block list."""
    texts: list[str] = []
    thoughts: list[str] = []
    for block in blocks:
        if isinstance(block, str):
            texts.append(block)
            continue
        if not isinstance(block, Mapping):
            continue
        block_type = block.get("type")
        if block_type == "thinking":
            thinking = block.get("thinking")
            if isinstance(thinking, str) and thinking.strip():
                thoughts.append(thinking)
        elif block_type in (None, "text"):
            text = to_text(block)
            if text.strip():
                texts.append(text)
    return "\n\n".join(texts), "\n\n".join(thoughts)


class ClaudeParser(StructuredJsonParser):
    """claude.ai export: conversations with a flat ``chat_messages`` array."""

    platform = SourcePlatform.CLAUDE
    untitled = "Untitled Claude Conversation"
    conversation_fields = ConversationFields(turns=("chat_messages",))
    turn_fields = TurnFields(
        role=("sender", "role"),
        text=("text", "content"),
        timestamp=("created_at", "updated_at", "timestamp"),
    )

    def score_heuristics(self, payload: ImportPayload) -> int:
        name = payload.filename.lower()
        if not has_json_extension(name):
            return 0
        if '"chat_messages"' in payload.head(self.settings.sniff_chars):
            return 96
        if "claude" in name:
            return 90
        return 0

    def turn_from(self, row: Mapping[str, Any]) -> NormalizedTurn | None:
        fields = self.turn_fields
        text, thought = "", ""
        blocks = row.get("content")
        if isinstance(blocks, list):
            text, thought = split_content_blocks(blocks)
        if not text.strip():
            text = to_text(row.get("text"))
        return build_turn(
            self.normalize_role(first_present(row, fields.role)),
            text,
            thought=thought or None,
            timestamp=to_iso(first_present(row, fields.timestamp)),
        )


__all__ = ["ClaudeParser", "split_content_blocks"]
