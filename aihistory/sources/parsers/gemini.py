"""Gemini / Takeout JSON exports, read through a flat turn table."""

from __future__ import annotations

from aihistory.lib.models import ImportPayload, SourcePlatform

from .base import ConversationFields, StructuredJsonParser, TurnFields, has_json_extension

GEMINI_CONVERSATION_FIELDS = ConversationFields(
    turns=("turns", "messages", "history", "entries", "chat_messages"),
)

# No thought keys: Gemini exports render reasoning as UI chrome, never as data.
GEMINI_TURN_FIELDS = TurnFields(
    role=("role", "author", "sender", "type"),
    text=("text", "content", "parts", "candidates", "message"),
    timestamp=("timestamp", "createTime", "create_time", "createdAt", "time"),
)


class GeminiParser(StructuredJsonParser):
    """Gemini / Takeout JSON with a flat message array per conversation."""

    platform = SourcePlatform.GEMINI
    untitled = "Untitled Gemini Conversation"
    conversation_fields = GEMINI_CONVERSATION_FIELDS
    turn_fields = GEMINI_TURN_FIELDS

    def score_heuristics(self, payload: ImportPayload) -> int:
        name = payload.filename.lower()
        if not has_json_extension(name):
            return 0
        if "gemini" in name:
            return 90
        if "takeout" in name:
            return 60
        return 0


__all__ = ["GEMINI_CONVERSATION_FIELDS", "GEMINI_TURN_FIELDS", "GeminiParser"]
