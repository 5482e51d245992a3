"""Google AI Studio prompt exports.

Recognised by filename only: an AI Studio marker, or a JSON file named after
a prompt.  The message list sits under ``messages``, ``turns``, ``history`` or
``prompts``.
"""

from __future__ import annotations

from aihistory.lib.models import ImportPayload, SourcePlatform

from .base import ConversationFields, StructuredJsonParser, TurnFields, has_json_extension

AI_STUDIO_NAME_MARKERS = ("ai studio", "aistudio", "google-ai-studio", "ai-studio")

AI_STUDIO_CONVERSATION_FIELDS = ConversationFields(
    turns=("messages", "turns", "history", "prompts"),
)

AI_STUDIO_TURN_FIELDS = TurnFields(
    role=("role", "author", "sender"),
    text=("content", "text", "parts", "data"),
    timestamp=("timestamp", "createTime", "createdAt", "time"),
    token_count=("tokenCount", "token_count"),
)


class AIStudioParser(StructuredJsonParser):
    """Google AI Studio prompt exports."""

    platform = SourcePlatform.AI_STUDIO
    untitled = "Untitled AI Studio Conversation"
    conversation_fields = AI_STUDIO_CONVERSATION_FIELDS
    turn_fields = AI_STUDIO_TURN_FIELDS

    def score_heuristics(self, payload: ImportPayload) -> int:
        name = payload.filename.lower()
        if any(marker in name for marker in AI_STUDIO_NAME_MARKERS):
            return 92
        if has_json_extension(name) and "prompt" in name:
            return 40
        return 0


__all__ = ["AI_STUDIO_CONVERSATION_FIELDS", "AI_STUDIO_TURN_FIELDS", "AIStudioParser"]
