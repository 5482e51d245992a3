"""Format extractors: export file / saved page → NormalizedConversation."""

from .aistudio import AIStudioParser
from .base import (
    ConversationFields,
    FormatExtractor,
    StructuredJsonParser,
    TurnFields,
    build_conversation,
    build_turn,
    iter_conversation_objects,
)
from .chatgpt import ChatGPTParser
from .claude import ClaudeParser
from .gemini import GeminiParser
from .html import HtmlParser
from .markdown import MarkdownParser
from .markers import MarkedTextParser, detect_source_from_text, parse_marked_turns

__all__ = [
    "AIStudioParser",
    "ChatGPTParser",
    "ClaudeParser",
    "ConversationFields",
    "FormatExtractor",
    "GeminiParser",
    "HtmlParser",
    "MarkdownParser",
    "MarkedTextParser",
    "StructuredJsonParser",
    "TurnFields",
    "build_conversation",
    "build_turn",
    "detect_source_from_text",
    "iter_conversation_objects",
    "parse_marked_turns",
]
