"""aihistory - AI conversation history import library.

Turns ChatGPT, Claude, Gemini and AI Studio exports, saved chat pages and
live page captures into one canonical conversation shape, and resolves the
attachment links those conversations carry into self-contained data URLs.

Example:
    from aihistory import ImportPayload, default_registry

    payload = ImportPayload(filename="conversations.json", data=raw_bytes)
    for conversation in default_registry().parse(payload):
        print(conversation.title, conversation.turn_count)
"""

from aihistory.attachments import AttachmentResolver
from aihistory.config import Settings
from aihistory.errors import AiHistoryError
from aihistory.facade import AiHistory
from aihistory.lib.models import (
    AttachmentFetchResult,
    AttachmentInput,
    CapturedTurn,
    ImportPayload,
    LiveCaptureRequest,
    NormalizedConversation,
    NormalizedTurn,
    ProbeResult,
    SourcePlatform,
)
from aihistory.lib.roles import Role
from aihistory.sources import ParserRegistry, default_registry, live_capture_to_conversation

__all__ = [
    "AiHistory",
    "AiHistoryError",
    "AttachmentFetchResult",
    "AttachmentInput",
    "AttachmentResolver",
    "CapturedTurn",
    "ImportPayload",
    "LiveCaptureRequest",
    "NormalizedConversation",
    "NormalizedTurn",
    "ParserRegistry",
    "ProbeResult",
    "Role",
    "Settings",
    "SourcePlatform",
    "default_registry",
    "live_capture_to_conversation",
]
