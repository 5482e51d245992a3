"""Sources package: detect, extract and clean conversations from every platform.

- sources/parsers/: export file / saved page → NormalizedConversation per format
- sources/cleaners.py: per-platform UI chrome and boilerplate removal
- sources/registry.py: score-based format detection and dispatch
- sources/live_capture.py: in-page captures → NormalizedConversation
"""

from __future__ import annotations

from .cleaners import CleanerRegistry, PlatformTextCleaner, clean_turn, default_cleaners
from .live_capture import live_capture_to_conversation
from .parsers import FormatExtractor
from .registry import ParserRegistry, ParserSelection, default_extractors, default_registry

__all__ = [
    "CleanerRegistry",
    "FormatExtractor",
    "ParserRegistry",
    "ParserSelection",
    "PlatformTextCleaner",
    "clean_turn",
    "default_cleaners",
    "default_extractors",
    "default_registry",
    "live_capture_to_conversation",
]
