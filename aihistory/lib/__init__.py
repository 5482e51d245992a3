"""Shared building blocks: models, roles, timestamps, text and JSON helpers."""

from aihistory.lib.models import (
    AttachmentFetchResult,
    AttachmentInput,
    AttachmentKind,
    AttachmentStatus,
    CapturedTurn,
    ImportPayload,
    LiveCaptureRequest,
    NormalizedConversation,
    NormalizedTurn,
    ProbeResult,
    SourcePlatform,
)
from aihistory.lib.roles import Role, RoleNormalizer, normalize_role
from aihistory.lib.text import first_present, strip_html, to_text
from aihistory.lib.timestamps import parse_timestamp, to_iso

__all__ = [
    "AttachmentFetchResult",
    "AttachmentInput",
    "AttachmentKind",
    "AttachmentStatus",
    "CapturedTurn",
    "ImportPayload",
    "LiveCaptureRequest",
    "NormalizedConversation",
    "NormalizedTurn",
    "ProbeResult",
    "Role",
    "RoleNormalizer",
    "SourcePlatform",
    "first_present",
    "normalize_role",
    "parse_timestamp",
    "strip_html",
    "to_iso",
    "to_text",
]
