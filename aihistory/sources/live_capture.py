"""Live page captures → NormalizedConversation.

A capture script running inside the chat page has already split the page
into turns; this module only cleans them up and stamps provenance.
"""

from __future__ import annotations

from aihistory.attachments.classify import infer_attachment_kind, infer_attachment_mime, infer_kind_from_mime
from aihistory.lib.models import (
    AttachmentInput,
    AttachmentKind,
    LiveCaptureRequest,
    NormalizedConversation,
    NormalizedTurn,
    SourcePlatform,
)

from .cleaners import CleanerRegistry, clean_turn, default_cleaners

CAPTURED_BY = "extension"

# Platforms whose captured "thoughts" are page chrome rather than model reasoning
THOUGHTLESS_PLATFORMS = frozenset({SourcePlatform.GEMINI})


def refine_attachment(attachment: AttachmentInput) -> AttachmentInput:
    """Fill in MIME and narrow a generic ``file`` kind from the URL or MIME."""
    url = attachment.original_url
    kind = attachment.kind
    if kind is AttachmentKind.FILE:
        kind = infer_kind_from_mime(attachment.mime) or infer_attachment_kind(url)
    mime = attachment.mime or infer_attachment_mime(kind, url)
    if kind is attachment.kind and mime == attachment.mime:
        return attachment
    return attachment.model_copy(update={"kind": kind, "mime": mime})


def live_capture_to_conversation(
    request: LiveCaptureRequest,
    cleaners: CleanerRegistry | None = None,
) -> NormalizedConversation:
    """Convert a capture request; turns left empty after cleaning are dropped."""
    cleaner = (cleaners or default_cleaners()).for_platform(request.source)
    keep_thoughts = request.source not in THOUGHTLESS_PLATFORMS

    turns: list[NormalizedTurn] = []
    for captured in request.turns:
        if captured.attachments:
            captured = captured.model_copy(
                update={"attachments": tuple(refine_attachment(a) for a in captured.attachments)}
            )
        turn = clean_turn(cleaner, captured, keep_thoughts=keep_thoughts)
        if turn is not None:
            turns.append(turn)

    return NormalizedConversation(
        source=request.source,
        source_conversation_id=request.page_url,
        title=request.title,
        created_at=request.captured_at,
        updated_at=request.captured_at,
        turns=tuple(turns),
        meta={
            "page_url": request.page_url,
            "captured_by": CAPTURED_BY,
            "schema_version": request.version,
        },
    )


__all__ = ["live_capture_to_conversation", "refine_attachment"]
