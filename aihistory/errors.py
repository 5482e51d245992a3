"""aihistory error hierarchy.

All project exceptions inherit from AiHistoryError, enabling:
- ``except AiHistoryError`` at the library boundary
- Fine-grained catches inside the resolver (``except AttachmentPolicyError``)

Hierarchy:
    AiHistoryError
    ├── ConfigError
    └── AttachmentError
        ├── AttachmentNetworkError      # timeout, DNS, connection reset
        ├── AttachmentHTTPError         # non-2xx with no usable redirect hint
        └── AttachmentPolicyError       # oversized, bad scheme, HTML instead of bytes

Attachment errors never escape ``AttachmentResolver.resolve``; they are
folded into an ``AttachmentFetchResult`` whose ``error_kind`` names the branch.
"""

from __future__ import annotations


class AiHistoryError(Exception):
    """Base class for all aihistory errors."""


class ConfigError(AiHistoryError):
    """Raised when a configuration file cannot be interpreted."""


class AttachmentError(AiHistoryError):
    """Base class for attachment resolution failures."""

    kind = "exhausted"

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class AttachmentNetworkError(AttachmentError):
    kind = "network"


class AttachmentHTTPError(AttachmentError):
    kind = "http"


class AttachmentPolicyError(AttachmentError):
    kind = "policy"


__all__ = [
    "AiHistoryError",
    "AttachmentError",
    "AttachmentHTTPError",
    "AttachmentNetworkError",
    "AttachmentPolicyError",
    "ConfigError",
]
