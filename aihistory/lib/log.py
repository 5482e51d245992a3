"""Structured logging for aihistory.

Modules log key-value events through ``get_logger(__name__)``.  Nothing is
configured at import time; a host application calls ``configure_logging``
once.  Attachment URLs are usually pre-signed, so every rendered event passes
through ``redact_signed_urls`` first.
"""

from __future__ import annotations

import logging
import re
import sys
from typing import Any, TextIO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_SIGNED_PARAM_RE = re.compile(
    r"([?&](?:sig|signature|se|sp|st|skoid|token|access_token|expires|key"
    r"|x-amz-signature|x-amz-credential|x-amz-security-token|x-goog-signature|x-goog-credential)=)[^&#\s]+",
    re.IGNORECASE,
)
REDACTED = "[redacted]"


class _StderrProxy:
    """Writes to whatever sys.stderr is at write time (pytest swaps it per test)."""

    def write(self, s: str) -> int:
        return sys.stderr.write(s)

    def flush(self) -> None:
        sys.stderr.flush()

    def isatty(self) -> bool:
        return sys.stderr.isatty()


_stderr_proxy: TextIO = _StderrProxy()  # type: ignore[assignment]


def redact_url(value: str) -> str:
    """Mask signature-bearing query parameters in a URL-like string."""
    if "://" not in value:
        return value
    return _SIGNED_PARAM_RE.sub(rf"\1{REDACTED}", value)


def redact_signed_urls(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = redact_url(value)
    return event_dict


def configure_logging(verbose: bool = False, json_logs: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_signed_urls,
    ]
    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=_stderr_proxy),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None, **initial: Any) -> Any:
    """Return a structlog logger, optionally pre-bound with context."""
    logger = structlog.get_logger(name)
    if initial:
        return logger.bind(**initial)
    return logger


__all__ = ["REDACTED", "configure_logging", "get_logger", "redact_signed_urls", "redact_url"]
