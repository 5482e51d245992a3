"""Unified role normalization for aihistory.

Maps platform-specific role tokens onto the closed ``Role`` enumeration.
Unrecognized tokens fall back to a configurable role (``assistant`` unless
``ParserSettings.default_role`` says otherwise).
"""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Canonical conversation roles."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


ROLE_MAP: dict[str, Role] = {
    "user": Role.USER,
    "human": Role.USER,
    "prompt": Role.USER,
    "author": Role.USER,
    "assistant": Role.ASSISTANT,
    "model": Role.ASSISTANT,
    "bot": Role.ASSISTANT,
    "ai": Role.ASSISTANT,
    "response": Role.ASSISTANT,
    "system": Role.SYSTEM,
    "developer": Role.SYSTEM,
    "tool": Role.TOOL,
    "function": Role.TOOL,
    "tool_use": Role.TOOL,
    "tool_result": Role.TOOL,
}


class RoleNormalizer:
    """Callable that turns any raw role value into a ``Role``."""

    __slots__ = ("fallback",)

    def __init__(self, fallback: Role = Role.ASSISTANT) -> None:
        self.fallback = fallback

    def __call__(self, raw: object) -> Role:
        if isinstance(raw, Role):
            return raw
        if not isinstance(raw, str):
            return self.fallback
        return ROLE_MAP.get(raw.strip().lower(), self.fallback)


def normalize_role(raw: object, fallback: Role = Role.ASSISTANT) -> Role:
    """Normalize a platform role token to a canonical Role.

    Args:
        raw: Platform-specific role value (e.g. "human", "model", "bot").
             Non-strings and empty strings take the fallback.
        fallback: Role returned for unrecognized tokens.

    Returns:
        Canonical Role enum value.
    """
    return RoleNormalizer(fallback)(raw)


__all__ = ["ROLE_MAP", "Role", "RoleNormalizer", "normalize_role"]
