"""Shared extractor contract and helpers.

Every extractor answers two questions about an ``ImportPayload``:

- ``score(payload)``: how confident it is (0-100) that it understands the input
- ``extract(payload)``: the conversations it finds, ``[]`` when none

Structured JSON extractors are driven by synonym-key tables rather than
per-platform branching: ``ConversationFields``/``TurnFields`` list, in
priority order, every key a platform has been seen to use for a concept.
Adding a platform with a flat message array is a new table, not new code.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from aihistory.config import ParserSettings
from aihistory.lib.json import parse_json_safe
from aihistory.lib.log import get_logger
from aihistory.lib.models import (
    AttachmentInput,
    ImportPayload,
    NormalizedConversation,
    NormalizedTurn,
    SourcePlatform,
)
from aihistory.lib.roles import Role, RoleNormalizer
from aihistory.lib.text import first_present, first_string, to_text
from aihistory.lib.timestamps import to_iso

logger = get_logger(__name__)

CONVERSATION_CONTAINER_KEYS: tuple[str, ...] = ("conversations",)


@runtime_checkable
class FormatExtractor(Protocol):
    """Contract every registered extractor fulfils."""

    name: str

    def score(self, payload: ImportPayload) -> int: ...

    def extract(self, payload: ImportPayload) -> list[NormalizedConversation]: ...


@dataclass(frozen=True)
class ConversationFields:
    """Synonym keys for conversation-level fields, highest priority first."""

    turns: tuple[str, ...]
    id: tuple[str, ...] = ("id", "uuid", "conversationId", "conversation_id")
    title: tuple[str, ...] = ("title", "name")
    created: tuple[str, ...] = ("createdAt", "create_time", "created_at")
    updated: tuple[str, ...] = ("updatedAt", "update_time", "updated_at")
    summary: tuple[str, ...] = ("summary",)


@dataclass(frozen=True)
class TurnFields:
    """Synonym keys for turn-level fields, highest priority first."""

    role: tuple[str, ...]
    text: tuple[str, ...]
    timestamp: tuple[str, ...] = ("timestamp", "time", "createdAt", "created_at")
    model: tuple[str, ...] = ("model",)
    thought: tuple[str, ...] = ()
    token_count: tuple[str, ...] = field(default=("tokenCount", "token_count"))


def has_json_extension(filename: str) -> bool:
    return filename.lower().endswith(".json")


def iter_conversation_objects(
    parsed: Any,
    container_keys: Sequence[str] = CONVERSATION_CONTAINER_KEYS,
) -> Iterator[Mapping[str, Any]]:
    """Flatten the three root shapes exports use into conversation objects.

    - a list of conversation objects
    - an object holding such a list under a container key
    - a single conversation object
    """
    if isinstance(parsed, list):
        for item in parsed:
            if isinstance(item, Mapping):
                yield item
        return
    if isinstance(parsed, Mapping):
        for key in container_keys:
            nested = parsed.get(key)
            if isinstance(nested, list):
                yield from iter_conversation_objects(nested, ())
                return
        yield parsed


def coerce_token_count(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float) and value.is_integer() and value >= 0:
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def build_turn(
    role: Role,
    content: str,
    *,
    thought: str | None = None,
    attachments: Sequence[AttachmentInput] = (),
    model: str | None = None,
    timestamp: str | None = None,
    token_count: int | None = None,
) -> NormalizedTurn | None:
    """Build a turn, or None when it has neither text nor attachments."""
    content = content.strip()
    if not content and not attachments:
        return None
    thought = thought.strip() if thought else None
    return NormalizedTurn(
        role=role,
        content_markdown=content,
        thought_markdown=thought or None,
        attachments=tuple(attachments),
        model=model,
        timestamp=timestamp,
        token_count=token_count,
    )


def build_conversation(
    *,
    source: SourcePlatform,
    title: str,
    turns: Sequence[NormalizedTurn],
    imported_from: str,
    source_conversation_id: str | None = None,
    summary: str | None = None,
    created_at: str | None = None,
    updated_at: str | None = None,
    meta: Mapping[str, Any] | None = None,
) -> NormalizedConversation | None:
    """Assemble an imported conversation; None when no turns survived."""
    if not turns:
        return None
    return NormalizedConversation(
        source=source,
        source_conversation_id=source_conversation_id,
        title=title,
        summary=summary,
        created_at=created_at,
        updated_at=updated_at,
        turns=tuple(turns),
        meta={"imported_from": imported_from, **(meta or {})},
    )


class StructuredJsonParser:
    """Base for platforms with a JSON export of conversation objects.

    Subclasses set ``platform``, ``conversation_fields`` and ``untitled`` and
    implement ``score_heuristics``.  A flat list of message objects is read
    through ``turn_fields``; any other turn layout overrides ``extract_turns``
    instead and needs no turn table.
    """

    platform: SourcePlatform
    conversation_fields: ConversationFields
    turn_fields: TurnFields
    untitled: str = "Untitled Conversation"

    def __init__(self, settings: ParserSettings | None = None) -> None:
        self.settings = settings or ParserSettings()
        self.normalize_role = RoleNormalizer(self.settings.default_role)

    @property
    def name(self) -> str:
        return self.platform.value

    def score(self, payload: ImportPayload) -> int:
        if payload.source_hint is self.platform:
            return 100
        return self.score_heuristics(payload)

    def score_heuristics(self, payload: ImportPayload) -> int:
        raise NotImplementedError

    def extract(self, payload: ImportPayload) -> list[NormalizedConversation]:
        parsed = parse_json_safe(payload.content)
        if parsed is None:
            logger.debug("no_json_payload", parser=self.name, filename=payload.filename)
            return []
        conversations: list[NormalizedConversation] = []
        for record in iter_conversation_objects(parsed):
            conversation = self.conversation_from(record, payload.filename)
            if conversation is not None:
                conversations.append(conversation)
        return conversations

    def conversation_from(self, record: Mapping[str, Any], filename: str) -> NormalizedConversation | None:
        fields = self.conversation_fields
        return build_conversation(
            source=self.platform,
            source_conversation_id=first_string(record, fields.id),
            title=first_string(record, fields.title) or self.untitled,
            summary=first_string(record, fields.summary),
            created_at=to_iso(first_present(record, fields.created)),
            updated_at=to_iso(first_present(record, fields.updated)),
            turns=self.extract_turns(record),
            imported_from=filename,
        )

    def extract_turns(self, record: Mapping[str, Any]) -> list[NormalizedTurn]:
        rows = first_present(record, self.conversation_fields.turns)
        if not isinstance(rows, list):
            return []
        turns: list[NormalizedTurn] = []
        for row in rows:
            if not isinstance(row, Mapping):
                continue
            turn = self.turn_from(row)
            if turn is not None:
                turns.append(turn)
        return turns

    def turn_from(self, row: Mapping[str, Any]) -> NormalizedTurn | None:
        fields = self.turn_fields
        model = first_present(row, fields.model)
        thought = to_text(first_present(row, fields.thought)) if fields.thought else None
        return build_turn(
            self.normalize_role(first_present(row, fields.role)),
            to_text(first_present(row, fields.text)),
            thought=thought,
            model=model if isinstance(model, str) else None,
            timestamp=to_iso(first_present(row, fields.timestamp)),
            token_count=coerce_token_count(first_present(row, fields.token_count)),
        )


__all__ = [
    "ConversationFields",
    "FormatExtractor",
    "StructuredJsonParser",
    "TurnFields",
    "build_conversation",
    "build_turn",
    "coerce_token_count",
    "has_json_extension",
    "iter_conversation_objects",
]
