"""
Entry classification for transcript JSONL lines.

Each decoded line is mapped onto one of a closed set of entry variants.
Shapes we don't recognize become an ``UnknownEntry`` that callers skip,
so classification itself never raises.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Union

from .models import (
    ContentBlock,
    ProcessedMessage,
    TextContent,
    ThinkingContent,
    ToolResultContent,
    ToolUseContent,
    parse_content,
)


# =============================================================================
# Entry Types (top-level JSONL entries)
# =============================================================================

@dataclass
class FileHistorySnapshotEntry:
    """File history snapshot entry. Carries nothing we display."""
    raw: dict = field(repr=False)


@dataclass
class ProgressEntry:
    """Progress entry; only used to link subagent transcripts to their Task call."""
    agent_id: str | None
    progress_type: str | None
    parent_tool_use_id: str | None
    raw: dict = field(repr=False)

    @staticmethod
    def from_dict(d: dict) -> ProgressEntry:
        data = d.get("data")
        if not isinstance(data, dict):
            data = {}
        return ProgressEntry(
            agent_id=_opt_str(data.get("agentId")),
            progress_type=_opt_str(data.get("type")),
            parent_tool_use_id=_opt_str(d.get("parentToolUseID")),
            raw=d,
        )


@dataclass
class MessageEntry:
    """Shared shape of user and assistant entries."""
    uuid: str
    parent_uuid: str | None
    timestamp: str
    role: str
    content: str | list[ContentBlock]
    raw: dict = field(repr=False)
    model: str | None = None

    @property
    def session_id(self) -> str | None:
        return _opt_str(self.raw.get("sessionId"))

    @property
    def cwd(self) -> str:
        return _opt_str(self.raw.get("cwd")) or ""

    @property
    def version(self) -> str:
        return _opt_str(self.raw.get("version")) or ""

    @property
    def git_branch(self) -> str | None:
        # An empty branch means "not in a repository"
        return _opt_str(self.raw.get("gitBranch")) or None

    @property
    def epoch_millis(self) -> int | None:
        return parse_timestamp(self.timestamp)


@dataclass
class UserEntry(MessageEntry):
    """User message entry (prompts and tool results)."""


@dataclass
class AssistantEntry(MessageEntry):
    """Assistant response entry."""


@dataclass
class UnknownEntry:
    """Anything we can't classify. Callers skip these."""
    reason: str
    raw: Any = field(repr=False, default=None)


Entry = Union[FileHistorySnapshotEntry, UserEntry, AssistantEntry, ProgressEntry, UnknownEntry]


# =============================================================================
# Classification
# =============================================================================

def classify_entry(d: Any) -> Entry:
    """Classify a decoded JSON value into an entry variant."""
    if not isinstance(d, dict):
        return UnknownEntry(reason=f"expected an object, got {type(d).__name__}", raw=d)

    entry_type = d.get("type")
    if entry_type == "file-history-snapshot":
        return FileHistorySnapshotEntry(raw=d)
    if entry_type == "progress":
        return ProgressEntry.from_dict(d)
    if entry_type == "user":
        return _message_entry(UserEntry, "user", d)
    if entry_type == "assistant":
        return _message_entry(AssistantEntry, "assistant", d)
    return UnknownEntry(reason=f"unrecognized entry type {entry_type!r}", raw=d)


def _message_entry(entry_cls: type[MessageEntry], default_role: str, d: dict) -> Entry:
    message = d.get("message")
    if not isinstance(message, dict):
        return UnknownEntry(reason=f"{default_role} entry without a message object", raw=d)

    raw_content = message.get("content")
    if isinstance(raw_content, str):
        content: str | list[ContentBlock] = raw_content
    elif isinstance(raw_content, list):
        content = parse_content(raw_content)
    else:
        return UnknownEntry(reason=f"{default_role} entry with unsupported content", raw=d)

    return entry_cls(
        uuid=_opt_str(d.get("uuid")) or "",
        parent_uuid=_opt_str(d.get("parentUuid")),
        timestamp=_opt_str(d.get("timestamp")) or "",
        role=_opt_str(message.get("role")) or default_role,
        content=content,
        raw=d,
        model=_opt_str(message.get("model")),
    )


def _opt_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_timestamp(ts: str | None) -> int | None:
    """Parse an ISO-8601 timestamp into epoch milliseconds."""
    if not ts:
        return None
    try:
        parsed = datetime.fromisoformat(ts.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return (parsed - _EPOCH) // timedelta(milliseconds=1)


# =============================================================================
# Message Processing
# =============================================================================

def extract_text(content: str | list[ContentBlock]) -> str:
    """Flatten message content to its text. Plain string content passes through."""
    if isinstance(content, str):
        return content
    return "\n".join(b.text for b in content if isinstance(b, TextContent))


def process_message(entry: MessageEntry) -> ProcessedMessage:
    """
    Build a ProcessedMessage from a user or assistant entry.

    Tool results are only collected from this entry's own content; pairing
    with results logged in later entries happens in the parser.
    """
    content = entry.content
    processed = ProcessedMessage(
        uuid=entry.uuid,
        parent_uuid=entry.parent_uuid,
        timestamp=entry.timestamp,
        role=entry.role,
        text_content=extract_text(content),
        model=entry.model,
    )
    if isinstance(content, str):
        return processed

    for block in content:
        if isinstance(block, ThinkingContent):
            processed.thinking_blocks.append(block)
        elif isinstance(block, ToolUseContent):
            processed.tool_use_blocks.append(block)
        elif isinstance(block, ToolResultContent):
            processed.tool_results[block.tool_use_id] = block
    return processed
