"""
Session Models - ADTs for indexed Claude Code transcripts.

Content blocks mirror the JSONL wire format. The processed types are the
engine's output: normalized messages, full sessions with their subagent
transcripts, and the lightweight summaries used for listings. Every type
serializes with ``to_dict()`` using the camelCase keys consumers expect.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar


# =============================================================================
# Content Block Types
# =============================================================================

@dataclass
class ContentBlock(ABC):
    """Base class for message content blocks.

    Subclasses name their wire tag and the fields they put on the wire;
    fields that are None are left out of the serialized block.
    """
    tag: ClassVar[str]

    @abstractmethod
    def wire_fields(self) -> dict[str, Any]:
        pass

    def to_dict(self) -> dict:
        d = {"type": self.tag}
        d.update((k, v) for k, v in self.wire_fields().items() if v is not None)
        return d


@dataclass
class TextContent(ContentBlock):
    """Text content block."""
    tag = "text"
    text: str

    @staticmethod
    def from_dict(d: dict) -> TextContent:
        return TextContent(text=_as_str(d.get("text")))

    def wire_fields(self) -> dict[str, Any]:
        return {"text": self.text}


@dataclass
class ThinkingContent(ContentBlock):
    """Thinking content block (extended thinking)."""
    tag = "thinking"
    thinking: str
    signature: str | None = None

    @staticmethod
    def from_dict(d: dict) -> ThinkingContent:
        return ThinkingContent(
            thinking=_as_str(d.get("thinking")),
            signature=_opt_str(d.get("signature")),
        )

    def wire_fields(self) -> dict[str, Any]:
        return {"thinking": self.thinking, "signature": self.signature}


@dataclass
class ToolUseContent(ContentBlock):
    """Tool use content block.

    ``agent_id`` is never read from the transcript; it is stamped once the
    subagent transcript launched by this call has been linked.
    """
    tag = "tool_use"
    id: str
    name: str
    input: dict[str, Any]
    agent_id: str | None = None

    @staticmethod
    def from_dict(d: dict) -> ToolUseContent:
        tool_input = d.get("input")
        return ToolUseContent(
            id=_as_str(d.get("id")),
            name=_as_str(d.get("name")),
            input=tool_input if isinstance(tool_input, dict) else {},
        )

    def wire_fields(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "input": self.input, "agentId": self.agent_id}


@dataclass
class ToolResultContent(ContentBlock):
    """Tool result content block. ``content`` is a string or a list of text/image items."""
    tag = "tool_result"
    tool_use_id: str
    content: str | list[dict]
    is_error: bool = False

    @staticmethod
    def from_dict(d: dict) -> ToolResultContent:
        content = d.get("content")
        if not isinstance(content, (str, list)):
            content = ""
        return ToolResultContent(
            tool_use_id=_as_str(d.get("tool_use_id")),
            content=content,
            is_error=d.get("is_error") is True,
        )

    def wire_fields(self) -> dict[str, Any]:
        return {
            "tool_use_id": self.tool_use_id,
            "content": self.content,
            "is_error": True if self.is_error else None,
        }


BLOCK_TYPES: dict[str, type[ContentBlock]] = {
    cls.tag: cls for cls in (TextContent, ThinkingContent, ToolUseContent, ToolResultContent)
}


def parse_content_block(d: Any) -> ContentBlock | None:
    """Parse a content block, or return None for shapes we don't index (images etc.)."""
    if not isinstance(d, dict):
        return None
    block_type = d.get("type")
    if not isinstance(block_type, str):
        return None
    block_cls = BLOCK_TYPES.get(block_type)
    if block_cls is None:
        return None
    return block_cls.from_dict(d)


def parse_content(content: list) -> list[ContentBlock]:
    """Parse a block-array message content, dropping unrecognized blocks."""
    blocks = []
    for item in content:
        block = parse_content_block(item)
        if block is not None:
            blocks.append(block)
    return blocks


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _opt_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


# =============================================================================
# Processed Types
# =============================================================================

@dataclass
class ProcessedMessage:
    """A user or assistant entry normalized for display."""
    uuid: str
    parent_uuid: str | None
    timestamp: str
    role: str
    text_content: str = ""
    thinking_blocks: list[ThinkingContent] = field(default_factory=list)
    tool_use_blocks: list[ToolUseContent] = field(default_factory=list)
    tool_results: dict[str, ToolResultContent] = field(default_factory=dict)
    model: str | None = None

    @property
    def has_content(self) -> bool:
        """Whether the message carries anything worth showing."""
        return bool(
            self.text_content.strip()
            or self.thinking_blocks
            or self.tool_use_blocks
        )

    def to_dict(self) -> dict:
        d = {
            "uuid": self.uuid,
            "parentUuid": self.parent_uuid,
            "timestamp": self.timestamp,
            "role": self.role,
            "textContent": self.text_content,
            "thinkingBlocks": [b.to_dict() for b in self.thinking_blocks],
            "toolUseBlocks": [b.to_dict() for b in self.tool_use_blocks],
            "toolResults": {k: v.to_dict() for k, v in self.tool_results.items()},
        }
        if self.model is not None:
            d["model"] = self.model
        return d


@dataclass
class SubagentSession:
    """A delegated task's transcript, linked to the tool call that started it."""
    agent_id: str
    parent_tool_use_id: str
    messages: list[ProcessedMessage] = field(default_factory=list)

    @property
    def message_count(self) -> int:
        return len(self.messages)

    def to_dict(self) -> dict:
        return {
            "agentId": self.agent_id,
            "parentToolUseId": self.parent_tool_use_id,
            "messages": [m.to_dict() for m in self.messages],
            "messageCount": self.message_count,
        }


@dataclass
class Session:
    """One primary transcript file, fully materialized."""
    id: str
    project: str
    project_encoded: str
    file_path: str
    messages: list[ProcessedMessage] = field(default_factory=list)
    git_branch: str | None = None
    cwd: str = ""
    version: str = ""
    start_time: int | None = None
    end_time: int | None = None
    subagents: dict[str, SubagentSession] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project": self.project,
            "projectEncoded": self.project_encoded,
            "gitBranch": self.git_branch,
            "cwd": self.cwd,
            "version": self.version,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "messages": [m.to_dict() for m in self.messages],
            "filePath": self.file_path,
            "subagents": {k: v.to_dict() for k, v in self.subagents.items()},
        }


@dataclass
class SessionSummary:
    """Message-body-free projection of a session, used for listings."""
    id: str
    project: str
    project_encoded: str
    file_path: str
    first_message: str = ""
    message_count: int = 0
    start_time: int | None = None
    end_time: int | None = None
    git_branch: str | None = None
    model: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project": self.project,
            "projectEncoded": self.project_encoded,
            "firstMessage": self.first_message,
            "messageCount": self.message_count,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "gitBranch": self.git_branch,
            "model": self.model,
            "filePath": self.file_path,
        }


@dataclass
class ProjectGroup:
    """A project directory and its sessions, newest first."""
    project: str
    project_encoded: str
    sessions: list[SessionSummary] = field(default_factory=list)

    @property
    def latest_start_time(self) -> int:
        if not self.sessions:
            return 0
        return self.sessions[0].start_time or 0

    def to_dict(self) -> dict:
        return {
            "project": self.project,
            "projectEncoded": self.project_encoded,
            "sessions": [s.to_dict() for s in self.sessions],
        }
