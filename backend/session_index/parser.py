"""
Streaming parsers for transcript JSONL files.

Files are read line by line so large histories never have to fit in memory.
Each line is decoded on its own; a malformed or unrecognized line is logged
and skipped without affecting the rest of the file. All entry points return
an empty result instead of raising when the file can't be read.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from . import config
from .entries import (
    AssistantEntry,
    Entry,
    MessageEntry,
    ProgressEntry,
    UnknownEntry,
    UserEntry,
    classify_entry,
    extract_text,
    process_message,
)
from .models import ProcessedMessage, Session, SessionSummary, ToolResultContent
from .paths import decode_project_path

logger = logging.getLogger("session_index.parser")

PROJECTS_SEGMENT = "projects"
REPLACEMENT_CHAR = "\ufffd"


@dataclass
class ParseResult:
    """A primary transcript parse: the session (if any) and its subagent links."""
    session: Session | None
    # agent id -> id of the Task tool_use that launched it
    agent_links: dict[str, str] = field(default_factory=dict)


# =============================================================================
# Helpers
# =============================================================================

def iter_entries(file_path: Path) -> Iterator[Entry]:
    """
    Yield the classified entries of a JSONL file, skipping blank lines,
    malformed JSON and unrecognized shapes.

    Bytes that aren't valid UTF-8 are replaced with U+FFFD rather than
    failing the file; lines where that happened are logged at debug level.

    Raises OSError if the file can't be opened or read.
    """
    with open(file_path, "r", encoding="utf-8", errors="replace") as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            if REPLACEMENT_CHAR in line:
                logger.debug("Line %d in %s contains replacement characters (invalid UTF-8?)", line_num, file_path)
            try:
                d = json.loads(line)
            except (ValueError, RecursionError) as e:
                logger.warning("Skipping malformed line %d in %s: %s", line_num, file_path, e)
                continue
            try:
                entry = classify_entry(d)
            except Exception as e:
                logger.warning("Skipping unclassifiable line %d in %s: %r", line_num, file_path, e)
                continue
            if isinstance(entry, UnknownEntry):
                logger.debug("Skipping line %d in %s: %s", line_num, file_path, entry.reason)
                continue
            yield entry


def project_from_path(file_path: Path) -> tuple[str, str]:
    """Return (decoded project path, encoded directory name) for a transcript path."""
    parents = file_path.parent.parts
    for i in range(len(parents) - 2, -1, -1):
        if parents[i] == PROJECTS_SEGMENT:
            encoded = parents[i + 1]
            return decode_project_path(encoded), encoded
    return "", ""


class _MessageCollector:
    """Accumulates processed messages and pairs tool results logged in later entries."""

    def __init__(self) -> None:
        self.messages: list[ProcessedMessage] = []
        self.pending_results: dict[str, ToolResultContent] = {}

    def add(self, entry: MessageEntry) -> None:
        processed = process_message(entry)
        if isinstance(entry, UserEntry):
            self.pending_results.update(processed.tool_results)
        if processed.has_content:
            self.messages.append(processed)

    def finish(self) -> list[ProcessedMessage]:
        for msg in self.messages:
            for tool_use in msg.tool_use_blocks:
                result = self.pending_results.get(tool_use.id)
                if result is not None:
                    msg.tool_results[tool_use.id] = result
        return self.messages


class _TimeRange:
    def __init__(self) -> None:
        self.start: int | None = None
        self.end: int | None = None

    def observe(self, millis: int | None) -> None:
        if millis is None:
            return
        if self.start is None or millis < self.start:
            self.start = millis
        if self.end is None or millis > self.end:
            self.end = millis


# =============================================================================
# Parsing Functions
# =============================================================================

def parse_session_file(file_path: Path | str) -> ParseResult:
    """
    Parse a primary transcript into a Session plus its subagent links.

    The session is None when no displayable message survives, even if the
    file itself is well-formed. Subagents are not attached here.
    """
    file_path = Path(file_path)
    project, project_encoded = project_from_path(file_path)

    collector = _MessageCollector()
    times = _TimeRange()
    agent_links: dict[str, str] = {}
    first: MessageEntry | None = None

    try:
        for entry in iter_entries(file_path):
            if isinstance(entry, ProgressEntry):
                if entry.agent_id and entry.parent_tool_use_id:
                    agent_links[entry.agent_id] = entry.parent_tool_use_id
                continue
            if not isinstance(entry, (UserEntry, AssistantEntry)):
                continue

            # Session metadata is taken from the first message only
            if first is None:
                first = entry
            times.observe(entry.epoch_millis)
            collector.add(entry)
    except OSError as e:
        logger.warning("Failed to read session file %s: %s", file_path, e)
        return ParseResult(session=None)

    messages = collector.finish()
    if not messages:
        return ParseResult(session=None, agent_links=agent_links)

    session = Session(
        id=file_path.stem,
        project=project,
        project_encoded=project_encoded,
        file_path=str(file_path),
        messages=messages,
        git_branch=first.git_branch if first else None,
        cwd=first.cwd if first else "",
        version=first.version if first else "",
        start_time=times.start,
        end_time=times.end,
    )
    return ParseResult(session=session, agent_links=agent_links)


def parse_subagent_file(file_path: Path | str) -> list[ProcessedMessage]:
    """Parse a subagent transcript into its displayable messages."""
    file_path = Path(file_path)
    collector = _MessageCollector()
    try:
        for entry in iter_entries(file_path):
            if isinstance(entry, (UserEntry, AssistantEntry)):
                collector.add(entry)
    except OSError as e:
        logger.warning("Failed to read subagent file %s: %s", file_path, e)
        return []
    return collector.finish()


def get_session_summary(
    file_path: Path | str,
    max_chars: int = config.FIRST_MESSAGE_MAX_CHARS,
) -> SessionSummary | None:
    """
    Summarize a transcript without materializing message bodies.

    ``message_count`` counts every user and assistant entry, including ones
    the full parse would drop as empty. Returns None for missing files and
    files without any user or assistant entry.
    """
    file_path = Path(file_path)
    project, project_encoded = project_from_path(file_path)

    count = 0
    first_message = ""
    git_branch: str | None = None
    model: str | None = None
    times = _TimeRange()

    try:
        for entry in iter_entries(file_path):
            if not isinstance(entry, (UserEntry, AssistantEntry)):
                continue
            count += 1
            if count == 1:
                git_branch = entry.git_branch
            if not first_message and isinstance(entry, UserEntry):
                first_message = extract_text(entry.content)[:max_chars]
            if model is None and isinstance(entry, AssistantEntry) and entry.model:
                model = entry.model
            times.observe(entry.epoch_millis)
    except OSError as e:
        logger.warning("Failed to summarize session file %s: %s", file_path, e)
        return None

    if count == 0:
        return None

    return SessionSummary(
        id=file_path.stem,
        project=project,
        project_encoded=project_encoded,
        file_path=str(file_path),
        first_message=first_message,
        message_count=count,
        start_time=times.start,
        end_time=times.end,
        git_branch=git_branch,
        model=model,
    )
