"""Indexing of Claude Code JSONL transcripts: parsing, summaries and subagent linkage."""

from .cache import SummaryCache
from .models import (
    ProcessedMessage,
    ProjectGroup,
    Session,
    SessionSummary,
    SubagentSession,
)
from .paths import decode_project_path, encode_project_path
from .store import SessionStore

__version__ = "0.1.0"

__all__ = [
    "ProcessedMessage",
    "ProjectGroup",
    "Session",
    "SessionStore",
    "SessionSummary",
    "SubagentSession",
    "SummaryCache",
    "decode_project_path",
    "encode_project_path",
]
