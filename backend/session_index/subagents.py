"""
Subagent transcript discovery and linkage.

A Task tool call runs a subagent whose transcript is written to its own
``agent-<id>.jsonl`` file, either under ``<session>/subagents/`` or directly
in the project directory. The primary transcript's progress entries name the
agent and the tool call that launched it; that link is what ties the two
files together.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from .models import ProcessedMessage, SubagentSession
from .parser import parse_subagent_file
from .tasks import run_bounded

logger = logging.getLogger("session_index.subagents")

AGENT_FILE_PREFIX = "agent-"
TRANSCRIPT_SUFFIX = ".jsonl"
SUBAGENT_TOOL_NAMES = frozenset({"Task"})


def agent_id_from_path(file_path: Path) -> str:
    """``agent-abc123.jsonl`` -> ``abc123``."""
    return file_path.stem[len(AGENT_FILE_PREFIX):]


def _agent_files_in(directory: Path) -> list[Path]:
    try:
        names = sorted(os.listdir(directory))
    except FileNotFoundError:
        return []
    except OSError as e:
        logger.warning("Failed to list %s for agent files: %s", directory, e)
        return []
    return [
        directory / name
        for name in names
        if name.startswith(AGENT_FILE_PREFIX) and name.endswith(TRANSCRIPT_SUFFIX)
    ]


def find_subagent_files(project_dir: Path, session_id: str) -> list[Path]:
    """Candidate subagent files: the session's ``subagents`` directory first, then the project directory."""
    project_dir = Path(project_dir)
    nested = _agent_files_in(project_dir / session_id / "subagents")
    flat = _agent_files_in(project_dir)
    return nested + flat


def link_subagents(
    messages: list[ProcessedMessage],
    agent_links: dict[str, str],
    parsed: list[tuple[str, list[ProcessedMessage]]],
) -> dict[str, SubagentSession]:
    """
    Build the subagent map and stamp ``agent_id`` on the Task calls that launched them.

    Args:
        messages: The primary session's messages; their tool-use blocks are updated.
        agent_links: agent id -> parent tool-use id, from the primary transcript.
        parsed: (agent id, messages) per candidate file, in discovery order.

    Agents without a link or without messages are dropped. An agent id found
    in both storage locations is attached once, from the first location.
    """
    subagents: dict[str, SubagentSession] = {}
    for agent_id, agent_messages in parsed:
        parent_tool_use_id = agent_links.get(agent_id)
        if not parent_tool_use_id or not agent_messages or agent_id in subagents:
            continue
        subagents[agent_id] = SubagentSession(
            agent_id=agent_id,
            parent_tool_use_id=parent_tool_use_id,
            messages=agent_messages,
        )

    for msg in messages:
        for tool_use in msg.tool_use_blocks:
            if tool_use.name not in SUBAGENT_TOOL_NAMES:
                continue
            for agent_id, subagent in subagents.items():
                if subagent.parent_tool_use_id == tool_use.id:
                    tool_use.agent_id = agent_id
                    break
    return subagents


async def load_subagents(
    project_dir: Path,
    session_id: str,
    messages: list[ProcessedMessage],
    agent_links: dict[str, str],
    concurrency: int,
) -> dict[str, SubagentSession]:
    """Discover, parse and link the subagent transcripts of one session."""
    files = await asyncio.to_thread(find_subagent_files, project_dir, session_id)
    # Files without a link are never parsed
    linked = [f for f in files if agent_id_from_path(f) in agent_links]

    def parse_task(path: Path):
        async def run() -> tuple[str, list[ProcessedMessage]]:
            return agent_id_from_path(path), await asyncio.to_thread(parse_subagent_file, path)
        return run

    parsed = await run_bounded([parse_task(f) for f in linked], concurrency)
    return link_subagents(messages, agent_links, parsed)
