"""
Session store: the query surface over a Claude Code projects directory.

Every operation is async and total. Missing or unreadable directories and
files come back as empty sequences or None, never as exceptions.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from . import config
from .cache import SummaryCache
from .models import ProjectGroup, Session, SessionSummary
from .parser import parse_session_file
from .paths import decode_project_path
from .subagents import AGENT_FILE_PREFIX, TRANSCRIPT_SUFFIX, load_subagents
from .tasks import run_bounded

logger = logging.getLogger("session_index.store")


def _is_safe_name(name: str) -> bool:
    """A single path component: no separators, no traversal."""
    if not name or name in (".", ".."):
        return False
    return os.sep not in name and (os.altsep is None or os.altsep not in name)


class SessionStore:
    """Lists, summarizes and loads the sessions under a projects directory."""

    def __init__(
        self,
        projects_dir: Path | str | None = None,
        cache: SummaryCache | None = None,
        concurrency: int | None = None,
    ):
        self.projects_dir = Path(projects_dir) if projects_dir is not None else config.PROJECTS_DIR
        self.cache = cache if cache is not None else SummaryCache()
        self.concurrency = concurrency or config.MAX_CONCURRENT_OPERATIONS

    def clear_cache(self) -> None:
        self.cache.clear()

    async def list_projects(self) -> list[str]:
        """Encoded names of the project directories."""
        return await asyncio.to_thread(self._list_projects)

    def _list_projects(self) -> list[str]:
        try:
            with os.scandir(self.projects_dir) as it:
                return sorted(e.name for e in it if e.is_dir())
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.error("Failed to list projects in %s: %s", self.projects_dir, e)
            return []

    async def list_session_files(self, project_encoded: str) -> list[Path]:
        """Primary transcripts of a project; ``agent-*`` subagent files are excluded."""
        if not _is_safe_name(project_encoded):
            return []
        return await asyncio.to_thread(self._list_session_files, project_encoded)

    def _list_session_files(self, project_encoded: str) -> list[Path]:
        project_dir = self.projects_dir / project_encoded
        try:
            names = sorted(os.listdir(project_dir))
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.error("Failed to list sessions in %s: %s", project_dir, e)
            return []
        return [
            project_dir / name
            for name in names
            if name.endswith(TRANSCRIPT_SUFFIX) and not name.startswith(AGENT_FILE_PREFIX)
        ]

    async def get_project_sessions(self, project_encoded: str) -> ProjectGroup | None:
        """Summaries of one project's sessions, newest first; None if it has none."""
        files = await self.list_session_files(project_encoded)
        summaries = await run_bounded(
            [lambda f=f: self.cache.get_or_compute(f) for f in files],
            self.concurrency,
        )
        sessions = [s for s in summaries if s is not None]
        if not sessions:
            return None

        sessions.sort(key=lambda s: s.start_time or 0, reverse=True)
        project = await asyncio.to_thread(decode_project_path, project_encoded)
        return ProjectGroup(project=project, project_encoded=project_encoded, sessions=sessions)

    async def get_all_sessions(self) -> list[ProjectGroup]:
        """All projects with at least one session, most recently started first."""
        projects = await self.list_projects()
        groups = await run_bounded(
            [lambda p=p: self.get_project_sessions(p) for p in projects],
            self.concurrency,
        )
        result = [g for g in groups if g is not None]
        result.sort(key=lambda g: g.latest_start_time, reverse=True)
        return result

    async def get_all_session_summaries(self) -> list[SessionSummary]:
        """Every session summary, flattened in project-group order."""
        groups = await self.get_all_sessions()
        return [s for g in groups for s in g.sessions]

    async def get_session(self, session_id: str, project_encoded: str) -> Session | None:
        """Load a session with its linked subagent transcripts."""
        if not (_is_safe_name(session_id) and _is_safe_name(project_encoded)):
            return None

        project_dir = self.projects_dir / project_encoded
        file_path = project_dir / f"{session_id}{TRANSCRIPT_SUFFIX}"

        result = await asyncio.to_thread(parse_session_file, file_path)
        session = result.session
        if session is None:
            return None

        session.subagents = await load_subagents(
            project_dir,
            session_id,
            session.messages,
            result.agent_links,
            self.concurrency,
        )
        return session
