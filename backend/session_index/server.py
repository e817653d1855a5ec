#!/usr/bin/env python3
"""
HTTP API over the session index.

Usage:
    session-index [--claude-dir DIR] [--host HOST] [--port PORT]
    python -m session_index.server  # defaults to ~/.claude
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from . import config
from .models import ProjectGroup, SessionSummary
from .store import SessionStore

logger = logging.getLogger("session_index.server")


# =============================================================================
# Pydantic models for API responses
# =============================================================================

class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SessionSummaryResponse(ApiModel):
    """A session as shown in listings."""
    id: str
    project: str
    project_encoded: str
    first_message: str
    message_count: int
    start_time: int | None
    end_time: int | None
    git_branch: str | None
    model: str | None
    file_path: str


class ProjectGroupResponse(ApiModel):
    project: str
    project_encoded: str
    sessions: list[SessionSummaryResponse]


class CacheClearResponse(ApiModel):
    cleared: int


class StatsResponse(ApiModel):
    total_projects: int
    total_sessions: int
    total_messages: int
    cached_summaries: int


# =============================================================================
# Conversion functions
# =============================================================================

def summary_to_response(summary: SessionSummary) -> SessionSummaryResponse:
    """Convert a SessionSummary to its API response."""
    return SessionSummaryResponse(
        id=summary.id,
        project=summary.project,
        project_encoded=summary.project_encoded,
        first_message=summary.first_message,
        message_count=summary.message_count,
        start_time=summary.start_time,
        end_time=summary.end_time,
        git_branch=summary.git_branch,
        model=summary.model,
        file_path=summary.file_path,
    )


def group_to_response(group: ProjectGroup) -> ProjectGroupResponse:
    return ProjectGroupResponse(
        project=group.project,
        project_encoded=group.project_encoded,
        sessions=[summary_to_response(s) for s in group.sessions],
    )


# =============================================================================
# Application
# =============================================================================

def create_app(store: SessionStore | None = None) -> FastAPI:
    """Build the API around ``store`` (a default store over ``config.PROJECTS_DIR`` otherwise)."""
    store = store or SessionStore()
    app = FastAPI(title="Session Index API")
    app.state.store = store

    # Enable CORS for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/projects", response_model=list[str])
    async def list_projects():
        """Encoded names of all project directories."""
        return await store.list_projects()

    @app.get("/api/sessions", response_model=list[ProjectGroupResponse])
    async def list_sessions():
        """Session summaries grouped by project, most recent first."""
        groups = await store.get_all_sessions()
        return [group_to_response(g) for g in groups]

    @app.get("/api/sessions/summaries", response_model=list[SessionSummaryResponse])
    async def list_session_summaries():
        summaries = await store.get_all_session_summaries()
        return [summary_to_response(s) for s in summaries]

    @app.get("/api/projects/{project_encoded}/sessions", response_model=ProjectGroupResponse)
    async def list_project_sessions(project_encoded: str):
        group = await store.get_project_sessions(project_encoded)
        if group is None:
            raise HTTPException(status_code=404, detail=f"No sessions for project: {project_encoded}")
        return group_to_response(group)

    @app.get("/api/projects/{project_encoded}/sessions/{session_id}")
    async def get_session(project_encoded: str, session_id: str):
        """Full session with messages and linked subagent transcripts."""
        session = await store.get_session(session_id, project_encoded)
        if session is None:
            raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
        return session.to_dict()

    @app.post("/api/cache/clear", response_model=CacheClearResponse)
    async def clear_cache():
        cleared = len(store.cache)
        store.clear_cache()
        logger.info("Cleared %d cached session summaries", cleared)
        return CacheClearResponse(cleared=cleared)

    @app.get("/api/stats", response_model=StatsResponse)
    async def get_stats():
        """Get overall statistics."""
        groups = await store.get_all_sessions()
        return StatsResponse(
            total_projects=len(groups),
            total_sessions=sum(len(g.sessions) for g in groups),
            total_messages=sum(s.message_count for g in groups for s in g.sessions),
            cached_summaries=len(store.cache),
        )

    return app


# =============================================================================
# Main
# =============================================================================

def main():
    parser = argparse.ArgumentParser(description="Session Index API server")
    parser.add_argument(
        "--claude-dir",
        type=Path,
        default=config.CLAUDE_DIR,
        help="Claude Code data directory containing projects/ (default: %(default)s)",
    )
    parser.add_argument("--port", "-p", type=int, default=config.PORT, help="Port to run on")
    parser.add_argument("--host", default=config.HOST, help="Host to bind to")
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Logging level")

    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper())

    projects_dir = args.claude_dir.expanduser() / "projects"
    if not projects_dir.exists():
        logger.warning("Projects directory not found: %s", projects_dir)

    app = create_app(SessionStore(projects_dir))
    logger.info("Serving sessions from %s at http://%s:%d", projects_dir, args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
